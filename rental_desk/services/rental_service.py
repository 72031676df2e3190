import logging
from datetime import datetime

from flask import current_app
from sqlalchemy import and_, or_

from rental_desk.errors import ConflictError, NotFoundError, StateError, ValidationError
from rental_desk.extensions import db
from rental_desk.models import (
    Client, RentalApplication, RentalApplicationDay, Room, Workspace,
    BookingStatus, PeriodType, RentalType
)
from rental_desk.services import conflict_reporter
from rental_desk.services.availability_service import AvailabilityQuery, AvailabilityService
from rental_desk.services.invoice_service import InvoiceService
from rental_desk.services.pricing_service import PricingService
from rental_desk.utils.parsing import parse_enum, parse_optional_date, parse_optional_money

logger = logging.getLogger(__name__)

# Period types each rental type may be booked with
ALLOWED_PERIODS = {
    RentalType.HOURLY: {PeriodType.HOURLY},
    RentalType.ROOM_DAILY: {PeriodType.DAILY, PeriodType.WEEKLY_RECURRING},
    RentalType.ROOM_WEEKLY: {PeriodType.DAILY, PeriodType.WEEKLY_RECURRING},
    RentalType.ROOM_MONTHLY: {PeriodType.SLIDING_MONTH, PeriodType.CALENDAR_MONTH},
    RentalType.WORKSPACE_DAILY: {PeriodType.DAILY, PeriodType.WEEKLY_RECURRING},
    RentalType.WORKSPACE_WEEKLY: {PeriodType.DAILY, PeriodType.WEEKLY_RECURRING},
    RentalType.WORKSPACE_MONTHLY: {PeriodType.SLIDING_MONTH, PeriodType.CALENDAR_MONTH},
}

# Period types that store an explicit list of days
DAY_LIST_PERIODS = (PeriodType.HOURLY, PeriodType.WEEKLY_RECURRING)

SCHEDULE_FIELDS = (
    'period_type', 'start_date', 'end_date', 'start_time', 'end_time',
    'selected_days', 'room_id', 'workspace_ids',
)


def _max_days():
    return current_app.config.get('MAX_RENTAL_DAYS', 365)


class RentalService:

    @staticmethod
    def generate_application_number():
        """Seven-digit sequence: 0000001, 0000002, ..."""
        last = RentalApplication.query.order_by(RentalApplication.application_number.desc()).first()
        next_number = int(last.application_number) + 1 if last else 1
        return f"{next_number:07d}"

    @staticmethod
    def get(application_id):
        application = db.session.get(RentalApplication, application_id)
        if not application:
            raise NotFoundError("Rental application not found.")
        return application

    @staticmethod
    def list(filters=None):
        filters = filters or {}
        q = RentalApplication.query

        if filters.get('status'):
            q = q.filter(RentalApplication.status == filters['status'])
        if filters.get('rental_type'):
            q = q.filter(RentalApplication.rental_type == filters['rental_type'])
        if filters.get('client_id'):
            q = q.filter(RentalApplication.client_id == filters['client_id'])
        if filters.get('room_id'):
            q = q.filter(RentalApplication.room_id == filters['room_id'])

        start = parse_optional_date(filters.get('start_date'), 'start_date')
        end = parse_optional_date(filters.get('end_date'), 'end_date')
        if start and end:
            q = q.filter(
                RentalApplication.start_date <= end,
                or_(RentalApplication.end_date >= start,
                    and_(RentalApplication.end_date.is_(None), RentalApplication.start_date >= start)),
            )

        if filters.get('search'):
            pattern = f"%{filters['search']}%"
            q = q.join(Client, RentalApplication.client_id == Client.id).filter(or_(
                RentalApplication.application_number.ilike(pattern),
                Client.first_name.ilike(pattern),
                Client.last_name.ilike(pattern),
            ))

        return q.order_by(RentalApplication.created_at.desc(), RentalApplication.id.desc()).all()

    @staticmethod
    def _check_period(rental_type, period_type):
        if period_type not in ALLOWED_PERIODS[rental_type]:
            allowed = ', '.join(sorted(p.value for p in ALLOWED_PERIODS[rental_type]))
            raise ValidationError(f"{rental_type.value} rentals use period types: {allowed}.")

    @staticmethod
    def _reserve(rental_type, query, ignore_conflicts=False):
        """Run the availability check and return the room and workspaces to book."""
        result = AvailabilityService.is_available(query, max_days=_max_days())
        if not result.resource_found:
            raise NotFoundError("Resource not found.", {'missing_ids': result.missing_ids})

        bookable = [i for i in query.workspace_ids if i not in result.unavailable_ids]
        if rental_type.is_workspace and not bookable:
            raise StateError("None of the requested workspaces can be booked.",
                             {'unavailable_ids': result.unavailable_ids})
        if not result.available and not ignore_conflicts:
            summaries = conflict_reporter.summarize_conflicts(result.conflicts)
            logger.info("Rental refused: %d conflict(s)", len(summaries))
            raise ConflictError(conflict_reporter.conflict_message(result.conflicts), summaries)

        if rental_type.is_workspace:
            workspace_id = result.selected_workspace_id or bookable[0]
            workspace = db.session.get(Workspace, workspace_id)
            return workspace.room, [workspace]
        return db.session.get(Room, query.room_id), []

    @staticmethod
    def _apply_schedule(application, query, room, workspaces):
        days = query.selected_days if query.period_type in DAY_LIST_PERIODS else []
        application.period_type = query.period_type.value
        application.start_date = days[0] if days else query.start_date
        application.end_date = days[-1] if days else query.end_date
        application.start_time = query.start_time
        application.end_time = query.end_time
        application.room_id = room.id
        application.room = room
        application.workspaces = list(workspaces)
        application.selected_days = [RentalApplicationDay(date=d) for d in days]

    @staticmethod
    def _apply_price(application, rental_type, query, adjusted_price):
        price = PricingService.calculate(rental_type, query, adjusted_price, max_days=_max_days())
        application.base_price = price.base_price
        application.adjusted_price = price.adjusted_price
        application.quantity = price.quantity
        application.price_unit = price.price_unit.value
        application.total_price = price.total_price
        return price

    @staticmethod
    def create(data, manager=None):
        if not data:
            raise ValidationError("No input data provided.")

        try:
            client = db.session.get(Client, int(data.get('client_id')))
        except (TypeError, ValueError):
            raise ValidationError("client_id is required.")
        if not client:
            raise NotFoundError("Client not found.")

        rental_type = parse_enum(RentalType, data.get('rental_type'), 'rental_type')
        query = AvailabilityQuery.from_dict(data)
        RentalService._check_period(rental_type, query.period_type)

        room, workspaces = RentalService._reserve(rental_type, query, bool(data.get('ignore_conflicts')))
        if workspaces:
            # Only the selected workspace is booked and priced
            query.workspace_ids = [w.id for w in workspaces]

        application = RentalApplication(
            application_number=RentalService.generate_application_number(),
            rental_type=rental_type.value,
            client_id=client.id,
            client=client,
            manager_id=manager.id if manager else None,
            status=BookingStatus.ACTIVE.value,
            event_type=data.get('event_type'),
            notes=data.get('notes'),
            adjustment_reason=data.get('adjustment_reason'),
        )
        RentalService._apply_schedule(application, query, room, workspaces)
        RentalService._apply_price(application, rental_type, query,
                                   parse_optional_money(data.get('adjusted_price'), 'adjusted_price'))

        db.session.add(application)
        InvoiceService.create_for_application(application)
        db.session.commit()

        logger.info("Rental %s created for client %s in room %s (%s %s..%s)",
                    application.application_number, client.id, room.id,
                    application.period_type, application.start_date, application.end_date)
        return application

    @staticmethod
    def edit_status(application_id):
        application = RentalService.get(application_id)
        if application.status == BookingStatus.CANCELLED.value:
            return {'can_edit': False, 'reason': 'Rental is cancelled.'}
        if application.status == BookingStatus.COMPLETED.value:
            return {'can_edit': False, 'reason': 'Rental is completed.'}

        invoice = InvoiceService.current_invoice(application)
        status = {
            'can_edit': True,
            'invoice_status': invoice.status if invoice else None,
            'invoice_number': invoice.invoice_number if invoice else None,
        }
        if invoice is not None and invoice.is_paid:
            status['can_edit'] = False
            status['reason'] = f"Invoice {invoice.invoice_number} is already paid."
        return status

    @staticmethod
    def update(application_id, data):
        application = RentalService.get(application_id)
        if not data:
            raise ValidationError("No input data provided.")

        edit = RentalService.edit_status(application_id)
        if not edit['can_edit']:
            raise StateError(edit['reason'])

        rental_type = RentalType(application.rental_type)
        schedule_changed = any(f in data for f in SCHEDULE_FIELDS)

        # Stored days pin start and end, so new dates without new days drop them
        if 'selected_days' in data:
            selected_days = data['selected_days']
        elif 'start_date' in data or 'end_date' in data:
            selected_days = []
        else:
            selected_days = application.selected_dates

        query = AvailabilityQuery.from_dict({
            'rental_type': rental_type.value,
            'period_type': data.get('period_type', application.period_type),
            'start_date': data.get('start_date', application.start_date),
            'end_date': data.get('end_date', application.end_date),
            'start_time': data.get('start_time', application.start_time),
            'end_time': data.get('end_time', application.end_time),
            'selected_days': selected_days,
            'room_id': data.get('room_id', application.room_id),
            'workspace_ids': data.get('workspace_ids', [w.id for w in application.workspaces]),
            'exclude_application_id': application.id,
        })
        RentalService._check_period(rental_type, query.period_type)

        if schedule_changed:
            room, workspaces = RentalService._reserve(rental_type, query, bool(data.get('ignore_conflicts')))
            if workspaces:
                query.workspace_ids = [w.id for w in workspaces]
            RentalService._apply_schedule(application, query, room, workspaces)

        for attr in ('notes', 'event_type', 'adjustment_reason'):
            if attr in data:
                setattr(application, attr, data[attr])

        if 'adjusted_price' in data:
            adjusted = parse_optional_money(data.get('adjusted_price'), 'adjusted_price')
        else:
            adjusted = application.adjusted_price
        if schedule_changed or 'adjusted_price' in data:
            RentalService._apply_price(application, rental_type, query, adjusted)
            InvoiceService.sync_with_application(application)

        db.session.commit()
        logger.info("Rental %s updated", application.application_number)
        return application

    @staticmethod
    def extend(application_id, data, manager=None):
        """Book a follow-up rental with the same resource, client and rate."""
        original = RentalService.get(application_id)
        if original.status == BookingStatus.CANCELLED.value:
            raise StateError("A cancelled rental cannot be extended.")
        data = data or {}
        if not data.get('new_start_date'):
            raise ValidationError("new_start_date is required.")

        payload = {
            'rental_type': original.rental_type,
            'client_id': original.client_id,
            'period_type': original.period_type,
            'start_date': data.get('new_start_date'),
            'end_date': data.get('new_end_date'),
            'start_time': data.get('start_time', original.start_time),
            'end_time': data.get('end_time', original.end_time),
            'selected_days': data.get('selected_days'),
            'room_id': original.room_id,
            'workspace_ids': [w.id for w in original.workspaces],
            'exclude_application_id': original.id,
            'adjusted_price': data.get('adjusted_price', original.adjusted_price),
            'adjustment_reason': data.get('adjustment_reason') or f"Extension of rental {original.application_number}",
            'event_type': original.event_type,
            'notes': f"Extension of rental {original.application_number}. {original.notes or ''}".strip(),
            'ignore_conflicts': data.get('ignore_conflicts'),
        }
        extension = RentalService.create(payload, manager)
        logger.info("Rental %s extended by %s", original.application_number, extension.application_number)
        return extension

    @staticmethod
    def cancel(application_id, reason=None):
        application = RentalService.get(application_id)
        if application.status == BookingStatus.CANCELLED.value:
            raise StateError("Rental is already cancelled.")
        if application.status == BookingStatus.COMPLETED.value:
            raise StateError("A completed rental cannot be cancelled.")

        application.status = BookingStatus.CANCELLED.value
        application.cancelled_at = datetime.utcnow()
        if reason:
            application.notes = f"{application.notes or ''}\n\nCancellation reason: {reason}".strip()
        cancelled_invoices = InvoiceService.cancel_unpaid(application)
        db.session.commit()

        logger.info("Rental %s cancelled (%d invoice(s) cancelled)", application.application_number, cancelled_invoices)
        return application

    @staticmethod
    def complete(application_id):
        application = RentalService.get(application_id)
        if application.status != BookingStatus.ACTIVE.value:
            raise StateError(f"Only active rentals can be completed (status: {application.status}).")
        application.status = BookingStatus.COMPLETED.value
        application.completed_at = datetime.utcnow()
        db.session.commit()
        logger.info("Rental %s completed", application.application_number)
        return application
