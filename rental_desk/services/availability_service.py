import logging
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import List, Optional

from sqlalchemy import and_, or_

from rental_desk.errors import ValidationError
from rental_desk.extensions import db
from rental_desk.models import RentalApplication, Room, Workspace, BookingStatus, PeriodType, RentalType, WorkspaceStatus
from rental_desk.services import conflict_reporter
from rental_desk.services.occupancy import DEFAULT_MAX_DAYS, normalize_booking, span
from rental_desk.utils.parsing import (
    parse_date, parse_optional_date, parse_optional_time, parse_date_list, parse_id_list, parse_enum
)

logger = logging.getLogger(__name__)

# Longest span a single application can occupy beyond its stored end date
# (a sliding month, or a monthly rental without end date)
MONTH_SPAN_DAYS = 31


@dataclass
class AvailabilityQuery:
    period_type: PeriodType
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    selected_days: List[date] = field(default_factory=list)
    room_id: Optional[int] = None
    workspace_ids: List[int] = field(default_factory=list)
    exclude_application_id: Optional[int] = None

    @property
    def selected_dates(self):
        return self.selected_days

    @property
    def is_workspace_query(self):
        return bool(self.workspace_ids)

    @classmethod
    def from_dict(cls, data):
        """Build a query from a JSON payload, rejecting malformed input."""
        if not data:
            raise ValidationError("No input data provided.")

        period_type = parse_enum(PeriodType, data.get('period_type'), 'period_type')
        start_date = parse_date(data.get('start_date'), 'start_date')
        end_date = parse_optional_date(data.get('end_date'), 'end_date')
        if end_date is not None and end_date < start_date:
            raise ValidationError("end_date must not be before start_date.")

        selected_days = parse_date_list(data.get('selected_days'))
        last_allowed = end_date or date.max
        outside = [d for d in selected_days if d < start_date or d > last_allowed]
        if outside:
            raise ValidationError(
                f"selected_days outside the rental period: {', '.join(d.isoformat() for d in outside)}."
            )

        workspace_ids = parse_id_list(data.get('workspace_ids'), 'workspace_ids')
        rental_type = data.get('rental_type')
        if rental_type is not None:
            is_workspace = parse_enum(RentalType, rental_type, 'rental_type').is_workspace
            if is_workspace and not workspace_ids:
                raise ValidationError("workspace_ids are required for workspace rentals.")
            if not is_workspace:
                workspace_ids = []

        room_id = None if workspace_ids else data.get('room_id')
        if not workspace_ids and room_id is None:
            raise ValidationError("room_id or workspace_ids is required.")

        exclude = data.get('exclude_application_id')
        try:
            room_id = int(room_id) if room_id is not None else None
            exclude = int(exclude) if exclude is not None else None
        except (TypeError, ValueError):
            raise ValidationError("room_id and exclude_application_id must be integers.")

        return cls(
            period_type=period_type,
            start_date=start_date,
            end_date=end_date,
            start_time=parse_optional_time(data.get('start_time'), 'start_time'),
            end_time=parse_optional_time(data.get('end_time'), 'end_time'),
            selected_days=selected_days,
            room_id=room_id,
            workspace_ids=workspace_ids,
            exclude_application_id=exclude,
        )


@dataclass
class Conflict:
    booking: RentalApplication
    days: List[date]
    workspace_id: Optional[int] = None


@dataclass
class AvailabilityResult:
    available: bool
    conflicts: List[Conflict] = field(default_factory=list)
    resource_found: bool = True
    missing_ids: List[int] = field(default_factory=list)
    selected_workspace_id: Optional[int] = None
    # Requested workspaces skipped because they are not bookable (maintenance)
    unavailable_ids: List[int] = field(default_factory=list)

    @classmethod
    def not_found(cls, missing_ids):
        return cls(available=False, resource_found=False, missing_ids=list(missing_ids))

    @property
    def conflicting_bookings(self):
        seen = []
        for conflict in self.conflicts:
            if conflict.booking not in seen:
                seen.append(conflict.booking)
        return seen

    def to_dict(self):
        data = {
            'available': self.available,
            'conflicts': conflict_reporter.summarize_conflicts(self.conflicts),
            'resource_found': self.resource_found,
        }
        if not self.resource_found:
            data['error'] = 'resource_not_found'
            data['missing_ids'] = self.missing_ids
        if self.selected_workspace_id is not None:
            data['selected_workspace_id'] = self.selected_workspace_id
        if self.unavailable_ids:
            data['unavailable_ids'] = self.unavailable_ids
        return data


class SqlAlchemyBookingStore:
    """Reads rooms, workspaces and ACTIVE applications from the database.

    Any object offering the same four methods can stand in for it.
    """

    @staticmethod
    def _active_in_window(first_day, last_day):
        # Coarse date-level filter; exact spans are computed after normalization
        return RentalApplication.query.filter(
            RentalApplication.status == BookingStatus.ACTIVE.value,
            RentalApplication.start_date <= last_day,
            or_(
                RentalApplication.end_date >= first_day,
                RentalApplication.end_date.is_(None),
                RentalApplication.start_date >= first_day - timedelta(days=MONTH_SPAN_DAYS),
            ),
        )

    def find_room(self, room_id):
        room = db.session.get(Room, room_id)
        if room is None or not room.is_active:
            return None
        return room

    def find_workspaces(self, workspace_ids):
        # Desks of deactivated rooms count as missing, like the rooms themselves
        rows = Workspace.query.join(Room, Workspace.room_id == Room.id).filter(
            Workspace.id.in_(workspace_ids),
            Room.is_active.is_(True),
        ).all()
        return {w.id: w for w in rows}

    def fetch_active_for_room(self, room_id, first_day, last_day):
        return self._active_in_window(first_day, last_day).filter(
            RentalApplication.room_id == room_id
        ).order_by(RentalApplication.start_date, RentalApplication.id).all()

    def fetch_active_for_workspace(self, workspace, first_day, last_day):
        # Desk bookings of this workspace, plus whole-room bookings of its room
        return self._active_in_window(first_day, last_day).filter(
            or_(
                RentalApplication.workspaces.any(Workspace.id == workspace.id),
                and_(RentalApplication.room_id == workspace.room_id, ~RentalApplication.workspaces.any()),
            )
        ).order_by(RentalApplication.start_date, RentalApplication.id).all()


class AvailabilityService:

    @staticmethod
    def find_conflicts(units, candidates, exclude_application_id=None, workspace_id=None):
        """Compare query units against candidate bookings, keeping every clash."""
        first, last = span(units)
        conflicts = []
        for booking in candidates:
            if exclude_application_id is not None and booking.id == exclude_application_id:
                continue
            booking_units = normalize_booking(booking, max_days=None)
            booking_first, booking_last = span(booking_units)
            if booking_first > last or booking_last < first:
                continue

            days = set()
            for unit in units:
                for other in booking_units:
                    if unit.conflicts_with(other):
                        days.update(unit.common_days(other))
            if days:
                conflicts.append(Conflict(booking=booking, days=sorted(days), workspace_id=workspace_id))
        return conflicts

    @staticmethod
    def is_available(query, store=None, max_days=DEFAULT_MAX_DAYS):
        """Check a room, or a list of workspaces, for the query's period.

        Workspaces are tried in the order given and the first free one is
        selected. Every conflict found is returned, not only the first.
        """
        store = store or SqlAlchemyBookingStore()
        units = normalize_booking(query, max_days=max_days)
        first, last = span(units)

        if query.is_workspace_query:
            return AvailabilityService._check_workspaces(query, units, first, last, store)

        room = store.find_room(query.room_id)
        if room is None:
            logger.info("Availability check for unknown room %s", query.room_id)
            return AvailabilityResult.not_found([query.room_id])

        candidates = store.fetch_active_for_room(room.id, first, last)
        conflicts = AvailabilityService.find_conflicts(units, candidates, query.exclude_application_id)
        if conflicts:
            logger.info("Room %s busy for %s..%s: %d conflict(s)", room.id, first, last, len(conflicts))
        return AvailabilityResult(available=not conflicts, conflicts=conflicts)

    @staticmethod
    def _check_workspaces(query, units, first, last, store):
        found = store.find_workspaces(query.workspace_ids)
        missing = [ws_id for ws_id in query.workspace_ids if ws_id not in found]
        if missing:
            logger.info("Availability check for unknown workspaces %s", missing)
            return AvailabilityResult.not_found(missing)

        all_conflicts = []
        unavailable = []
        for ws_id in query.workspace_ids:
            workspace = found[ws_id]
            if workspace.status != WorkspaceStatus.AVAILABLE.value:
                unavailable.append(ws_id)
                continue
            candidates = store.fetch_active_for_workspace(workspace, first, last)
            conflicts = AvailabilityService.find_conflicts(
                units, candidates, query.exclude_application_id, workspace_id=ws_id
            )
            if not conflicts:
                return AvailabilityResult(available=True, selected_workspace_id=ws_id,
                                          unavailable_ids=unavailable)
            all_conflicts.extend(conflicts)

        logger.info("No free workspace among %s for %s..%s (not bookable: %s)",
                    query.workspace_ids, first, last, unavailable)
        return AvailabilityResult(available=False, conflicts=all_conflicts, unavailable_ids=unavailable)

    @staticmethod
    def hourly_occupancy(room_id, dates, opening_hour=9, closing_hour=22, store=None):
        """Map ``YYYY-MM-DD_HH`` to True for every hourly slot already taken."""
        store = store or SqlAlchemyBookingStore()
        if not dates:
            return {}
        wanted = set(dates)
        occupied = {}
        for booking in store.fetch_active_for_room(room_id, min(wanted), max(wanted)):
            for unit in normalize_booking(booking, max_days=None):
                for day in unit.days():
                    if day not in wanted:
                        continue
                    for hour in range(opening_hour, closing_hour):
                        if unit.is_whole_day or _hour_overlaps(hour, unit.start_time, unit.end_time):
                            occupied[f"{day.isoformat()}_{hour:02d}"] = True
        return occupied

    @staticmethod
    def daily_occupancy(room_id, start_date, end_date, store=None):
        """Map each day of the range to the first booking occupying it, or None."""
        store = store or SqlAlchemyBookingStore()
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date.")
        days = {}
        current = start_date
        while current <= end_date:
            days[current.isoformat()] = None
            current += timedelta(days=1)

        for booking in store.fetch_active_for_room(room_id, start_date, end_date):
            for unit in normalize_booking(booking, max_days=None):
                for day in unit.days():
                    key = day.isoformat()
                    if key in days and days[key] is None:
                        days[key] = {
                            'type': 'rental',
                            'application_id': booking.id,
                            'description': conflict_reporter.describe_booking(booking),
                        }
        return days


def _hour_overlaps(hour, start_time, end_time):
    start = start_time.hour * 60 + start_time.minute
    end = end_time.hour * 60 + end_time.minute
    return hour * 60 < end and (hour + 1) * 60 > start
