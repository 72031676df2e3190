import logging
from datetime import datetime, date
from decimal import Decimal, InvalidOperation

from rental_desk.errors import NotFoundError, StateError, ValidationError
from rental_desk.extensions import db
from rental_desk.models import Invoice, InvoiceStatus, RentalType
from rental_desk.services import conflict_reporter

logger = logging.getLogger(__name__)

RENTAL_TYPE_LABELS = {
    RentalType.HOURLY: 'Hourly rental',
    RentalType.WORKSPACE_DAILY: 'Workspace (day)',
    RentalType.WORKSPACE_WEEKLY: 'Workspace (week)',
    RentalType.WORKSPACE_MONTHLY: 'Workspace (month)',
    RentalType.ROOM_DAILY: 'Room (day)',
    RentalType.ROOM_WEEKLY: 'Room (week)',
    RentalType.ROOM_MONTHLY: 'Room (month)',
}


def rental_type_label(rental_type):
    try:
        return RENTAL_TYPE_LABELS[RentalType(rental_type)]
    except ValueError:
        return rental_type


class InvoiceService:

    @staticmethod
    def generate_invoice_number(today=None):
        """Next number of the day, ``INV-YYYYMMDD-NNNN``."""
        prefix = f"INV-{(today or date.today()).strftime('%Y%m%d')}"
        last = Invoice.query.filter(
            Invoice.invoice_number.like(f"{prefix}-%")
        ).order_by(Invoice.invoice_number.desc()).first()

        sequence = 1
        if last:
            sequence = int(last.invoice_number.rsplit('-', 1)[1]) + 1
        return f"{prefix}-{sequence:04d}"

    @staticmethod
    def _fill_from_application(invoice, application):
        invoice.item_name = f"{rental_type_label(application.rental_type)}: {conflict_reporter.resource_label(application)}"
        period = conflict_reporter.period_label(application)
        if application.start_time and application.end_time:
            period += f" ({conflict_reporter.time_label(application)})"
        invoice.item_description = f"Rental {application.application_number}. Period: {period}"
        invoice.quantity = application.quantity
        invoice.unit_price = application.effective_price
        invoice.total_amount = application.total_price

    @staticmethod
    def create_for_application(application):
        """Issue the invoice of a newly booked application. Caller commits."""
        invoice = Invoice(
            invoice_number=InvoiceService.generate_invoice_number(),
            client_id=application.client_id,
            status=InvoiceStatus.PENDING.value,
            paid_amount=0,
        )
        InvoiceService._fill_from_application(invoice, application)
        application.invoices.append(invoice)
        db.session.add(invoice)
        return invoice

    @staticmethod
    def current_invoice(application):
        """Latest non-cancelled invoice of an application, if any."""
        invoices = [i for i in application.invoices if i.status != InvoiceStatus.CANCELLED.value]
        return invoices[-1] if invoices else None

    @staticmethod
    def sync_with_application(application):
        invoice = InvoiceService.current_invoice(application)
        if invoice is None:
            return None
        if invoice.is_paid:
            raise StateError(f"Invoice {invoice.invoice_number} is already paid.")
        InvoiceService._fill_from_application(invoice, application)
        return invoice

    @staticmethod
    def cancel_unpaid(application):
        cancelled = 0
        for invoice in application.invoices:
            if invoice.status == InvoiceStatus.PENDING.value:
                invoice.status = InvoiceStatus.CANCELLED.value
                cancelled += 1
        return cancelled

    @staticmethod
    def get(invoice_id):
        invoice = db.session.get(Invoice, invoice_id)
        if not invoice:
            raise NotFoundError("Invoice not found.")
        return invoice

    @staticmethod
    def register_payment(invoice_id, amount):
        invoice = InvoiceService.get(invoice_id)
        if invoice.status in (InvoiceStatus.CANCELLED.value, InvoiceStatus.PAID.value):
            raise StateError(f"Invoice {invoice.invoice_number} cannot take payments ({invoice.status}).")

        try:
            amount = Decimal(str(amount))
        except (InvalidOperation, TypeError):
            raise ValidationError("amount must be a number.")
        if amount <= 0:
            raise ValidationError("amount must be positive.")

        paid = Decimal(str(invoice.paid_amount or 0)) + amount
        total = Decimal(str(invoice.total_amount or 0))
        if paid > total:
            raise ValidationError(f"Payment exceeds the outstanding amount ({total - paid + amount}).")

        invoice.paid_amount = paid
        if paid == total:
            invoice.status = InvoiceStatus.PAID.value
            invoice.paid_at = datetime.utcnow()
        else:
            invoice.status = InvoiceStatus.PARTIALLY_PAID.value
        db.session.commit()
        logger.info("Payment of %s registered on invoice %s (%s)", amount, invoice.invoice_number, invoice.status)
        return invoice
