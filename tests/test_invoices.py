import pytest
from datetime import date
from decimal import Decimal
from rental_desk.errors import NotFoundError, StateError, ValidationError
from rental_desk.models import InvoiceStatus
from rental_desk.services.invoice_service import InvoiceService, rental_type_label
from rental_desk.services.rental_service import RentalService


@pytest.fixture
def invoice(app, init_data):
    application = RentalService.create({
        'client_id': init_data['customer'].id,
        'rental_type': 'HOURLY',
        'period_type': 'HOURLY',
        'room_id': init_data['hall'].id,
        'start_date': '2025-03-03',
        'start_time': '10:00',
        'end_time': '12:00',
    })
    return application.invoices[0]

def test_first_number_of_the_day(app):
    assert InvoiceService.generate_invoice_number(date(2025, 3, 3)) == 'INV-20250303-0001'

def test_invoice_describes_the_rental(invoice):
    assert invoice.item_name == 'Hourly rental: Hall №101'
    assert 'Rental 0000001' in invoice.item_description
    assert '10:00-12:00' in invoice.item_description
    assert invoice.quantity == 2

def test_partial_then_full_payment(invoice):
    InvoiceService.register_payment(invoice.id, 40)
    assert invoice.status == InvoiceStatus.PARTIALLY_PAID.value
    assert invoice.paid_amount == Decimal('40')

    InvoiceService.register_payment(invoice.id, '60')
    assert invoice.status == InvoiceStatus.PAID.value
    assert invoice.paid_at is not None

    with pytest.raises(StateError, match="cannot take payments"):
        InvoiceService.register_payment(invoice.id, 1)

def test_overpayment_is_rejected(invoice):
    with pytest.raises(ValidationError, match="exceeds the outstanding amount"):
        InvoiceService.register_payment(invoice.id, 150)

def test_payment_amount_validation(invoice):
    with pytest.raises(ValidationError, match="must be a number"):
        InvoiceService.register_payment(invoice.id, 'ten')
    with pytest.raises(ValidationError, match="must be positive"):
        InvoiceService.register_payment(invoice.id, 0)

def test_cancelled_rental_invoice_takes_no_payment(invoice):
    RentalService.cancel(invoice.rental_application_id)
    with pytest.raises(StateError):
        InvoiceService.register_payment(invoice.id, 10)

def test_unknown_invoice(app):
    with pytest.raises(NotFoundError):
        InvoiceService.get(404)

def test_rental_type_labels():
    assert rental_type_label('WORKSPACE_MONTHLY') == 'Workspace (month)'
    assert rental_type_label('SOMETHING_ELSE') == 'SOMETHING_ELSE'
