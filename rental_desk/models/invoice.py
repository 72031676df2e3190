from rental_desk.extensions import db
from rental_desk.models.enums import InvoiceStatus
from datetime import datetime

class Invoice(db.Model):
    __tablename__ = 'invoices'

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(32), unique=True, nullable=False)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id'), nullable=False, index=True)
    rental_application_id = db.Column(db.Integer, db.ForeignKey('rental_applications.id'), index=True)

    item_name = db.Column(db.String(255))
    item_description = db.Column(db.String(255))
    quantity = db.Column(db.Integer, default=1)
    unit_price = db.Column(db.Numeric(10, 2), default=0)
    total_amount = db.Column(db.Numeric(12, 2), default=0)
    paid_amount = db.Column(db.Numeric(12, 2), default=0)

    status = db.Column(db.String(20), default=InvoiceStatus.PENDING.value, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    paid_at = db.Column(db.DateTime)

    @property
    def is_paid(self):
        return self.status in (InvoiceStatus.PAID.value, InvoiceStatus.PARTIALLY_PAID.value)

    def to_dict(self):
        return {
            'id': self.id,
            'invoice_number': self.invoice_number,
            'client_id': self.client_id,
            'rental_application_id': self.rental_application_id,
            'item_name': self.item_name,
            'item_description': self.item_description,
            'quantity': self.quantity,
            'unit_price': float(self.unit_price or 0),
            'total_amount': float(self.total_amount or 0),
            'paid_amount': float(self.paid_amount or 0),
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'paid_at': self.paid_at.isoformat() if self.paid_at else None,
        }
