from rental_desk.extensions import db
from rental_desk.models.enums import BookingStatus
from datetime import datetime

rental_application_workspaces = db.Table(
    'rental_application_workspaces',
    db.Column('rental_application_id', db.Integer, db.ForeignKey('rental_applications.id'), primary_key=True),
    db.Column('workspace_id', db.Integer, db.ForeignKey('workspaces.id'), primary_key=True),
)


class RentalApplication(db.Model):
    """A confirmed occupancy of a room or of coworking workspaces."""
    __tablename__ = 'rental_applications'

    id = db.Column(db.Integer, primary_key=True)
    application_number = db.Column(db.String(16), unique=True, nullable=False)

    rental_type = db.Column(db.String(32), nullable=False)
    period_type = db.Column(db.String(32), nullable=False)

    # Always set: workspace rentals store the room the workspaces belong to
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id'), nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id'), nullable=False, index=True)
    manager_id = db.Column(db.Integer, db.ForeignKey('users.id'))

    start_date = db.Column(db.Date, nullable=False, index=True)
    end_date = db.Column(db.Date, nullable=True, index=True)
    start_time = db.Column(db.Time, nullable=True)
    end_time = db.Column(db.Time, nullable=True)

    base_price = db.Column(db.Numeric(10, 2), default=0)
    adjusted_price = db.Column(db.Numeric(10, 2))
    adjustment_reason = db.Column(db.String(255))
    quantity = db.Column(db.Integer, default=1)
    price_unit = db.Column(db.String(10))
    total_price = db.Column(db.Numeric(12, 2), default=0)

    status = db.Column(db.String(20), default=BookingStatus.ACTIVE.value, index=True)
    event_type = db.Column(db.String(128))
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    cancelled_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)

    room = db.relationship('Room', lazy='joined')
    client = db.relationship('Client', lazy='joined')
    manager = db.relationship('User')
    workspaces = db.relationship('Workspace', secondary=rental_application_workspaces, lazy='selectin',
                                 order_by='Workspace.id')
    selected_days = db.relationship('RentalApplicationDay', backref='application', lazy='selectin',
                                    cascade='all, delete-orphan', order_by='RentalApplicationDay.date')
    invoices = db.relationship('Invoice', backref='application', lazy=True, order_by='Invoice.id')

    @property
    def selected_dates(self):
        return [d.date for d in self.selected_days]

    @property
    def effective_price(self):
        return self.adjusted_price if self.adjusted_price is not None else self.base_price

    def to_dict(self):
        return {
            'id': self.id,
            'application_number': self.application_number,
            'rental_type': self.rental_type,
            'period_type': self.period_type,
            'room_id': self.room_id,
            'room_name': self.room.label if self.room else None,
            'workspace_ids': [w.id for w in self.workspaces],
            'client_id': self.client_id,
            'client_name': self.client.full_name if self.client else None,
            'manager_id': self.manager_id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'start_time': self.start_time.strftime('%H:%M') if self.start_time else None,
            'end_time': self.end_time.strftime('%H:%M') if self.end_time else None,
            'selected_days': [d.isoformat() for d in self.selected_dates],
            'base_price': float(self.base_price or 0),
            'adjusted_price': float(self.adjusted_price) if self.adjusted_price is not None else None,
            'adjustment_reason': self.adjustment_reason,
            'quantity': self.quantity,
            'price_unit': self.price_unit,
            'total_price': float(self.total_price or 0),
            'status': self.status,
            'event_type': self.event_type,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class RentalApplicationDay(db.Model):
    __tablename__ = 'rental_application_days'

    id = db.Column(db.Integer, primary_key=True)
    rental_application_id = db.Column(db.Integer, db.ForeignKey('rental_applications.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
