from rental_desk.extensions import db
from rental_desk.models.enums import WorkspaceStatus

class Room(db.Model):
    __tablename__ = 'rooms'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)
    number = db.Column(db.String(16))
    capacity = db.Column(db.Integer, nullable=False, default=1)
    is_coworking = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)

    # Rates in the smallest currency unit
    hourly_rate = db.Column(db.Numeric(10, 2), default=0)
    daily_rate = db.Column(db.Numeric(10, 2), default=0)
    weekly_rate = db.Column(db.Numeric(10, 2))  # falls back to 7 x daily
    monthly_rate = db.Column(db.Numeric(10, 2), default=0)

    workspaces = db.relationship('Workspace', backref='room', lazy=True, order_by='Workspace.id')

    @property
    def label(self):
        return f"{self.name} №{self.number}" if self.number else self.name

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'number': self.number,
            'capacity': self.capacity,
            'is_coworking': self.is_coworking,
            'is_active': self.is_active,
            'hourly_rate': float(self.hourly_rate or 0),
            'daily_rate': float(self.daily_rate or 0),
            'weekly_rate': float(self.weekly_rate) if self.weekly_rate is not None else None,
            'monthly_rate': float(self.monthly_rate or 0),
        }


class Workspace(db.Model):
    __tablename__ = 'workspaces'

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id'), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    number = db.Column(db.String(16))
    status = db.Column(db.String(20), default=WorkspaceStatus.AVAILABLE.value)

    daily_rate = db.Column(db.Numeric(10, 2), default=0)
    weekly_rate = db.Column(db.Numeric(10, 2))
    monthly_rate = db.Column(db.Numeric(10, 2), default=0)

    __table_args__ = (
        db.UniqueConstraint('room_id', 'name', name='uq_workspace_room_name'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'name': self.name,
            'number': self.number,
            'status': self.status,
            'daily_rate': float(self.daily_rate or 0),
            'weekly_rate': float(self.weekly_rate) if self.weekly_rate is not None else None,
            'monthly_rate': float(self.monthly_rate or 0),
        }
