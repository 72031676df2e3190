from dataclasses import dataclass
from decimal import Decimal

from rental_desk.errors import NotFoundError, ValidationError
from rental_desk.extensions import db
from rental_desk.models import Room, Workspace, RentalType, PriceUnit
from rental_desk.services.occupancy import (
    normalize_booking, days_count, weeks_count, months_count, hours_count
)


@dataclass
class PriceCalculation:
    base_price: Decimal
    quantity: int
    price_unit: PriceUnit
    total_price: Decimal
    adjusted_price: Decimal = None

    def to_dict(self):
        return {
            'base_price': float(self.base_price),
            'adjusted_price': float(self.adjusted_price) if self.adjusted_price is not None else None,
            'quantity': self.quantity,
            'price_unit': self.price_unit.value,
            'total_price': float(self.total_price),
        }


def _money(value):
    return Decimal(str(value or 0))


def _weekly(weekly_rate, daily_rate):
    if weekly_rate is not None:
        return _money(weekly_rate)
    return _money(daily_rate) * 7


class PricingService:

    @staticmethod
    def calculate(rental_type, query, adjusted_price=None, max_days=None):
        """Price a rental period.

        ``adjusted_price`` replaces the per-unit rate when given; it is never
        read from shared state.
        """
        rental_type = RentalType(rental_type)
        units = normalize_booking(query, max_days=max_days)

        if rental_type.is_workspace:
            workspaces = Workspace.query.filter(Workspace.id.in_(query.workspace_ids)).all()
            if not workspaces or len(workspaces) != len(set(query.workspace_ids)):
                raise NotFoundError("Some workspaces were not found.")
            if rental_type == RentalType.WORKSPACE_DAILY:
                unit = PriceUnit.DAY
                base = sum((_money(w.daily_rate) for w in workspaces), Decimal('0'))
                quantity = days_count(units)
            elif rental_type == RentalType.WORKSPACE_WEEKLY:
                unit = PriceUnit.WEEK
                base = sum((_weekly(w.weekly_rate, w.daily_rate) for w in workspaces), Decimal('0'))
                quantity = weeks_count(query.start_date, query.end_date)
            else:
                unit = PriceUnit.MONTH
                base = sum((_money(w.monthly_rate) for w in workspaces), Decimal('0'))
                quantity = months_count(query.period_type, query.start_date, query.end_date)
        else:
            if query.room_id is None:
                raise ValidationError("room_id is required for room rentals.")
            room = db.session.get(Room, query.room_id)
            if room is None:
                raise NotFoundError("Room not found.")

            if rental_type == RentalType.HOURLY:
                unit = PriceUnit.HOUR
                base = _money(room.hourly_rate)
                quantity = hours_count(query.start_time, query.end_time) * len(units)
            else:
                if not room.is_coworking:
                    raise ValidationError("Room is not a coworking room.")
                if rental_type == RentalType.ROOM_DAILY:
                    unit = PriceUnit.DAY
                    base = _money(room.daily_rate)
                    quantity = days_count(units)
                elif rental_type == RentalType.ROOM_WEEKLY:
                    unit = PriceUnit.WEEK
                    base = _weekly(room.weekly_rate, room.daily_rate)
                    quantity = weeks_count(query.start_date, query.end_date)
                else:
                    unit = PriceUnit.MONTH
                    base = _money(room.monthly_rate)
                    quantity = months_count(query.period_type, query.start_date, query.end_date)

        adjusted = _money(adjusted_price) if adjusted_price is not None else None
        rate = adjusted if adjusted is not None else base
        return PriceCalculation(
            base_price=base,
            quantity=quantity,
            price_unit=unit,
            total_price=rate * quantity,
            adjusted_price=adjusted,
        )
