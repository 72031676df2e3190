import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from rental_desk.errors import ValidationError

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def parse_date(value, field='date'):
    """Parse a ``YYYY-MM-DD`` string. Dates pass through untouched."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field} is required (YYYY-MM-DD).")
    if not DATE_PATTERN.fullmatch(value):
        raise ValidationError(f"Invalid {field}: '{value}'. Use YYYY-MM-DD.")
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f"Invalid {field}: '{value}'. Use YYYY-MM-DD.")


def parse_optional_date(value, field='date'):
    if value in (None, ''):
        return None
    return parse_date(value, field)


def parse_time(value, field='time'):
    """Parse a 24-hour ``HH:MM`` string (00-23 / 00-59)."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not TIME_PATTERN.fullmatch(value):
        raise ValidationError(f"Invalid {field}: '{value}'. Use HH:MM, 24-hour.")
    hours, minutes = value.split(':')
    return time(int(hours), int(minutes))


def parse_optional_time(value, field='time'):
    if value in (None, ''):
        return None
    return parse_time(value, field)


def parse_date_list(values, field='selected_days'):
    if not values:
        return []
    if not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field} must be a list of dates.")
    return sorted({parse_date(v, field) for v in values})


def parse_id_list(values, field='ids'):
    if not values:
        return []
    if not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field} must be a list of ids.")
    try:
        return [int(v) for v in values]
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must contain integer ids.")


def parse_enum(enum_cls, value, field):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(e.value for e in enum_cls)
        raise ValidationError(f"Invalid {field}: '{value}'. Expected one of: {allowed}.")


def parse_optional_money(value, field='amount'):
    """Non-negative decimal amount; empty values give ``None``."""
    if value in (None, ''):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValidationError(f"{field} must be a number.")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number.")
    if amount < 0:
        raise ValidationError(f"{field} must not be negative.")
    return amount


def parse_positive_int(value, field):
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a positive integer.")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a positive integer.")
    if number < 1 or str(number) != str(value).strip():
        raise ValidationError(f"{field} must be a positive integer.")
    return number


def parse_bool(value, field):
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false.")
    return value
