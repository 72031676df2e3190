from enum import Enum


class PeriodType(str, Enum):
    HOURLY = 'HOURLY'
    DAILY = 'DAILY'
    WEEKLY_RECURRING = 'WEEKLY_RECURRING'
    SLIDING_MONTH = 'SLIDING_MONTH'
    CALENDAR_MONTH = 'CALENDAR_MONTH'


class BookingStatus(str, Enum):
    ACTIVE = 'ACTIVE'
    CANCELLED = 'CANCELLED'
    COMPLETED = 'COMPLETED'


class RentalType(str, Enum):
    HOURLY = 'HOURLY'
    ROOM_DAILY = 'ROOM_DAILY'
    ROOM_WEEKLY = 'ROOM_WEEKLY'
    ROOM_MONTHLY = 'ROOM_MONTHLY'
    WORKSPACE_DAILY = 'WORKSPACE_DAILY'
    WORKSPACE_WEEKLY = 'WORKSPACE_WEEKLY'
    WORKSPACE_MONTHLY = 'WORKSPACE_MONTHLY'

    @property
    def is_workspace(self):
        return self.value.startswith('WORKSPACE_')


class PriceUnit(str, Enum):
    HOUR = 'HOUR'
    DAY = 'DAY'
    WEEK = 'WEEK'
    MONTH = 'MONTH'


class InvoiceStatus(str, Enum):
    PENDING = 'PENDING'
    PARTIALLY_PAID = 'PARTIALLY_PAID'
    PAID = 'PAID'
    CANCELLED = 'CANCELLED'


class WorkspaceStatus(str, Enum):
    AVAILABLE = 'AVAILABLE'
    MAINTENANCE = 'MAINTENANCE'
