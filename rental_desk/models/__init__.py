from rental_desk.models.user import User
from rental_desk.models.client import Client
from rental_desk.models.room import Room, Workspace
from rental_desk.models.rental_application import RentalApplication, RentalApplicationDay, rental_application_workspaces
from rental_desk.models.invoice import Invoice
from rental_desk.models.enums import (
    PeriodType, BookingStatus, RentalType, PriceUnit, InvoiceStatus, WorkspaceStatus
)
