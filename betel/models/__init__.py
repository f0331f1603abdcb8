from .reservation import Reservation
from .passenger import ReservationPassenger
from .payment import Payment
from .ticket_order import TicketOrder
from .admin_user import AdminUser

__all__ = [
    "Reservation", "ReservationPassenger", "Payment", "TicketOrder", "AdminUser"
]
