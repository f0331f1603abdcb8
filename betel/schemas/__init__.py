from .auth import *
from .reservation import *
from .payment import *
from .ticket_order import *
from .lookup import *
from .admin import *

__all__ = [
    # Auth
    "Token",

    # Reservación
    "PassengerCreate", "PassengerUpdate", "ReservationPassengersUpdate",
    "PassengerAdminUpdate", "ReservationCreate", "PassengerResponse",
    "ReservationResponse", "ReservationStatusUpdate", "ReservationDetailResponse",

    # Pago
    "ManualPaymentCreate", "PaymentResponse",

    # Entradas
    "TicketOrderItem", "TicketOrderCreate", "TicketOrderResponse",

    # Panel
    "AdminSummary",
]
