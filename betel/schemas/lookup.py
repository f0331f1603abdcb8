from pydantic import BaseModel
from typing import List
from .reservation import ReservationResponse, PassengerResponse
from .payment import PaymentResponse

class ReservationDetailResponse(ReservationResponse):
    """Reservación con pasajeros y pagos (consulta pública y panel)."""
    passengers: List[PassengerResponse] = []
    payments: List[PaymentResponse] = []
