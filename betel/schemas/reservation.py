from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

class PassengerCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = None
    congregation: Optional[str] = None
    age: Optional[int] = Field(None, ge=0, le=120, description="Menores de 6 años no pagan lugar")
    observations: Optional[str] = None

class ReservationCreate(BaseModel):
    """Formulario de reservación: responsable y pasajeros."""
    responsible_name: str = Field(..., min_length=1, max_length=150)
    responsible_phone: str
    responsible_congregation: Optional[str] = None
    passengers: List[PassengerCreate] = Field(..., min_length=1)

    @field_validator('responsible_phone')
    @classmethod
    def phone_length(cls, v):
        digits = ''.join(c for c in v if c.isdigit())
        if len(digits) < 10:
            raise ValueError('El teléfono debe tener al menos 10 dígitos')
        return v

class PassengerUpdate(PassengerCreate):
    """Pasajero en una modificación: con id se actualiza, sin id se agrega."""
    id: Optional[int] = None

class ReservationPassengersUpdate(BaseModel):
    """Lista completa de pasajeros; los que no vengan se eliminan."""
    passengers: List[PassengerUpdate] = Field(..., min_length=1)

class PassengerAdminUpdate(BaseModel):
    """Abordaje y asignación de asiento desde el panel."""
    boarded: Optional[bool] = None
    seat_number: Optional[str] = Field(None, max_length=10)

class PassengerResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None
    congregation: Optional[str] = None
    age: Optional[int] = None
    is_free_under6: bool
    observations: Optional[str] = None
    boarded: bool
    seat_number: Optional[str] = None

    class Config:
        from_attributes = True

class ReservationResponse(BaseModel):
    id: int
    reservation_code: str
    responsible_name: str
    responsible_phone: str
    responsible_congregation: Optional[str] = None
    seats_total: int
    seats_payable: int
    unit_price: Decimal
    total_amount: Decimal
    deposit_required: Decimal
    amount_paid: Decimal
    remaining_balance: Decimal
    status: str
    payment_method: Optional[str] = None
    mp_payment_status: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ReservationStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(pending|deposit_paid|fully_paid|cancelled)$")
