from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

class ManualPaymentCreate(BaseModel):
    """Pago registrado por un administrador (transferencia, efectivo o depósito)."""
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    method: str = Field("transferencia", pattern="^(transferencia|efectivo|deposito)$")
    reference: Optional[str] = Field(None, max_length=100)
    note: Optional[str] = None

class PaymentResponse(BaseModel):
    id: int
    reservation_id: int
    amount: Decimal
    method: str
    reference: Optional[str] = None
    note: Optional[str] = None
    paid_at: Optional[datetime] = None

    class Config:
        from_attributes = True
