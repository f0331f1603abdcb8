from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

class TicketOrderItem(BaseModel):
    variant_id: str
    name: str
    variant_name: str
    passenger_name: str
    quantity: int = Field(1, gt=0)
    price: Decimal = Field(..., ge=0)

class TicketOrderCreate(BaseModel):
    reservation_code: str
    items: List[TicketOrderItem] = Field(..., min_length=1)
    payment_method: str = Field(..., pattern="^(card|transfer)$")

class TicketOrderResponse(BaseModel):
    id: int
    reservation_id: int
    items: list
    total_amount: Decimal
    payment_method: str
    status: str
    mp_payment_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
