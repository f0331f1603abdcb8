from pydantic import BaseModel
from typing import Dict
from decimal import Decimal

class AdminSummary(BaseModel):
    reservations_by_status: Dict[str, int]
    seats_total: int
    total_amount: Decimal
    amount_paid: Decimal
    pending_balance: Decimal
    ticket_orders_paid: int
