# betel/routers/tickets.py
# 🎯 Órdenes de entradas a zonas turísticas

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from betel.config import settings
from betel.core.exceptions import NotFoundException
from betel.core.ledger import to_decimal
from betel.database import get_db
from betel.models.reservation import Reservation
from betel.models.ticket_order import TicketOrder
from betel.schemas.ticket_order import TicketOrderCreate, TicketOrderResponse

logger = logging.getLogger(__name__)

router = APIRouter()

def calcular_total_orden(order_data: TicketOrderCreate):
    subtotal = sum(item.price * item.quantity for item in order_data.items)
    # Comisión por pago con tarjeta
    if order_data.payment_method == "card":
        subtotal += subtotal * to_decimal(settings.CARD_COMMISSION_RATE)
    return to_decimal(subtotal)

@router.post("/orders", response_model=TicketOrderResponse, status_code=status.HTTP_201_CREATED)
def create_ticket_order(order_data: TicketOrderCreate, db: Session = Depends(get_db)):
    reservation = db.query(Reservation).filter(
        Reservation.reservation_code == order_data.reservation_code
    ).first()
    if not reservation:
        raise NotFoundException("Reservación no encontrada")
    if reservation.status == Reservation.STATUS_CANCELLED:
        raise HTTPException(status_code=400, detail="La reservación está cancelada")

    order = TicketOrder(
        reservation_id=reservation.id,
        items=[item.model_dump(mode="json") for item in order_data.items],
        total_amount=calcular_total_orden(order_data),
        payment_method=order_data.payment_method,
        status=TicketOrder.STATUS_PENDING,
    )
    db.add(order)
    db.commit()
    db.refresh(order)

    logger.info("[ENTRADAS] Orden %s creada para %s: $%s (%s)",
                order.id, reservation.reservation_code, order.total_amount, order.payment_method)
    return order

@router.get("/orders/{order_id}", response_model=TicketOrderResponse)
def get_ticket_order(order_id: int, db: Session = Depends(get_db)):
    order = db.query(TicketOrder).filter(TicketOrder.id == order_id).first()
    if not order:
        raise NotFoundException("Orden no encontrada")
    return order
