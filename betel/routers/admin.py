# betel/routers/admin.py
# 🎯 Panel de administración: reservaciones, pagos y órdenes de entradas

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from betel.core import ledger
from betel.core.exceptions import DuplicatePaymentError, NotFoundException
from betel.core.security import create_access_token, get_current_admin, verify_password
from betel.database import get_db
from betel.models.admin_user import AdminUser
from betel.models.passenger import ReservationPassenger
from betel.models.payment import Payment
from betel.models.reservation import Reservation
from betel.models.ticket_order import TicketOrder
from betel.routers.reservations import get_reservation_or_404
from betel.schemas.admin import AdminSummary
from betel.schemas.auth import Token
from betel.schemas.lookup import ReservationDetailResponse
from betel.schemas.payment import ManualPaymentCreate, PaymentResponse
from betel.schemas.reservation import (
    PassengerAdminUpdate,
    PassengerResponse,
    ReservationResponse,
    ReservationStatusUpdate,
)
from betel.schemas.ticket_order import TicketOrderResponse

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    admin = db.query(AdminUser).filter(AdminUser.email == form_data.username).first()

    if not admin or not verify_password(form_data.password, admin.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales incorrectas"
        )

    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuario administrador inactivo"
        )

    access_token = create_access_token(data={"sub": admin.email, "id": admin.id})
    logger.info("[ADMIN] Inicio de sesión: %s", admin.email)

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "admin": {
            "id": admin.id,
            "name": admin.name,
            "email": admin.email,
        }
    }

# ========== RESERVACIONES ==========

@router.get("/reservations", response_model=List[ReservationResponse])
def list_reservations(
    skip: int = 0,
    limit: int = 100,
    status: Optional[str] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    """Reservaciones con filtro por estatus y búsqueda por código o responsable."""
    query = db.query(Reservation)

    if status:
        query = query.filter(Reservation.status == status)

    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(
            Reservation.reservation_code.ilike(like),
            Reservation.responsible_name.ilike(like),
        ))

    return query.order_by(Reservation.created_at.desc(), Reservation.id.desc()).offset(skip).limit(limit).all()

@router.get("/reservations/{reservation_id}", response_model=ReservationDetailResponse)
def get_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    return get_reservation_or_404(db, reservation_id)

@router.post(
    "/reservations/{reservation_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_manual_payment(
    reservation_id: int,
    payment_data: ManualPaymentCreate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    """Registra un pago por transferencia, efectivo o depósito."""
    reservation = get_reservation_or_404(db, reservation_id)

    if reservation.status == Reservation.STATUS_CANCELLED:
        raise HTTPException(status_code=400, detail="La reservación está cancelada")

    reference = payment_data.reference.strip() if payment_data.reference else None
    if payment_data.method == "transferencia" and not reservation.payment_method:
        reservation.payment_method = "transfer"

    try:
        payment = ledger.record_payment(
            db,
            reservation,
            amount=payment_data.amount,
            method=payment_data.method,
            reference=reference,
            note=payment_data.note,
        )
    except DuplicatePaymentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("[ADMIN] %s registró pago %s en %s", admin.email, payment.id, reservation.reservation_code)
    return payment

@router.patch("/reservations/{reservation_id}/status", response_model=ReservationResponse)
def change_status(
    reservation_id: int,
    status_data: ReservationStatusUpdate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    """
    Cambio de estatus administrativo; única vía para cancelar.

    Fuera de 'cancelled', el estatus debe coincidir con el derivado del monto
    pagado. Reactivar una cancelada la deja en el estatus que le corresponde.
    """
    reservation = get_reservation_or_404(db, reservation_id)
    estado_anterior = reservation.status

    if status_data.status != Reservation.STATUS_CANCELLED:
        esperado = ledger.derive_status(
            reservation.amount_paid, reservation.total_amount, Reservation.STATUS_PENDING
        )
        if status_data.status != esperado:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Con ${reservation.amount_paid} pagados de ${reservation.total_amount} "
                    f"el estatus debe ser '{esperado}'"
                ),
            )

    reservation.status = status_data.status
    db.commit()
    db.refresh(reservation)

    logger.info(
        "[ADMIN] %s cambió %s: %s -> %s",
        admin.email, reservation.reservation_code, estado_anterior, reservation.status,
    )
    return reservation

@router.post("/reservations/{reservation_id}/recompute", response_model=ReservationResponse)
def recompute_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    """Recalcula el monto pagado a partir de los pagos registrados."""
    reservation = get_reservation_or_404(db, reservation_id)
    return ledger.recompute_from_ledger(db, reservation)

# ========== ABORDAJE Y ASIENTOS ==========

@router.patch("/passengers/{passenger_id}", response_model=PassengerResponse)
def update_passenger(
    passenger_id: int,
    update_data: PassengerAdminUpdate,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    """Marca el abordaje o asigna asiento; un asiento vacío lo libera."""
    passenger = db.query(ReservationPassenger).filter(ReservationPassenger.id == passenger_id).first()
    if not passenger:
        raise NotFoundException("Pasajero no encontrado")

    if "seat_number" in update_data.model_fields_set:
        asiento = (update_data.seat_number or "").strip() or None
        if asiento:
            ocupante = db.query(ReservationPassenger).filter(
                ReservationPassenger.seat_number == asiento,
                ReservationPassenger.id != passenger.id,
            ).first()
            if ocupante:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"El asiento {asiento} ya está asignado a {ocupante.first_name} {ocupante.last_name}",
                )
        passenger.seat_number = asiento

    if update_data.boarded is not None:
        passenger.boarded = update_data.boarded

    try:
        db.commit()
    except IntegrityError:
        # Otro administrador tomó el asiento entre la consulta y el guardado
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="El asiento ya está asignado")
    db.refresh(passenger)

    logger.info(
        "[ADMIN] %s actualizó pasajero %s: asiento=%s abordó=%s",
        admin.email, passenger.id, passenger.seat_number, passenger.boarded,
    )
    return passenger

# ========== PAGOS Y ENTRADAS ==========

@router.get("/payments", response_model=List[PaymentResponse])
def list_payments(
    method: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    query = db.query(Payment)
    if method:
        query = query.filter(Payment.method == method)
    return query.order_by(Payment.paid_at.desc(), Payment.id.desc()).offset(skip).limit(limit).all()

@router.get("/ticket-orders", response_model=List[TicketOrderResponse])
def list_ticket_orders(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    query = db.query(TicketOrder)
    if status:
        query = query.filter(TicketOrder.status == status)
    return query.order_by(TicketOrder.id.desc()).all()

@router.get("/summary", response_model=AdminSummary)
def summary(db: Session = Depends(get_db), admin: AdminUser = Depends(get_current_admin)):
    """Totales del tablero (las reservaciones canceladas no cuentan en montos)."""
    by_status = dict(
        db.query(Reservation.status, func.count(Reservation.id)).group_by(Reservation.status).all()
    )

    activas = db.query(
        func.coalesce(func.sum(Reservation.seats_total), 0),
        func.coalesce(func.sum(Reservation.total_amount), 0),
        func.coalesce(func.sum(Reservation.amount_paid), 0),
    ).filter(Reservation.status != Reservation.STATUS_CANCELLED).one()
    seats_total, total_amount, amount_paid = activas

    ticket_orders_paid = db.query(func.count(TicketOrder.id)).filter(
        TicketOrder.status == TicketOrder.STATUS_PAID
    ).scalar()

    return AdminSummary(
        reservations_by_status={s: by_status.get(s, 0) for s in Reservation.STATUSES},
        seats_total=seats_total,
        total_amount=ledger.to_decimal(total_amount),
        amount_paid=ledger.to_decimal(amount_paid),
        pending_balance=ledger.to_decimal(total_amount) - ledger.to_decimal(amount_paid),
        ticket_orders_paid=ticket_orders_paid,
    )
