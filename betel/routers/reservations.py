# betel/routers/reservations.py
# 🎯 Reservaciones: formulario público y consulta por código

import logging
import random
import string
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from betel.config import settings
from betel.core.exceptions import NotFoundException
from betel.core.ledger import derive_status, to_decimal
from betel.database import get_db
from betel.models.passenger import ReservationPassenger
from betel.models.reservation import Reservation
from betel.schemas.lookup import ReservationDetailResponse
from betel.schemas.reservation import PassengerCreate, ReservationCreate, ReservationPassengersUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

CODE_PREFIX = "VAB"

def generar_codigo_reserva():
    """Formato: VAB-AAA111 (3 letras + 3 números)"""
    letras = ''.join(random.choices(string.ascii_uppercase, k=3))
    numeros = ''.join(random.choices(string.digits, k=3))
    return f"{CODE_PREFIX}-{letras}{numeros}"

def generar_codigo_unico_reserva(db: Session, max_intentos=10):
    for _ in range(max_intentos):
        codigo = generar_codigo_reserva()
        existe = db.query(Reservation).filter(Reservation.reservation_code == codigo).first()
        if not existe:
            return codigo

    # Si falla después de varios intentos, usar timestamp
    return f"{CODE_PREFIX}-{int(datetime.now().timestamp())}"

def es_menor_gratis(passenger: PassengerCreate) -> bool:
    return passenger.age is not None and passenger.age < settings.FREE_UNDER_AGE

def calcular_montos(passengers, unit_price=None) -> dict:
    """Lugares, total y anticipo mínimo de una reservación."""
    seats_total = len(passengers)
    seats_payable = sum(1 for p in passengers if not es_menor_gratis(p))
    unit_price = to_decimal(unit_price if unit_price is not None else settings.SEAT_PRICE)
    total_amount = unit_price * seats_payable
    deposit_required = to_decimal(total_amount * to_decimal(settings.DEPOSIT_RATIO))
    return {
        "seats_total": seats_total,
        "seats_payable": seats_payable,
        "unit_price": unit_price,
        "total_amount": total_amount,
        "deposit_required": deposit_required,
    }

def get_reservation_or_404(db: Session, reservation_id: int) -> Reservation:
    reservation = db.query(Reservation).options(
        selectinload(Reservation.passengers),
        selectinload(Reservation.payments),
    ).filter(Reservation.id == reservation_id).first()
    if not reservation:
        raise NotFoundException("Reservación no encontrada")
    return reservation

def get_reservation_by_code_or_404(db: Session, reservation_code: str) -> Reservation:
    reservation = db.query(Reservation).options(
        selectinload(Reservation.passengers),
        selectinload(Reservation.payments),
    ).filter(Reservation.reservation_code == reservation_code.strip().upper()).first()
    if not reservation:
        raise NotFoundException("Reservación no encontrada")
    return reservation


@router.post("/", response_model=ReservationDetailResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(reservation_data: ReservationCreate, db: Session = Depends(get_db)):
    """Crea la reservación en estado 'pending' con sus pasajeros."""
    montos = calcular_montos(reservation_data.passengers)

    reservation = Reservation(
        reservation_code=generar_codigo_unico_reserva(db),
        responsible_name=reservation_data.responsible_name,
        responsible_phone=reservation_data.responsible_phone,
        responsible_congregation=reservation_data.responsible_congregation,
        amount_paid=Decimal("0"),
        status=Reservation.STATUS_PENDING,
        **montos,
    )
    for passenger in reservation_data.passengers:
        reservation.passengers.append(ReservationPassenger(
            **passenger.model_dump(),
            is_free_under6=es_menor_gratis(passenger),
        ))

    db.add(reservation)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.error("[RESERVAS] Código de reservación duplicado: %s", reservation.reservation_code)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No se pudo generar un código de reservación único, intenta de nuevo",
        )
    db.refresh(reservation)

    logger.info(
        "[RESERVAS] Reservación %s creada: %s lugares (%s pagan), total $%s",
        reservation.reservation_code, reservation.seats_total,
        reservation.seats_payable, reservation.total_amount,
    )
    return reservation


@router.get("/lookup/{reservation_code}", response_model=ReservationDetailResponse)
def lookup_reservation(reservation_code: str, db: Session = Depends(get_db)):
    """Consulta pública de una reservación por su código."""
    return get_reservation_by_code_or_404(db, reservation_code)


@router.put("/{reservation_code}/passengers", response_model=ReservationDetailResponse)
def update_passengers(
    reservation_code: str,
    update_data: ReservationPassengersUpdate,
    db: Session = Depends(get_db),
):
    """
    Modifica los pasajeros de una reservación y recalcula lugares y montos.

    Los pasajeros con id se actualizan, los nuevos se agregan y los que no
    vengan en la lista se eliminan. El precio por lugar se conserva.
    """
    reservation = get_reservation_by_code_or_404(db, reservation_code)
    if reservation.status == Reservation.STATUS_CANCELLED:
        raise HTTPException(status_code=400, detail="La reservación está cancelada")

    actuales = {p.id: p for p in reservation.passengers}
    ids_enviados = [p.id for p in update_data.passengers if p.id is not None]
    if len(ids_enviados) != len(set(ids_enviados)):
        raise HTTPException(status_code=400, detail="Pasajero repetido en la lista")
    ajenos = sorted(set(ids_enviados) - set(actuales))
    if ajenos:
        raise HTTPException(
            status_code=400,
            detail=f"Los pasajeros {ajenos} no pertenecen a la reservación",
        )

    pasajeros = []
    for datos in update_data.passengers:
        campos = datos.model_dump(exclude={"id"})
        if datos.id is None:
            passenger = ReservationPassenger(**campos)
        else:
            passenger = actuales[datos.id]
            for campo, valor in campos.items():
                setattr(passenger, campo, valor)
        passenger.is_free_under6 = es_menor_gratis(datos)
        pasajeros.append(passenger)

    total_anterior = reservation.total_amount
    reservation.passengers = pasajeros
    for campo, valor in calcular_montos(update_data.passengers, reservation.unit_price).items():
        setattr(reservation, campo, valor)
    reservation.status = derive_status(reservation.amount_paid, reservation.total_amount, reservation.status)

    db.commit()
    db.refresh(reservation)

    logger.info(
        "[RESERVAS] Reservación %s modificada: %s lugares (%s pagan), total $%s -> $%s",
        reservation.reservation_code, reservation.seats_total,
        reservation.seats_payable, total_anterior, reservation.total_amount,
    )
    if reservation.amount_paid > reservation.total_amount:
        logger.warning(
            "[RESERVAS] %s tiene saldo a favor de $%s",
            reservation.reservation_code, reservation.amount_paid - reservation.total_amount,
        )
    return reservation
