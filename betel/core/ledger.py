# betel/core/ledger.py
#
# Estado financiero de una reservación: monto pagado y estatus derivado.
# Los pagos (tabla payments) son la fuente de verdad; amount_paid/status
# son campos derivados que se actualizan de forma atómica.

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from betel.core.exceptions import DuplicatePaymentError
from betel.models.payment import Payment
from betel.models.reservation import Reservation

logger = logging.getLogger(__name__)


def to_decimal(value) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


def derive_status(amount_paid, total_amount, current_status: str) -> str:
    """
    Estatus que corresponde a un monto pagado.

    Cualquier pago positivo lleva la reservación al menos a deposit_paid,
    aunque no alcance el 50% nominal del anticipo. Una reservación cancelada
    solo sale de ese estado por acción administrativa.
    """
    if current_status == Reservation.STATUS_CANCELLED:
        return Reservation.STATUS_CANCELLED

    amount_paid = to_decimal(amount_paid)
    if amount_paid <= 0:
        return Reservation.STATUS_PENDING
    if amount_paid >= to_decimal(total_amount):
        return Reservation.STATUS_FULLY_PAID
    return Reservation.STATUS_DEPOSIT_PAID


def find_payment_by_reference(db: Session, reference: str) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.reference == reference).first()


def apply_payment(db: Session, reservation: Reservation, amount) -> Reservation:
    """
    Suma `amount` a amount_paid con un solo UPDATE en la base y recalcula el
    estatus sobre la fila ya actualizada. No hace commit.
    """
    db.execute(
        update(Reservation)
        .where(Reservation.id == reservation.id)
        .values(amount_paid=Reservation.amount_paid + to_decimal(amount))
        .execution_options(synchronize_session=False)
    )
    db.refresh(reservation)
    reservation.status = derive_status(reservation.amount_paid, reservation.total_amount, reservation.status)
    return reservation


def record_payment(
    db: Session,
    reservation: Reservation,
    amount,
    method: str,
    reference: Optional[str] = None,
    note: Optional[str] = None,
) -> Payment:
    """
    Inserta el pago y actualiza el saldo de la reservación en una sola
    transacción.

    Lanza DuplicatePaymentError si la referencia ya existe (restricción UNIQUE).
    Cualquier otro error de base de datos se propaga.
    """
    amount = to_decimal(amount)
    payment = Payment(
        reservation_id=reservation.id,
        amount=amount,
        method=method,
        reference=reference,
        note=note,
    )
    db.add(payment)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        if reference and find_payment_by_reference(db, reference) is not None:
            raise DuplicatePaymentError(reference)
        raise

    apply_payment(db, reservation, amount)
    db.commit()
    db.refresh(payment)

    logger.info(
        "[LEDGER] Pago %s de $%s (%s) aplicado a %s. Pagado: $%s, estatus: %s",
        payment.id, amount, method, reservation.reservation_code,
        reservation.amount_paid, reservation.status,
    )
    return payment


def recompute_from_ledger(db: Session, reservation: Reservation) -> Reservation:
    """
    Reconstruye amount_paid como la suma de los pagos registrados y vuelve a
    derivar el estatus. Corrige cualquier desviación del saldo incremental.
    """
    total = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
        Payment.reservation_id == reservation.id
    ).scalar()
    total = to_decimal(total)

    if to_decimal(reservation.amount_paid) != total:
        logger.warning(
            "[LEDGER] Saldo de %s desviado: $%s registrado vs $%s en pagos",
            reservation.reservation_code, reservation.amount_paid, total,
        )

    reservation.amount_paid = total
    reservation.status = derive_status(total, reservation.total_amount, reservation.status)
    db.commit()
    db.refresh(reservation)
    return reservation
