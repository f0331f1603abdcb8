from decimal import Decimal

import pytest

from betel.core import ledger
from betel.core.exceptions import DuplicatePaymentError
from betel.models import Payment, Reservation


@pytest.mark.parametrize("paid, total, current, expected", [
    (0, 1000, Reservation.STATUS_PENDING, Reservation.STATUS_PENDING),
    (1, 1000, Reservation.STATUS_PENDING, Reservation.STATUS_DEPOSIT_PAID),
    (499.99, 1000, Reservation.STATUS_PENDING, Reservation.STATUS_DEPOSIT_PAID),
    (500, 1000, Reservation.STATUS_PENDING, Reservation.STATUS_DEPOSIT_PAID),
    (999.99, 1000, Reservation.STATUS_DEPOSIT_PAID, Reservation.STATUS_DEPOSIT_PAID),
    (1000, 1000, Reservation.STATUS_DEPOSIT_PAID, Reservation.STATUS_FULLY_PAID),
    (1500, 1000, Reservation.STATUS_PENDING, Reservation.STATUS_FULLY_PAID),
    (1000, 1000, Reservation.STATUS_CANCELLED, Reservation.STATUS_CANCELLED),
    (0, 0, Reservation.STATUS_PENDING, Reservation.STATUS_PENDING),
])
def test_derive_status(paid, total, current, expected):
    assert ledger.derive_status(paid, total, current) == expected


def test_to_decimal_rounds_to_cents():
    assert ledger.to_decimal(0.1 + 0.2) == Decimal("0.30")
    assert ledger.to_decimal("850") == Decimal("850.00")


def test_record_payment_updates_balance(db, make_reservation):
    reservation = make_reservation(total=3400)

    payment = ledger.record_payment(db, reservation, 1700, "transferencia", reference="SPEI-1", note="Anticipo")

    assert payment.id is not None
    assert payment.amount == Decimal("1700")
    db.refresh(reservation)
    assert reservation.amount_paid == Decimal("1700")
    assert reservation.status == Reservation.STATUS_DEPOSIT_PAID


def test_record_payment_rejects_duplicate_reference(db, make_reservation):
    reservation = make_reservation(total=3400)
    ledger.record_payment(db, reservation, 1700, "mercadopago", reference="mp-1")

    with pytest.raises(DuplicatePaymentError):
        ledger.record_payment(db, reservation, 1700, "mercadopago", reference="mp-1")

    db.refresh(reservation)
    assert reservation.amount_paid == Decimal("1700")
    assert db.query(Payment).count() == 1


def test_payments_without_reference_are_not_deduplicated(db, make_reservation):
    reservation = make_reservation(total=3400)
    ledger.record_payment(db, reservation, 100, "efectivo")
    ledger.record_payment(db, reservation, 100, "efectivo")

    db.refresh(reservation)
    assert reservation.amount_paid == Decimal("200")
    assert db.query(Payment).count() == 2


def test_recompute_from_ledger_fixes_drift(db, make_reservation):
    reservation = make_reservation(total=1000)
    ledger.record_payment(db, reservation, 300, "mercadopago", reference="mp-2")
    ledger.record_payment(db, reservation, 700, "transferencia")

    # Saldo corrompido por una actualización perdida
    reservation.amount_paid = Decimal("300")
    reservation.status = Reservation.STATUS_DEPOSIT_PAID
    db.commit()

    ledger.recompute_from_ledger(db, reservation)

    assert reservation.amount_paid == Decimal("1000")
    assert reservation.status == Reservation.STATUS_FULLY_PAID


def test_recompute_without_payments_returns_to_pending(db, make_reservation):
    reservation = make_reservation(total=1000, paid=200, status=Reservation.STATUS_DEPOSIT_PAID)

    ledger.recompute_from_ledger(db, reservation)

    assert reservation.amount_paid == Decimal("0")
    assert reservation.status == Reservation.STATUS_PENDING
