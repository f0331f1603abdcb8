"""
Common test fixtures.

Provides an in-memory SQLite session shared with the FastAPI app, a fake
Mercado Pago gateway, a reservation factory and an authenticated admin
client.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_URL", "https://betel.test")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from betel.core.exceptions import GatewayNotConfiguredError, PaymentGatewayError
from betel.core.mercadopago_service import get_mercadopago_service
from betel.core.security import get_password_hash
from betel.database import Base, get_db
from betel.main import app
from betel.models import AdminUser, Reservation
from betel.schemas.mercadopago import GatewayPayment, PreferenceResponse

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeMercadoPago:
    """Stands in for MercadoPagoService; payments are registered per test."""

    def __init__(self):
        self.payments = {}
        self.lookups = []
        self.preferences = []
        self.configured = True
        self.preference_error = None

    def add_payment(self, payment_id, amount, external_reference, status="approved", net_received_amount=None):
        self.payments[str(payment_id)] = GatewayPayment(
            id=str(payment_id),
            status=status,
            transaction_amount=amount,
            net_received_amount=net_received_amount,
            external_reference=external_reference,
        )

    def get_payment(self, payment_id):
        self.lookups.append(payment_id)
        if not self.configured:
            raise GatewayNotConfiguredError()
        if payment_id not in self.payments:
            raise PaymentGatewayError(f"Mercado Pago respondió 404: pago {payment_id}")
        return self.payments[payment_id]

    def create_preference(self, body):
        if not self.configured:
            raise GatewayNotConfiguredError()
        if self.preference_error:
            raise PaymentGatewayError(self.preference_error)
        self.preferences.append(body)
        return PreferenceResponse(
            preference_id=f"pref-{len(self.preferences)}",
            init_point="https://www.mercadopago.com.mx/checkout/v1/redirect?pref_id=x",
            sandbox_init_point="https://sandbox.mercadopago.com.mx/checkout/v1/redirect?pref_id=x",
        )


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway():
    return FakeMercadoPago()


@pytest.fixture
def client(db, gateway):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mercadopago_service] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_reservation(db):
    counter = {"n": 0}

    def _make(total=1000, deposit=None, paid=0, status=Reservation.STATUS_PENDING, code=None):
        counter["n"] += 1
        total = Decimal(str(total))
        reservation = Reservation(
            reservation_code=code or f"VAB-TST{counter['n']:03d}",
            responsible_name="Ana López",
            responsible_phone="9611234567",
            seats_total=1,
            seats_payable=1,
            unit_price=total,
            total_amount=total,
            deposit_required=Decimal(str(deposit)) if deposit is not None else total / 2,
            amount_paid=Decimal(str(paid)),
            status=status,
        )
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation

    return _make


@pytest.fixture
def admin_user(db):
    admin = AdminUser(
        email="admin@betel.test",
        name="Admin",
        hashed_password=get_password_hash("pass12345"),
    )
    db.add(admin)
    db.commit()
    return admin


@pytest.fixture
def admin_client(client, admin_user):
    """Authenticate the test client with a bearer token."""
    resp = client.post(
        "/admin/login",
        data={"username": "admin@betel.test", "password": "pass12345"},
    )
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    client.headers["Authorization"] = f"Bearer {token}"
    return client
