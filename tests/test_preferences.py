from decimal import Decimal

import pytest

from betel.models import TicketOrder
from betel.services import preferences


def _ticket(i, price=150, name=None, quantity=1):
    return {
        "variant_id": f"var-{i}",
        "name": name or f"Atracción {i}",
        "variant_name": "Adulto",
        "passenger_name": f"Pasajero {i}",
        "quantity": quantity,
        "price": f"{price}.00",
    }


@pytest.fixture
def make_order(db, make_reservation):
    def _make(items, total, payment_method="transfer", status=TicketOrder.STATUS_PENDING):
        reservation = make_reservation(total=1700, code="VAB-ABC123")
        order = TicketOrder(
            reservation_id=reservation.id,
            items=items,
            total_amount=Decimal(str(total)),
            payment_method=payment_method,
            status=status,
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make


def test_deposit_preference_charges_half(client, gateway):
    resp = client.post("/api/mp/create-preference", json={
        "reservationCode": "VAB-ABC123",
        "responsibleName": "Ana López",
        "totalAmount": 3400,
        "seatsPayable": 2,
        "isDeposit": True,
    })

    assert resp.status_code == 200
    data = resp.json()
    assert data["preferenceId"] == "pref-1"
    assert data["initPoint"].startswith("https://www.mercadopago.com.mx")
    assert "sandboxInitPoint" in data

    [body] = gateway.preferences
    [item] = body["items"]
    assert item["unit_price"] == 1700
    assert item["currency_id"] == "MXN"
    assert item["title"] == "Vamos a Betel 2026 - VAB-ABC123"
    assert item["description"] == "Anticipo 50% - VAB-ABC123 (2 lugares)"
    assert body["external_reference"] == "VAB-ABC123"
    assert body["notification_url"] == "https://betel.test/api/mp/webhook"
    assert body["back_urls"]["success"] == "https://betel.test/reservar/confirmacion?status=success&code=VAB-ABC123"
    assert body["auto_return"] == "approved"
    assert body["payer"] == {"name": "Ana López"}


def test_full_payment_preference(client, gateway):
    client.post("/api/mp/create-preference", json={
        "reservationCode": "VAB-ABC123",
        "totalAmount": 3400,
        "seatsPayable": 2,
        "isDeposit": False,
    })

    [item] = gateway.preferences[0]["items"]
    assert item["unit_price"] == 3400
    assert item["description"].startswith("Pago completo")


def test_modification_preference_uses_reservation_id(client, gateway):
    resp = client.post("/api/reservations/preference", json={
        "reservationId": "42",
        "amount": 850,
    })

    assert resp.status_code == 200
    data = resp.json()
    assert data["preferenceId"] == "pref-1"
    assert "init_point" in data

    body = gateway.preferences[0]
    assert body["external_reference"] == "42"
    assert body["items"][0]["id"] == "res-mod-42"
    assert body["items"][0]["title"] == "Pago adicional reservación"
    assert body["metadata"] == {"type": "reservation_modification", "reservation_id": "42"}
    assert body["back_urls"]["failure"] == "https://betel.test/modificar-reservacion?status=failure"


@pytest.mark.parametrize("payload", [
    {"amount": 100},
    {"reservationId": "42"},
    {"reservationId": "42", "amount": 0},
])
def test_modification_preference_requires_id_and_amount(client, gateway, payload):
    resp = client.post("/api/reservations/preference", json=payload)

    assert resp.status_code == 400
    assert gateway.preferences == []


def test_ticket_preference_one_item_per_ticket(client, gateway, make_order):
    order = make_order([_ticket(1), _ticket(2)], total=300)

    resp = client.post("/api/tickets/preference", json={"orderId": order.id, "payerName": "Ana"})

    assert resp.status_code == 200
    body = gateway.preferences[0]
    assert [i["title"] for i in body["items"]] == [
        "VAB-ABC123 - Entrada Atracción 1",
        "VAB-ABC123 - Entrada Atracción 2",
    ]
    assert body["items"][0]["description"] == "Adulto para Pasajero 1"
    assert body["external_reference"] == f"ticket-order-{order.id}"
    assert body["metadata"] == {"type": "ticket_order", "reservation_code": "VAB-ABC123"}
    assert body["payer"] == {"name": "Ana"}


def test_ticket_preference_charges_stored_total(client, gateway, make_order):
    order = make_order([_ticket(1, 100, quantity=2)], total="210.00", payment_method="card")

    client.post("/api/tickets/preference", json={
        "orderId": str(order.id),
        "items": [dict(_ticket(1, 1), quantity=1)],
    })

    items = gateway.preferences[0]["items"]
    assert items[0]["unit_price"] == 100
    assert items[0]["quantity"] == 2
    assert items[1]["title"] == "Comisión por pago con tarjeta"
    assert items[1]["unit_price"] == 10
    assert sum(i["unit_price"] * i["quantity"] for i in items) == 210


def test_ticket_preference_collapses_more_than_three_items(db, make_order):
    order = make_order([_ticket(1, 100), _ticket(2, 200), _ticket(3, 300), _ticket(4, 400)], total=1000)

    [item] = preferences.build_ticket_items(order, "VAB-ABC123")

    assert item["id"] == "tourist_attractions"
    assert item["quantity"] == 4
    assert item["unit_price"] == 250
    assert item["description"].startswith("Incluye: Atracción 1 (Adulto)")


def test_ticket_summary_description_is_truncated(db, make_order):
    items = [_ticket(i, name="Parque Ecoturístico Cañón del Sumidero") for i in range(10)]
    order = make_order(items, total=1500)

    [item] = preferences.build_ticket_items(order, "VAB-ABC123")

    assert item["description"].endswith("...")
    assert len(item["description"]) == len("Incluye: ") + 200 + 3


def test_ticket_preference_unknown_or_settled_order(client, gateway, make_order):
    order = make_order([_ticket(1)], total=150, status=TicketOrder.STATUS_PAID)

    assert client.post("/api/tickets/preference", json={"orderId": 9999}).status_code == 404
    assert client.post("/api/tickets/preference", json={"orderId": order.id}).status_code == 400
    assert gateway.preferences == []


def test_preference_without_credentials_returns_500(client, gateway):
    gateway.configured = False

    resp = client.post("/api/reservations/preference", json={"reservationId": "42", "amount": 100})

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Mercado Pago no está configurado"


def test_preference_gateway_error_returns_500(client, gateway, make_order):
    order = make_order([_ticket(1)], total=150)
    gateway.preference_error = "Mercado Pago respondió 400: invalid unit_price"

    resp = client.post("/api/tickets/preference", json={"orderId": order.id})

    assert resp.status_code == 500
    assert resp.json()["detail"].startswith("Error al crear la preferencia de pago")
