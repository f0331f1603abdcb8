# betel/services/preferences.py
# Armado de los cuerpos de preferencia de Checkout Pro.

from typing import Optional

from betel.config import settings
from betel.core.ledger import to_decimal
from betel.models.ticket_order import TicketOrder
from betel.schemas.mercadopago import ModificationPreferenceRequest, ReservationPreferenceRequest

EVENT_TITLE = "Vamos a Betel 2026"
SUMMARY_ITEMS_THRESHOLD = 3
SUMMARY_DESCRIPTION_LIMIT = 200
# Órdenes de entradas y reservaciones comparten IDs numéricos
TICKET_ORDER_REF_PREFIX = "ticket-order-"


def _base_url() -> str:
    return settings.APP_URL.rstrip("/")


def _back_urls(path: str, query: str = "") -> dict:
    suffix = f"&{query}" if query else ""
    base = _base_url()
    return {
        "success": f"{base}{path}?status=success{suffix}",
        "failure": f"{base}{path}?status=failure{suffix}",
        "pending": f"{base}{path}?status=pending{suffix}",
    }


def payable_amount(total_amount: float, is_deposit: bool) -> float:
    """Monto a cobrar: anticipo (50%) o total."""
    if is_deposit:
        return round(total_amount * settings.DEPOSIT_RATIO, 2)
    return round(total_amount, 2)


def build_reservation_preference(data: ReservationPreferenceRequest) -> dict:
    amount = payable_amount(data.total_amount, data.is_deposit)
    if data.is_deposit:
        description = f"Anticipo 50% - {data.reservation_code} ({data.seats_payable} lugares)"
    else:
        description = f"Pago completo - {data.reservation_code} ({data.seats_payable} lugares)"

    body = {
        "items": [
            {
                "id": data.reservation_code,
                "title": f"{EVENT_TITLE} - {data.reservation_code}",
                "description": description,
                "quantity": 1,
                "unit_price": amount,
                "currency_id": settings.CURRENCY_ID,
            }
        ],
        "back_urls": _back_urls("/reservar/confirmacion", f"code={data.reservation_code}"),
        "auto_return": "approved",
        "external_reference": data.reservation_code,
        "notification_url": settings.webhook_url,
    }
    if data.responsible_name:
        body["payer"] = {"name": data.responsible_name}
    return body


def build_modification_preference(data: ModificationPreferenceRequest) -> dict:
    return {
        "items": [
            {
                "id": f"res-mod-{data.reservation_id}",
                "title": data.description or "Pago adicional reservación",
                "quantity": 1,
                "unit_price": round(float(data.amount), 2),
                "currency_id": settings.CURRENCY_ID,
            }
        ],
        "back_urls": _back_urls("/modificar-reservacion"),
        "auto_return": "approved",
        # El webhook resuelve la reservación por este ID
        "external_reference": str(data.reservation_id),
        "notification_url": settings.webhook_url,
        "metadata": {
            "type": "reservation_modification",
            "reservation_id": str(data.reservation_id),
        },
    }


def ticket_order_reference(order_id) -> str:
    return f"{TICKET_ORDER_REF_PREFIX}{order_id}"


def build_ticket_items(order: TicketOrder, reservation_code: str) -> list:
    """
    Conceptos de la preferencia a partir de la orden guardada. Lo que falte
    para llegar al total de la orden (comisión con tarjeta, redondeo) se cobra
    como un concepto aparte.
    """
    entradas = order.items
    items = [
        {
            "id": entrada["variant_id"],
            "title": f"{reservation_code} - Entrada {entrada['name']}",
            "description": f"{entrada['variant_name']} para {entrada['passenger_name']}",
            "quantity": int(entrada["quantity"]),
            "unit_price": float(to_decimal(entrada["price"])),
            "currency_id": settings.CURRENCY_ID,
        }
        for entrada in entradas
    ]

    # Con más de 3 entradas se manda un solo concepto resumido
    if len(items) > SUMMARY_ITEMS_THRESHOLD:
        all_items = ", ".join(f"{e['name']} ({e['variant_name']})" for e in entradas)
        description = all_items[:SUMMARY_DESCRIPTION_LIMIT]
        if len(all_items) > SUMMARY_DESCRIPTION_LIMIT:
            description += "..."
        cantidad = sum(i["quantity"] for i in items)
        subtotal = sum(to_decimal(i["unit_price"]) * i["quantity"] for i in items)
        items = [
            {
                "id": "tourist_attractions",
                "title": f"{reservation_code} - Entradas a Zonas Turísticas",
                "description": f"Incluye: {description}",
                "quantity": cantidad,
                "unit_price": float(to_decimal(subtotal / cantidad)),
                "currency_id": settings.CURRENCY_ID,
            }
        ]

    cobrado = sum(to_decimal(i["unit_price"]) * i["quantity"] for i in items)
    faltante = to_decimal(order.total_amount) - cobrado
    if faltante > 0:
        if order.payment_method == "card":
            titulo = "Comisión por pago con tarjeta"
        else:
            titulo = "Ajuste por redondeo"
        items.append({
            "id": "order_adjustment",
            "title": titulo,
            "quantity": 1,
            "unit_price": float(faltante),
            "currency_id": settings.CURRENCY_ID,
        })
    return items


def build_ticket_preference(order: TicketOrder, payer_name: Optional[str] = None) -> dict:
    reservation_code = order.reservation.reservation_code
    body = {
        "items": build_ticket_items(order, reservation_code),
        "back_urls": _back_urls("/comprar-entradas/confirmacion", f"order={order.id}"),
        "auto_return": "approved",
        "external_reference": ticket_order_reference(order.id),
        "notification_url": settings.webhook_url,
        "metadata": {
            "type": "ticket_order",
            "reservation_code": reservation_code,
        },
    }
    if payer_name:
        body["payer"] = {"name": payer_name}
    return body
