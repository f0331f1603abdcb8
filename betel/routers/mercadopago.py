# betel/routers/mercadopago.py

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from betel.core.exceptions import (
    GatewayNotConfiguredError,
    NotFoundException,
    PaymentGatewayError,
    PaymentPersistenceError,
)
from betel.core.mercadopago_service import MercadoPagoService, get_mercadopago_service
from betel.database import get_db
from betel.models.ticket_order import TicketOrder
from betel.schemas.mercadopago import (
    CheckoutResponse,
    ModificationCheckoutResponse,
    ModificationPreferenceRequest,
    ReservationPreferenceRequest,
    TicketPreferenceRequest,
    WebhookAck,
)
from betel.services import preferences
from betel.services.reconciler import PaymentReconciler, parse_notification

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Mercado Pago"],
)


def _create_preference(service: MercadoPagoService, body: dict):
    try:
        return service.create_preference(body)
    except GatewayNotConfiguredError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Mercado Pago no está configurado",
        )
    except PaymentGatewayError as e:
        logger.error("[MP] Error creando preferencia %s: %s", body.get("external_reference"), e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error al crear la preferencia de pago: {e}",
        )


@router.post("/mp/create-preference", response_model=CheckoutResponse)
def create_reservation_preference(
    data: ReservationPreferenceRequest,
    service: MercadoPagoService = Depends(get_mercadopago_service),
):
    """Anticipo del 50% o pago completo de una reservación."""
    result = _create_preference(service, preferences.build_reservation_preference(data))
    return CheckoutResponse(
        preference_id=result.preference_id,
        init_point=result.init_point,
        sandbox_init_point=result.sandbox_init_point,
    )


@router.post("/reservations/preference", response_model=ModificationCheckoutResponse)
def create_modification_preference(
    data: ModificationPreferenceRequest,
    service: MercadoPagoService = Depends(get_mercadopago_service),
):
    """Pago adicional por modificar una reservación."""
    if not data.reservation_id or not data.amount:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Faltan datos requeridos (reservationId, amount)",
        )
    if data.amount <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El monto debe ser mayor a cero")

    result = _create_preference(service, preferences.build_modification_preference(data))
    return ModificationCheckoutResponse(
        preferenceId=result.preference_id,
        init_point=result.init_point,
        sandbox_init_point=result.sandbox_init_point,
    )


@router.post("/tickets/preference", response_model=CheckoutResponse)
def create_ticket_preference(
    data: TicketPreferenceRequest,
    db: Session = Depends(get_db),
    service: MercadoPagoService = Depends(get_mercadopago_service),
):
    """Pago de entradas a atracciones; conceptos y total salen de la orden guardada."""
    order = db.query(TicketOrder).filter(TicketOrder.id == data.order_id).first()
    if not order:
        raise NotFoundException("Orden no encontrada")
    if order.status != TicketOrder.STATUS_PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La orden ya fue pagada o cancelada",
        )

    result = _create_preference(service, preferences.build_ticket_preference(order, data.payer_name))
    return CheckoutResponse(
        preference_id=result.preference_id,
        init_point=result.init_point,
        sandbox_init_point=result.sandbox_init_point,
    )


# ====================================================================
# WEBHOOK DE NOTIFICACIONES DE PAGO
# ====================================================================

@router.post(
    "/mp/webhook",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
    summary="Recibe notificaciones de pago de Mercado Pago",
)
async def handle_webhook(
    request: Request,
    db: Session = Depends(get_db),
    service: MercadoPagoService = Depends(get_mercadopago_service),
):
    """
    Llamado por los servidores de Mercado Pago, sin autenticación.
    Se responde 200 para todo resultado de negocio; solo un fallo al guardar
    el pago responde 500 para que Mercado Pago reintente.
    """
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        body = None

    notification = parse_notification(body, request.query_params)
    reconciler = PaymentReconciler(db, service)

    try:
        # La consulta a Mercado Pago y la base son bloqueantes
        outcome = await run_in_threadpool(reconciler.reconcile, notification)
    except PaymentPersistenceError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e)},
        )

    return WebhookAck(result=outcome.value)
