# betel/services/reconciler.py
# 🎯 Conciliación de notificaciones de pago de Mercado Pago.
#
# Las notificaciones pueden llegar repetidas, fuera de orden y sin firma:
# solo se usa el ID de pago para consultar su estado real en Mercado Pago.

import logging
from enum import Enum
from typing import Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from betel.core import ledger
from betel.core.exceptions import (
    DuplicatePaymentError,
    GatewayNotConfiguredError,
    PaymentGatewayError,
    PaymentPersistenceError,
)
from betel.core.mercadopago_service import MercadoPagoService
from betel.models.payment import Payment
from betel.models.reservation import Reservation
from betel.models.ticket_order import TicketOrder
from betel.schemas.mercadopago import GatewayPayment, WebhookNotification
from betel.services.preferences import TICKET_ORDER_REF_PREFIX

logger = logging.getLogger(__name__)


class ReconcileOutcome(str, Enum):
    IGNORED = "ignored"
    NOT_APPROVED = "not_approved"
    DUPLICATE = "duplicate"
    RESERVATION_NOT_FOUND = "reservation_not_found"
    APPLIED = "applied"
    TICKET_ORDER_PAID = "ticket_order_paid"
    UNDERPAID = "underpaid"
    ERROR = "error"


def parse_notification(body: Optional[dict], query: Mapping[str, str]) -> WebhookNotification:
    """
    Extrae tipo e ID de pago. Mercado Pago los manda en el cuerpo JSON
    (webhooks) o en el query string (IPN); el cuerpo tiene prioridad.
    """
    if not isinstance(body, dict):
        body = {}
    data = body.get("data") if isinstance(body.get("data"), dict) else {}

    notification_type = (
        body.get("type") or body.get("topic")
        or query.get("type") or query.get("topic")
    )
    payment_id = (
        data.get("id") or body.get("id")
        or query.get("data.id") or query.get("id")
    )

    return WebhookNotification(
        type=str(notification_type) if notification_type else None,
        payment_id=str(payment_id) if payment_id else None,
    )


def find_reservation_by_reference(db: Session, external_reference: Optional[str]) -> Optional[Reservation]:
    """La referencia externa es el código de la reservación o su ID."""
    if not external_reference:
        return None

    reservation = db.query(Reservation).filter(
        Reservation.reservation_code == external_reference
    ).first()
    if reservation is None and external_reference.isdigit():
        reservation = db.query(Reservation).filter(
            Reservation.id == int(external_reference)
        ).first()
    return reservation


def find_ticket_order_by_reference(db: Session, external_reference: Optional[str]) -> Optional[TicketOrder]:
    if not external_reference or not external_reference.startswith(TICKET_ORDER_REF_PREFIX):
        return None
    order_id = external_reference[len(TICKET_ORDER_REF_PREFIX):]
    if not order_id.isdigit():
        return None
    return db.query(TicketOrder).filter(TicketOrder.id == int(order_id)).first()


class PaymentReconciler:
    def __init__(self, db: Session, gateway: MercadoPagoService):
        self.db = db
        self.gateway = gateway

    def reconcile(self, notification: WebhookNotification) -> ReconcileOutcome:
        """
        Procesa una notificación. Siempre devuelve un resultado para confirmar
        la recepción, salvo cuando falla el guardado del pago: en ese caso
        lanza PaymentPersistenceError para que Mercado Pago reintente.
        """
        if notification.type != "payment" or not notification.payment_id:
            return ReconcileOutcome.IGNORED

        try:
            return self._reconcile_payment(notification.payment_id)
        except PaymentPersistenceError:
            raise
        except GatewayNotConfiguredError:
            logger.error("[WEBHOOK] Mercado Pago no configurado; notificación %s sin procesar", notification.payment_id)
            return ReconcileOutcome.ERROR
        except PaymentGatewayError as e:
            logger.error("[WEBHOOK] No se pudo consultar el pago %s: %s", notification.payment_id, e)
            return ReconcileOutcome.ERROR
        except Exception:
            # Los errores de lógica se confirman para evitar reintentos infinitos
            logger.exception("[WEBHOOK] Error al procesar el pago %s", notification.payment_id)
            self.db.rollback()
            return ReconcileOutcome.ERROR

    def _reconcile_payment(self, payment_id: str) -> ReconcileOutcome:
        payment = self.gateway.get_payment(payment_id)
        logger.info(
            "[WEBHOOK] Pago %s: estado=%s monto=%s ref=%s",
            payment_id, payment.status, payment.transaction_amount, payment.external_reference,
        )

        if payment.status != "approved":
            return ReconcileOutcome.NOT_APPROVED

        if ledger.find_payment_by_reference(self.db, payment_id) is not None:
            logger.info("[WEBHOOK] Pago %s ya procesado", payment_id)
            return ReconcileOutcome.DUPLICATE

        reservation = find_reservation_by_reference(self.db, payment.external_reference)
        if reservation is None:
            order = find_ticket_order_by_reference(self.db, payment.external_reference)
            if order is not None:
                return self._mark_ticket_order_paid(order, payment)
            logger.warning(
                "[WEBHOOK] Pago %s aprobado sin reservación para la referencia %r",
                payment_id, payment.external_reference,
            )
            return ReconcileOutcome.RESERVATION_NOT_FOUND

        return self._apply_to_reservation(reservation, payment)

    def _apply_to_reservation(self, reservation: Reservation, payment: GatewayPayment) -> ReconcileOutcome:
        if reservation.status == Reservation.STATUS_CANCELLED:
            logger.warning(
                "[WEBHOOK] Pago %s recibido para la reservación cancelada %s; se registra sin cambiar el estatus",
                payment.id, reservation.reservation_code,
            )

        note = f"Mercado Pago #{payment.id}"
        if payment.net_received_amount is not None:
            note += f" (neto recibido ${payment.net_received_amount})"

        reservation.payment_method = "card"
        reservation.mp_payment_status = payment.status
        try:
            ledger.record_payment(
                self.db,
                reservation,
                amount=payment.transaction_amount,
                method=Payment.METHOD_MERCADOPAGO,
                reference=payment.id,
                note=note,
            )
        except DuplicatePaymentError:
            # Otra entrega concurrente del mismo pago ganó la inserción
            logger.info("[WEBHOOK] Pago %s insertado por otra notificación", payment.id)
            return ReconcileOutcome.DUPLICATE
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("[WEBHOOK] No se pudo guardar el pago %s: %s", payment.id, e)
            raise PaymentPersistenceError(f"No se pudo guardar el pago {payment.id}") from e

        return ReconcileOutcome.APPLIED

    def _mark_ticket_order_paid(self, order: TicketOrder, payment: GatewayPayment) -> ReconcileOutcome:
        payment_id = payment.id
        if order.mp_payment_id == payment_id or order.status == TicketOrder.STATUS_PAID:
            return ReconcileOutcome.DUPLICATE

        pagado = ledger.to_decimal(payment.transaction_amount)
        if pagado < ledger.to_decimal(order.total_amount):
            logger.warning(
                "[WEBHOOK] Pago %s de $%s no cubre la orden de entradas %s ($%s); queda pendiente",
                payment_id, pagado, order.id, order.total_amount,
            )
            return ReconcileOutcome.UNDERPAID

        order.status = TicketOrder.STATUS_PAID
        order.mp_payment_id = payment_id
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return ReconcileOutcome.DUPLICATE
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("[WEBHOOK] No se pudo marcar pagada la orden %s: %s", order.id, e)
            raise PaymentPersistenceError(f"No se pudo guardar el pago {payment_id}") from e

        logger.info("[WEBHOOK] Orden de entradas %s pagada con %s", order.id, payment_id)
        return ReconcileOutcome.TICKET_ORDER_PAID
