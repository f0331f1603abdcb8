# betel/core/mercadopago_service.py

import logging
from typing import Optional

import requests

from betel.config import settings
from betel.core.exceptions import GatewayNotConfiguredError, PaymentGatewayError
from betel.schemas.mercadopago import GatewayPayment, PreferenceResponse

logger = logging.getLogger(__name__)


# Dependencia para que los routers puedan inyectar el servicio
def get_mercadopago_service():
    return MercadoPagoService()


class MercadoPagoService:
    """Cliente mínimo de la API REST de Mercado Pago (Checkout Pro + Payments)."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.access_token = access_token if access_token is not None else settings.MP_ACCESS_TOKEN
        self.base_url = (base_url or settings.MP_API_URL).rstrip("/")
        self.timeout = timeout or settings.MP_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token)

    def _headers(self) -> dict:
        if not self.is_configured:
            logger.error("[MP] MP_ACCESS_TOKEN no configurado")
            raise GatewayNotConfiguredError()
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        headers = self._headers()
        url = self.base_url + endpoint
        try:
            response = requests.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            detail = e.response.text if e.response is not None else str(e)
            raise PaymentGatewayError(f"Mercado Pago respondió {status_code}: {detail}")
        except requests.exceptions.RequestException as e:
            # Errores de red, timeouts
            raise PaymentGatewayError(f"Error de comunicación con Mercado Pago: {e}")
        except ValueError as e:
            raise PaymentGatewayError(f"Respuesta de Mercado Pago no es JSON válido: {e}")

    def create_preference(self, body: dict) -> PreferenceResponse:
        """
        Crea una preferencia de Checkout Pro y devuelve la URL de redirección.
        """
        data = self._request("POST", "/checkout/preferences", json=body)

        if not data.get("id") or not data.get("init_point"):
            raise PaymentGatewayError("Respuesta de Mercado Pago incompleta o inesperada.")

        logger.info("[MP] Preferencia creada: %s (ref %s)", data["id"], body.get("external_reference"))
        return PreferenceResponse(
            preference_id=str(data["id"]),
            init_point=data["init_point"],
            sandbox_init_point=data.get("sandbox_init_point"),
        )

    def get_payment(self, payment_id: str) -> GatewayPayment:
        """
        Consulta el estado autoritativo de un pago.
        """
        data = self._request("GET", f"/v1/payments/{payment_id}")

        if not data.get("status"):
            raise PaymentGatewayError(f"Pago {payment_id} sin estado en la respuesta de Mercado Pago.")

        external_reference = data.get("external_reference")
        return GatewayPayment(
            id=str(data.get("id") or payment_id),
            status=data["status"],
            status_detail=data.get("status_detail"),
            transaction_amount=data.get("transaction_amount") or 0,
            net_received_amount=(data.get("transaction_details") or {}).get("net_received_amount"),
            external_reference=str(external_reference) if external_reference is not None else None,
        )
