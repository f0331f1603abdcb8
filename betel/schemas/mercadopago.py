# betel/schemas/mercadopago.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# ----------------------------------------------------
# RESPUESTAS DE LA API DE MERCADO PAGO
# ----------------------------------------------------

class PreferenceResponse(BaseModel):
    """Preferencia de Checkout Pro creada en Mercado Pago."""
    preference_id: str
    init_point: str
    sandbox_init_point: Optional[str] = None

class GatewayPayment(BaseModel):
    """
    Estado autoritativo de un pago, tal como lo reporta GET /v1/payments/{id}.
    Nunca se confía en montos o estados que vengan en la notificación.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    status: str
    status_detail: Optional[str] = None
    transaction_amount: float = 0
    net_received_amount: Optional[float] = None
    external_reference: Optional[str] = None

# ----------------------------------------------------
# NOTIFICACIÓN DEL WEBHOOK (transitoria, no se guarda)
# ----------------------------------------------------

class WebhookNotification(BaseModel):
    type: Optional[str] = None
    payment_id: Optional[str] = None

# ----------------------------------------------------
# SOLICITUDES DEL FRONTEND PARA CREAR PREFERENCIAS
# ----------------------------------------------------

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

class ReservationPreferenceRequest(_CamelModel):
    """Pago de la reservación: anticipo del 50% o pago completo."""
    reservation_code: str = Field(..., alias="reservationCode")
    responsible_name: Optional[str] = Field(None, alias="responsibleName")
    total_amount: float = Field(..., gt=0, alias="totalAmount")
    seats_payable: int = Field(..., ge=0, alias="seatsPayable")
    is_deposit: bool = Field(False, alias="isDeposit")

class ModificationPreferenceRequest(_CamelModel):
    """Pago adicional por una modificación de la reservación."""
    reservation_id: Optional[str] = Field(None, alias="reservationId")
    amount: Optional[float] = None
    description: Optional[str] = None

class TicketPreferenceRequest(_CamelModel):
    """Pago de una orden de entradas ya creada; los montos salen de la orden."""
    order_id: int = Field(..., alias="orderId")
    payer_name: Optional[str] = Field(None, alias="payerName")

class CheckoutResponse(_CamelModel):
    preference_id: str = Field(..., alias="preferenceId")
    init_point: str = Field(..., alias="initPoint")
    sandbox_init_point: Optional[str] = Field(None, alias="sandboxInitPoint")

class ModificationCheckoutResponse(BaseModel):
    # El frontend de modificaciones espera init_point en snake_case
    preferenceId: str
    init_point: str
    sandbox_init_point: Optional[str] = None

class WebhookAck(BaseModel):
    received: bool = True
    result: str
