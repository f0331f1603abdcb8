# betel/core/exceptions.py

from fastapi import HTTPException, status

class AuthException(HTTPException):
    def __init__(self, detail: str = "No se pudieron validar las credenciales"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class ForbiddenException(HTTPException):
    def __init__(self, detail: str = "No tiene permisos para realizar esta acción"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class NotFoundException(HTTPException):
    def __init__(self, detail: str = "Recurso no encontrado"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

# =======================================================
# 💳 PASARELA DE PAGOS
# =======================================================
class PaymentGatewayError(Exception):
    """
    Error al comunicarse con Mercado Pago (red, HTTP 4xx/5xx o respuesta
    incompleta).
    """
    def __init__(self, message: str = "Error al comunicarse con la pasarela de pago"):
        self.message = message
        super().__init__(self.message)

class GatewayNotConfiguredError(PaymentGatewayError):
    """Falta MP_ACCESS_TOKEN."""
    def __init__(self, message: str = "Mercado Pago no está configurado"):
        super().__init__(message)

# =======================================================
# 🧾 LIBRO DE PAGOS
# =======================================================
class DuplicatePaymentError(Exception):
    """Ya existe un pago con la misma referencia externa."""
    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Ya existe un pago con referencia {reference}")

class PaymentPersistenceError(Exception):
    """
    No se pudo guardar el pago. El webhook NO debe confirmarse para que
    Mercado Pago reintente la notificación.
    """
