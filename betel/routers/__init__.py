from .admin import router as admin_router
from .mercadopago import router as mercadopago_router
from .reservations import router as reservations_router
from .tickets import router as tickets_router

__all__ = [
    "admin_router", "mercadopago_router", "reservations_router", "tickets_router",
]
