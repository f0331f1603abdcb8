# betel/config.py

from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # Database (Postgres hospedado)
    DATABASE_URL: str

    # JWT para el panel de administración
    SECRET_KEY: str = "cambia-esta-clave-en-produccion"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS
    FRONTEND_URLS: str = "http://localhost:3000"

    # URL pública de la app: back_urls y notification_url de Mercado Pago
    APP_URL: str = "http://localhost:3000"

    # =======================================================
    # 💳 MERCADO PAGO
    # =======================================================
    MP_ACCESS_TOKEN: Optional[str] = None
    MP_API_URL: str = "https://api.mercadopago.com"
    MP_TIMEOUT_SECONDS: float = 15.0
    CURRENCY_ID: str = "MXN"

    # Política de precios del viaje
    SEAT_PRICE: float = 1700
    DEPOSIT_RATIO: float = 0.5
    FREE_UNDER_AGE: int = 6
    CARD_COMMISSION_RATE: float = 0.05

    LOG_LEVEL: str = "INFO"

    @property
    def allowed_origins(self) -> List[str]:
        urls = self.FRONTEND_URLS.split(",")
        all_urls = []
        for url in urls:
            url = url.strip()
            if url:
                all_urls.append(url)
                # Añadir versión HTTPS si es HTTP
                if url.startswith("http://"):
                    all_urls.append(url.replace("http://", "https://"))
        return all_urls

    @property
    def webhook_url(self) -> str:
        return f"{self.APP_URL.rstrip('/')}/api/mp/webhook"

    class Config:
        env_file = ".env"

settings = Settings()
