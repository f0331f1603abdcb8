# En main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from betel.config import settings
from betel.database import engine, Base
from betel.routers import (
    admin,
    mercadopago,
    reservations,
    tickets,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Vamos a Betel - Reservaciones",
    description="API de reservaciones de viaje con pagos por transferencia y Mercado Pago",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configuración CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "Accept",
        "Origin",
        "X-Requested-With",
    ],
    max_age=600,
)

# Routers
app.include_router(reservations.router, prefix="/reservations", tags=["Reservaciones"])
app.include_router(tickets.router, prefix="/tickets", tags=["Entradas"])
app.include_router(admin.router, prefix="/admin", tags=["Administración"])

# Preferencias y webhook de Mercado Pago (usa el prefix y tags definidos en mercadopago.py)
app.include_router(mercadopago.router)

@app.get("/")
def read_root():
    return {
        "mensaje": "Vamos a Betel API funcionando correctamente",
        "version": "1.0.0"
    }

@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": "Vamos a Betel API",
    }
