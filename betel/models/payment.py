from sqlalchemy import Column, String, Integer, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from betel.database import Base
from sqlalchemy.sql import func

class Payment(Base):
    """Pago recibido. Inmutable: se crea una vez y nunca se edita ni se borra."""
    __tablename__ = "payments"

    METHOD_MERCADOPAGO = "mercadopago"
    MANUAL_METHODS = ("transferencia", "efectivo", "deposito")

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    paid_at = Column(DateTime(timezone=True), server_default=func.now())
    method = Column(String(30), nullable=False)
    # ID de pago de Mercado Pago; UNIQUE es la llave de deduplicación
    reference = Column(String(100), unique=True)
    note = Column(Text)

    reservation = relationship("Reservation", back_populates="payments")
