from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from betel.database import Base
from sqlalchemy.sql import func

class TicketOrder(Base):
    __tablename__ = "ticket_orders"

    STATUS_PENDING = "pending"
    STATUS_PAID = "paid"
    STATUS_CANCELLED = "cancelled"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    items = Column(JSON, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)  # incluye comisión si es con tarjeta
    payment_method = Column(String(20), nullable=False)  # card, transfer
    status = Column(String(20), nullable=False, default=STATUS_PENDING)
    mp_payment_id = Column(String(100), unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    reservation = relationship("Reservation", back_populates="ticket_orders")
