from sqlalchemy import Column, String, Integer, Numeric, DateTime
from sqlalchemy.orm import relationship
from betel.database import Base
from sqlalchemy.sql import func

class Reservation(Base):
    __tablename__ = "reservations"

    STATUS_PENDING = "pending"
    STATUS_DEPOSIT_PAID = "deposit_paid"
    STATUS_FULLY_PAID = "fully_paid"
    STATUS_CANCELLED = "cancelled"
    STATUSES = (STATUS_PENDING, STATUS_DEPOSIT_PAID, STATUS_FULLY_PAID, STATUS_CANCELLED)

    id = Column(Integer, primary_key=True, index=True)
    reservation_code = Column(String(20), unique=True, nullable=False, index=True)
    responsible_name = Column(String(150), nullable=False)
    responsible_phone = Column(String(20), nullable=False)
    responsible_congregation = Column(String(150))
    seats_total = Column(Integer, nullable=False)
    seats_payable = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    deposit_required = Column(Numeric(10, 2), nullable=False)
    # Solo crece: lo modifica la conciliación de pagos o el administrador
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=STATUS_PENDING, index=True)
    payment_method = Column(String(20))  # card, transfer
    mp_payment_status = Column(String(20))  # pending, approved, rejected
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relaciones
    passengers = relationship("ReservationPassenger", back_populates="reservation", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="reservation", order_by="Payment.paid_at")
    ticket_orders = relationship("TicketOrder", back_populates="reservation")

    @property
    def remaining_balance(self):
        return max(self.total_amount - self.amount_paid, 0)
