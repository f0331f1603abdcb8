from sqlalchemy import Column, String, Integer, Boolean, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from betel.database import Base
from sqlalchemy.sql import func

class ReservationPassenger(Base):
    __tablename__ = "reservation_passengers"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20))
    congregation = Column(String(150))
    age = Column(Integer)
    is_free_under6 = Column(Boolean, default=False, nullable=False)
    observations = Column(Text)
    boarded = Column(Boolean, default=False, nullable=False)
    # Un asiento por pasajero en todo el autobús
    seat_number = Column(String(10), unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    reservation = relationship("Reservation", back_populates="passengers")
