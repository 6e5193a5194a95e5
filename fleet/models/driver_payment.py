from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from fleet.db.base import Base


DRIVER_PAYMENT_MODES = ("per-trip", "daily", "fuel-basis")


class DriverPayment(Base):
    __tablename__ = "driver_payments"

    id = Column(Integer, primary_key=True, index=True)

    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)

    mode = Column(String, nullable=False, default="per-trip")
    amount = Column(Float, nullable=False, default=0)
    description = Column(Text, nullable=True)
    date = Column(DateTime, default=datetime.utcnow)

    # fuel-basis only
    fuel_quantity = Column(Float, nullable=True)
    fuel_rate = Column(Float, nullable=True)
    distance_km = Column(Float, nullable=True)
    mileage = Column(Float, nullable=True)

    settled = Column(Boolean, default=False)
    settled_at = Column(DateTime, nullable=True)

    booking = relationship("Booking", back_populates="driver_payments")
    driver = relationship("Driver")
