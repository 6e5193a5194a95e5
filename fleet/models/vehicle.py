from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String

from fleet.db.base import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    registration_number = Column(String, unique=True, nullable=False)
    category = Column(String, nullable=True)
    make = Column(String, nullable=True)
    model = Column(String, nullable=True)
    seats = Column(Integer, nullable=True)
    mileage = Column(Float, nullable=True)  # km per litre
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
