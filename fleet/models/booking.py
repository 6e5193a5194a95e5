from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from fleet.db.base import Base


BOOKING_STATUSES = ("booked", "ongoing", "completed", "canceled")
BOOKING_SOURCES = ("company", "travel-agency", "individual")
JOURNEY_TYPES = (
    "outstation-one-way",
    "outstation",
    "local-outstation",
    "local",
    "transfer",
)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    booking_source = Column(String, nullable=False, default="individual")
    journey_type = Column(String, nullable=False, default="local")

    pickup_location = Column(String, nullable=False)
    drop_location = Column(String, nullable=False)
    city_of_work = Column(String, nullable=True)

    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False)

    tariff_rate = Column(Float, default=0)
    total_amount = Column(Float, nullable=False, default=0)
    advance_received = Column(Float, nullable=False, default=0)
    advance_reason = Column(String, nullable=True)
    balance = Column(Float, nullable=False, default=0)

    status = Column(String, nullable=False, default="booked", index=True)
    billed = Column(Boolean, default=False)
    final_paid = Column(Float, nullable=True)

    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    company = relationship("Company")
    customer = relationship("Customer")
    driver = relationship("Driver")
    vehicle = relationship("Vehicle")

    status_history = relationship(
        "BookingStatusChange",
        back_populates="booking",
        order_by="BookingStatusChange.id",
        cascade="all, delete-orphan",
    )
    expenses = relationship(
        "BookingExpense",
        back_populates="booking",
        order_by="BookingExpense.id",
        cascade="all, delete-orphan",
    )
    payments = relationship(
        "BookingPayment",
        back_populates="booking",
        order_by="BookingPayment.id",
        cascade="all, delete-orphan",
    )
    duty_slips = relationship(
        "DutySlip",
        back_populates="booking",
        order_by="DutySlip.id",
        cascade="all, delete-orphan",
    )
    driver_payments = relationship(
        "DriverPayment",
        back_populates="booking",
        order_by="DriverPayment.id",
        cascade="all, delete-orphan",
    )


class BookingStatusChange(Base):
    __tablename__ = "booking_status_changes"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)
    changed_by = Column(String, nullable=False, default="System")

    booking = relationship("Booking", back_populates="status_history")


class BookingExpense(Base):
    __tablename__ = "booking_expenses"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)

    # fuel, toll, parking, food, other ...
    type = Column(String, nullable=False)
    amount = Column(Float, nullable=False, default=0)
    description = Column(Text, nullable=True)
    receipt = Column(String, nullable=True)

    booking = relationship("Booking", back_populates="expenses")


class BookingPayment(Base):
    __tablename__ = "booking_payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    comments = Column(Text, nullable=True)
    collected_by = Column(String, nullable=True)
    paid_on = Column(DateTime, default=datetime.utcnow)

    booking = relationship("Booking", back_populates="payments")


class DutySlip(Base):
    __tablename__ = "duty_slips"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)

    path = Column(String, nullable=False)
    uploaded_by = Column(String, nullable=True)
    uploaded_at = Column(DateTime, default=datetime.utcnow)
    description = Column(String, nullable=True)

    booking = relationship("Booking", back_populates="duty_slips")
