from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from fleet.models.booking import Booking
from fleet.models.driver import Driver
from fleet.models.driver_payment import DriverPayment
from fleet.schemas.driver_payment import DriverPaymentCreate, DriverPaymentUpdate
from fleet.services.booking_service import get_booking_or_404
from fleet.services.ledger_service import (
    round_money,
    derive_fuel_basis,
    summarize_booking,
)


FUEL_FIELDS = ("fuel_quantity", "fuel_rate", "distance_km", "mileage")


def _apply_mode(payment: DriverPayment):
    if payment.mode == "fuel-basis":
        fuel = derive_fuel_basis(
            payment.fuel_quantity,
            payment.fuel_rate,
            payment.distance_km,
            payment.mileage,
        )
        payment.fuel_quantity = fuel.fuel_quantity
        payment.fuel_rate = fuel.fuel_rate
        payment.amount = fuel.amount
        return

    for field in FUEL_FIELDS:
        setattr(payment, field, None)

    if not payment.amount or payment.amount <= 0:
        raise HTTPException(status_code=400, detail="Invalid payment amount")

    payment.amount = round_money(payment.amount)


def _get_driver_payment_or_404(db: Session, booking_id: int, payment_id: int) -> DriverPayment:
    payment = (
        db.query(DriverPayment)
        .filter(
            DriverPayment.id == payment_id,
            DriverPayment.booking_id == booking_id,
        )
        .first()
    )
    if not payment:
        raise HTTPException(status_code=404, detail="Driver payment not found")
    return payment


def add_driver_payment(db: Session, booking_id: int, data: DriverPaymentCreate) -> DriverPayment:
    booking = get_booking_or_404(db, booking_id)

    driver_id = data.driver_id or booking.driver_id
    if not driver_id:
        raise HTTPException(status_code=400, detail="Booking has no driver assigned")
    if db.get(Driver, driver_id) is None:
        raise HTTPException(status_code=400, detail=f"Invalid driver_id: {driver_id}")

    payment = DriverPayment(
        booking_id=booking.id,
        driver_id=driver_id,
        mode=data.mode,
        amount=data.amount or 0,
        description=data.description,
        date=data.date or datetime.utcnow(),
        fuel_quantity=data.fuel_quantity,
        fuel_rate=data.fuel_rate,
        distance_km=data.distance_km,
        mileage=data.mileage,
        settled=False,
    )
    _apply_mode(payment)

    db.add(payment)
    db.commit()
    db.refresh(payment)

    return payment


def list_driver_payments(db: Session, booking_id: int) -> list[DriverPayment]:
    get_booking_or_404(db, booking_id)
    return (
        db.query(DriverPayment)
        .filter(DriverPayment.booking_id == booking_id)
        .order_by(DriverPayment.date.asc(), DriverPayment.id.asc())
        .all()
    )


def list_driver_payments_for_driver(db: Session, driver_id: int) -> list[DriverPayment]:
    if db.get(Driver, driver_id) is None:
        raise HTTPException(status_code=404, detail="Driver not found")

    return (
        db.query(DriverPayment)
        .filter(DriverPayment.driver_id == driver_id)
        .order_by(DriverPayment.date.desc(), DriverPayment.id.desc())
        .all()
    )


def update_driver_payment(
    db: Session,
    booking_id: int,
    payment_id: int,
    updates: DriverPaymentUpdate,
) -> DriverPayment:
    payment = _get_driver_payment_or_404(db, booking_id, payment_id)
    values = updates.model_dump(exclude_unset=True)
    settle = values.pop("settle", None)

    # a typed quantity replaces an earlier distance/mileage derivation
    if values.get("fuel_quantity") and not values.get("distance_km"):
        values["distance_km"] = None
        values["mileage"] = None

    for key, value in values.items():
        setattr(payment, key, value)

    if values:
        _apply_mode(payment)

    if settle:
        payment.settled = True
        payment.settled_at = datetime.utcnow()

    db.commit()
    db.refresh(payment)

    return payment


def delete_driver_payment(db: Session, booking_id: int, payment_id: int):
    payment = _get_driver_payment_or_404(db, booking_id, payment_id)
    db.delete(payment)
    db.commit()


# =====================================================
# SETTLEMENT
# =====================================================

def settle_booking(db: Session, booking: Booking, amount: Optional[float] = None) -> DriverPayment:
    if booking.final_paid and booking.final_paid > 0:
        raise HTTPException(status_code=400, detail="Booking already settled")

    if not booking.driver_id:
        raise HTTPException(status_code=400, detail="Booking has no driver assigned")

    if amount is None:
        amount = summarize_booking(booking).display_payable

    amount = round_money(amount)
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Nothing payable for this booking")

    payment = DriverPayment(
        booking_id=booking.id,
        driver_id=booking.driver_id,
        mode="per-trip",
        amount=amount,
        description=f"Final payment for booking {booking.pickup_location} to {booking.drop_location}",
        date=datetime.utcnow(),
        settled=True,
        settled_at=datetime.utcnow(),
    )
    booking.driver_payments.append(payment)

    booking.final_paid = round_money((booking.final_paid or 0) + amount)

    db.commit()
    db.refresh(payment)

    return payment
