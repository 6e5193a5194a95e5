from datetime import date, datetime, time
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from fleet.models.booking import Booking
from fleet.models.driver import Driver
from fleet.models.driver_payment import DriverPayment
from fleet.services.driver_payment_service import settle_booking
from fleet.services.ledger_service import round_money, summarize_booking


def _range_start(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.min) if value else None


def _range_end(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.max) if value else None


def _route(booking: Booking) -> str:
    return f"{booking.pickup_location} / {booking.drop_location}"


def _bookings_in_range(
    db: Session,
    from_date: Optional[date],
    to_date: Optional[date],
    company_id: Optional[int] = None,
    driver_id: Optional[int] = None,
) -> list[Booking]:
    query = db.query(Booking).options(
        selectinload(Booking.expenses),
        selectinload(Booking.payments),
        selectinload(Booking.driver_payments),
        selectinload(Booking.driver),
        selectinload(Booking.vehicle),
        selectinload(Booking.company),
    )

    start = _range_start(from_date)
    end = _range_end(to_date)

    if start:
        query = query.filter(Booking.start_date >= start)
    if end:
        query = query.filter(Booking.start_date <= end)
    if company_id is not None:
        query = query.filter(Booking.company_id == company_id)
    if driver_id is not None:
        query = query.filter(Booking.driver_id == driver_id)

    return query.order_by(Booking.start_date.asc(), Booking.id.asc()).all()


def _driver_or_404(db: Session, driver_id: int) -> Driver:
    driver = db.get(Driver, driver_id)
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    return driver


# =====================================================
# COMPANY REPORT
# =====================================================

def company_report(
    db: Session,
    from_date: Optional[date],
    to_date: Optional[date],
    company_id: Optional[int] = None,
):
    rows = []

    for index, booking in enumerate(_bookings_in_range(db, from_date, to_date, company_id=company_id), start=1):
        ledger = summarize_booking(booking)

        rows.append({
            "s_no": index,
            "booking_id": booking.id,
            "booking_date": booking.start_date,
            "customer_name": booking.customer_name,
            "route": _route(booking),
            "booking_amount": round_money(booking.total_amount),
            "driver_name": booking.driver.name if booking.driver else "-",
            "company_name": booking.company.name if booking.company else "-",
            "vehicle": booking.vehicle.registration_number if booking.vehicle else "-",
            "advance_to_driver": ledger.advance_to_driver,
            "driver_expenses": ledger.driver_expenses,
            "driver_received": ledger.driver_received,
            "amount_payable": ledger.display_payable,
            "created_date": booking.created_at,
        })

    return {
        "rows": rows,
        "total_booking_amount": round_money(sum(r["booking_amount"] for r in rows)),
        "total_amount_payable": round_money(sum(r["amount_payable"] for r in rows)),
    }


# =====================================================
# DRIVER REPORT
# =====================================================

def driver_report(
    db: Session,
    driver_id: int,
    from_date: Optional[date],
    to_date: Optional[date],
):
    driver = _driver_or_404(db, driver_id)
    bookings = _bookings_in_range(db, from_date, to_date, driver_id=driver_id)

    entries = []
    vehicle_trips: dict[int, dict] = {}

    for booking in bookings:
        ledger = summarize_booking(booking)

        entries.append({
            "booking_id": booking.id,
            "start_date": booking.start_date,
            "route": _route(booking),
            "advance_to_driver": ledger.advance_to_driver,
            "total_payment_amount": round_money(ledger.advance_to_driver + (booking.final_paid or 0)),
            "amount_payable": ledger.display_payable,
            "final_paid": booking.final_paid,
            "settled": bool(booking.final_paid),
        })

        if booking.vehicle:
            usage = vehicle_trips.setdefault(booking.vehicle.id, {
                "vehicle_id": booking.vehicle.id,
                "registration_number": booking.vehicle.registration_number,
                "trips": 0,
            })
            usage["trips"] += 1

    return {
        "driver_id": driver.id,
        "driver_name": driver.name,
        "trips": len(entries),
        "total_payment_amount": round_money(sum(e["total_payment_amount"] for e in entries)),
        "total_payable": round_money(
            sum(e["amount_payable"] for e in entries if not e["settled"])
        ),
        "bookings": entries,
        "vehicles": sorted(vehicle_trips.values(), key=lambda v: v["trips"], reverse=True),
    }


def settle_driver(
    db: Session,
    driver_id: int,
    from_date: Optional[date],
    to_date: Optional[date],
    booking_id: Optional[int] = None,
    amount: Optional[float] = None,
):
    _driver_or_404(db, driver_id)
    bookings = _bookings_in_range(db, from_date, to_date, driver_id=driver_id)

    if booking_id is not None:
        bookings = [b for b in bookings if b.id == booking_id]
        if not bookings:
            raise HTTPException(status_code=404, detail="Booking not found for this driver")
        payments = [settle_booking(db, bookings[0], amount)]
    else:
        payments = []
        for booking in bookings:
            if booking.final_paid and booking.final_paid > 0:
                continue
            if summarize_booking(booking).display_payable <= 0:
                continue
            payments.append(settle_booking(db, booking))

    return {
        "settled_bookings": [p.booking_id for p in payments],
        "total_paid": round_money(sum(p.amount for p in payments)),
        "payments": payments,
    }


# =====================================================
# FUEL REPORT
# =====================================================

def fuel_report(
    db: Session,
    from_date: Optional[date],
    to_date: Optional[date],
    vehicle_id: Optional[int] = None,
    booking_id: Optional[int] = None,
):
    query = (
        db.query(DriverPayment)
        .join(Booking, Booking.id == DriverPayment.booking_id)
        .options(
            selectinload(DriverPayment.booking).selectinload(Booking.vehicle),
            selectinload(DriverPayment.driver),
        )
        .filter(DriverPayment.mode == "fuel-basis")
    )

    start = _range_start(from_date)
    end = _range_end(to_date)

    if start:
        query = query.filter(DriverPayment.date >= start)
    if end:
        query = query.filter(DriverPayment.date <= end)
    if vehicle_id is not None:
        query = query.filter(Booking.vehicle_id == vehicle_id)
    if booking_id is not None:
        query = query.filter(DriverPayment.booking_id == booking_id)

    payments = query.order_by(DriverPayment.date.desc(), DriverPayment.id.desc()).all()

    rows = []
    for index, payment in enumerate(payments, start=1):
        booking = payment.booking
        rows.append({
            "s_no": index,
            "payment_id": payment.id,
            "booking_id": booking.id,
            "fuel_date": payment.date,
            "vehicle": booking.vehicle.registration_number if booking.vehicle else "-",
            "booking": _route(booking),
            "driver": payment.driver.name if payment.driver else "-",
            "total_km": payment.distance_km or 0,
            "mileage": payment.mileage or 0,
            "quantity": payment.fuel_quantity or 0,
            "rate": payment.fuel_rate or 0,
            "total": round_money(payment.amount),
        })

    return {
        "rows": rows,
        "total_quantity": round_money(sum(r["quantity"] for r in rows)),
        "total_amount": round_money(sum(r["total"] for r in rows)),
    }
