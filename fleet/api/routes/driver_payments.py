from typing import List

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from fleet.core.dependencies import get_db, require_role
from fleet.schemas.booking import BookingResponse
from fleet.schemas.driver_payment import (
    DriverPaymentCreate,
    DriverPaymentResponse,
    DriverPaymentUpdate,
    SettleRequest,
)
from fleet.services import driver_payment_service
from fleet.services.audit_service import log_action
from fleet.services.booking_service import get_booking_or_404


router = APIRouter(prefix="/api/bookings", tags=["Driver Payments"])

FINANCE_ROLES = ["admin", "accountant", "dispatcher"]


@router.post(
    "/{booking_id}/driver-payments",
    response_model=DriverPaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_driver_payment(
    booking_id: int,
    payload: DriverPaymentCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(FINANCE_ROLES)),
):
    payment = driver_payment_service.add_driver_payment(db, booking_id, payload)

    details = f"Driver payment added: {payment.amount} | Mode: {payment.mode}"
    if payment.mode == "fuel-basis":
        details = f"{details} | Fuel: {payment.fuel_quantity}L @ {payment.fuel_rate}"

    log_action(
        db=db,
        user_id=user.id,
        action="ADD_DRIVER_PAYMENT",
        entity_type="Booking",
        entity_id=booking_id,
        details=details,
    )

    return payment


@router.get("/{booking_id}/driver-payments", response_model=List[DriverPaymentResponse])
def list_driver_payments(
    booking_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(FINANCE_ROLES)),
):
    return driver_payment_service.list_driver_payments(db, booking_id)


@router.put("/{booking_id}/driver-payments/{payment_id}", response_model=DriverPaymentResponse)
def update_driver_payment(
    booking_id: int,
    payment_id: int,
    updates: DriverPaymentUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(FINANCE_ROLES)),
):
    payment = driver_payment_service.update_driver_payment(db, booking_id, payment_id, updates)

    log_action(
        db=db,
        user_id=user.id,
        action="SETTLE_DRIVER_PAYMENT" if updates.settle else "UPDATE_DRIVER_PAYMENT",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Driver payment {payment_id} | Amount: {payment.amount}",
    )

    return payment


@router.delete("/{booking_id}/driver-payments/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_driver_payment(
    booking_id: int,
    payment_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(FINANCE_ROLES)),
):
    driver_payment_service.delete_driver_payment(db, booking_id, payment_id)

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_DRIVER_PAYMENT",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Driver payment {payment_id} removed",
    )


@router.put("/{booking_id}/settle", response_model=BookingResponse)
def settle_booking(
    booking_id: int,
    payload: SettleRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    user=Depends(require_role(FINANCE_ROLES)),
):
    booking = get_booking_or_404(db, booking_id)
    payment = driver_payment_service.settle_booking(
        db,
        booking,
        amount=payload.amount if payload else None,
    )

    log_action(
        db=db,
        user_id=user.id,
        action="SETTLE_BOOKING",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Final payment: {payment.amount} to driver {payment.driver_id}",
    )

    return get_booking_or_404(db, booking_id)
