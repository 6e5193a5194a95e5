from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from fleet.core.config import Settings
from fleet.core.dependencies import get_db, get_settings, require_role
from fleet.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingQuery,
    BookingResponse,
    BookingSource,
    BookingStatus,
    BookingUpdate,
    DutySlipRemove,
    ExpenseCreate,
    ExpenseUpdate,
    LedgerResponse,
    PaymentCreate,
    PaymentResponse,
    PaymentUpdate,
    StatusUpdate,
)
from fleet.services import booking_service
from fleet.services.audit_service import log_action
from fleet.services.file_service import save_files
from fleet.services.ledger_service import summarize_booking


router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def _actor(user) -> str:
    return user.name or user.email


def _booking_query(
    status: Optional[BookingStatus] = Query(None),
    source: Optional[BookingSource] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    driver_id: Optional[int] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
) -> BookingQuery:
    try:
        return BookingQuery(
            status=status,
            source=source,
            start_date=start_date,
            end_date=end_date,
            driver_id=driver_id,
            page=page,
            limit=limit,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        )


# ---------------- BOOKINGS ----------------

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_data: BookingCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher"])),
):
    booking = booking_service.create_booking(db, booking_data, changed_by=_actor(user))

    log_action(
        db=db,
        user_id=user.id,
        action="CREATE_BOOKING",
        entity_type="Booking",
        entity_id=booking.id,
        details=(
            f"{booking.pickup_location} -> {booking.drop_location} | "
            f"Total: {booking.total_amount} | Advance: {booking.advance_received}"
        ),
    )

    return booking


@router.get("", response_model=BookingListResponse)
def get_bookings(
    filters: BookingQuery = Depends(_booking_query),
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher", "driver", "customer"])),
):
    return booking_service.list_bookings(db, filters, user)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher", "driver", "customer"])),
):
    return booking_service.get_booking(db, booking_id, user)


@router.put("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: int,
    updates: BookingUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher"])),
):
    booking = booking_service.update_booking(db, booking_id, updates, changed_by=_actor(user))

    log_action(
        db=db,
        user_id=user.id,
        action="UPDATE_BOOKING",
        entity_type="Booking",
        entity_id=booking.id,
        details=f"Fields: {', '.join(sorted(updates.model_dump(exclude_unset=True))) or 'none'}",
    )

    return booking


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher"])),
):
    booking_service.delete_booking(db, booking_id)

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_BOOKING",
        entity_type="Booking",
        entity_id=booking_id,
    )


@router.put("/{booking_id}/status", response_model=BookingResponse)
def update_status(
    booking_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher", "driver"])),
):
    booking = booking_service.update_status(db, booking_id, payload.status, _actor(user), user)

    log_action(
        db=db,
        user_id=user.id,
        action="UPDATE_BOOKING_STATUS",
        entity_type="Booking",
        entity_id=booking.id,
        details=f"Status: {payload.status}",
    )

    return booking


@router.get("/{booking_id}/ledger", response_model=LedgerResponse)
def get_ledger(
    booking_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "accountant", "dispatcher"])),
):
    booking = booking_service.get_booking_or_404(db, booking_id)
    ledger = summarize_booking(booking)

    return LedgerResponse(
        booking_id=booking.id,
        total_amount=booking.total_amount,
        advance_received=booking.advance_received,
        **asdict(ledger),
    )


# ---------------- EXPENSES ----------------

@router.post("/{booking_id}/expenses", response_model=BookingResponse)
def add_expense(
    booking_id: int,
    expense: ExpenseCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher"])),
):
    booking = booking_service.add_expense(db, booking_id, expense)

    log_action(
        db=db,
        user_id=user.id,
        action="ADD_EXPENSE",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Expense added: {expense.type} {expense.amount}",
    )

    return booking


@router.put("/{booking_id}/expenses/{expense_id}", response_model=BookingResponse)
def update_expense(
    booking_id: int,
    expense_id: int,
    updates: ExpenseUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher"])),
):
    booking = booking_service.update_expense(db, booking_id, expense_id, updates)

    log_action(
        db=db,
        user_id=user.id,
        action="UPDATE_EXPENSE",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Expense {expense_id} updated",
    )

    return booking


@router.delete("/{booking_id}/expenses/{expense_id}", response_model=BookingResponse)
def delete_expense(
    booking_id: int,
    expense_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher"])),
):
    booking = booking_service.delete_expense(db, booking_id, expense_id)

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_EXPENSE",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Expense {expense_id} removed",
    )

    return booking


# ---------------- CUSTOMER PAYMENTS ----------------

@router.post("/{booking_id}/payments", response_model=BookingResponse)
def add_payment(
    booking_id: int,
    payment: PaymentCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "accountant", "dispatcher"])),
):
    booking = booking_service.add_payment(db, booking_id, payment)

    log_action(
        db=db,
        user_id=user.id,
        action="ADD_PAYMENT",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Payment added: {payment.amount} | Collected by: {payment.collected_by or 'N/A'}",
    )

    return booking


@router.get("/{booking_id}/payments", response_model=List[PaymentResponse])
def get_payments(
    booking_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "accountant", "dispatcher", "customer"])),
):
    return booking_service.list_payments(db, booking_id, user)


@router.put("/{booking_id}/payments/{payment_id}", response_model=BookingResponse)
def update_payment(
    booking_id: int,
    payment_id: int,
    updates: PaymentUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "accountant", "dispatcher"])),
):
    booking = booking_service.update_payment(db, booking_id, payment_id, updates)

    log_action(
        db=db,
        user_id=user.id,
        action="UPDATE_PAYMENT",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Payment {payment_id} updated",
    )

    return booking


@router.delete("/{booking_id}/payments/{payment_id}", response_model=BookingResponse)
def delete_payment(
    booking_id: int,
    payment_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "accountant", "dispatcher"])),
):
    booking = booking_service.delete_payment(db, booking_id, payment_id)

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_PAYMENT",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Payment {payment_id} removed",
    )

    return booking


# ---------------- DUTY SLIPS ----------------

@router.post("/{booking_id}/duty-slips", response_model=BookingResponse)
def upload_duty_slips(
    booking_id: int,
    files: List[UploadFile] = File(...),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user=Depends(require_role(["admin", "dispatcher"])),
):
    booking_service.get_booking_or_404(db, booking_id)

    paths = save_files(files, settings.UPLOAD_DIR)
    booking = booking_service.add_duty_slips(db, booking_id, paths, _actor(user))

    log_action(
        db=db,
        user_id=user.id,
        action="UPLOAD_DUTY_SLIPS",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"Files: {', '.join(paths)}",
    )

    return booking


@router.put("/{booking_id}/remove-duty-slip", response_model=BookingResponse)
def remove_duty_slip(
    booking_id: int,
    payload: DutySlipRemove,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "dispatcher"])),
):
    booking = booking_service.remove_duty_slip(db, booking_id, payload.path)

    log_action(
        db=db,
        user_id=user.id,
        action="REMOVE_DUTY_SLIP",
        entity_type="Booking",
        entity_id=booking_id,
        details=f"File: {payload.path}",
    )

    return booking
