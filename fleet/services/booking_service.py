import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Query, Session, selectinload

from fleet.models.booking import (
    Booking,
    BookingExpense,
    BookingPayment,
    BookingStatusChange,
    DutySlip,
)
from fleet.models.company import Company
from fleet.models.customer import Customer
from fleet.models.driver import Driver
from fleet.models.user import User
from fleet.models.vehicle import Vehicle
from fleet.schemas.booking import (
    BookingCreate,
    BookingQuery,
    BookingUpdate,
    ExpenseCreate,
    ExpenseUpdate,
    PaymentCreate,
    PaymentUpdate,
)
from fleet.services.ledger_service import recompute_balance


logger = logging.getLogger(__name__)

REFERENCE_MODELS = {
    "company_id": Company,
    "customer_id": Customer,
    "driver_id": Driver,
    "vehicle_id": Vehicle,
}


def _booking_query(db: Session) -> Query:
    return db.query(Booking).options(
        selectinload(Booking.status_history),
        selectinload(Booking.expenses),
        selectinload(Booking.payments),
        selectinload(Booking.duty_slips),
    )


def _scope_to_user(query: Query, user: Optional[User]) -> Optional[Query]:
    """
    Restrict a booking query to what the user may see.

    Returns None when a driver/customer account is not linked yet, which
    callers turn into an empty result rather than an error.
    """
    if user is None:
        return query

    if user.role == "driver":
        if not user.driver_id:
            return None
        return query.filter(Booking.driver_id == user.driver_id)

    if user.role == "customer":
        if not user.customer_id:
            return None
        return query.filter(Booking.customer_id == user.customer_id)

    return query


def _check_references(db: Session, data: dict):
    for field, model in REFERENCE_MODELS.items():
        value = data.get(field)
        if value is not None and db.get(model, value) is None:
            raise HTTPException(status_code=400, detail=f"Invalid {field}: {value}")


def _status_change(status: str, changed_by: str) -> BookingStatusChange:
    return BookingStatusChange(
        status=status,
        timestamp=datetime.utcnow(),
        changed_by=changed_by or "System",
    )


def get_booking_or_404(db: Session, booking_id: int) -> Booking:
    booking = _booking_query(db).filter(Booking.id == booking_id).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


# =====================================================
# BOOKINGS
# =====================================================

def create_booking(db: Session, data: BookingCreate, changed_by: str = "System") -> Booking:
    values = data.model_dump()
    _check_references(db, values)

    booking = Booking(
        **values,
        balance=recompute_balance(data.total_amount, data.advance_received, 0, 0),
        status="booked",
        billed=False,
    )
    booking.status_history.append(_status_change("booked", changed_by))

    db.add(booking)
    db.commit()

    return get_booking_or_404(db, booking.id)


def list_bookings(db: Session, filters: BookingQuery, user: Optional[User] = None) -> dict:
    query = _scope_to_user(_booking_query(db), user)
    if query is None:
        return {"bookings": [], "total": 0}

    if filters.status:
        query = query.filter(Booking.status == filters.status)
    if filters.source:
        query = query.filter(Booking.booking_source == filters.source)
    if filters.start_date:
        query = query.filter(Booking.start_date >= filters.start_date)
    if filters.end_date:
        query = query.filter(Booking.end_date <= filters.end_date)
    # a driver's own scope always wins over the requested driver
    if filters.driver_id and (user is None or user.role != "driver"):
        query = query.filter(Booking.driver_id == filters.driver_id)

    total = query.count()
    bookings = (
        query
        .order_by(Booking.start_date.desc(), Booking.id.desc())
        .offset((filters.page - 1) * filters.limit)
        .limit(filters.limit)
        .all()
    )

    return {"bookings": bookings, "total": total}


def get_booking(db: Session, booking_id: int, user: Optional[User] = None) -> Booking:
    query = _scope_to_user(_booking_query(db), user)
    booking = query.filter(Booking.id == booking_id).first() if query is not None else None

    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    return booking


def update_booking(
    db: Session,
    booking_id: int,
    updates: BookingUpdate,
    changed_by: str = "System",
) -> Booking:
    booking = get_booking_or_404(db, booking_id)
    values = updates.model_dump(exclude_unset=True)
    _check_references(db, values)

    start_date = values.get("start_date", booking.start_date)
    end_date = values.get("end_date", booking.end_date)
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date cannot be before start_date")

    if values.get("booking_source", booking.booking_source) == "individual":
        values["company_id"] = None

    balance = recompute_balance(
        values.get("total_amount"),
        values.get("advance_received"),
        booking.total_amount,
        booking.advance_received,
    )
    if balance is not None:
        values["balance"] = balance

    new_status = values.pop("status", None)

    for key, value in values.items():
        setattr(booking, key, value)

    if new_status:
        booking.status = new_status
        booking.status_history.append(_status_change(new_status, changed_by))

    db.commit()

    return get_booking_or_404(db, booking_id)


def delete_booking(db: Session, booking_id: int):
    booking = get_booking_or_404(db, booking_id)
    db.delete(booking)
    db.commit()


def update_status(
    db: Session,
    booking_id: int,
    status: str,
    changed_by: str,
    user: Optional[User] = None,
) -> Booking:
    booking = get_booking(db, booking_id, user)

    booking.status = status
    booking.status_history.append(_status_change(status, changed_by))
    db.commit()

    return get_booking_or_404(db, booking_id)


# =====================================================
# EXPENSES
# =====================================================

def _get_expense_or_404(db: Session, booking_id: int, expense_id: int) -> BookingExpense:
    expense = (
        db.query(BookingExpense)
        .filter(
            BookingExpense.id == expense_id,
            BookingExpense.booking_id == booking_id,
        )
        .first()
    )
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


def add_expense(db: Session, booking_id: int, data: ExpenseCreate) -> Booking:
    booking = get_booking_or_404(db, booking_id)
    booking.expenses.append(BookingExpense(**data.model_dump()))
    db.commit()
    return get_booking_or_404(db, booking_id)


def update_expense(db: Session, booking_id: int, expense_id: int, updates: ExpenseUpdate) -> Booking:
    expense = _get_expense_or_404(db, booking_id, expense_id)
    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(expense, key, value)
    db.commit()
    return get_booking_or_404(db, booking_id)


def delete_expense(db: Session, booking_id: int, expense_id: int) -> Booking:
    expense = _get_expense_or_404(db, booking_id, expense_id)
    db.delete(expense)
    db.commit()
    return get_booking_or_404(db, booking_id)


# =====================================================
# CUSTOMER PAYMENTS
# =====================================================

def _get_payment_or_404(db: Session, booking_id: int, payment_id: int) -> BookingPayment:
    payment = (
        db.query(BookingPayment)
        .filter(
            BookingPayment.id == payment_id,
            BookingPayment.booking_id == booking_id,
        )
        .first()
    )
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


def add_payment(db: Session, booking_id: int, data: PaymentCreate) -> Booking:
    booking = get_booking_or_404(db, booking_id)
    values = data.model_dump()
    values["paid_on"] = values["paid_on"] or datetime.utcnow()
    booking.payments.append(BookingPayment(**values))
    db.commit()
    return get_booking_or_404(db, booking_id)


def list_payments(db: Session, booking_id: int, user: Optional[User] = None) -> list[BookingPayment]:
    return get_booking(db, booking_id, user).payments


def update_payment(db: Session, booking_id: int, payment_id: int, updates: PaymentUpdate) -> Booking:
    payment = _get_payment_or_404(db, booking_id, payment_id)
    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(payment, key, value)
    db.commit()
    return get_booking_or_404(db, booking_id)


def delete_payment(db: Session, booking_id: int, payment_id: int) -> Booking:
    payment = _get_payment_or_404(db, booking_id, payment_id)
    db.delete(payment)
    db.commit()
    return get_booking_or_404(db, booking_id)


# =====================================================
# DUTY SLIPS
# =====================================================

def add_duty_slips(db: Session, booking_id: int, paths: list[str], uploaded_by: str) -> Booking:
    booking = get_booking_or_404(db, booking_id)

    for path in paths:
        uploaded_at = datetime.utcnow()
        booking.duty_slips.append(
            DutySlip(
                path=path,
                uploaded_by=uploaded_by,
                uploaded_at=uploaded_at,
                description=f"Duty slip uploaded at {uploaded_at.isoformat()}",
            )
        )

    db.commit()
    logger.info("Attached %d duty slip(s) to booking %s", len(paths), booking_id)

    return get_booking_or_404(db, booking_id)


def remove_duty_slip(db: Session, booking_id: int, path: str) -> Booking:
    get_booking_or_404(db, booking_id)

    (
        db.query(DutySlip)
        .filter(DutySlip.booking_id == booking_id, DutySlip.path == path)
        .delete(synchronize_session=False)
    )
    db.commit()
    # the booking loaded above still holds the removed slip in its collection
    db.expire_all()

    return get_booking_or_404(db, booking_id)
