"""
Booking ledger arithmetic.

Pure functions shared by the booking, driver payment and report services.
Nothing here touches the database; callers pass ORM objects or plain numbers.
Missing or malformed amounts count as zero instead of raising.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import HTTPException


FINAL_PAYMENT_MARKER = "final payment"


def round_money(value: float) -> float:
    return round(float(value or 0), 2)


def _amount(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


# =====================================================
# BALANCE
# =====================================================

def recompute_balance(
    new_total: Optional[float],
    new_advance: Optional[float],
    current_total: Optional[float],
    current_advance: Optional[float],
) -> Optional[float]:
    """
    Balance after a (possibly partial) update of total / advance.

    Returns None when neither side is being written, meaning the stored
    balance stays as it is.
    """
    if new_total is None and new_advance is None:
        return None

    total = new_total if new_total is not None else current_total
    advance = new_advance if new_advance is not None else current_advance

    return round_money(_amount(total) - _amount(advance))


# =====================================================
# AGGREGATES
# =====================================================

def sum_expenses(expenses: Iterable) -> float:
    return round_money(sum(_amount(e.amount) for e in expenses or []))


def sum_payments(payments: Iterable) -> float:
    return round_money(sum(_amount(p.amount) for p in payments or []))


def is_final_payment(description: Optional[str]) -> bool:
    return FINAL_PAYMENT_MARKER in (description or "").lower()


def oil_amount(driver_payments: Iterable) -> float:
    """Driver payments attached to a booking, settlement entries excluded."""
    return round_money(
        sum(
            _amount(p.amount)
            for p in driver_payments or []
            if not is_final_payment(p.description)
        )
    )


# =====================================================
# AMOUNT PAYABLE
# =====================================================

def amount_payable(base_expenses: float, on_duty_paid: float, oil: float) -> float:
    base_expenses = _amount(base_expenses)
    on_duty_paid = _amount(on_duty_paid)
    oil = _amount(oil)

    if oil == 0:
        if on_duty_paid == base_expenses:
            return 0.0
        if 0 < on_duty_paid < base_expenses:
            return round_money(base_expenses - on_duty_paid)
        return round_money(base_expenses)

    if on_duty_paid == 0:
        return round_money(base_expenses + oil)
    if on_duty_paid < base_expenses:
        return round_money(oil + (base_expenses - on_duty_paid))
    return round_money(oil)


def display_payable(payable: float, final_paid: Optional[float]) -> float:
    # a settled booking may show a negative figure (driver overpaid)
    if final_paid:
        return round_money(_amount(final_paid) - _amount(payable))
    return round_money(max(0.0, _amount(payable)))


@dataclass
class LedgerSummary:
    base_driver_expenses: float
    on_duty_paid: float
    total_oil_amount: float
    advance_to_driver: float
    driver_expenses: float
    driver_received: float
    amount_payable: float
    display_payable: float
    balance: float
    final_paid: Optional[float]


def summarize_booking(booking, driver_payments: Optional[Iterable] = None) -> LedgerSummary:
    if driver_payments is None:
        driver_payments = booking.driver_payments

    base = sum_expenses(booking.expenses)
    paid = sum_payments(booking.payments)
    oil = oil_amount(driver_payments)
    payable = amount_payable(base, paid, oil)

    advance_to_driver = round_money(_amount(booking.advance_received) + paid)
    if booking.final_paid:
        driver_received = round_money(_amount(booking.final_paid) + advance_to_driver)
    else:
        driver_received = advance_to_driver

    return LedgerSummary(
        base_driver_expenses=base,
        on_duty_paid=paid,
        total_oil_amount=oil,
        advance_to_driver=advance_to_driver,
        driver_expenses=round_money(base + oil),
        driver_received=driver_received,
        amount_payable=payable,
        display_payable=display_payable(payable, booking.final_paid),
        balance=round_money(booking.balance),
        final_paid=booking.final_paid,
    )


# =====================================================
# FUEL BASIS
# =====================================================

@dataclass
class FuelBasis:
    fuel_quantity: float
    fuel_rate: float
    amount: float


def derive_fuel_basis(
    fuel_quantity: Optional[float],
    fuel_rate: Optional[float],
    distance_km: Optional[float] = None,
    mileage: Optional[float] = None,
) -> FuelBasis:
    if distance_km and mileage and mileage > 0:
        fuel_quantity = round(distance_km / mileage, 2)

    if not fuel_quantity or not fuel_rate:
        raise HTTPException(
            status_code=400,
            detail="Fuel rate and fuel quantity (or distance and mileage) are required for fuel-basis payments",
        )

    return FuelBasis(
        fuel_quantity=round_money(fuel_quantity),
        fuel_rate=float(fuel_rate),
        amount=round_money(fuel_quantity * fuel_rate),
    )


# =====================================================
# PHONE MATCHING
# =====================================================

def phone_variants(phone: Optional[str]) -> list[str]:
    trimmed = (phone or "").strip()
    digits = re.sub(r"\D", "", trimmed)

    variants = []
    for candidate in (trimmed, digits, f"+{digits}" if digits else ""):
        if candidate and candidate not in variants:
            variants.append(candidate)

    return variants
