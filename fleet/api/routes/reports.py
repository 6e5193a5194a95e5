from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from fleet.core.dependencies import get_db, require_role
from fleet.schemas.report import (
    CompanyReport,
    DriverReport,
    DriverSettleRequest,
    DriverSettleResult,
    FuelReport,
    FuelReportQuery,
    ReportRange,
)
from fleet.services import report_service
from fleet.services.audit_service import log_action


router = APIRouter(prefix="/api/reports", tags=["Reports"])

REPORT_ROLES = ["admin", "accountant", "dispatcher"]


def _report_range(
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
) -> ReportRange:
    try:
        return ReportRange(from_date=from_date, to_date=to_date)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        )


@router.get("/company", response_model=CompanyReport)
def get_company_report(
    company_id: int | None = Query(None),
    period: ReportRange = Depends(_report_range),
    db: Session = Depends(get_db),
    user=Depends(require_role(REPORT_ROLES)),
):
    return report_service.company_report(db, period.from_date, period.to_date, company_id)


@router.get("/drivers/{driver_id}", response_model=DriverReport)
def get_driver_report(
    driver_id: int,
    period: ReportRange = Depends(_report_range),
    db: Session = Depends(get_db),
    user=Depends(require_role(REPORT_ROLES)),
):
    return report_service.driver_report(db, driver_id, period.from_date, period.to_date)


@router.post("/drivers/{driver_id}/settle", response_model=DriverSettleResult)
def settle_driver(
    driver_id: int,
    payload: DriverSettleRequest,
    db: Session = Depends(get_db),
    user=Depends(require_role(REPORT_ROLES)),
):
    result = report_service.settle_driver(
        db,
        driver_id,
        payload.from_date,
        payload.to_date,
        booking_id=payload.booking_id,
        amount=payload.amount,
    )

    log_action(
        db=db,
        user_id=user.id,
        action="SETTLE_DRIVER",
        entity_type="Driver",
        entity_id=driver_id,
        details=(
            f"Bookings: {result['settled_bookings']} | "
            f"Total: {result['total_paid']}"
        ),
    )

    return result


def _fuel_query(
    vehicle_id: int | None = Query(None),
    booking_id: int | None = Query(None),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
) -> FuelReportQuery:
    try:
        return FuelReportQuery(
            from_date=from_date,
            to_date=to_date,
            vehicle_id=vehicle_id,
            booking_id=booking_id,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        )


@router.get("/fuel", response_model=FuelReport)
def get_fuel_report(
    filters: FuelReportQuery = Depends(_fuel_query),
    db: Session = Depends(get_db),
    user=Depends(require_role(REPORT_ROLES)),
):
    return report_service.fuel_report(
        db,
        filters.from_date,
        filters.to_date,
        vehicle_id=filters.vehicle_id,
        booking_id=filters.booking_id,
    )
