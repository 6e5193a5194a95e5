from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from fleet.schemas.driver_payment import DriverPaymentResponse


class ReportRange(BaseModel):
    from_date: Optional[date] = None
    to_date: Optional[date] = None

    @model_validator(mode="after")
    def check_order(self):
        if self.from_date and self.to_date and self.to_date < self.from_date:
            raise ValueError("to_date cannot be before from_date")
        return self


class CompanyReportRow(BaseModel):
    s_no: int
    booking_id: int
    booking_date: datetime
    customer_name: str
    route: str
    booking_amount: float
    driver_name: str
    company_name: str
    vehicle: str
    advance_to_driver: float
    driver_expenses: float
    driver_received: float
    amount_payable: float
    created_date: Optional[datetime] = None


class CompanyReport(BaseModel):
    rows: List[CompanyReportRow]
    total_booking_amount: float
    total_amount_payable: float


class DriverReportBooking(BaseModel):
    booking_id: int
    start_date: datetime
    route: str
    advance_to_driver: float
    total_payment_amount: float
    amount_payable: float
    final_paid: Optional[float] = None
    settled: bool


class VehicleUsage(BaseModel):
    vehicle_id: int
    registration_number: str
    trips: int


class DriverReport(BaseModel):
    driver_id: int
    driver_name: str
    trips: int
    total_payment_amount: float
    total_payable: float
    bookings: List[DriverReportBooking]
    vehicles: List[VehicleUsage]


class DriverSettleRequest(ReportRange):
    booking_id: Optional[int] = None
    amount: Optional[float] = Field(default=None, gt=0)


class DriverSettleResult(BaseModel):
    settled_bookings: List[int]
    total_paid: float
    payments: List[DriverPaymentResponse]


class FuelReportRow(BaseModel):
    s_no: int
    payment_id: int
    booking_id: int
    fuel_date: Optional[datetime] = None
    vehicle: str
    booking: str
    driver: str
    total_km: float
    mileage: float
    quantity: float
    rate: float
    total: float


class FuelReport(BaseModel):
    rows: List[FuelReportRow]
    total_quantity: float
    total_amount: float


class FuelReportQuery(ReportRange):
    vehicle_id: Optional[int] = None
    booking_id: Optional[int] = None
