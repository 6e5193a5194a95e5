from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


BookingStatus = Literal["booked", "ongoing", "completed", "canceled"]
BookingSource = Literal["company", "travel-agency", "individual"]
JourneyType = Literal[
    "outstation-one-way",
    "outstation",
    "local-outstation",
    "local",
    "transfer",
]


class BookingCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=10)
    booking_source: BookingSource = "individual"
    journey_type: JourneyType = "local"

    pickup_location: str = Field(..., min_length=1)
    drop_location: str = Field(..., min_length=1)
    city_of_work: Optional[str] = None

    start_date: datetime
    end_date: datetime

    tariff_rate: float = Field(default=0, ge=0)
    total_amount: float = Field(..., ge=0)
    advance_received: float = Field(default=0, ge=0)
    advance_reason: Optional[str] = None

    company_id: Optional[int] = None
    customer_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None

    @model_validator(mode="after")
    def check_dates_and_source(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        if self.booking_source == "individual":
            self.company_id = None
        return self


class BookingUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    booking_source: Optional[BookingSource] = None
    journey_type: Optional[JourneyType] = None

    pickup_location: Optional[str] = None
    drop_location: Optional[str] = None
    city_of_work: Optional[str] = None

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    tariff_rate: Optional[float] = Field(default=None, ge=0)
    total_amount: Optional[float] = Field(default=None, ge=0)
    advance_received: Optional[float] = Field(default=None, ge=0)
    advance_reason: Optional[str] = None

    status: Optional[BookingStatus] = None
    billed: Optional[bool] = None
    final_paid: Optional[float] = Field(default=None, ge=0)

    company_id: Optional[int] = None
    customer_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None

    # omitted means "keep", but these columns cannot be cleared
    @field_validator(
        "customer_name",
        "customer_phone",
        "booking_source",
        "journey_type",
        "pickup_location",
        "drop_location",
        "start_date",
        "end_date",
        "total_amount",
        "advance_received",
        "status",
    )
    @classmethod
    def reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class BookingQuery(BaseModel):
    status: Optional[BookingStatus] = None
    source: Optional[BookingSource] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    driver_id: Optional[int] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class StatusUpdate(BaseModel):
    status: BookingStatus


# ---------------- SUB-RESOURCES ----------------

class ExpenseCreate(BaseModel):
    type: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    description: Optional[str] = None
    receipt: Optional[str] = None


class ExpenseUpdate(BaseModel):
    type: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    receipt: Optional[str] = None


class PaymentCreate(BaseModel):
    amount: float = Field(..., gt=0)
    comments: Optional[str] = None
    collected_by: Optional[str] = None
    paid_on: Optional[datetime] = None


class PaymentUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0)
    comments: Optional[str] = None
    collected_by: Optional[str] = None
    paid_on: Optional[datetime] = None


class DutySlipRemove(BaseModel):
    path: str = Field(..., min_length=1)


# ---------------- RESPONSES ----------------

class StatusChangeResponse(BaseModel):
    id: int
    status: str
    timestamp: datetime
    changed_by: str

    class Config:
        from_attributes = True


class ExpenseResponse(BaseModel):
    id: int
    type: str
    amount: float
    description: Optional[str] = None
    receipt: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    id: int
    amount: float
    comments: Optional[str] = None
    collected_by: Optional[str] = None
    paid_on: Optional[datetime] = None

    class Config:
        from_attributes = True


class DutySlipResponse(BaseModel):
    id: int
    path: str
    uploaded_by: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    description: Optional[str] = None

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    id: int
    customer_name: str
    customer_phone: str
    booking_source: str
    journey_type: str
    pickup_location: str
    drop_location: str
    city_of_work: Optional[str] = None
    start_date: datetime
    end_date: datetime
    tariff_rate: Optional[float] = None
    total_amount: float
    advance_received: float
    advance_reason: Optional[str] = None
    balance: float
    status: str
    billed: bool
    final_paid: Optional[float] = None
    company_id: Optional[int] = None
    customer_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    created_at: Optional[datetime] = None

    status_history: List[StatusChangeResponse] = []
    expenses: List[ExpenseResponse] = []
    payments: List[PaymentResponse] = []
    duty_slips: List[DutySlipResponse] = []

    class Config:
        from_attributes = True


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]
    total: int


class LedgerResponse(BaseModel):
    booking_id: int
    total_amount: float
    advance_received: float
    balance: float
    base_driver_expenses: float
    on_duty_paid: float
    total_oil_amount: float
    advance_to_driver: float
    driver_expenses: float
    driver_received: float
    amount_payable: float
    display_payable: float
    final_paid: Optional[float] = None
