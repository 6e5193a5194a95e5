from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


DriverPaymentMode = Literal["per-trip", "daily", "fuel-basis"]


class DriverPaymentCreate(BaseModel):
    mode: DriverPaymentMode = "per-trip"
    driver_id: Optional[int] = None
    amount: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    date: Optional[datetime] = None

    fuel_quantity: Optional[float] = Field(default=None, ge=0)
    fuel_rate: Optional[float] = Field(default=None, ge=0)
    distance_km: Optional[float] = Field(default=None, ge=0)
    mileage: Optional[float] = Field(default=None, ge=0)


class DriverPaymentUpdate(BaseModel):
    mode: Optional[DriverPaymentMode] = None
    amount: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    date: Optional[datetime] = None

    fuel_quantity: Optional[float] = Field(default=None, ge=0)
    fuel_rate: Optional[float] = Field(default=None, ge=0)
    distance_km: Optional[float] = Field(default=None, ge=0)
    mileage: Optional[float] = Field(default=None, ge=0)

    settle: Optional[bool] = None

    @field_validator("mode", "amount")
    @classmethod
    def reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class SettleRequest(BaseModel):
    # defaults to the booking's current payable
    amount: Optional[float] = Field(default=None, gt=0)


class DriverPaymentResponse(BaseModel):
    id: int
    booking_id: int
    driver_id: int
    mode: str
    amount: float
    description: Optional[str] = None
    date: Optional[datetime] = None
    fuel_quantity: Optional[float] = None
    fuel_rate: Optional[float] = None
    distance_km: Optional[float] = None
    mileage: Optional[float] = None
    settled: bool
    settled_at: Optional[datetime] = None

    class Config:
        from_attributes = True
