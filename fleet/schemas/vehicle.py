from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class VehicleCreate(BaseModel):
    registration_number: str
    category: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    seats: Optional[int] = Field(default=None, ge=1)
    mileage: Optional[float] = Field(default=None, gt=0)
    is_active: bool = True


class VehicleUpdate(BaseModel):
    registration_number: Optional[str] = None
    category: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    seats: Optional[int] = Field(default=None, ge=1)
    mileage: Optional[float] = Field(default=None, gt=0)
    is_active: Optional[bool] = None


class VehicleResponse(BaseModel):
    id: int
    registration_number: str
    category: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    seats: Optional[int] = None
    mileage: Optional[float] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
