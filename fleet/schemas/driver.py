from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DriverCreate(BaseModel):
    name: str
    phone: str
    license_number: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True


class DriverUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    license_number: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None


class DriverResponse(BaseModel):
    id: int
    name: str
    phone: str
    license_number: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
