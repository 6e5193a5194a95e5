from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


CompanyType = Literal["company", "travel-agency"]


class CompanyCreate(BaseModel):
    name: str
    type: CompanyType = "company"
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[CompanyType] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None


class CompanyResponse(BaseModel):
    id: int
    name: str
    type: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
