"""Tenant and employee schemas."""
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List


class HolidayItem(BaseModel):
    holiday_date: date
    name: Optional[str] = Field(None, max_length=200)

    class Config:
        from_attributes = True


class TenantCreate(BaseModel):
    """Schema for registering an organization."""
    company_name: str = Field(..., min_length=1, max_length=200)
    subdomain: str = Field(..., min_length=2, max_length=63, pattern=r"^[A-Za-z0-9-]+$")
    admin_email: str = Field(..., max_length=255)
    timezone: Optional[str] = Field(None, max_length=64)  # IANA name, e.g. Asia/Kolkata
    weekends: Optional[List[int]] = Field(None, max_length=7)  # 0=Sunday .. 6=Saturday
    holidays: Optional[List[HolidayItem]] = Field(None)


class CalendarUpdate(BaseModel):
    """Schema for replacing weekend days and/or the holiday list. Omitted fields are kept."""
    weekends: Optional[List[int]] = Field(None, max_length=7)
    holidays: Optional[List[HolidayItem]] = Field(None)
    timezone: Optional[str] = Field(None, max_length=64)


class TenantResponse(BaseModel):
    id: int
    company_name: str
    subdomain: str
    admin_email: str
    timezone: str
    weekends: List[int] = []
    holidays: List[HolidayItem] = []
    created_at: datetime

    class Config:
        from_attributes = True


class EmployeeCreate(BaseModel):
    """Schema for adding an employee to a tenant."""
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=255)
    department: Optional[str] = Field(None, max_length=100)
    whatsapp_number: Optional[str] = Field(None, max_length=20)
    roles: Optional[List[str]] = Field(None)  # Assigner, Doer, Coordinator, Viewer, Admin, Manager


class LeaveUpdate(BaseModel):
    """Schema for recording or clearing leave. Missing bounds are open-ended."""
    on_leave: bool
    leave_start: Optional[date] = None
    leave_end: Optional[date] = None
    buddy_id: Optional[int] = None


class EmployeeResponse(BaseModel):
    id: int
    tenant_id: int
    name: str
    email: str
    department: Optional[str] = None
    whatsapp_number: Optional[str] = None
    roles: List[str] = []
    on_leave: bool = False
    leave_start: Optional[date] = None
    leave_end: Optional[date] = None
    buddy_id: Optional[int] = None
    managed_doers: List[int] = []
    managed_assigners: List[int] = []

    class Config:
        from_attributes = True


class MappingUpdate(BaseModel):
    """Replace one reporting line of an employee."""
    mapping_type: str = Field(..., pattern=r"^(managed_doers|managed_assigners)$")
    target_ids: List[int] = Field(default_factory=list)
