"""Employee model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from datetime import date, datetime
from typing import List, Optional

from app.models.timestamps import timestamp_column, utc_now


class Employee(SQLModel, table=True):
    """
    Staff member of a tenant.

    The leave fields drive buddy substitution: while on leave, the
    employee's checklists show up on the buddy's dashboard instead.
    The managed_* lists are the reporting lines: an assigner delegates
    to their managed doers, a coordinator monitors their managed assigners.
    """
    __tablename__ = "employees"

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: int = Field(foreign_key="tenants.id", index=True)
    name: str = Field(max_length=200, min_length=1)
    department: Optional[str] = Field(default=None, max_length=100)
    email: str = Field(max_length=255)
    whatsapp_number: Optional[str] = Field(default=None, max_length=32)
    roles: List[str] = Field(default_factory=lambda: ["Doer"], sa_column=Column(JSON))  # Assigner, Doer, Coordinator, Viewer, Admin, Manager
    created_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())

    # Leave / buddy configuration
    on_leave: bool = Field(default=False)
    leave_start: Optional[date] = Field(default=None)
    leave_end: Optional[date] = Field(default=None)
    buddy_id: Optional[int] = Field(default=None, foreign_key="employees.id", index=True)

    # Reporting lines (employee ids of the same tenant)
    managed_doers: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    managed_assigners: List[int] = Field(default_factory=list, sa_column=Column(JSON))

    def has_role(self, *roles: str) -> bool:
        return any(role in (self.roles or []) for role in roles)
