"""Tenant and Holiday models for SQLModel."""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from datetime import date, datetime
from typing import List, Optional
import os

from app.models.timestamps import timestamp_column, utc_now

DEFAULT_TIMEZONE = os.environ.get("DEFAULT_TIMEZONE", "Asia/Kolkata")


class Tenant(SQLModel, table=True):
    """An organization with its own staff, checklists and working calendar."""
    __tablename__ = "tenants"

    id: Optional[int] = Field(default=None, primary_key=True)
    company_name: str = Field(max_length=200, min_length=1)
    subdomain: str = Field(max_length=100, unique=True, index=True)
    admin_email: str = Field(max_length=255)
    timezone: str = Field(default=DEFAULT_TIMEZONE, max_length=64)  # IANA name, decides what "today" is
    weekends: List[int] = Field(default_factory=lambda: [0], sa_column=Column(JSON))  # 0=Sunday..6=Saturday
    created_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())

    holidays: List["Holiday"] = Relationship(
        back_populates="tenant",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Holiday.holiday_date"}
    )


class Holiday(SQLModel, table=True):
    """A single non-working calendar day of a tenant."""
    __tablename__ = "holidays"

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: int = Field(foreign_key="tenants.id", index=True)
    name: Optional[str] = Field(default=None, max_length=200)
    holiday_date: date

    tenant: Optional[Tenant] = Relationship(back_populates="holidays")
