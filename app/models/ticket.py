"""Support ticket raised by an employee."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.models.timestamps import timestamp_column, utc_now

TICKET_STATUSES = ["Open", "In-Progress", "Resolved", "Closed"]


class SupportTicket(SQLModel, table=True):
    """
    A problem report with the reporter's details captured at creation.

    history is a JSON list of {action, performed_by, timestamp, remarks}.
    """
    __tablename__ = "support_tickets"

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: int = Field(foreign_key="tenants.id", index=True)
    reporter_id: int = Field(foreign_key="employees.id", index=True)
    reporter_name: str = Field(max_length=200)
    reporter_email: str = Field(max_length=255)
    reporter_role: str = Field(max_length=200)

    title: str = Field(max_length=200, min_length=1)
    description: str = Field(max_length=5000)
    category: str = Field(default="Technical", max_length=50)
    priority: str = Field(default="Medium", max_length=10)
    status: str = Field(default="Open", max_length=20, index=True)

    admin_remarks: Optional[str] = Field(default=None, max_length=2000)
    resolved_at: Optional[datetime] = Field(default=None, sa_column=timestamp_column(nullable=True))
    history: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())
