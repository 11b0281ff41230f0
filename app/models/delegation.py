"""One-off delegated work and its audit log."""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from datetime import datetime
from enum import Enum
from typing import List, Optional

from app.models.timestamps import timestamp_column, utc_now

PRIORITIES = ["Low", "Medium", "High", "Urgent"]


class DelegationStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REVISION_REQUESTED = "Revision Requested"
    COMPLETED = "Completed"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class DelegationTask(SQLModel, table=True):
    """
    Work an assigner hands to a doer with a deadline.

    The doer accepts, asks for more time, rejects or completes it; the
    assigner approves a revision, reassigns, or verifies completed work.
    """
    __tablename__ = "delegation_tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: int = Field(foreign_key="tenants.id", index=True)
    title: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None, max_length=2000)

    assigner_id: int = Field(foreign_key="employees.id", index=True)
    doer_id: int = Field(foreign_key="employees.id", index=True)
    coordinator_id: Optional[int] = Field(default=None, foreign_key="employees.id")
    helper_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON))

    priority: str = Field(default="Medium", max_length=10)
    deadline: datetime = Field(sa_column=timestamp_column())
    is_revision_allowed: bool = Field(default=True)
    status: str = Field(default=DelegationStatus.PENDING.value, max_length=20, index=True)
    requested_deadline: Optional[datetime] = Field(default=None, sa_column=timestamp_column(nullable=True))
    remarks: Optional[str] = Field(default=None, max_length=1000)

    created_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())

    history: List["DelegationHistory"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "DelegationHistory.id"}
    )


class DelegationHistory(SQLModel, table=True):
    __tablename__ = "delegation_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="delegation_tasks.id", index=True)
    action: str = Field(max_length=40)
    performed_by: Optional[int] = Field(default=None)
    timestamp: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())
    remarks: Optional[str] = Field(default=None, max_length=1000)

    task: Optional[DelegationTask] = Relationship(back_populates="history")
