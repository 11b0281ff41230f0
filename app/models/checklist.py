"""Recurring checklist task and its history log."""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON, UniqueConstraint
from datetime import date, datetime, tzinfo
from typing import Any, Dict, List, Optional

from app.models.timestamps import as_utc, timestamp_column, utc_now
from app.scheduler import HistoryAction, HistoryEntry, RecurrenceRule, TaskSnapshot


class ChecklistTask(SQLModel, table=True):
    """A task that repeats on a frequency rule and tracks its next due occurrence."""
    __tablename__ = "checklist_tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: int = Field(foreign_key="tenants.id", index=True)
    task_name: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None, max_length=2000)
    doer_id: int = Field(foreign_key="employees.id", index=True)
    coordinator_id: Optional[int] = Field(default=None, foreign_key="employees.id")

    frequency: str = Field(max_length=20)  # Daily, Weekly, Monthly, Quarterly, Half-Yearly, Yearly, Interval
    frequency_config: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    start_date: date
    next_due_date: date = Field(index=True)  # earliest outstanding occurrence
    last_completed_at: Optional[datetime] = Field(default=None, sa_column=timestamp_column(nullable=True))
    status: str = Field(default="Active", max_length=10)  # Active, Paused

    created_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())

    history: List["ChecklistHistory"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "ChecklistHistory.id"}
    )

    @property
    def rule(self) -> RecurrenceRule:
        return RecurrenceRule.from_config(self.frequency, self.frequency_config)

    def snapshot(self, local_zone: Optional[tzinfo] = None) -> TaskSnapshot:
        """
        Read-only view handed to the scheduling core.

        local_zone is the tenant's timezone; history timestamps are moved into
        it so an entry without an instance date counts for the tenant's day.
        """
        return TaskSnapshot(
            rule=self.rule,
            next_due_date=self.next_due_date,
            history=tuple(entry.to_entry(local_zone) for entry in self.history),
        )


class ChecklistHistory(SQLModel, table=True):
    """
    Append-only audit log of a checklist.

    Completion-class rows copy their instance date into completed_instance;
    the unique constraint makes each occurrence completable once.
    """
    __tablename__ = "checklist_history"
    __table_args__ = (
        UniqueConstraint("task_id", "completed_instance", name="uq_checklist_history_completion"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="checklist_tasks.id", index=True)
    action: str = Field(max_length=40)
    timestamp: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())  # when it was recorded
    instance_date: Optional[date] = Field(default=None)  # which occurrence it refers to
    completed_instance: Optional[date] = Field(default=None)
    remarks: Optional[str] = Field(default=None, max_length=1000)
    performed_by: Optional[int] = Field(default=None)
    attachment_ref: Optional[str] = Field(default=None, max_length=500)

    task: Optional[ChecklistTask] = Relationship(back_populates="history")

    def to_entry(self, local_zone: Optional[tzinfo] = None) -> HistoryEntry:
        try:
            action = HistoryAction(self.action)
        except ValueError:
            action = HistoryAction.UPDATED
        timestamp = as_utc(self.timestamp or utc_now())
        if local_zone is not None:
            timestamp = timestamp.astimezone(local_zone)
        return HistoryEntry(action=action, timestamp=timestamp, instance_date=self.instance_date)
