"""Recurring checklist schemas."""
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

FREQUENCY_PATTERN = r"^(Daily|Weekly|Monthly|Quarterly|Half-Yearly|Yearly|Interval)$"


class FrequencyConfig(BaseModel):
    """Recurrence settings. Which keys matter depends on the frequency."""
    days_of_week: Optional[List[int]] = Field(None, max_length=7)  # Weekly: 0=Sunday .. 6=Saturday
    days_of_month: Optional[List[int]] = Field(None, max_length=31)  # Monthly: 1..31
    interval_days: Optional[int] = Field(None, ge=1)  # Interval
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)  # Quarterly, Half-Yearly, Yearly
    month: Optional[int] = Field(None, ge=1, le=12)  # Yearly

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ChecklistCreate(BaseModel):
    """Schema for creating a recurring checklist."""
    task_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    doer_id: int
    coordinator_id: Optional[int] = None
    frequency: str = Field(..., pattern=FREQUENCY_PATTERN)
    frequency_config: Optional[FrequencyConfig] = None
    start_date: Optional[date] = None  # defaults to today in the tenant's timezone
    created_by: Optional[int] = None


class ChecklistUpdate(BaseModel):
    task_name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    doer_id: Optional[int] = None
    coordinator_id: Optional[int] = None
    status: Optional[str] = Field(None, pattern=r"^(Active|Paused)$")
    performed_by: Optional[int] = None


class HistoryResponse(BaseModel):
    id: int
    action: str
    timestamp: datetime
    instance_date: Optional[date] = None
    remarks: Optional[str] = None
    performed_by: Optional[int] = None
    attachment_ref: Optional[str] = None

    class Config:
        from_attributes = True


class ChecklistResponse(BaseModel):
    id: int
    tenant_id: int
    task_name: str
    description: Optional[str] = None
    doer_id: int
    coordinator_id: Optional[int] = None
    frequency: str
    frequency_config: Dict[str, Any] = {}
    start_date: date
    next_due_date: date
    last_completed_at: Optional[datetime] = None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ChecklistDetailResponse(ChecklistResponse):
    history: List[HistoryResponse] = []


class CompletionRequest(BaseModel):
    """Schema for completing one occurrence. Without instance_date, today's occurrence is completed."""
    instance_date: Optional[date] = None
    performed_by: Optional[int] = None
    remarks: Optional[str] = Field(None, max_length=1000)
    attachment_ref: Optional[str] = Field(None, max_length=500)


class ForceCompletionRequest(BaseModel):
    """Schema for a coordinator's administrative completion. Defaults to the current due date."""
    coordinator_id: int
    instance_date: Optional[date] = None
    remarks: Optional[str] = Field(None, max_length=1000)


class CompletionResponse(BaseModel):
    task_id: int
    outcome: str  # advanced, backlog, in_place
    instance_date: date
    previous_due_date: date
    next_due_date: date


class ChecklistInstance(BaseModel):
    task_id: int
    task_name: str
    description: Optional[str] = None
    frequency: str
    doer_id: int
    instance_date: date
    is_backlog: bool
    is_buddy_task: bool
    original_owner_name: Optional[str] = None


class InstanceListResponse(BaseModel):
    employee_id: int
    today: date
    covering_for: List[int] = []
    instances: List[ChecklistInstance] = []
    count: int
    anomalies: List[Dict[str, Any]] = []


class PreviewRequest(BaseModel):
    frequency: str = Field(..., pattern=FREQUENCY_PATTERN)
    frequency_config: Optional[FrequencyConfig] = None
    start_date: Optional[date] = None
    tenant_id: Optional[int] = None
    count: int = Field(10, ge=1, le=100)


class PreviewResponse(BaseModel):
    frequency: str
    occurrences: List[date]
