"""Delegation schemas."""
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional

PRIORITY_PATTERN = r"^(Low|Medium|High|Urgent)$"
STATUS_PATTERN = r"^(Pending|Accepted|Revision Requested|Completed|Verified|Rejected)$"


class DelegationCreate(BaseModel):
    """Schema for delegating a piece of work."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    assigner_id: int
    doer_id: int
    coordinator_id: Optional[int] = None
    helper_ids: List[int] = Field(default_factory=list)
    priority: str = Field("Medium", pattern=PRIORITY_PATTERN)
    deadline: datetime  # naive values are read as UTC
    is_revision_allowed: bool = True


class DelegationResponseRequest(BaseModel):
    """A status move by the doer, or by the reviewer on completed work."""
    status: str = Field(..., pattern=STATUS_PATTERN)
    performed_by: Optional[int] = None
    remarks: Optional[str] = Field(None, max_length=1000)
    revised_deadline: Optional[datetime] = None  # required for Revision Requested


class RevisionDecision(BaseModel):
    action: str = Field(..., pattern=r"^(Approve|Reassign)$")
    assigner_id: int
    new_deadline: Optional[datetime] = None
    new_doer_id: Optional[int] = None
    remarks: Optional[str] = Field(None, max_length=1000)


class DelegationHistoryResponse(BaseModel):
    id: int
    action: str
    performed_by: Optional[int] = None
    timestamp: datetime
    remarks: Optional[str] = None

    class Config:
        from_attributes = True


class DelegationResponse(BaseModel):
    id: int
    tenant_id: int
    title: str
    description: Optional[str] = None
    assigner_id: int
    doer_id: int
    coordinator_id: Optional[int] = None
    helper_ids: List[int] = []
    priority: str
    deadline: datetime
    is_revision_allowed: bool
    status: str
    requested_deadline: Optional[datetime] = None
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DelegationDetailResponse(DelegationResponse):
    history: List[DelegationHistoryResponse] = []


class TrackingEntry(BaseModel):
    """One row of a coordinator's combined delegation and checklist view."""
    task_type: str
    id: int
    title: str
    status: str
    doer_id: int
    assigner_id: Optional[int] = None
    due_date: date
    priority: Optional[str] = None
