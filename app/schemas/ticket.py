"""Support ticket schemas."""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional


class TicketCreate(BaseModel):
    reporter_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    category: Optional[str] = Field("Technical", max_length=50)
    priority: str = Field("Medium", pattern=r"^(Low|Medium|High|Urgent)$")


class TicketResolve(BaseModel):
    admin_remarks: str = Field(..., min_length=1, max_length=2000)
    resolved_by: Optional[str] = Field(None, max_length=200)


class TicketStatusUpdate(BaseModel):
    status: str = Field(..., pattern=r"^(Open|In-Progress|Resolved|Closed)$")
    performed_by: Optional[str] = Field(None, max_length=200)
    remarks: Optional[str] = Field(None, max_length=2000)


class TicketResponse(BaseModel):
    id: int
    tenant_id: int
    reporter_id: int
    reporter_name: str
    reporter_email: str
    reporter_role: str
    title: str
    description: str
    category: str
    priority: str
    status: str
    admin_remarks: Optional[str] = None
    resolved_at: Optional[datetime] = None
    history: List[Dict[str, Any]] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
