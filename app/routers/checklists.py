"""Recurring checklist router."""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Dict, Any, Optional
from datetime import date

from app.schemas.checklist import (
    ChecklistCreate,
    ChecklistUpdate,
    ChecklistResponse,
    ChecklistDetailResponse,
    CompletionRequest,
    ForceCompletionRequest,
    CompletionResponse,
    InstanceListResponse,
    PreviewRequest,
    PreviewResponse,
)
from app.scheduler import CompletionOutcome
from app.services.checklist_service import ChecklistService
from app.db.config import get_session
from sqlmodel import Session

router = APIRouter(tags=["Checklists"])  # No prefix since main.py adds /api prefix


def get_checklist_service(session: Session = Depends(get_session)) -> ChecklistService:
    """Dependency for getting ChecklistService instance."""
    return ChecklistService(session)


def _completion_response(task_id: int, outcome: CompletionOutcome) -> CompletionResponse:
    return CompletionResponse(
        task_id=task_id,
        outcome=outcome.kind.value,
        instance_date=outcome.instance_date,
        previous_due_date=outcome.previous_due_date,
        next_due_date=outcome.next_due_date,
    )


@router.post("/tenants/{tenant_id}/checklists", response_model=ChecklistResponse, status_code=status.HTTP_201_CREATED)
async def create_checklist(
    tenant_id: int,
    checklist_data: ChecklistCreate,
    service: ChecklistService = Depends(get_checklist_service),
):
    """Create a recurring checklist; its first due date is resolved immediately."""
    config = checklist_data.frequency_config.as_dict() if checklist_data.frequency_config else {}
    return service.create(
        tenant_id=tenant_id,
        task_name=checklist_data.task_name,
        description=checklist_data.description,
        doer_id=checklist_data.doer_id,
        coordinator_id=checklist_data.coordinator_id,
        frequency=checklist_data.frequency,
        frequency_config=config,
        start_date=checklist_data.start_date,
        created_by=checklist_data.created_by,
    )


@router.get("/tenants/{tenant_id}/checklists", response_model=Dict[str, Any])
async def list_checklists(
    tenant_id: int,
    service: ChecklistService = Depends(get_checklist_service),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status: Active, Paused"),
):
    checklists = service.list_by_tenant(tenant_id, status=status_filter)
    return {
        "checklists": [ChecklistResponse.model_validate(c) for c in checklists],
        "count": len(checklists)
    }


@router.get("/checklists/{task_id}", response_model=ChecklistDetailResponse)
async def get_checklist(
    task_id: int,
    service: ChecklistService = Depends(get_checklist_service),
):
    """Get a checklist with its full history."""
    checklist = service.get(task_id)
    if not checklist:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Checklist not found"
        )
    return checklist


@router.put("/checklists/{task_id}", response_model=ChecklistResponse)
async def update_checklist(
    task_id: int,
    checklist_data: ChecklistUpdate,
    service: ChecklistService = Depends(get_checklist_service),
):
    """Rename, reassign, pause or resume a checklist."""
    checklist = service.update(
        task_id,
        task_name=checklist_data.task_name,
        description=checklist_data.description,
        doer_id=checklist_data.doer_id,
        coordinator_id=checklist_data.coordinator_id,
        status=checklist_data.status,
        performed_by=checklist_data.performed_by,
    )
    if not checklist:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Checklist not found"
        )
    return checklist


@router.delete("/checklists/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_checklist(
    task_id: int,
    service: ChecklistService = Depends(get_checklist_service),
):
    if not service.delete(task_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Checklist not found"
        )
    return None


@router.post("/checklists/{task_id}/complete", response_model=CompletionResponse)
async def complete_checklist(
    task_id: int,
    completion: CompletionRequest,
    service: ChecklistService = Depends(get_checklist_service),
):
    """
    Complete one occurrence.

    Completing the current due date advances it; completing a backlog day
    leaves it in place. 409 when the occurrence is already done or another
    completion moved the due date first.
    """
    outcome = service.complete_instance(
        task_id,
        instance_date=completion.instance_date,
        performed_by=completion.performed_by,
        remarks=completion.remarks,
        attachment_ref=completion.attachment_ref,
    )
    return _completion_response(task_id, outcome)


@router.post("/checklists/{task_id}/force-complete", response_model=CompletionResponse)
async def force_complete_checklist(
    task_id: int,
    completion: ForceCompletionRequest,
    service: ChecklistService = Depends(get_checklist_service),
):
    """Administrative completion by a coordinator."""
    outcome = service.force_complete(
        task_id,
        coordinator_id=completion.coordinator_id,
        remarks=completion.remarks,
        instance_date=completion.instance_date,
    )
    return _completion_response(task_id, outcome)


@router.get("/employees/{employee_id}/checklist-instances", response_model=InstanceListResponse)
async def list_checklist_instances(
    employee_id: int,
    service: ChecklistService = Depends(get_checklist_service),
    today: Optional[date] = Query(None, description="Override today's date (ISO format); defaults to the tenant's today"),
):
    """Outstanding occurrences for an employee, oldest first, including buddy coverage."""
    return service.visible_instances_for(employee_id, today=today)


@router.post("/checklists/preview", response_model=PreviewResponse)
async def preview_checklist(
    preview: PreviewRequest,
    service: ChecklistService = Depends(get_checklist_service),
):
    """Upcoming occurrences for a frequency, without saving anything."""
    config = preview.frequency_config.as_dict() if preview.frequency_config else {}
    occurrences = service.preview(
        preview.frequency,
        frequency_config=config,
        start_date=preview.start_date,
        tenant_id=preview.tenant_id,
        count=preview.count,
    )
    return PreviewResponse(frequency=preview.frequency, occurrences=occurrences)
