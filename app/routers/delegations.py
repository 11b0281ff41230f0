"""Delegation router."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Dict, Any

from app.schemas.delegation import (
    DelegationCreate,
    DelegationResponseRequest,
    RevisionDecision,
    DelegationResponse,
    DelegationDetailResponse,
    TrackingEntry,
)
from app.services.delegation_service import DelegationService
from app.db.config import get_session
from sqlmodel import Session

router = APIRouter(tags=["Delegations"])  # No prefix since main.py adds /api prefix


def get_delegation_service(session: Session = Depends(get_session)) -> DelegationService:
    """Dependency for getting DelegationService instance."""
    return DelegationService(session)


def _listing(tasks) -> Dict[str, Any]:
    return {
        "delegations": [DelegationResponse.model_validate(t) for t in tasks],
        "count": len(tasks)
    }


@router.post("/tenants/{tenant_id}/delegations", response_model=DelegationResponse, status_code=status.HTTP_201_CREATED)
async def create_delegation(
    tenant_id: int,
    delegation_data: DelegationCreate,
    service: DelegationService = Depends(get_delegation_service),
):
    """Hand a piece of work to a doer with a deadline."""
    return service.create(
        tenant_id=tenant_id,
        title=delegation_data.title,
        description=delegation_data.description,
        assigner_id=delegation_data.assigner_id,
        doer_id=delegation_data.doer_id,
        coordinator_id=delegation_data.coordinator_id,
        helper_ids=delegation_data.helper_ids,
        priority=delegation_data.priority,
        deadline=delegation_data.deadline,
        is_revision_allowed=delegation_data.is_revision_allowed,
    )


@router.get("/tenants/{tenant_id}/overview", response_model=Dict[str, int])
async def tenant_overview(
    tenant_id: int,
    service: DelegationService = Depends(get_delegation_service),
):
    return service.overview(tenant_id)


@router.get("/delegations/{task_id}", response_model=DelegationDetailResponse)
async def get_delegation(
    task_id: int,
    service: DelegationService = Depends(get_delegation_service),
):
    task = service.get(task_id)
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Delegation not found"
        )
    return task


@router.delete("/delegations/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_delegation(
    task_id: int,
    service: DelegationService = Depends(get_delegation_service),
):
    if not service.delete(task_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Delegation not found"
        )


@router.put("/delegations/{task_id}/respond", response_model=DelegationDetailResponse)
async def respond_to_delegation(
    task_id: int,
    response_data: DelegationResponseRequest,
    service: DelegationService = Depends(get_delegation_service),
):
    """Accept, reject, complete, request more time, or verify completed work."""
    return service.respond(
        task_id,
        status=response_data.status,
        performed_by=response_data.performed_by,
        remarks=response_data.remarks,
        revised_deadline=response_data.revised_deadline,
    )


@router.put("/delegations/{task_id}/revision", response_model=DelegationDetailResponse)
async def handle_revision(
    task_id: int,
    decision: RevisionDecision,
    service: DelegationService = Depends(get_delegation_service),
):
    """Approve a requested deadline or reassign the work."""
    return service.handle_revision(
        task_id,
        action=decision.action,
        assigner_id=decision.assigner_id,
        new_deadline=decision.new_deadline,
        new_doer_id=decision.new_doer_id,
        remarks=decision.remarks,
    )


@router.get("/employees/{employee_id}/delegations/as-doer", response_model=Dict[str, Any])
async def delegations_as_doer(
    employee_id: int,
    service: DelegationService = Depends(get_delegation_service),
):
    return _listing(service.list_for_doer(employee_id))


@router.get("/employees/{employee_id}/delegations/as-assigner", response_model=Dict[str, Any])
async def delegations_as_assigner(
    employee_id: int,
    service: DelegationService = Depends(get_delegation_service),
):
    return _listing(service.list_for_assigner(employee_id))


@router.get("/employees/{employee_id}/tracking", response_model=Dict[str, Any])
async def coordinator_tracking(
    employee_id: int,
    service: DelegationService = Depends(get_delegation_service),
):
    """Delegations and checklists of the staff this coordinator monitors, closest due date first."""
    entries = service.tracking_for(employee_id)
    return {
        "entries": [TrackingEntry(**e) for e in entries],
        "count": len(entries)
    }
