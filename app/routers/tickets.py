"""Support ticket router."""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Dict, Any, Optional

from app.schemas.ticket import TicketCreate, TicketResolve, TicketStatusUpdate, TicketResponse
from app.services.ticket_service import TicketService
from app.db.config import get_session
from sqlmodel import Session

router = APIRouter(tags=["Tickets"])  # No prefix since main.py adds /api prefix


def get_ticket_service(session: Session = Depends(get_session)) -> TicketService:
    """Dependency for getting TicketService instance."""
    return TicketService(session)


def _listing(tickets) -> Dict[str, Any]:
    return {
        "tickets": [TicketResponse.model_validate(t) for t in tickets],
        "count": len(tickets)
    }


@router.post("/tickets", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def raise_ticket(
    ticket_data: TicketCreate,
    service: TicketService = Depends(get_ticket_service),
):
    return service.raise_ticket(
        reporter_id=ticket_data.reporter_id,
        title=ticket_data.title,
        description=ticket_data.description,
        category=ticket_data.category,
        priority=ticket_data.priority,
    )


@router.get("/tickets", response_model=Dict[str, Any])
async def list_tickets(
    tenant_id: Optional[int] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    service: TicketService = Depends(get_ticket_service),
):
    """All tickets, newest first; optionally one tenant's or one status."""
    return _listing(service.list_all(tenant_id=tenant_id, status=status_filter))


@router.get("/employees/{employee_id}/tickets", response_model=Dict[str, Any])
async def list_my_tickets(
    employee_id: int,
    service: TicketService = Depends(get_ticket_service),
):
    return _listing(service.list_for_reporter(employee_id))


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: int,
    service: TicketService = Depends(get_ticket_service),
):
    ticket = service.get(ticket_id)
    if not ticket:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found"
        )
    return ticket


@router.put("/tickets/{ticket_id}/resolve", response_model=TicketResponse)
async def resolve_ticket(
    ticket_id: int,
    resolution: TicketResolve,
    service: TicketService = Depends(get_ticket_service),
):
    return service.resolve(ticket_id, resolution.admin_remarks, resolution.resolved_by or "Super Admin")


@router.put("/tickets/{ticket_id}/status", response_model=TicketResponse)
async def update_ticket_status(
    ticket_id: int,
    update: TicketStatusUpdate,
    service: TicketService = Depends(get_ticket_service),
):
    """Start work on, reopen or close a ticket."""
    return service.update_status(ticket_id, update.status, update.performed_by or "Super Admin", update.remarks)
