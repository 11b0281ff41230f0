"""Ticket service: support requests raised by staff and resolved by administrators."""
from sqlmodel import Session, select
from typing import List, Optional

from app.models.delegation import PRIORITIES
from app.models.ticket import TICKET_STATUSES, SupportTicket
from app.models.timestamps import utc_now
from app.services.employee_service import EmployeeService
from app.services.errors import InvalidTransition, NotFoundError, ValidationFailed
from app.utils.logger import ticket_logger as logger
from app.utils.metrics import metrics_collector

TICKET_TRANSITIONS = {
    "Open": {"In-Progress", "Resolved", "Closed"},
    "In-Progress": {"Resolved", "Closed"},
    "Resolved": {"In-Progress", "Closed"},
}


class TicketService:
    """Service class for support tickets."""

    def __init__(self, session: Session):
        self.session = session
        self.employees = EmployeeService(session)

    def raise_ticket(
        self,
        reporter_id: int,
        title: str,
        description: str,
        category: str = "Technical",
        priority: str = "Medium"
    ) -> SupportTicket:
        """Open a ticket; the reporter's name, email and roles are copied onto it."""
        reporter = self.employees.get(reporter_id)
        if not reporter:
            raise NotFoundError("Employee", reporter_id)
        if priority not in PRIORITIES:
            raise ValidationFailed(f"Priority must be one of: {', '.join(PRIORITIES)}", code="INVALID_PRIORITY")

        now = utc_now()
        ticket = SupportTicket(
            tenant_id=reporter.tenant_id,
            reporter_id=reporter.id,
            reporter_name=reporter.name,
            reporter_email=reporter.email,
            reporter_role=", ".join(reporter.roles or []) or "User",
            title=title.strip(),
            description=description,
            category=category or "Technical",
            priority=priority,
            history=[self._entry("Ticket Raised", reporter.name, "New support request initiated.", now)],
            created_at=now,
            updated_at=now,
        )
        self.session.add(ticket)
        self.session.commit()
        self.session.refresh(ticket)

        metrics_collector.ticket_raised()
        logger.info("Ticket raised", ticket_id=ticket.id, tenant_id=ticket.tenant_id, priority=priority)
        return ticket

    def get(self, ticket_id: int) -> Optional[SupportTicket]:
        return self.session.get(SupportTicket, ticket_id)

    def list_for_reporter(self, reporter_id: int) -> List[SupportTicket]:
        statement = (
            select(SupportTicket)
            .where(SupportTicket.reporter_id == reporter_id)
            .order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        )
        return list(self.session.exec(statement).all())

    def list_all(self, tenant_id: Optional[int] = None, status: Optional[str] = None) -> List[SupportTicket]:
        statement = select(SupportTicket)
        if tenant_id is not None:
            statement = statement.where(SupportTicket.tenant_id == tenant_id)
        if status:
            statement = statement.where(SupportTicket.status == status)
        statement = statement.order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        return list(self.session.exec(statement).all())

    def resolve(self, ticket_id: int, admin_remarks: str, resolved_by: str = "Super Admin") -> SupportTicket:
        """Mark a ticket resolved with the administrator's explanation."""
        ticket = self._ticket(ticket_id)
        self._check_transition(ticket, "Resolved")

        now = utc_now()
        ticket.admin_remarks = admin_remarks
        ticket.resolved_at = now
        self._move(ticket, "Resolved", resolved_by, admin_remarks, now)

        metrics_collector.ticket_resolved()
        logger.info("Ticket resolved", ticket_id=ticket.id, resolved_by=resolved_by)
        return ticket

    def update_status(
        self,
        ticket_id: int,
        status: str,
        performed_by: str = "Super Admin",
        remarks: Optional[str] = None
    ) -> SupportTicket:
        """Start work on, reopen or close a ticket."""
        if status not in TICKET_STATUSES:
            raise ValidationFailed(f"Status must be one of: {', '.join(TICKET_STATUSES)}", code="INVALID_STATUS")
        if status == "Resolved":
            return self.resolve(ticket_id, remarks or "", performed_by)

        ticket = self._ticket(ticket_id)
        self._check_transition(ticket, status)
        if status == "In-Progress":
            ticket.resolved_at = None
        self._move(ticket, status, performed_by, remarks, utc_now())
        logger.info("Ticket status changed", ticket_id=ticket.id, status=status)
        return ticket

    def _ticket(self, ticket_id: int) -> SupportTicket:
        ticket = self.get(ticket_id)
        if not ticket:
            raise NotFoundError("Ticket", ticket_id)
        return ticket

    @staticmethod
    def _check_transition(ticket: SupportTicket, status: str):
        if status not in TICKET_TRANSITIONS.get(ticket.status, ()):
            raise InvalidTransition("Ticket", ticket.id, ticket.status, status)

    def _move(self, ticket: SupportTicket, status: str, performed_by: str, remarks: Optional[str], now):
        ticket.status = status
        ticket.updated_at = now
        # JSON columns only persist on reassignment
        ticket.history = list(ticket.history or []) + [self._entry(status, performed_by, remarks, now)]
        self.session.add(ticket)
        self.session.commit()
        self.session.refresh(ticket)

    @staticmethod
    def _entry(action: str, performed_by: str, remarks: Optional[str], now) -> dict:
        return {
            "action": action,
            "performed_by": performed_by,
            "timestamp": now.isoformat(),
            "remarks": remarks,
        }
