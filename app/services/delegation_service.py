"""
Delegation Service

One-off work handed from an assigner to a doer:
- create: checks the doer is on the assigner's team
- respond: doer and reviewer moves through the status workflow
- handle_revision: the assigner approves a new deadline or reassigns
- tracking_for: a coordinator's combined view of delegations and checklists
"""
from sqlmodel import Session, select
from sqlalchemy import func, or_
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.models.checklist import ChecklistTask
from app.models.delegation import PRIORITIES, DelegationHistory, DelegationStatus, DelegationTask
from app.models.employee import Employee
from app.models.tenant import Tenant
from app.models.timestamps import as_utc, utc_now
from app.services.employee_service import OVERSIGHT_ROLES, EmployeeService
from app.services.errors import InvalidTransition, NotFoundError, ValidationFailed
from app.services.tenant_service import tenant_timezone
from app.utils.logger import delegation_logger as logger
from app.utils.metrics import metrics_collector

Status = DelegationStatus

# Moves a doer (or helper) may make
DOER_TRANSITIONS = {
    Status.PENDING: {Status.ACCEPTED, Status.REVISION_REQUESTED, Status.COMPLETED, Status.REJECTED},
    Status.ACCEPTED: {Status.REVISION_REQUESTED, Status.COMPLETED},
}

# Moves the assigner (or coordinator) makes on finished work
REVIEW_TRANSITIONS = {
    Status.COMPLETED: {Status.VERIFIED, Status.ACCEPTED},
}

# Revision outcomes decided by the assigner
REVISION_ACTIONS = ("Approve", "Reassign")
REASSIGNABLE = {Status.PENDING, Status.ACCEPTED, Status.REVISION_REQUESTED}


class DelegationService:
    """Service class for delegated work."""

    def __init__(self, session: Session):
        self.session = session
        self.employees = EmployeeService(session)

    def create(
        self,
        tenant_id: int,
        title: str,
        assigner_id: int,
        doer_id: int,
        deadline: datetime,
        description: Optional[str] = None,
        coordinator_id: Optional[int] = None,
        helper_ids: Optional[List[int]] = None,
        priority: str = "Medium",
        is_revision_allowed: bool = True
    ) -> DelegationTask:
        """
        Delegate a piece of work.

        Assigners without an oversight role may only delegate to their
        managed doers; an empty team means no restriction has been set up.
        """
        if not self.session.get(Tenant, tenant_id):
            raise NotFoundError("Tenant", tenant_id)
        if priority not in PRIORITIES:
            raise ValidationFailed(f"Priority must be one of: {', '.join(PRIORITIES)}", code="INVALID_PRIORITY")

        assigner = self._member(tenant_id, assigner_id, "Assigner")
        self._member(tenant_id, doer_id, "Doer")
        if coordinator_id is not None:
            self._member(tenant_id, coordinator_id, "Coordinator")
        helpers = list(dict.fromkeys(h for h in helper_ids or [] if h != doer_id))
        for helper_id in helpers:
            self._member(tenant_id, helper_id, "Helper")

        team = assigner.managed_doers or []
        if team and doer_id not in team and not assigner.has_role(*OVERSIGHT_ROLES):
            raise ValidationFailed(
                f"Employee {doer_id} is not on {assigner.name}'s team", code="DOER_NOT_MANAGED"
            )

        now = utc_now()
        task = DelegationTask(
            tenant_id=tenant_id,
            title=title.strip(),
            description=description or "",
            assigner_id=assigner_id,
            doer_id=doer_id,
            coordinator_id=coordinator_id,
            helper_ids=helpers,
            priority=priority,
            deadline=as_utc(deadline),
            is_revision_allowed=is_revision_allowed,
            status=Status.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        task.history = [DelegationHistory(
            action="Task Created",
            performed_by=assigner_id,
            timestamp=now,
            remarks=f"Work assigned with {len(helpers)} helper(s).",
        )]

        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)

        metrics_collector.delegation_created()
        logger.info(
            "Delegation created",
            task_id=task.id,
            tenant_id=tenant_id,
            assigner_id=assigner_id,
            doer_id=doer_id,
            deadline=task.deadline,
        )
        return task

    def get(self, task_id: int) -> Optional[DelegationTask]:
        return self.session.get(DelegationTask, task_id)

    def list_for_doer(self, doer_id: int) -> List[DelegationTask]:
        return self._newest_first(DelegationTask.doer_id == doer_id)

    def list_for_assigner(self, assigner_id: int) -> List[DelegationTask]:
        return self._newest_first(DelegationTask.assigner_id == assigner_id)

    def delete(self, task_id: int) -> bool:
        """Cancel a delegation."""
        task = self.get(task_id)
        if not task:
            return False

        self.session.delete(task)
        self.session.commit()
        logger.info("Delegation cancelled", task_id=task_id)
        return True

    def respond(
        self,
        task_id: int,
        status: str,
        performed_by: Optional[int] = None,
        remarks: Optional[str] = None,
        revised_deadline: Optional[datetime] = None
    ) -> DelegationTask:
        """
        Move a delegation to a new status.

        Doers accept, reject, complete or ask for a revision. Completed work
        is then verified, or sent back to Accepted, by the assigner or the
        coordinator.

        Raises:
            NotFoundError: Unknown delegation
            InvalidTransition: The workflow does not allow the move
            ValidationFailed: Wrong person, or a revision without a new date
        """
        task = self._task(task_id)
        current = Status(task.status)
        try:
            target = Status(status)
        except ValueError:
            raise ValidationFailed(f"Unknown status: {status}", code="INVALID_STATUS")

        if target in DOER_TRANSITIONS.get(current, ()):
            allowed = [task.doer_id] + list(task.helper_ids or [])
        elif target in REVIEW_TRANSITIONS.get(current, ()):
            allowed = [task.assigner_id] + ([task.coordinator_id] if task.coordinator_id else [])
        else:
            raise InvalidTransition("Delegation", task_id, current.value, target.value)

        performed_by = performed_by or allowed[0]
        if performed_by not in allowed:
            raise ValidationFailed(
                f"Employee {performed_by} may not mark delegation {task_id} as {target.value}",
                code="NOT_PERMITTED",
            )

        if target is Status.REVISION_REQUESTED:
            if not task.is_revision_allowed:
                raise ValidationFailed(f"Delegation {task_id} does not allow revisions", code="REVISION_NOT_ALLOWED")
            if revised_deadline is None:
                raise ValidationFailed("A revision request needs a proposed deadline", code="DEADLINE_REQUIRED")
            task.requested_deadline = as_utc(revised_deadline)
            task.remarks = f"New date requested: {task.requested_deadline.isoformat()}. Reason: {remarks or 'none given'}"
        elif target is Status.COMPLETED:
            task.remarks = remarks or "Work completed."

        self._record(task, target, performed_by, remarks or f"Status changed to {target.value}")
        logger.info(
            "Delegation status changed",
            task_id=task_id,
            previous=current.value,
            status=target.value,
            performed_by=performed_by,
        )
        return task

    def handle_revision(
        self,
        task_id: int,
        action: str,
        assigner_id: int,
        new_deadline: Optional[datetime] = None,
        new_doer_id: Optional[int] = None,
        remarks: Optional[str] = None
    ) -> DelegationTask:
        """
        Settle a delegation as its assigner.

        Approve grants the requested (or a given) deadline and puts the task
        back to Accepted. Reassign hands open work to another doer, who
        starts again from Pending.
        """
        task = self._task(task_id)
        if action not in REVISION_ACTIONS:
            raise ValidationFailed(f"Action must be one of: {', '.join(REVISION_ACTIONS)}", code="INVALID_ACTION")
        self._check_assigner(task, assigner_id)
        current = Status(task.status)

        if action == "Approve":
            if current is not Status.REVISION_REQUESTED:
                raise InvalidTransition("Delegation", task_id, current.value, Status.ACCEPTED.value)
            deadline = as_utc(new_deadline) or as_utc(task.requested_deadline)
            if deadline is None:
                raise ValidationFailed("No deadline to approve", code="DEADLINE_REQUIRED")
            task.deadline = deadline
            task.requested_deadline = None
            task.remarks = None
            self._record(task, Status.ACCEPTED, assigner_id, f"New target date: {deadline.date().isoformat()}",
                         action="Deadline Approved")
        else:
            if current not in REASSIGNABLE:
                raise InvalidTransition("Delegation", task_id, current.value, Status.PENDING.value)
            if new_doer_id is None or new_doer_id == task.doer_id:
                raise ValidationFailed("Reassigning needs a different doer", code="INVALID_DOER")
            new_doer = self._member(task.tenant_id, new_doer_id, "Doer")
            old_doer = self.employees.get(task.doer_id)
            task.doer_id = new_doer.id
            task.helper_ids = [h for h in task.helper_ids or [] if h != new_doer.id]
            task.requested_deadline = None
            self._record(
                task, Status.PENDING, assigner_id,
                f"Work moved from {old_doer.name if old_doer else task.doer_id} to {new_doer.name}. "
                f"Reason: {remarks or 'none given'}",
                action="Task Reassigned",
            )

        logger.info("Delegation revision handled", task_id=task_id, action=action, status=task.status)
        return task

    def tracking_for(self, coordinator_id: int) -> List[Dict[str, Any]]:
        """
        Delegations and checklists of the staff a coordinator monitors.

        A delegation is included when a monitored employee is its assigner
        or its doer. Entries are sorted by due date, closest first.
        """
        coordinator = self.employees.get(coordinator_id)
        if not coordinator:
            raise NotFoundError("Employee", coordinator_id)
        monitored = coordinator.managed_assigners or []
        if not monitored:
            return []

        zone = tenant_timezone(self.session.get(Tenant, coordinator.tenant_id))
        delegations = self.session.exec(
            select(DelegationTask)
            .where(DelegationTask.tenant_id == coordinator.tenant_id)
            .where(or_(DelegationTask.assigner_id.in_(monitored), DelegationTask.doer_id.in_(monitored)))
        ).all()
        checklists = self.session.exec(
            select(ChecklistTask)
            .where(ChecklistTask.tenant_id == coordinator.tenant_id)
            .where(ChecklistTask.doer_id.in_(monitored))
        ).all()

        entries = [
            {
                "task_type": "Delegation",
                "id": d.id,
                "title": d.title,
                "status": d.status,
                "doer_id": d.doer_id,
                "assigner_id": d.assigner_id,
                "due_date": as_utc(d.deadline).astimezone(zone).date(),
                "priority": d.priority,
            }
            for d in delegations
        ]
        entries.extend(
            {
                "task_type": "Checklist",
                "id": c.id,
                "title": c.task_name,
                "status": c.status,
                "doer_id": c.doer_id,
                "assigner_id": None,
                "due_date": c.next_due_date,
                "priority": None,
            }
            for c in checklists
        )
        entries.sort(key=lambda entry: (entry["due_date"], entry["task_type"], entry["id"]))
        return entries

    def overview(self, tenant_id: int) -> Dict[str, int]:
        """Headline counts for a tenant's mapping dashboard."""
        if not self.session.get(Tenant, tenant_id):
            raise NotFoundError("Tenant", tenant_id)

        def count(model) -> int:
            return self.session.exec(
                select(func.count()).select_from(model).where(model.tenant_id == tenant_id)
            ).one()

        return {
            "delegation_count": count(DelegationTask),
            "checklist_count": count(ChecklistTask),
            "employee_count": count(Employee),
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _task(self, task_id: int) -> DelegationTask:
        task = self.get(task_id)
        if not task:
            raise NotFoundError("Delegation", task_id)
        return task

    def _member(self, tenant_id: int, employee_id: int, role: str) -> Employee:
        employee = self.employees.get(employee_id)
        if not employee or employee.tenant_id != tenant_id:
            raise ValidationFailed(f"{role} {employee_id} is not an employee of this tenant", code="INVALID_EMPLOYEE")
        return employee

    def _check_assigner(self, task: DelegationTask, employee_id: int):
        if employee_id == task.assigner_id:
            return
        employee = self.employees.get(employee_id)
        if employee and employee.tenant_id == task.tenant_id and employee.has_role(*OVERSIGHT_ROLES):
            return
        raise ValidationFailed(
            f"Only the assigner can settle delegation {task.id}", code="NOT_PERMITTED"
        )

    def _newest_first(self, condition) -> List[DelegationTask]:
        statement = (
            select(DelegationTask)
            .where(condition)
            .order_by(DelegationTask.created_at.desc(), DelegationTask.id.desc())
        )
        return list(self.session.exec(statement).all())

    def _record(self, task: DelegationTask, status: Status, performed_by: int, remarks: str, action: Optional[str] = None):
        now = utc_now()
        task.status = status.value
        task.updated_at = now
        task.history.append(DelegationHistory(
            action=action or status.value,
            performed_by=performed_by,
            timestamp=now,
            remarks=remarks,
        ))
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        metrics_collector.delegation_transition(status.value)
