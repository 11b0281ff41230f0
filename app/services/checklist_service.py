"""
Checklist Service

Persists recurring checklists and drives the scheduling core:
- create: seeds next_due_date with the initial resolution of the rule
- complete_instance: records a completion and advances the pointer with a
  compare-and-swap, so two racing completions cannot both advance it
- visible_instances_for: today's cards for an employee, including backlog
  and the checklists of colleagues they cover for
"""
from sqlmodel import Session, select
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from app.models.checklist import ChecklistTask, ChecklistHistory
from app.models.employee import Employee
from app.models.timestamps import as_utc, utc_now
from app.models.tenant import Tenant
from app.scheduler import (
    CompletionOutcome,
    Frequency,
    HistoryAction,
    RecurrenceRule,
    SchedulingAnomaly,
    apply_completion,
    effective_owner_ids,
    is_scheduled_occurrence,
    project_occurrences,
    reconcile,
    resolve_next_date,
)
from app.scheduler.history import completed_days
from app.scheduler.reconciler import BACKLOG_SCAN_LIMIT
from app.scheduler.rules import MONTH_JUMPS
from app.scheduler.work_calendar import to_day
from app.services.employee_service import EmployeeService
from app.services.errors import (
    CompletionConflict,
    DuplicateCompletion,
    NotFoundError,
    ValidationFailed,
)
from app.services.recurrence_validator import RecurrenceValidator
from app.services.tenant_service import TenantService, tenant_timezone
from app.utils.logger import checklist_logger as logger
from app.utils.metrics import metrics_collector

STATUSES = ["Active", "Paused"]
MAX_PREVIEW = 100


def anchor_config(frequency: str, config: Optional[Dict[str, Any]], start_date: date) -> Dict[str, Any]:
    """
    Pin month-jumping rules to the start date.

    Quarterly, Half-Yearly and Yearly checklists without an explicit day of
    month repeat on the start date's day (and month, for Yearly) instead
    of falling back to the 1st of January.
    """
    config = dict(config or {})
    frequency = Frequency.parse(frequency)
    if frequency in MONTH_JUMPS:
        if not config.get("days_of_month") and config.get("day_of_month") is None:
            config["day_of_month"] = start_date.day
        if frequency is Frequency.YEARLY and config.get("month") is None:
            config["month"] = start_date.month
    return config


class ChecklistService:
    """Service class for recurring checklist operations."""

    def __init__(self, session: Session):
        self.session = session
        self.tenants = TenantService(session)
        self.employees = EmployeeService(session)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(
        self,
        tenant_id: int,
        task_name: str,
        doer_id: int,
        frequency: str,
        frequency_config: Optional[Dict[str, Any]] = None,
        start_date: Optional[date] = None,
        description: Optional[str] = None,
        coordinator_id: Optional[int] = None,
        created_by: Optional[int] = None
    ) -> ChecklistTask:
        """Create a checklist whose first occurrence is the initial resolution from start_date."""
        tenant = self._tenant(tenant_id)
        self._tenant_employee(tenant, doer_id, "Doer")
        if coordinator_id is not None:
            self._tenant_employee(tenant, coordinator_id, "Coordinator")

        validation = RecurrenceValidator.validate_frequency_config(frequency, frequency_config)
        if not validation["valid"]:
            raise ValidationFailed("Invalid frequency configuration", validation["errors"])
        for warning in validation["warnings"]:
            logger.info("Frequency config defaulted", tenant_id=tenant_id, warning=warning)

        start = start_date or self.tenants.today_for(tenant)
        config = anchor_config(frequency, frequency_config, start)
        rule = RecurrenceRule.from_config(frequency, config)
        first_due = self._resolve(rule, start, True, tenant)

        now = utc_now()
        task = ChecklistTask(
            tenant_id=tenant_id,
            task_name=task_name.strip(),
            description=description or "",
            doer_id=doer_id,
            coordinator_id=coordinator_id,
            frequency=rule.frequency.value,
            frequency_config=config,
            start_date=start,
            next_due_date=first_due,
            status="Active",
            created_at=now,
            updated_at=now,
        )
        task.history = [ChecklistHistory(
            action=HistoryAction.CREATED.value,
            timestamp=now,
            remarks=f"First occurrence anchored for {first_due.isoformat()}",
            performed_by=created_by,
        )]

        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)

        metrics_collector.checklist_created()
        logger.info(
            "Checklist created",
            task_id=task.id,
            tenant_id=tenant_id,
            frequency=task.frequency,
            start_date=start,
            next_due_date=first_due,
        )
        return task

    def get(self, task_id: int) -> Optional[ChecklistTask]:
        return self.session.get(ChecklistTask, task_id)

    def list_by_tenant(self, tenant_id: int, status: Optional[str] = None) -> List[ChecklistTask]:
        statement = select(ChecklistTask).where(ChecklistTask.tenant_id == tenant_id)
        if status:
            statement = statement.where(ChecklistTask.status == status)
        statement = statement.order_by(ChecklistTask.created_at.desc(), ChecklistTask.id.desc())
        return list(self.session.exec(statement).all())

    def update(
        self,
        task_id: int,
        task_name: Optional[str] = None,
        description: Optional[str] = None,
        doer_id: Optional[int] = None,
        coordinator_id: Optional[int] = None,
        status: Optional[str] = None,
        performed_by: Optional[int] = None
    ) -> Optional[ChecklistTask]:
        """
        Update name, description, people or status.

        Pausing hides the checklist from dashboards without moving its
        pointer; occurrences missed while paused surface as backlog on resume.
        """
        task = self.get(task_id)
        if not task:
            return None

        tenant = self._tenant(task.tenant_id)
        changes = []

        if task_name is not None and task_name.strip() != task.task_name:
            task.task_name = task_name.strip()
            changes.append("task_name")
        if description is not None and description != task.description:
            task.description = description
            changes.append("description")
        if doer_id is not None and doer_id != task.doer_id:
            self._tenant_employee(tenant, doer_id, "Doer")
            task.doer_id = doer_id
            changes.append("doer_id")
        if coordinator_id is not None and coordinator_id != task.coordinator_id:
            self._tenant_employee(tenant, coordinator_id, "Coordinator")
            task.coordinator_id = coordinator_id
            changes.append("coordinator_id")

        now = utc_now()
        if changes:
            task.history.append(ChecklistHistory(
                action=HistoryAction.UPDATED.value,
                timestamp=now,
                remarks=f"Changed: {', '.join(changes)}",
                performed_by=performed_by,
            ))

        if status is not None and status != task.status:
            if status not in STATUSES:
                raise ValidationFailed(f"Status must be one of: {', '.join(STATUSES)}", code="INVALID_STATUS")
            task.status = status
            action = HistoryAction.PAUSED if status == "Paused" else HistoryAction.RESUMED
            task.history.append(ChecklistHistory(action=action.value, timestamp=now, performed_by=performed_by))
            changes.append("status")

        if changes:
            task.updated_at = now
            self.session.add(task)
            self.session.commit()
            self.session.refresh(task)
            logger.info("Checklist updated", task_id=task.id, changes=changes)
        return task

    def delete(self, task_id: int) -> bool:
        task = self.get(task_id)
        if not task:
            return False

        self.session.delete(task)
        self.session.commit()
        logger.info("Checklist deleted", task_id=task_id)
        return True

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def complete_instance(
        self,
        task_id: int,
        instance_date: Optional[date] = None,
        performed_by: Optional[int] = None,
        remarks: Optional[str] = None,
        attachment_ref: Optional[str] = None,
        administrative: bool = False,
        now: Optional[datetime] = None
    ) -> CompletionOutcome:
        """
        Complete one occurrence of a checklist.

        Completing the current due date advances the pointer; completing an
        earlier (backlog) date or a later one only records the completion.

        Args:
            task_id: Checklist to complete
            instance_date: Occurrence being completed. Defaults to the tenant's
                today, or to the current due date for administrative completions
            performed_by: Employee recording the completion (defaults to the doer)
            remarks: Free text; a default is generated when empty
            attachment_ref: Opaque reference to uploaded evidence
            administrative: Coordinator override instead of the doer's own completion
            now: Wall-clock time of the action

        Raises:
            NotFoundError: Unknown checklist
            ValidationFailed: Paused checklist, or no valid next date exists
            DuplicateCompletion: The occurrence is already completed
            CompletionConflict: The pointer moved concurrently
        """
        task = self.get(task_id)
        if not task:
            raise NotFoundError("Checklist", task_id)
        if task.status != "Active":
            raise ValidationFailed(f"Checklist {task_id} is paused", code="CHECKLIST_PAUSED")

        tenant = self._tenant(task.tenant_id)
        now = as_utc(now) or utc_now()
        today = self.tenants.today_for(tenant, now)
        if instance_date is None:
            instance_date = task.next_due_date if administrative else today
        instance_date = to_day(instance_date)
        log = logger.bind(task_id=task_id, instance_date=instance_date)

        snapshot = task.snapshot(tenant_timezone(tenant))
        if instance_date in completed_days(snapshot.history):
            raise DuplicateCompletion(task_id, instance_date)

        work_calendar = self.tenants.calendar_for(tenant)
        try:
            self._check_occurrence(task, snapshot, instance_date, work_calendar)
            outcome = apply_completion(snapshot, instance_date, work_calendar)
        except SchedulingAnomaly as e:
            metrics_collector.scheduling_anomaly()
            raise ValidationFailed(e.message, code=e.code)

        if outcome.advanced:
            if not self.advance_pointer(task.id, outcome.previous_due_date, outcome.next_due_date, now):
                self.session.rollback()
                metrics_collector.completion_conflict()
                log.warning("Pointer advance lost a race", expected_due_date=outcome.previous_due_date)
                raise CompletionConflict(task_id, outcome.previous_due_date)
        else:
            task.last_completed_at = now
            task.updated_at = now
            self.session.add(task)

        is_backlog = outcome.instance_date < today
        self.session.add(ChecklistHistory(
            task_id=task.id,
            action=(HistoryAction.ADMINISTRATIVE_COMPLETION if administrative else HistoryAction.COMPLETED).value,
            timestamp=now,
            instance_date=outcome.instance_date,
            completed_instance=outcome.instance_date,
            remarks=remarks or self._default_remarks(outcome, administrative, is_backlog),
            performed_by=performed_by or task.doer_id,
            attachment_ref=attachment_ref,
        ))

        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            metrics_collector.completion_conflict()
            log.warning("Completion lost a race on the history constraint")
            raise DuplicateCompletion(task_id, outcome.instance_date)
        self.session.refresh(task)

        metrics_collector.instance_completed(
            advanced=outcome.advanced,
            backlog=is_backlog,
        )
        log.info(
            "Checklist instance completed",
            outcome=outcome.kind.value,
            next_due_date=task.next_due_date,
            administrative=administrative,
        )
        return outcome

    def force_complete(
        self,
        task_id: int,
        coordinator_id: int,
        remarks: Optional[str] = None,
        instance_date: Optional[date] = None
    ) -> CompletionOutcome:
        """Administrative completion by a coordinator, defaulting to the current due date."""
        task = self.get(task_id)
        if not task:
            raise NotFoundError("Checklist", task_id)
        coordinator = self._tenant_employee(self._tenant(task.tenant_id), coordinator_id, "Coordinator")

        return self.complete_instance(
            task_id,
            instance_date=instance_date,
            performed_by=coordinator.id,
            remarks=remarks or f"Marked as done by coordinator {coordinator.name}",
            administrative=True,
        )

    def advance_pointer(self, task_id: int, expected_due_date: date, new_due_date: date, now: datetime) -> bool:
        """
        Move next_due_date only if it still equals expected_due_date.

        Runs in the caller's transaction. Returns False when another writer
        got there first.
        """
        statement = (
            update(ChecklistTask)
            .where(ChecklistTask.id == task_id)
            .where(ChecklistTask.next_due_date == expected_due_date)
            .values(next_due_date=new_due_date, last_completed_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(statement)
        return result.rowcount == 1

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    @metrics_collector.time_operation("visible_instances_seconds")
    def visible_instances_for(self, employee_id: int, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Today's checklist cards for an employee.

        Includes the employee's own active checklists unless they are on
        leave, and those of colleagues on leave who named them as buddy.
        Cards are sorted oldest first so the longest-overdue backlog leads.
        """
        viewer = self.employees.get(employee_id)
        if not viewer:
            raise NotFoundError("Employee", employee_id)

        tenant = self._tenant(viewer.tenant_id)
        work_calendar = self.tenants.calendar_for(tenant)
        today = today or self.tenants.today_for(tenant)
        local_zone = tenant_timezone(tenant)

        covered = self.employees.covered_colleagues(viewer, today)
        owner_ids = effective_owner_ids(viewer, covered, today)
        owners = {viewer.id: viewer}
        owners.update({c.id: c for c in covered})

        tasks = []
        if owner_ids:
            statement = (
                select(ChecklistTask)
                .where(ChecklistTask.tenant_id == viewer.tenant_id)
                .where(ChecklistTask.doer_id.in_(owner_ids))
                .where(ChecklistTask.status == "Active")
            )
            tasks = list(self.session.exec(statement).all())

        cards = []
        anomalies = []
        for task in tasks:
            result = reconcile(task.snapshot(local_zone), today, work_calendar, BACKLOG_SCAN_LIMIT)
            if result.anomaly:
                metrics_collector.scheduling_anomaly()
                anomalies.append({"task_id": task.id, "message": result.anomaly})

            is_buddy_task = task.doer_id != viewer.id
            owner = owners.get(task.doer_id)
            for instance in result.instances:
                cards.append({
                    "task_id": task.id,
                    "task_name": task.task_name,
                    "description": task.description,
                    "frequency": task.frequency,
                    "doer_id": task.doer_id,
                    "instance_date": instance.instance_date,
                    "is_backlog": instance.is_backlog,
                    "is_buddy_task": is_buddy_task,
                    "original_owner_name": owner.name if is_buddy_task and owner else None,
                })

        cards.sort(key=lambda card: (card["instance_date"], card["task_id"]))
        logger.debug(
            "Visible instances built",
            employee_id=viewer.id,
            today=today,
            owners=owner_ids,
            cards=len(cards),
            anomalies=len(anomalies),
        )
        return {
            "employee_id": viewer.id,
            "today": today,
            "covering_for": [c.id for c in covered if c.id in owner_ids],
            "instances": cards,
            "count": len(cards),
            "anomalies": anomalies,
        }

    def preview(
        self,
        frequency: str,
        frequency_config: Optional[Dict[str, Any]] = None,
        start_date: Optional[date] = None,
        tenant_id: Optional[int] = None,
        count: int = 10
    ) -> List[date]:
        """Upcoming occurrences a checklist with these settings would have."""
        validation = RecurrenceValidator.validate_frequency_config(frequency, frequency_config)
        if not validation["valid"]:
            raise ValidationFailed("Invalid frequency configuration", validation["errors"])

        tenant = self._tenant(tenant_id) if tenant_id is not None else None
        start = start_date or self.tenants.today_for(tenant)
        rule = RecurrenceRule.from_config(frequency, anchor_config(frequency, frequency_config, start))
        try:
            return project_occurrences(rule, start, self.tenants.calendar_for(tenant), min(count, MAX_PREVIEW))
        except SchedulingAnomaly as e:
            raise ValidationFailed(e.message, code=e.code)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _tenant(self, tenant_id: int) -> Tenant:
        tenant = self.tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    def _tenant_employee(self, tenant: Tenant, employee_id: int, role: str) -> Employee:
        employee = self.employees.get(employee_id)
        if not employee or employee.tenant_id != tenant.id:
            raise ValidationFailed(f"{role} {employee_id} is not an employee of this tenant", code="INVALID_EMPLOYEE")
        return employee

    @staticmethod
    def _check_occurrence(task: ChecklistTask, snapshot, instance_date: date, work_calendar):
        """Reject days before the start date and days the rule never produces."""
        if instance_date < task.start_date:
            raise ValidationFailed(
                f"{instance_date.isoformat()} is before the checklist starts on {task.start_date.isoformat()}",
                code="INSTANCE_BEFORE_START",
            )
        scheduled = is_scheduled_occurrence(snapshot, task.start_date, instance_date, work_calendar)
        if scheduled is None:
            logger.warning("Occurrence check gave up", task_id=task.id, instance_date=instance_date)
        elif not scheduled:
            raise ValidationFailed(
                f"{instance_date.isoformat()} is not a scheduled occurrence of checklist {task.id}",
                code="NOT_AN_OCCURRENCE",
            )

    def _resolve(self, rule: RecurrenceRule, anchor: date, is_initial: bool, tenant: Tenant) -> date:
        try:
            return resolve_next_date(rule, anchor, is_initial, self.tenants.calendar_for(tenant))
        except SchedulingAnomaly as e:
            metrics_collector.scheduling_anomaly()
            raise ValidationFailed(e.message, code=e.code)

    @staticmethod
    def _default_remarks(outcome: CompletionOutcome, administrative: bool, is_backlog: bool) -> str:
        if administrative:
            return "Administrative completion"
        if is_backlog:
            return f"Backlog catch-up for {outcome.instance_date.strftime('%a %d %b %Y')}"
        return "Routine finished."
