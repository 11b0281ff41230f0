"""Employee service: staff records, leave / buddy coverage and reporting lines."""
from sqlmodel import Session, select
from typing import List, Optional
from datetime import date

from app.models.employee import Employee
from app.models.tenant import Tenant
from app.scheduler import is_on_leave
from app.services.errors import NotFoundError, ValidationFailed
from app.utils.logger import tenant_logger as logger

ROLES = ["Assigner", "Doer", "Coordinator", "Viewer", "Admin", "Manager"]
# Roles that may delegate to anyone in the tenant
OVERSIGHT_ROLES = ("Admin", "Manager")
MAPPING_TYPES = ("managed_doers", "managed_assigners")


class EmployeeService:
    """Service class for employee records."""

    def __init__(self, session: Session):
        self.session = session

    def add(
        self,
        tenant_id: int,
        name: str,
        email: str,
        department: Optional[str] = None,
        whatsapp_number: Optional[str] = None,
        roles: Optional[List[str]] = None
    ) -> Employee:
        """Add an employee to a tenant."""
        if not self.session.get(Tenant, tenant_id):
            raise NotFoundError("Tenant", tenant_id)

        roles = roles or ["Doer"]
        unknown = [r for r in roles if r not in ROLES]
        if unknown:
            raise ValidationFailed(f"Unknown roles: {', '.join(unknown)}", code="UNKNOWN_ROLE")

        employee = Employee(
            tenant_id=tenant_id,
            name=name.strip(),
            email=email,
            department=department,
            whatsapp_number=whatsapp_number,
            roles=list(dict.fromkeys(roles)),
        )
        self.session.add(employee)
        self.session.commit()
        self.session.refresh(employee)
        logger.info("Employee added", tenant_id=tenant_id, employee_id=employee.id)
        return employee

    def get(self, employee_id: int) -> Optional[Employee]:
        return self.session.get(Employee, employee_id)

    def list_by_tenant(self, tenant_id: int) -> List[Employee]:
        statement = (
            select(Employee)
            .where(Employee.tenant_id == tenant_id)
            .order_by(Employee.name.asc())
        )
        return list(self.session.exec(statement).all())

    def set_leave(
        self,
        employee_id: int,
        on_leave: bool,
        leave_start: Optional[date] = None,
        leave_end: Optional[date] = None,
        buddy_id: Optional[int] = None
    ) -> Optional[Employee]:
        """Record or clear a leave window and the buddy covering it."""
        employee = self.get(employee_id)
        if not employee:
            return None

        if on_leave:
            if leave_start and leave_end and leave_end < leave_start:
                raise ValidationFailed("Leave cannot end before it starts", code="INVALID_LEAVE")
            if buddy_id is not None:
                self._check_buddy(employee, buddy_id)
            employee.on_leave = True
            employee.leave_start = leave_start
            employee.leave_end = leave_end
            employee.buddy_id = buddy_id
        else:
            employee.on_leave = False
            employee.leave_start = None
            employee.leave_end = None
            employee.buddy_id = None

        self.session.add(employee)
        self.session.commit()
        self.session.refresh(employee)
        logger.info(
            "Leave updated",
            employee_id=employee.id,
            on_leave=employee.on_leave,
            leave_start=employee.leave_start,
            leave_end=employee.leave_end,
            buddy_id=employee.buddy_id,
        )
        return employee

    def covered_colleagues(self, viewer: Employee, today: date) -> List[Employee]:
        """Colleagues on leave today who named the viewer as their buddy."""
        statement = (
            select(Employee)
            .where(Employee.buddy_id == viewer.id)
            .where(Employee.on_leave == True)  # noqa: E712
            .where(Employee.id != viewer.id)
        )
        return [e for e in self.session.exec(statement).all() if is_on_leave(e, today)]

    def update_mapping(self, employee_id: int, mapping_type: str, target_ids: List[int]) -> Optional[Employee]:
        """
        Replace one of an employee's reporting lines.

        managed_doers lists who an assigner may delegate to; managed_assigners
        lists whose work a coordinator tracks. Targets must belong to the
        same tenant.
        """
        if mapping_type not in MAPPING_TYPES:
            raise ValidationFailed(
                f"Mapping type must be one of: {', '.join(MAPPING_TYPES)}", code="INVALID_MAPPING"
            )
        employee = self.get(employee_id)
        if not employee:
            return None

        targets = list(dict.fromkeys(target_ids or []))
        if employee.id in targets:
            raise ValidationFailed("An employee cannot manage themselves", code="INVALID_MAPPING")
        found = {e.id for e in self._tenant_members(employee.tenant_id, targets)}
        missing = [t for t in targets if t not in found]
        if missing:
            raise ValidationFailed(
                f"Not employees of this tenant: {', '.join(str(m) for m in missing)}", code="INVALID_MAPPING"
            )

        # JSON columns only persist on reassignment
        setattr(employee, mapping_type, targets)
        self.session.add(employee)
        self.session.commit()
        self.session.refresh(employee)
        logger.info("Mapping updated", employee_id=employee.id, mapping_type=mapping_type, targets=targets)
        return employee

    def authorized_staff(self, employee_id: int) -> List[Employee]:
        """Who an employee may delegate to: everyone for admins and managers, otherwise their managed doers."""
        employee = self.get(employee_id)
        if not employee:
            raise NotFoundError("Employee", employee_id)
        if employee.has_role(*OVERSIGHT_ROLES):
            return self.list_by_tenant(employee.tenant_id)
        return self._tenant_members(employee.tenant_id, employee.managed_doers or [])

    def _tenant_members(self, tenant_id: int, employee_ids: List[int]) -> List[Employee]:
        if not employee_ids:
            return []
        statement = (
            select(Employee)
            .where(Employee.tenant_id == tenant_id)
            .where(Employee.id.in_(employee_ids))
            .order_by(Employee.name.asc())
        )
        return list(self.session.exec(statement).all())

    def _check_buddy(self, employee: Employee, buddy_id: int):
        if buddy_id == employee.id:
            raise ValidationFailed("An employee cannot be their own buddy", code="INVALID_BUDDY")
        buddy = self.get(buddy_id)
        if not buddy or buddy.tenant_id != employee.tenant_id:
            raise ValidationFailed(f"Buddy {buddy_id} is not an employee of this tenant", code="INVALID_BUDDY")
