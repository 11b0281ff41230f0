"""Tenant and employee router."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Dict, Any

from app.schemas.tenant import (
    TenantCreate,
    CalendarUpdate,
    TenantResponse,
    EmployeeCreate,
    LeaveUpdate,
    EmployeeResponse,
    MappingUpdate,
)
from app.services.tenant_service import TenantService
from app.services.employee_service import EmployeeService
from app.db.config import get_session
from sqlmodel import Session

router = APIRouter(tags=["Tenants"])  # No prefix since main.py adds /api prefix


def get_tenant_service(session: Session = Depends(get_session)) -> TenantService:
    """Dependency for getting TenantService instance."""
    return TenantService(session)


def get_employee_service(session: Session = Depends(get_session)) -> EmployeeService:
    """Dependency for getting EmployeeService instance."""
    return EmployeeService(session)


@router.post("/tenants", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    tenant_data: TenantCreate,
    service: TenantService = Depends(get_tenant_service),
):
    """Register an organization with its timezone, weekends and holidays."""
    return service.create(
        company_name=tenant_data.company_name,
        subdomain=tenant_data.subdomain,
        admin_email=tenant_data.admin_email,
        timezone=tenant_data.timezone,
        weekends=tenant_data.weekends,
        holidays=[(h.holiday_date, h.name) for h in tenant_data.holidays or []],
    )


@router.get("/tenants/{tenant_id}", response_model=TenantResponse)
async def get_tenant(
    tenant_id: int,
    service: TenantService = Depends(get_tenant_service),
):
    tenant = service.get(tenant_id)
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found"
        )
    return tenant


@router.put("/tenants/{tenant_id}/calendar", response_model=TenantResponse)
async def update_calendar(
    tenant_id: int,
    calendar_data: CalendarUpdate,
    service: TenantService = Depends(get_tenant_service),
):
    """Replace weekend days, holidays or timezone. Existing due dates are not moved."""
    holidays = None
    if calendar_data.holidays is not None:
        holidays = [(h.holiday_date, h.name) for h in calendar_data.holidays]

    tenant = service.update_calendar(
        tenant_id,
        weekends=calendar_data.weekends,
        holidays=holidays,
        timezone=calendar_data.timezone,
    )
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found"
        )
    return tenant


@router.post("/tenants/{tenant_id}/employees", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def add_employee(
    tenant_id: int,
    employee_data: EmployeeCreate,
    service: EmployeeService = Depends(get_employee_service),
):
    return service.add(
        tenant_id=tenant_id,
        name=employee_data.name,
        email=employee_data.email,
        department=employee_data.department,
        whatsapp_number=employee_data.whatsapp_number,
        roles=employee_data.roles,
    )


@router.get("/tenants/{tenant_id}/employees", response_model=Dict[str, Any])
async def list_employees(
    tenant_id: int,
    service: EmployeeService = Depends(get_employee_service),
):
    employees = service.list_by_tenant(tenant_id)
    return {
        "employees": [EmployeeResponse.model_validate(e) for e in employees],
        "count": len(employees)
    }


@router.put("/employees/{employee_id}/leave", response_model=EmployeeResponse)
async def update_leave(
    employee_id: int,
    leave_data: LeaveUpdate,
    service: EmployeeService = Depends(get_employee_service),
):
    """Record or clear leave. While on leave, the buddy sees this employee's checklists."""
    employee = service.set_leave(
        employee_id,
        on_leave=leave_data.on_leave,
        leave_start=leave_data.leave_start,
        leave_end=leave_data.leave_end,
        buddy_id=leave_data.buddy_id,
    )
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found"
        )
    return employee


@router.put("/employees/{employee_id}/mapping", response_model=EmployeeResponse)
async def update_mapping(
    employee_id: int,
    mapping_data: MappingUpdate,
    service: EmployeeService = Depends(get_employee_service),
):
    """Replace who an assigner delegates to, or whose work a coordinator tracks."""
    employee = service.update_mapping(employee_id, mapping_data.mapping_type, mapping_data.target_ids)
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found"
        )
    return employee


@router.get("/employees/{employee_id}/authorized-staff", response_model=Dict[str, Any])
async def authorized_staff(
    employee_id: int,
    service: EmployeeService = Depends(get_employee_service),
):
    staff = service.authorized_staff(employee_id)
    return {
        "doers": [EmployeeResponse.model_validate(e) for e in staff],
        "count": len(staff)
    }
