"""Shared test fixtures and utilities.

Builders for scheduling-core value objects plus an in-memory database and
API client wired the way the application wires its own.
"""

from datetime import date, datetime, time
from typing import Iterable, Optional

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.db.config import enable_sqlite_foreign_keys
from app.db.init import init_db
from app.scheduler import HistoryAction, HistoryEntry, RecurrenceRule, TaskSnapshot


# -----------------------------------------------------------------------------
# Scheduling core builders
# -----------------------------------------------------------------------------


def rule(frequency: str, **config) -> RecurrenceRule:
    return RecurrenceRule.from_config(frequency, config)


def completion(day: date, action: HistoryAction = HistoryAction.COMPLETED) -> HistoryEntry:
    """A completion of `day`, recorded at noon that day."""
    return HistoryEntry(action=action, timestamp=datetime.combine(day, time(12)), instance_date=day)


def snapshot(recurrence: RecurrenceRule, next_due: date, completed: Iterable[date] = ()) -> TaskSnapshot:
    return TaskSnapshot(
        rule=recurrence,
        next_due_date=next_due,
        history=tuple(completion(d) for d in completed),
    )


# -----------------------------------------------------------------------------
# Database helpers
# -----------------------------------------------------------------------------


def memory_engine():
    """Fresh in-memory SQLite database with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    init_db(engine)
    return engine


def file_engine(path: str):
    """SQLite file database; each session gets its own connection."""
    engine = create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})
    init_db(engine)
    return engine


def seed_org(session: Session, weekends: Optional[list] = None, holidays: Optional[list] = None):
    """Tenant with a doer, a buddy and a coordinator. Returns (tenant, doer, buddy, coordinator)."""
    from app.services.employee_service import EmployeeService
    from app.services.tenant_service import TenantService

    tenant = TenantService(session).create(
        company_name="Acme Mills",
        subdomain="acme",
        admin_email="admin@acme.test",
        timezone="Asia/Kolkata",
        weekends=weekends,
        holidays=holidays,
    )
    employees = EmployeeService(session)
    doer = employees.add(tenant.id, "Asha", "asha@acme.test")
    buddy = employees.add(tenant.id, "Ravi", "ravi@acme.test")
    coordinator = employees.add(tenant.id, "Meera", "meera@acme.test", roles=["Coordinator"])
    return tenant, doer, buddy, coordinator


def api_client(engine):
    """TestClient whose requests use sessions on `engine`. Startup hooks are not run."""
    from fastapi.testclient import TestClient

    from app.db.config import get_session
    from app.main import app

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    return TestClient(app)


def clear_overrides():
    from app.main import app

    app.dependency_overrides.clear()
