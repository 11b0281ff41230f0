"""Tenant service: organization settings and the working calendar."""
from sqlmodel import Session, select
from typing import Iterable, List, Optional, Tuple
from datetime import date, datetime

import pytz

from app.models.tenant import Tenant, Holiday, DEFAULT_TIMEZONE
from app.scheduler import WorkCalendar
from app.services.errors import ValidationFailed
from app.services.recurrence_validator import RecurrenceValidator
from app.utils.logger import tenant_logger as logger

HolidayInput = Tuple[date, Optional[str]]


def tenant_timezone(tenant: Optional[Tenant]):
    """pytz timezone of a tenant, UTC when the stored name is unknown."""
    name = tenant.timezone if tenant and tenant.timezone else DEFAULT_TIMEZONE
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown tenant timezone, using UTC", timezone=name, tenant_id=getattr(tenant, "id", None))
        return pytz.utc


def tenant_today(tenant: Optional[Tenant], now: Optional[datetime] = None) -> date:
    """The current calendar day in the tenant's timezone."""
    now = now or datetime.now(pytz.utc)
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tenant_timezone(tenant)).date()


class TenantService:
    """Service class for tenant settings."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        company_name: str,
        subdomain: str,
        admin_email: str,
        timezone: Optional[str] = None,
        weekends: Optional[List[int]] = None,
        holidays: Optional[Iterable[HolidayInput]] = None
    ) -> Tenant:
        """Create a tenant. Weekends default to Sunday only."""
        subdomain = subdomain.strip().lower()
        existing = self.session.exec(select(Tenant).where(Tenant.subdomain == subdomain)).first()
        if existing:
            raise ValidationFailed(f"Subdomain '{subdomain}' is already registered", code="SUBDOMAIN_TAKEN")

        self._check_timezone(timezone)
        self._check_weekends(weekends)

        tenant = Tenant(
            company_name=company_name.strip(),
            subdomain=subdomain,
            admin_email=admin_email,
            timezone=timezone or DEFAULT_TIMEZONE,
            weekends=sorted(set(weekends)) if weekends is not None else [0],
        )
        tenant.holidays = self._build_holidays(holidays)

        self.session.add(tenant)
        self.session.commit()
        self.session.refresh(tenant)
        logger.info("Tenant created", tenant_id=tenant.id, subdomain=subdomain)
        return tenant

    def get(self, tenant_id: int) -> Optional[Tenant]:
        return self.session.get(Tenant, tenant_id)

    def update_calendar(
        self,
        tenant_id: int,
        weekends: Optional[List[int]] = None,
        holidays: Optional[Iterable[HolidayInput]] = None,
        timezone: Optional[str] = None
    ) -> Optional[Tenant]:
        """
        Replace the tenant's weekend days and/or holiday list.

        Fields left as None are kept. Existing due dates are not moved; the
        new calendar applies from the next resolution onward.
        """
        tenant = self.get(tenant_id)
        if not tenant:
            return None

        if weekends is not None:
            self._check_weekends(weekends)
            tenant.weekends = sorted(set(weekends))
        if holidays is not None:
            tenant.holidays = self._build_holidays(holidays)
        if timezone is not None:
            self._check_timezone(timezone)
            tenant.timezone = timezone

        self.session.add(tenant)
        self.session.commit()
        self.session.refresh(tenant)
        logger.info(
            "Tenant calendar updated",
            tenant_id=tenant.id,
            weekends=tenant.weekends,
            holidays=len(tenant.holidays),
        )
        return tenant

    @staticmethod
    def calendar_for(tenant: Optional[Tenant]) -> WorkCalendar:
        return WorkCalendar.for_tenant(tenant)

    @staticmethod
    def today_for(tenant: Optional[Tenant], now: Optional[datetime] = None) -> date:
        return tenant_today(tenant, now)

    @staticmethod
    def _build_holidays(holidays: Optional[Iterable[HolidayInput]]) -> List[Holiday]:
        unique = {}
        for holiday_date, name in holidays or []:
            unique.setdefault(holiday_date, name)
        return [Holiday(holiday_date=d, name=n) for d, n in sorted(unique.items())]

    @staticmethod
    def _check_weekends(weekends: Optional[List[int]]):
        validation = RecurrenceValidator.validate_weekends(weekends)
        if not validation["valid"]:
            raise ValidationFailed("Invalid weekend configuration", validation["errors"])

    @staticmethod
    def _check_timezone(timezone: Optional[str]):
        if timezone is not None and timezone not in pytz.all_timezones_set:
            raise ValidationFailed(f"Unknown timezone: {timezone}", code="UNKNOWN_TIMEZONE")
