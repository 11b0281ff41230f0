"""Routers package for the checklist scheduler API."""

from .tenants import router as tenants_router
from .checklists import router as checklists_router
from .delegations import router as delegations_router
from .tickets import router as tickets_router

__all__ = ["tenants_router", "checklists_router", "delegations_router", "tickets_router"]
