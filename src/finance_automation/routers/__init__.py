"""API routers."""

from finance_automation.routers.automation import router as automation_router

__all__ = ["automation_router"]
