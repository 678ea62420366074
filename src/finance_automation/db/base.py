"""SQLAlchemy declarative base."""

from sqlalchemy import Engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# Import all models here so they register with Base.metadata
def import_models() -> None:
    """Import all models to register them with SQLAlchemy metadata."""
    from finance_automation.models import (  # noqa: F401
        Account,
        AutomationRule,
        Transaction,
    )


def create_tables(bind: Engine) -> None:
    """Create every table that does not exist yet."""
    import_models()
    Base.metadata.create_all(bind=bind)
