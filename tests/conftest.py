"""Pytest configuration and fixtures."""

from collections.abc import Generator
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from finance_automation.db.base import Base, import_models
from finance_automation.main import app
from finance_automation.models.automation_rule import AutomationRule
from finance_automation.services.condition_evaluator import TransactionCandidate

# ============================================================================
# Helper functions
# ============================================================================

_BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def _make_rule(
    rule_id: str,
    name: str | None = None,
    priority: int = 0,
    conditions: dict[str, Any] | None = None,
    actions: dict[str, Any] | None = None,
    rule_type: str = "general",
    condition_logic: str = "and",
    is_active: bool = True,
    transfer_to_account_id: str | None = None,
    created_offset: int = 0,
) -> AutomationRule:
    """Build an unsaved AutomationRule for engine tests.

    created_offset is in seconds from a fixed base time, so tie-break
    ordering is deterministic.
    """
    return AutomationRule(
        id=rule_id,
        name=name or rule_id,
        priority=priority,
        conditions=conditions or {},
        actions=actions or {},
        rule_type=rule_type,
        condition_logic=condition_logic,
        is_active=is_active,
        transfer_to_account_id=transfer_to_account_id,
        created_at=_BASE_TIME + timedelta(seconds=created_offset),
    )


def _make_candidate(**overrides: Any) -> TransactionCandidate:
    """Build a candidate with sensible defaults."""
    fields: dict[str, Any] = {
        "description": "Coffee at Juan Valdez",
        "amount": Decimal("12000"),
        "type": "expense",
        "source": "manual",
    }
    fields.update(overrides)
    return TransactionCandidate(**fields)


# ============================================================================
# Builders
# ============================================================================


@pytest.fixture
def make_rule():  # type: ignore[no-untyped-def]
    """Factory for unsaved automation rules."""
    return _make_rule


@pytest.fixture
def make_candidate():  # type: ignore[no-untyped-def]
    """Factory for candidate transactions."""
    return _make_candidate


# ============================================================================
# FastAPI test client
# ============================================================================


@pytest.fixture
def client() -> TestClient:
    """Create a test client."""
    return TestClient(app)


# ============================================================================
# Unit test fixtures (SQLite in-memory)
# ============================================================================


@pytest.fixture
def in_memory_db() -> Generator[Session, None, None]:
    """Create an in-memory SQLite database for unit testing.

    This fixture is fast and doesn't require external dependencies.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def setup_sqlite(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    import_models()
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(in_memory_db: Session) -> Session:
    """Alias for in_memory_db fixture (used by unit tests)."""
    return in_memory_db


# ============================================================================
# Markers
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (SQLite)")


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    """Automatically mark tests based on their location."""
    for item in items:
        if "models" in str(item.fspath) or "repositories" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
