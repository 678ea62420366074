"""Database module for Finance Automation."""

from finance_automation.db.base import Base, create_tables
from finance_automation.db.engine import engine
from finance_automation.db.session import SessionLocal, get_db, session_scope

__all__ = ["Base", "create_tables", "engine", "SessionLocal", "get_db", "session_scope"]
