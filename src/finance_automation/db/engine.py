"""SQLAlchemy engine configuration."""

from sqlalchemy import create_engine

from finance_automation.core.config import settings

# Sessions are opened in the threadpool and used by async endpoints
connect_args = (
    {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
)

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
)
