"""Transaction model for storing financial transactions."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from finance_automation.db.base import Base


class Transaction(Base):
    """Stores financial transactions."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("IX_transactions_date", "transaction_date"),
        Index(
            "IX_transactions_duplicate_key",
            "transaction_date",
            "amount",
            "account_id",
        ),
        Index("IX_transactions_transfer", "transfer_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    transaction_time: Mapped[str | None] = mapped_column(
        String(8), nullable=True
    )  # HH:MM
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="expense"
    )  # expense/income/transfer
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="manual")
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    category_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    raw_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    transfer_to_account_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=True
    )
    transfer_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    is_reconciled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reconciled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    applied_rules: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True
    )
    duplicate_status: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )  # confirmed when kept despite a duplicate warning
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, date={self.transaction_date}, amount={self.amount})>"
