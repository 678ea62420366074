"""AutomationRule model for storing user-defined automation rules."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from finance_automation.db.base import Base

RULE_TYPE_GENERAL = "general"
RULE_TYPE_ACCOUNT_DETECTION = "account_detection"
RULE_TYPE_TRANSFER = "transfer"
RULE_TYPES = (RULE_TYPE_GENERAL, RULE_TYPE_ACCOUNT_DETECTION, RULE_TYPE_TRANSFER)

CONDITION_LOGIC_AND = "and"
CONDITION_LOGIC_OR = "or"


class AutomationRule(Base):
    """Stores an automation rule: a condition set plus the actions it fires."""

    __tablename__ = "automation_rules"
    __table_args__ = (
        Index("IX_automation_rules_active_priority", "is_active", "priority"),
        # One generated detection rule per account, even under concurrent generate calls
        UniqueConstraint(
            "rule_type",
            "detected_account_id",
            name="UQ_automation_rules_detected_account",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )  # higher = evaluated first
    rule_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default=RULE_TYPE_GENERAL
    )  # general/account_detection/transfer
    condition_logic: Mapped[str] = mapped_column(
        String(3), nullable=False, default=CONDITION_LOGIC_AND
    )  # and/or
    conditions: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    actions: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    prompt_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    match_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    transfer_to_account_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True
    )
    detected_account_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True
    )  # mirrors actions.set_account for account_detection rules
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<AutomationRule(id={self.id}, name='{self.name}', "
            f"type='{self.rule_type}', priority={self.priority})>"
        )
