"""Pydantic schemas for automation rules and transaction resolution."""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TransactionTypeLiteral = Literal["expense", "income", "transfer"]
RuleTypeLiteral = Literal["general", "account_detection", "transfer"]
ConditionLogicLiteral = Literal["and", "or"]

# Largest integer a JSON number round-trips exactly; ceiling for open-ended ranges
MAX_AMOUNT = 9007199254740991


def normalize_amount_range(
    floor: float | None, ceiling: float | None
) -> tuple[float, float] | None:
    """Turn an optional floor/ceiling pair into a closed amount range.

    Args:
        floor: Minimum amount, if the rule sets one.
        ceiling: Maximum amount, if the rule sets one.

    Returns:
        (floor, ceiling), (floor, MAX_AMOUNT) or (0, ceiling); None if neither is set.
    """
    if floor is None and ceiling is None:
        return None
    if ceiling is None:
        return (floor, MAX_AMOUNT)  # type: ignore[return-value]
    if floor is None:
        return (0, ceiling)
    return (floor, ceiling)


# --- Stored rule payloads ---


class RuleConditions(BaseModel):
    """Condition set of an automation rule, as stored in the conditions column."""

    model_config = ConfigDict(extra="forbid")

    raw_text_contains: list[str] | None = None
    description_contains: list[str] | None = None
    description_regex: str | None = None
    amount_between: tuple[float, float] | None = None
    amount_equals: float | None = None
    source: list[str] | None = None
    type: TransactionTypeLiteral | None = None
    from_account: str | None = None
    to_account: str | None = None
    category: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _one_sided_range(cls, data: Any) -> Any:
        # Parsed input may carry amount_min/amount_max instead of a closed range
        if not isinstance(data, dict) or not (
            "amount_min" in data or "amount_max" in data
        ):
            return data
        data = dict(data)
        floor = data.pop("amount_min", None)
        ceiling = data.pop("amount_max", None)
        if data.get("amount_between") is None:
            data["amount_between"] = normalize_amount_range(floor, ceiling)
        return data

    @field_validator("description_regex")
    @classmethod
    def _regex_compiles(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid regex: {e}") from e
        return value

    @field_validator("amount_between")
    @classmethod
    def _range_ordered(
        cls, value: tuple[float, float] | None
    ) -> tuple[float, float] | None:
        if value is not None and value[0] > value[1]:
            raise ValueError(f"amount_between min {value[0]} exceeds max {value[1]}")
        return value


class RuleActions(BaseModel):
    """Actions of an automation rule, as stored in the actions column."""

    model_config = ConfigDict(extra="forbid")

    set_type: TransactionTypeLiteral | None = None
    set_category: str | None = None
    set_account: str | None = None
    link_to_account: str | None = None
    auto_reconcile: bool | None = None
    add_note: str | None = None


# --- Automation rule API ---


class AutomationRuleCreate(BaseModel):
    """Request to create an automation rule."""

    name: str = Field(..., min_length=1, max_length=200)
    is_active: bool = True
    priority: int = 0
    rule_type: RuleTypeLiteral = "general"
    condition_logic: ConditionLogicLiteral = "and"
    conditions: RuleConditions = Field(default_factory=RuleConditions)
    actions: RuleActions = Field(default_factory=RuleActions)
    prompt_text: str | None = None
    match_phone: str | None = None
    transfer_to_account_id: str | None = None


class AutomationRuleResponse(BaseModel):
    """Response with automation rule details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_active: bool
    priority: int
    rule_type: str
    condition_logic: str
    conditions: dict[str, Any]
    actions: dict[str, Any]
    prompt_text: str | None = None
    match_phone: str | None = None
    transfer_to_account_id: str | None = None
    created_at: datetime
    updated_at: datetime


class AutomationRuleListResponse(BaseModel):
    """Response with a page of automation rules."""

    data: list[AutomationRuleResponse]
    count: int
    page: int


class GenerateAccountRulesResponse(BaseModel):
    """Response summarizing a bulk account-detection generation."""

    message: str
    created: int
    data: list[AutomationRuleResponse]


# --- Resolution API ---


class AppliedRuleResponse(BaseModel):
    """A rule credited with at least one resolved field or side effect."""

    rule_id: str
    rule_name: str
    actions: dict[str, Any]


class TransactionCandidateRequest(BaseModel):
    """Candidate transaction fields, manually entered or extracted from text."""

    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal
    type: TransactionTypeLiteral = "expense"
    source: str = "manual"
    raw_text: str | None = None
    account_id: str | None = None
    category_id: str | None = None
    transaction_date: date | None = None
    transaction_time: str | None = None
    notes: str | None = None
    transfer_to_account_id: str | None = None
    transfer_id: str | None = None


class TransactionCreate(TransactionCandidateRequest):
    """Request to create a transaction.

    When applied_rules is non-empty the body is treated as an already
    resolved preview and automation rules are not applied again.
    """

    applied_rules: list[AppliedRuleResponse] | None = None
    is_reconciled: bool = False

    @model_validator(mode="after")
    def _default_date(self) -> "TransactionCreate":
        if self.transaction_date is None:
            self.transaction_date = date.today()
        return self


class ResolvedFieldsResponse(BaseModel):
    """Transaction fields after automation rules were applied."""

    account_id: str | None = None
    category_id: str | None = None
    type: str
    notes: str | None = None
    is_reconciled: bool = False
    transfer_to_account_id: str | None = None
    transfer_id: str | None = None


class OriginalValuesResponse(BaseModel):
    """Values before any rule touched the transaction."""

    account_id: str | None = None
    category_id: str | None = None


class ResolvePreviewResponse(BaseModel):
    """Preview of a resolution, used to render overridden fields."""

    resolved: ResolvedFieldsResponse
    original: OriginalValuesResponse
    applied_rules: list[AppliedRuleResponse]


class TransactionResponse(BaseModel):
    """Response with transaction details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    transaction_date: date
    transaction_time: str | None = None
    amount: Decimal
    description: str
    notes: str | None = None
    type: str
    source: str
    account_id: str
    category_id: str | None = None
    raw_text: str | None = None
    transfer_to_account_id: str | None = None
    transfer_id: str | None = None
    is_reconciled: bool
    applied_rules: list[dict[str, Any]] | None = None
    duplicate_status: str | None = None


class DuplicateConflictResponse(BaseModel):
    """Response returned when a transaction looks like a duplicate."""

    duplicate: bool = True
    match: TransactionResponse
