"""Compiles stored automation rules into immutable, typed snapshots."""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Protocol

from pydantic import ValidationError

from finance_automation.core.exceptions import RuleConfigurationError
from finance_automation.models.automation_rule import (
    CONDITION_LOGIC_AND,
    CONDITION_LOGIC_OR,
    RULE_TYPES,
)
from finance_automation.schemas.automation import RuleActions, RuleConditions
from finance_automation.services.action_resolver import (
    Action,
    AddNote,
    AutoReconcile,
    LinkToAccount,
    SetAccount,
    SetCategory,
    SetType,
)
from finance_automation.services.condition_evaluator import (
    AmountBetween,
    AmountEquals,
    CategoryIs,
    Condition,
    DescriptionContains,
    DescriptionRegex,
    FromAccount,
    RawTextContains,
    SourceIn,
    ToAccount,
    TypeIs,
)


class RuleRecord(Protocol):
    """Attributes read from a stored rule (ORM row or draft)."""

    id: Any
    name: str
    priority: int
    is_active: bool
    rule_type: str
    condition_logic: str
    conditions: dict[str, Any] | None
    actions: dict[str, Any] | None
    transfer_to_account_id: str | None
    created_at: datetime | None


@dataclass(frozen=True)
class CompiledRule:
    """Immutable snapshot of one rule, ready for evaluation."""

    rule_id: str
    name: str
    priority: int
    rule_type: str
    condition_logic: str
    conditions: tuple[Condition, ...]
    actions: tuple[Action, ...]
    created_at: datetime | None = None

    def sort_key(self) -> tuple[int, bool, float, str]:
        """Priority descending, then creation order, then id.

        Rules without created_at sort first. Naive timestamps are taken as UTC
        so they order against aware ones.
        """
        if self.created_at is None:
            return (-self.priority, False, 0.0, self.rule_id)
        created_at = self.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return (-self.priority, True, created_at.timestamp(), self.rule_id)


def _amount(value: float) -> Decimal:
    return Decimal(str(value))


def _compile_conditions(
    conditions: RuleConditions, rule_id: str, rule_name: str
) -> tuple[Condition, ...]:
    compiled: list[Condition] = []
    if conditions.raw_text_contains is not None:
        compiled.append(RawTextContains(tuple(conditions.raw_text_contains)))
    if conditions.description_contains is not None:
        compiled.append(DescriptionContains(tuple(conditions.description_contains)))
    if conditions.description_regex is not None:
        try:
            pattern = re.compile(conditions.description_regex)
        except re.error as e:
            raise RuleConfigurationError(rule_id, rule_name, f"invalid regex: {e}") from e
        compiled.append(DescriptionRegex(pattern))
    if conditions.amount_between is not None:
        low, high = conditions.amount_between
        compiled.append(AmountBetween(_amount(low), _amount(high)))
    if conditions.amount_equals is not None:
        compiled.append(AmountEquals(_amount(conditions.amount_equals)))
    if conditions.source is not None:
        compiled.append(SourceIn(frozenset(conditions.source)))
    if conditions.type is not None:
        compiled.append(TypeIs(conditions.type))
    if conditions.from_account is not None:
        compiled.append(FromAccount(conditions.from_account))
    if conditions.to_account is not None:
        compiled.append(ToAccount(conditions.to_account))
    if conditions.category is not None:
        compiled.append(CategoryIs(conditions.category))
    return tuple(compiled)


def _compile_actions(
    actions: RuleActions, transfer_to_account_id: str | None
) -> tuple[Action, ...]:
    compiled: list[Action] = []
    if actions.set_type:
        compiled.append(SetType(actions.set_type))
    if actions.set_category:
        compiled.append(SetCategory(actions.set_category))
    if actions.set_account:
        compiled.append(SetAccount(actions.set_account))
    # Transfer rules may only carry the denormalized destination
    destination = actions.link_to_account or transfer_to_account_id
    if destination:
        compiled.append(LinkToAccount(destination))
    if actions.auto_reconcile:
        compiled.append(AutoReconcile())
    if actions.add_note and actions.add_note.strip():
        compiled.append(AddNote(actions.add_note.strip()))
    return tuple(compiled)


def _describe(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


def compile_rule(rule: RuleRecord) -> CompiledRule:
    """Compile a stored rule into a typed, immutable snapshot.

    Regexes are compiled here, once per load, so a bad pattern fails
    before any candidate is evaluated.

    Args:
        rule: The stored rule.

    Returns:
        The compiled rule.

    Raises:
        RuleConfigurationError: If the rule cannot be evaluated.
    """
    rule_id = str(rule.id)
    rule_name = rule.name

    if rule.rule_type not in RULE_TYPES:
        raise RuleConfigurationError(
            rule_id, rule_name, f"unknown rule type '{rule.rule_type}'"
        )
    if rule.condition_logic not in (CONDITION_LOGIC_AND, CONDITION_LOGIC_OR):
        raise RuleConfigurationError(
            rule_id, rule_name, f"unknown condition logic '{rule.condition_logic}'"
        )

    try:
        conditions = RuleConditions.model_validate(rule.conditions or {})
    except ValidationError as e:
        raise RuleConfigurationError(
            rule_id, rule_name, f"bad conditions: {_describe(e)}"
        ) from e
    try:
        actions = RuleActions.model_validate(rule.actions or {})
    except ValidationError as e:
        raise RuleConfigurationError(
            rule_id, rule_name, f"bad actions: {_describe(e)}"
        ) from e

    return CompiledRule(
        rule_id=rule_id,
        name=rule_name,
        priority=rule.priority or 0,
        rule_type=rule.rule_type,
        condition_logic=rule.condition_logic,
        conditions=_compile_conditions(conditions, rule_id, rule_name),
        actions=_compile_actions(actions, rule.transfer_to_account_id),
        created_at=rule.created_at,
    )
