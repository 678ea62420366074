"""AutomationRuleRepository for managing automation rules."""

from typing import Any

from pydantic import BaseModel, ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_automation.core.exceptions import RuleConfigurationError
from finance_automation.models.automation_rule import (
    CONDITION_LOGIC_AND,
    RULE_TYPE_ACCOUNT_DETECTION,
    RULE_TYPE_GENERAL,
    AutomationRule,
)
from finance_automation.schemas.automation import RuleActions, RuleConditions
from finance_automation.services.account_rule_generator import AutomationRuleDraft


class AutomationRuleNotFoundError(Exception):
    """Raised when an automation rule is not found."""

    pass


def _detected_account(rule_type: str, actions: dict[str, Any]) -> str | None:
    if rule_type != RULE_TYPE_ACCOUNT_DETECTION:
        return None
    return actions.get("set_account")


def _validated(
    rule: AutomationRule, schema: type[BaseModel], payload: dict[str, Any], label: str
) -> dict[str, Any]:
    try:
        model = schema.model_validate(payload)
    except ValidationError as e:
        raise RuleConfigurationError(rule.id, rule.name, f"bad {label}: {e}") from e
    return model.model_dump(mode="json", exclude_none=True)


class AutomationRuleRepository:
    """Repository for automation rule CRUD operations."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy database session.
        """
        self._session = session

    def create(
        self,
        name: str,
        conditions: dict[str, Any] | None = None,
        actions: dict[str, Any] | None = None,
        priority: int = 0,
        rule_type: str = RULE_TYPE_GENERAL,
        condition_logic: str = CONDITION_LOGIC_AND,
        is_active: bool = True,
        prompt_text: str | None = None,
        match_phone: str | None = None,
        transfer_to_account_id: str | None = None,
    ) -> AutomationRule:
        """Create a new automation rule.

        Args:
            name: Human-readable rule name.
            conditions: Stored condition set (empty matches everything).
            actions: Stored actions.
            priority: Evaluation priority (higher = evaluated first).
            rule_type: general, account_detection or transfer.
            condition_logic: and/or across the rule's conditions.
            is_active: Whether the rule takes part in resolution.
            prompt_text: Hint passed to the AI parser.
            match_phone: Sender phone hint for SMS routing.
            transfer_to_account_id: Destination for transfer rules.

        Returns:
            The created AutomationRule.
        """
        actions = dict(actions or {})
        rule = AutomationRule(
            name=name,
            conditions=dict(conditions or {}),
            actions=actions,
            priority=priority,
            rule_type=rule_type,
            condition_logic=condition_logic,
            is_active=is_active,
            prompt_text=prompt_text,
            match_phone=match_phone,
            transfer_to_account_id=transfer_to_account_id,
            detected_account_id=_detected_account(rule_type, actions),
        )
        self._session.add(rule)
        self._session.flush()
        return rule

    def bulk_create(self, drafts: list[AutomationRuleDraft]) -> list[AutomationRule]:
        """Insert generated rule drafts, all or nothing.

        Args:
            drafts: Drafts from the account-detection generator.

        Returns:
            The created AutomationRules, in draft order.

        Raises:
            IntegrityError: If any draft collides with a stored rule; the
                session is rolled back and nothing is inserted.
        """
        rules = [
            AutomationRule(
                name=draft.name,
                conditions=dict(draft.conditions),
                actions=dict(draft.actions),
                priority=draft.priority,
                rule_type=draft.rule_type,
                condition_logic=draft.condition_logic,
                is_active=draft.is_active,
                detected_account_id=_detected_account(draft.rule_type, draft.actions),
            )
            for draft in drafts
        ]
        try:
            self._session.add_all(rules)
            self._session.flush()
        except IntegrityError:
            self._session.rollback()
            raise
        return rules

    def get(self, rule_id: str) -> AutomationRule:
        """Get an automation rule by ID.

        Args:
            rule_id: The rule ID.

        Returns:
            The AutomationRule.

        Raises:
            AutomationRuleNotFoundError: If rule doesn't exist.
        """
        rule = self._session.get(AutomationRule, rule_id)
        if rule is None:
            raise AutomationRuleNotFoundError(f"Automation rule {rule_id} not found")
        return rule

    def get_all(self) -> list[AutomationRule]:
        """Get every rule, active or not, ordered by priority (higher first)."""
        stmt = select(AutomationRule).order_by(
            AutomationRule.priority.desc(), AutomationRule.created_at
        )
        return list(self._session.execute(stmt).scalars().all())

    def get_active_by_priority(self) -> list[AutomationRule]:
        """Get all active rules ordered by priority.

        Returns:
            List of active AutomationRules ordered by priority (higher first).
        """
        stmt = (
            select(AutomationRule)
            .where(AutomationRule.is_active == True)  # noqa: E712
            .order_by(AutomationRule.priority.desc(), AutomationRule.created_at)
        )
        return list(self._session.execute(stmt).scalars().all())

    def get_by_type(self, rule_type: str) -> list[AutomationRule]:
        """Get all rules of one type, active or not.

        Args:
            rule_type: general, account_detection or transfer.

        Returns:
            List of AutomationRules of that type.
        """
        stmt = (
            select(AutomationRule)
            .where(AutomationRule.rule_type == rule_type)
            .order_by(AutomationRule.priority.desc(), AutomationRule.created_at)
        )
        return list(self._session.execute(stmt).scalars().all())

    def list_rules(
        self,
        rule_type: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[AutomationRule], int]:
        """List rules with optional filters, one page at a time.

        Args:
            rule_type: Filter by rule type.
            is_active: Filter by active flag.
            page: 1-based page number.
            limit: Page size.

        Returns:
            Tuple of (rules on the page, total matching count).
        """
        stmt = select(AutomationRule)
        count_stmt = select(func.count(AutomationRule.id))
        if rule_type is not None:
            stmt = stmt.where(AutomationRule.rule_type == rule_type)
            count_stmt = count_stmt.where(AutomationRule.rule_type == rule_type)
        if is_active is not None:
            stmt = stmt.where(AutomationRule.is_active == is_active)
            count_stmt = count_stmt.where(AutomationRule.is_active == is_active)

        stmt = (
            stmt.order_by(AutomationRule.priority.desc(), AutomationRule.created_at)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rules = list(self._session.execute(stmt).scalars().all())
        total = self._session.execute(count_stmt).scalar_one()
        return rules, total

    def update(
        self,
        rule_id: str,
        name: str | None = None,
        conditions: dict[str, Any] | None = None,
        actions: dict[str, Any] | None = None,
        priority: int | None = None,
        condition_logic: str | None = None,
    ) -> AutomationRule:
        """Update an automation rule.

        Args:
            rule_id: The rule ID.
            name: New name (None to keep current).
            conditions: New condition set (None to keep current).
            actions: New actions (None to keep current).
            priority: New priority (None to keep current).
            condition_logic: New condition logic (None to keep current).

        Returns:
            The updated AutomationRule.

        Raises:
            AutomationRuleNotFoundError: If rule doesn't exist.
            RuleConfigurationError: If conditions or actions are malformed.
                The rule is left unchanged.
        """
        rule = self.get(rule_id)
        if conditions is not None:
            conditions = _validated(rule, RuleConditions, conditions, "conditions")
        if actions is not None:
            actions = _validated(rule, RuleActions, actions, "actions")

        if name is not None:
            rule.name = name
        if conditions is not None:
            rule.conditions = conditions
        if actions is not None:
            rule.actions = actions
            rule.detected_account_id = _detected_account(rule.rule_type, rule.actions)
        if priority is not None:
            rule.priority = priority
        if condition_logic is not None:
            rule.condition_logic = condition_logic

        return rule

    def activate(self, rule_id: str) -> AutomationRule:
        """Activate an automation rule.

        Raises:
            AutomationRuleNotFoundError: If rule doesn't exist.
        """
        rule = self.get(rule_id)
        rule.is_active = True
        return rule

    def deactivate(self, rule_id: str) -> AutomationRule:
        """Deactivate an automation rule.

        Raises:
            AutomationRuleNotFoundError: If rule doesn't exist.
        """
        rule = self.get(rule_id)
        rule.is_active = False
        return rule

    def delete(self, rule_id: str) -> None:
        """Delete an automation rule.

        Args:
            rule_id: The rule ID.

        Raises:
            AutomationRuleNotFoundError: If rule doesn't exist.
        """
        rule = self.get(rule_id)
        self._session.delete(rule)
