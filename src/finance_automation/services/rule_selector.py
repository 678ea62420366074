"""RuleSelector: picks and orders the rules that take part in a resolution."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from finance_automation.core.exceptions import RuleConfigurationError, RuleIssue
from finance_automation.models.automation_rule import (
    RULE_TYPE_ACCOUNT_DETECTION,
    RULE_TYPE_GENERAL,
    RULE_TYPE_TRANSFER,
)
from finance_automation.services.rule_compiler import (
    CompiledRule,
    RuleRecord,
    compile_rule,
)

logger = logging.getLogger(__name__)

INTENT_GENERAL = "general"
INTENT_ACCOUNT_DETECTION = "account_detection"

# Detection rules also run during general resolution: their job is to set account_id
INTENT_RULE_TYPES: dict[str, frozenset[str]] = {
    INTENT_GENERAL: frozenset(
        {RULE_TYPE_GENERAL, RULE_TYPE_TRANSFER, RULE_TYPE_ACCOUNT_DETECTION}
    ),
    INTENT_ACCOUNT_DETECTION: frozenset({RULE_TYPE_ACCOUNT_DETECTION}),
}


@dataclass(frozen=True)
class SelectionResult:
    """Ordered, compiled rules plus the rules skipped as malformed."""

    rules: tuple[CompiledRule, ...]
    issues: tuple[RuleIssue, ...] = ()


class RuleSelector:
    """Filters active rules by intent and sorts them by priority.

    Compiles every selected rule exactly once, so the returned snapshot is
    unaffected by later edits to the stored rows.
    """

    def select(
        self,
        rules: Iterable[RuleRecord],
        intent: str = INTENT_GENERAL,
    ) -> SelectionResult:
        """Select the rules for one resolution.

        Args:
            rules: Stored rules, typically every rule the user owns.
            intent: INTENT_GENERAL or INTENT_ACCOUNT_DETECTION.

        Returns:
            SelectionResult with rules ordered by priority descending, ties
            broken by creation order and then id.

        Raises:
            ValueError: If the intent is unknown.
        """
        if intent not in INTENT_RULE_TYPES:
            raise ValueError(f"Unknown resolution intent: {intent}")
        allowed_types = INTENT_RULE_TYPES[intent]

        selected: list[CompiledRule] = []
        issues: list[RuleIssue] = []

        for rule in rules:
            if not rule.is_active:
                continue
            try:
                compiled = compile_rule(rule)
            except RuleConfigurationError as e:
                logger.warning("Skipping rule: %s", e)
                issues.append(RuleIssue.from_error(e))
                continue
            if compiled.rule_type in allowed_types:
                selected.append(compiled)

        selected.sort(key=CompiledRule.sort_key)
        return SelectionResult(rules=tuple(selected), issues=tuple(issues))
