"""AccountDetectionRuleGenerator: one detection rule per uncovered account."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from finance_automation.core.config import settings
from finance_automation.models.automation_rule import (
    CONDITION_LOGIC_AND,
    RULE_TYPE_ACCOUNT_DETECTION,
)

logger = logging.getLogger(__name__)


class AccountRecord(Protocol):
    """Attributes read from a stored account."""

    id: Any
    name: str
    type: str
    institution: str | None
    last_four: str | None
    is_active: bool


class DetectionRuleRecord(Protocol):
    """Attributes read from a stored rule when checking coverage."""

    rule_type: str
    actions: dict[str, Any] | None


@dataclass
class AutomationRuleDraft:
    """An unsaved automation rule, persisted by the caller in one bulk insert."""

    name: str
    conditions: dict[str, Any]
    actions: dict[str, Any]
    rule_type: str = RULE_TYPE_ACCOUNT_DETECTION
    condition_logic: str = CONDITION_LOGIC_AND
    priority: int = 0
    is_active: bool = True

    @property
    def account_id(self) -> str | None:
        return self.actions.get("set_account")


def covered_accounts(rules: Iterable[DetectionRuleRecord]) -> set[tuple[str, str]]:
    """Build the (rule_type, set_account) pairs already present in a rule set.

    Inactive rules count: a detection rule the user switched off is not
    regenerated.

    Args:
        rules: Stored rules.

    Returns:
        Set of (rule_type, account_id) pairs.
    """
    pairs: set[tuple[str, str]] = set()
    for rule in rules:
        account_id = (rule.actions or {}).get("set_account")
        if rule.rule_type == RULE_TYPE_ACCOUNT_DETECTION and account_id:
            pairs.add((rule.rule_type, str(account_id)))
    return pairs


class AccountDetectionRuleGenerator:
    """Derives account-detection rules from account-identifying text.

    A generated rule matches raw bank text mentioning the account's
    institution or last four digits and routes the transaction to that
    account. Accounts already covered are skipped, so running the generator
    again after its drafts were saved yields nothing.
    """

    def __init__(
        self,
        priority: int | None = None,
        excluded_types: Iterable[str] | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            priority: Priority of generated rules (defaults to settings).
            excluded_types: Account types never given a rule (defaults to settings).
        """
        self._priority = (
            settings.account_detection_priority if priority is None else priority
        )
        self._excluded_types = frozenset(
            settings.account_detection_excluded_types
            if excluded_types is None
            else excluded_types
        )

    def _keywords(self, account: AccountRecord) -> list[str]:
        keywords: list[str] = []
        for fragment in (account.institution, account.last_four):
            if fragment and fragment.strip() and fragment.strip() not in keywords:
                keywords.append(fragment.strip())
        return keywords

    def _is_eligible(self, account: AccountRecord) -> bool:
        if not account.is_active:
            return False
        if getattr(account, "deleted_at", None) is not None:
            return False
        return account.type not in self._excluded_types

    def generate(
        self,
        accounts: Iterable[AccountRecord],
        existing_rules: Iterable[DetectionRuleRecord],
        refresh_rules: Callable[[], Iterable[DetectionRuleRecord]] | None = None,
    ) -> list[AutomationRuleDraft]:
        """Generate detection rule drafts for every uncovered eligible account.

        Args:
            accounts: The user's accounts.
            existing_rules: Rules already stored.
            refresh_rules: Reloads the latest rules; when given, coverage is
                checked again right before returning.

        Returns:
            Drafts to persist in one bulk insert; empty when nothing is left.
        """
        covered = covered_accounts(existing_rules)
        drafts: list[AutomationRuleDraft] = []
        skipped_no_keywords = 0

        for account in accounts:
            account_id = str(account.id)
            if not self._is_eligible(account):
                continue
            if (RULE_TYPE_ACCOUNT_DETECTION, account_id) in covered:
                continue
            keywords = self._keywords(account)
            if not keywords:
                skipped_no_keywords += 1
                continue

            drafts.append(
                AutomationRuleDraft(
                    name=f"Account: {account.name}",
                    priority=self._priority,
                    conditions={"raw_text_contains": keywords},
                    actions={"set_account": account_id},
                )
            )
            # Same account listed twice in one call
            covered.add((RULE_TYPE_ACCOUNT_DETECTION, account_id))

        if refresh_rules is not None and drafts:
            latest = covered_accounts(refresh_rules())
            drafts = [
                draft
                for draft in drafts
                if (RULE_TYPE_ACCOUNT_DETECTION, draft.account_id) not in latest
            ]

        logger.info(
            "Generated %d account detection rule(s); %d account(s) had no identifying text",
            len(drafts),
            skipped_no_keywords,
        )
        return drafts
