"""AutomationEngine: runs selection, resolution and transfer linking in order."""

import dataclasses
import logging
from collections.abc import Collection, Iterable

from finance_automation.services.action_resolver import (
    ActionResolver,
    ResolvedTransaction,
)
from finance_automation.services.condition_evaluator import TransactionCandidate
from finance_automation.services.rule_compiler import RuleRecord
from finance_automation.services.rule_selector import (
    INTENT_ACCOUNT_DETECTION,
    INTENT_GENERAL,
    RuleSelector,
)
from finance_automation.services.transfer_linker import TransferLinker

logger = logging.getLogger(__name__)


class AutomationEngine:
    """Resolves candidate transactions against a snapshot of automation rules.

    Pure and synchronous: callers load rules and accounts, hand them in, and
    persist the result. Nothing here touches the database.

    Flow:
    - RuleSelector filters, compiles and orders the rules
    - ActionResolver folds matching rules into a resolution
    - TransferLinker attaches a pairing request when a destination was set
    """

    def __init__(
        self,
        selector: RuleSelector | None = None,
        resolver: ActionResolver | None = None,
        linker: TransferLinker | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            selector: Rule selector (default instance if None).
            resolver: Action resolver (default instance if None).
            linker: Transfer linker (default instance if None).
        """
        self._selector = selector or RuleSelector()
        self._resolver = resolver or ActionResolver()
        self._linker = linker or TransferLinker()

    def resolve(
        self,
        candidate: TransactionCandidate,
        rules: Iterable[RuleRecord],
        known_account_ids: Collection[str] | None = None,
    ) -> ResolvedTransaction:
        """Apply automation rules to a candidate transaction.

        Args:
            candidate: The transaction to resolve.
            rules: The user's stored rules; inactive ones are ignored.
            known_account_ids: Existing account IDs, used to validate
                transfer destinations. None disables the check.

        Returns:
            ResolvedTransaction. Malformed rules and skipped links are listed
            in its issues, never raised.
        """
        selection = self._selector.select(rules, INTENT_GENERAL)
        resolved = self._resolver.resolve(
            selection.rules, candidate, known_account_ids
        )
        if selection.issues:
            resolved = dataclasses.replace(
                resolved, issues=[*selection.issues, *resolved.issues]
            )
        resolved = self._linker.link(resolved, known_account_ids)

        logger.info(
            "Resolved '%s' with %d rule(s) applied, %d issue(s)",
            candidate.description,
            len(resolved.applied_rules),
            len(resolved.issues),
        )
        return resolved

    def detect_account(
        self,
        candidate: TransactionCandidate,
        rules: Iterable[RuleRecord],
    ) -> str | None:
        """Run only account-detection rules to route raw text to an account.

        Args:
            candidate: The transaction, usually carrying raw bank text.
            rules: The user's stored rules.

        Returns:
            The detected account ID, or None if no detection rule set one.
        """
        selection = self._selector.select(rules, INTENT_ACCOUNT_DETECTION)
        resolved = self._resolver.resolve(selection.rules, candidate)
        for applied in resolved.applied_rules:
            if "set_account" in applied.actions:
                return applied.actions["set_account"]
        return None
