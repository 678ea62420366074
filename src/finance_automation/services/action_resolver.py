"""ActionResolver: folds matched rules' actions into a resolved transaction."""

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from finance_automation.core.exceptions import RuleIssue
from finance_automation.services.condition_evaluator import (
    TransactionCandidate,
    matches,
)

if TYPE_CHECKING:
    from finance_automation.services.rule_compiler import CompiledRule
    from finance_automation.services.transfer_linker import TransferRequest

logger = logging.getLogger(__name__)

NOTE_SEPARATOR = "\n"


@dataclass(frozen=True)
class OriginalValues:
    """Account and category as they were before any rule touched them."""

    account_id: str | None
    category_id: str | None


@dataclass(frozen=True)
class AppliedRule:
    """A rule credited with at least one resolved field or side effect.

    actions holds only the actions that actually contributed.
    """

    rule_id: str
    rule_name: str
    actions: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "actions": dict(self.actions),
        }


@dataclass
class ResolvedTransaction:
    """A candidate after all matching rules' actions were folded in."""

    description: str
    amount: Decimal
    type: str
    source: str
    original: OriginalValues
    raw_text: str | None = None
    account_id: str | None = None
    category_id: str | None = None
    transaction_date: date | None = None
    transaction_time: str | None = None
    notes: str | None = None
    is_reconciled: bool = False
    transfer_to_account_id: str | None = None
    transfer_id: str | None = None
    transfer_request: "TransferRequest | None" = None
    applied_rules: list[AppliedRule] = field(default_factory=list)
    issues: list[RuleIssue] = field(default_factory=list)

    def duplicate_key(self) -> tuple[date | None, Decimal, str | None]:
        """Tuple the duplicate guard compares against stored transactions."""
        return (self.transaction_date, self.amount, self.account_id)

    def applied_rules_payload(self) -> list[dict[str, Any]]:
        """Audit trail in the shape stored on the transaction row."""
        return [applied.to_dict() for applied in self.applied_rules]


@dataclass
class _ResolutionState:
    """Mutable accumulator for one resolve() call."""

    type: str
    account_id: str | None
    category_id: str | None
    transfer_to_account_id: str | None
    notes: list[str]
    is_reconciled: bool
    known_account_ids: Collection[str] | None
    issues: list[RuleIssue] = field(default_factory=list)
    written: set[str] = field(default_factory=set)

    def claim(self, field_name: str) -> bool:
        """Claim an exclusive field. First writer wins."""
        if field_name in self.written:
            return False
        self.written.add(field_name)
        return True


# --- Action variants ---


@dataclass(frozen=True)
class SetType:
    transaction_type: str

    key = "set_type"

    def apply(self, state: _ResolutionState, rule: "CompiledRule") -> Any:
        if not state.claim("type"):
            return None
        state.type = self.transaction_type
        return self.transaction_type


@dataclass(frozen=True)
class SetCategory:
    category_id: str

    key = "set_category"

    def apply(self, state: _ResolutionState, rule: "CompiledRule") -> Any:
        if not state.claim("category_id"):
            return None
        state.category_id = self.category_id
        return self.category_id


@dataclass(frozen=True)
class SetAccount:
    account_id: str

    key = "set_account"

    def apply(self, state: _ResolutionState, rule: "CompiledRule") -> Any:
        if not state.claim("account_id"):
            return None
        state.account_id = self.account_id
        return self.account_id


@dataclass(frozen=True)
class LinkToAccount:
    """Exclusive transfer destination; feeds the transfer linker."""

    account_id: str

    key = "link_to_account"

    def apply(self, state: _ResolutionState, rule: "CompiledRule") -> Any:
        if "transfer_to_account_id" in state.written:
            return None
        if (
            state.known_account_ids is not None
            and self.account_id not in state.known_account_ids
        ):
            # Leave the field open for a lower-priority rule
            logger.warning(
                "Rule '%s' (id=%s) links to unknown account %s; skipping link",
                rule.name,
                rule.rule_id,
                self.account_id,
            )
            state.issues.append(
                RuleIssue(
                    rule_id=rule.rule_id,
                    rule_name=rule.name,
                    reason=f"transfer destination {self.account_id} not found",
                )
            )
            return None
        state.claim("transfer_to_account_id")
        state.transfer_to_account_id = self.account_id
        return self.account_id


@dataclass(frozen=True)
class AutoReconcile:
    """Cumulative: any matched rule marks the transaction reconciled."""

    key = "auto_reconcile"

    def apply(self, state: _ResolutionState, rule: "CompiledRule") -> Any:
        state.is_reconciled = True
        return True


@dataclass(frozen=True)
class AddNote:
    """Cumulative: notes from all matched rules are kept in priority order."""

    text: str

    key = "add_note"

    def apply(self, state: _ResolutionState, rule: "CompiledRule") -> Any:
        state.notes.append(self.text)
        return self.text


Action = SetType | SetCategory | SetAccount | LinkToAccount | AutoReconcile | AddNote


class ActionResolver:
    """Resolves a candidate against rules already ordered by the selector.

    Exclusive fields (type, category, account, transfer destination) take the
    value of the first matching rule that writes them. Cumulative fields
    (reconciliation flag, notes) combine across all matching rules.
    Atomicity is per field: a rule whose category was shadowed by a
    higher-priority rule still applies its other actions.
    """

    def resolve(
        self,
        ordered_rules: Sequence["CompiledRule"],
        candidate: TransactionCandidate,
        known_account_ids: Collection[str] | None = None,
    ) -> ResolvedTransaction:
        """Fold matching rules' actions into a resolved transaction.

        Args:
            ordered_rules: Compiled rules in evaluation order.
            candidate: The transaction to resolve. Never mutated.
            known_account_ids: Accounts that may receive a transfer. None
                disables the destination check.

        Returns:
            ResolvedTransaction with the audit trail of contributing rules.
        """
        original = OriginalValues(
            account_id=candidate.account_id,
            category_id=candidate.category_id,
        )
        state = _ResolutionState(
            type=candidate.type,
            account_id=candidate.account_id,
            category_id=candidate.category_id,
            transfer_to_account_id=candidate.transfer_to_account_id,
            notes=[candidate.notes] if candidate.notes else [],
            is_reconciled=False,
            known_account_ids=known_account_ids,
        )
        applied_rules: list[AppliedRule] = []

        for rule in ordered_rules:
            if not matches(rule.conditions, rule.condition_logic, candidate):
                continue

            contributed: dict[str, Any] = {}
            for action in rule.actions:
                value = action.apply(state, rule)
                if value is not None:
                    contributed[action.key] = value

            if contributed:
                logger.debug(
                    "Rule '%s' (id=%s) contributed %s",
                    rule.name,
                    rule.rule_id,
                    sorted(contributed),
                )
                applied_rules.append(
                    AppliedRule(
                        rule_id=rule.rule_id,
                        rule_name=rule.name,
                        actions=contributed,
                    )
                )
            else:
                logger.debug(
                    "Rule '%s' (id=%s) matched but every target was already set",
                    rule.name,
                    rule.rule_id,
                )

        return ResolvedTransaction(
            description=candidate.description,
            amount=candidate.amount,
            type=state.type,
            source=candidate.source,
            original=original,
            raw_text=candidate.raw_text,
            account_id=state.account_id,
            category_id=state.category_id,
            transaction_date=candidate.transaction_date,
            transaction_time=candidate.transaction_time,
            notes=NOTE_SEPARATOR.join(state.notes) if state.notes else None,
            is_reconciled=state.is_reconciled,
            transfer_to_account_id=state.transfer_to_account_id,
            transfer_id=candidate.transfer_id,
            applied_rules=applied_rules,
            issues=state.issues,
        )
