"""Condition evaluation for automation rules.

Each condition kind is its own dataclass carrying a typed payload. A rule's
condition set is a tuple of these variants, combined with the rule's
condition logic.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from finance_automation.models.automation_rule import CONDITION_LOGIC_OR


@dataclass(frozen=True)
class TransactionCandidate:
    """An unsaved transaction, before automation rules are applied."""

    description: str
    amount: Decimal
    type: str = "expense"
    source: str = "manual"
    raw_text: str | None = None
    account_id: str | None = None
    category_id: str | None = None
    transaction_date: date | None = None
    transaction_time: str | None = None
    notes: str | None = None
    transfer_to_account_id: str | None = None
    transfer_id: str | None = None


def _contains_any(haystack: str, terms: tuple[str, ...]) -> bool:
    folded = haystack.casefold()
    return any(term.casefold() in folded for term in terms)


@dataclass(frozen=True)
class RawTextContains:
    """Raw source text (e.g. a bank SMS) contains any of the terms."""

    terms: tuple[str, ...]

    def holds(self, candidate: TransactionCandidate) -> bool:
        if candidate.raw_text is None:
            return False
        return _contains_any(candidate.raw_text, self.terms)


@dataclass(frozen=True)
class DescriptionContains:
    """Description contains any of the terms."""

    terms: tuple[str, ...]

    def holds(self, candidate: TransactionCandidate) -> bool:
        return _contains_any(candidate.description or "", self.terms)


@dataclass(frozen=True)
class DescriptionRegex:
    """Description matches a pattern compiled when the rule was loaded."""

    pattern: re.Pattern[str]

    def holds(self, candidate: TransactionCandidate) -> bool:
        return self.pattern.search(candidate.description or "") is not None


@dataclass(frozen=True)
class AmountBetween:
    """Amount lies in [minimum, maximum], both ends inclusive."""

    minimum: Decimal
    maximum: Decimal

    def holds(self, candidate: TransactionCandidate) -> bool:
        return self.minimum <= candidate.amount <= self.maximum


@dataclass(frozen=True)
class AmountEquals:
    """Amount is exactly the given value."""

    value: Decimal

    def holds(self, candidate: TransactionCandidate) -> bool:
        return candidate.amount == self.value


@dataclass(frozen=True)
class SourceIn:
    """Source is one of the listed sources."""

    sources: frozenset[str]

    def holds(self, candidate: TransactionCandidate) -> bool:
        return candidate.source in self.sources


@dataclass(frozen=True)
class TypeIs:
    """Transaction type equals the given type."""

    transaction_type: str

    def holds(self, candidate: TransactionCandidate) -> bool:
        return candidate.type == self.transaction_type


@dataclass(frozen=True)
class FromAccount:
    """Candidate is booked against the given account."""

    account_id: str

    def holds(self, candidate: TransactionCandidate) -> bool:
        return candidate.account_id == self.account_id


@dataclass(frozen=True)
class ToAccount:
    """Candidate already names the given transfer destination."""

    account_id: str

    def holds(self, candidate: TransactionCandidate) -> bool:
        return candidate.transfer_to_account_id == self.account_id


@dataclass(frozen=True)
class CategoryIs:
    """Candidate already carries the given category."""

    category_id: str

    def holds(self, candidate: TransactionCandidate) -> bool:
        return candidate.category_id == self.category_id


Condition = (
    RawTextContains
    | DescriptionContains
    | DescriptionRegex
    | AmountBetween
    | AmountEquals
    | SourceIn
    | TypeIs
    | FromAccount
    | ToAccount
    | CategoryIs
)


def matches(
    conditions: Sequence[Condition],
    condition_logic: str,
    candidate: TransactionCandidate,
) -> bool:
    """Check whether a candidate satisfies a rule's condition set.

    A rule without conditions matches unconditionally. Under "and" every
    condition must hold; under "or" at least one must. An empty term list
    is a present condition that never holds.

    Args:
        conditions: Compiled conditions of one rule.
        condition_logic: "and" or "or".
        candidate: The transaction being resolved.

    Returns:
        True if the rule applies to the candidate.
    """
    if not conditions:
        return True
    results = (condition.holds(candidate) for condition in conditions)
    if condition_logic == CONDITION_LOGIC_OR:
        return any(results)
    return all(results)
