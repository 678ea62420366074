"""DuplicateGuard: checks a resolved transaction against stored ones before commit."""

import logging
from dataclasses import dataclass

from finance_automation.models.transaction import Transaction
from finance_automation.repositories.transaction_repository import (
    TransactionRepository,
)
from finance_automation.services.action_resolver import ResolvedTransaction

logger = logging.getLogger(__name__)

DUPLICATE_NONE = "none"
DUPLICATE_CONFLICT = "conflict"


@dataclass
class DuplicateCheck:
    """Outcome of a duplicate check.

    A conflict is a decision point for the user (keep both or replace),
    not an error.
    """

    status: str  # 'none' or 'conflict'
    match: Transaction | None = None
    matched_on: str | None = None  # 'raw_text' or 'date_amount_account'

    @property
    def is_conflict(self) -> bool:
        return self.status == DUPLICATE_CONFLICT


class DuplicateGuard:
    """Looks for an existing transaction the resolved one would duplicate.

    Same raw text from the same source is checked first; otherwise the
    (date, amount, account) tuple is compared.
    """

    def __init__(self, transaction_repository: TransactionRepository) -> None:
        """Initialize the guard.

        Args:
            transaction_repository: Repository used for lookups.
        """
        self._transactions = transaction_repository

    def check(self, resolved: ResolvedTransaction) -> DuplicateCheck:
        """Check a resolved transaction for an existing duplicate.

        Args:
            resolved: Engine output about to be persisted.

        Returns:
            DuplicateCheck with status 'none' or 'conflict' and the match.
        """
        if resolved.raw_text and resolved.source:
            match = self._transactions.find_by_raw_text(
                resolved.raw_text, resolved.source
            )
            if match is not None:
                logger.info("Duplicate of %s by raw text", match.id)
                return DuplicateCheck(
                    status=DUPLICATE_CONFLICT, match=match, matched_on="raw_text"
                )

        transaction_date, amount, account_id = resolved.duplicate_key()
        if transaction_date is not None and account_id is not None:
            match = self._transactions.find_by_date_amount_account(
                transaction_date, amount, account_id
            )
            if match is not None:
                logger.info("Duplicate of %s by date, amount and account", match.id)
                return DuplicateCheck(
                    status=DUPLICATE_CONFLICT,
                    match=match,
                    matched_on="date_amount_account",
                )

        return DuplicateCheck(status=DUPLICATE_NONE)
