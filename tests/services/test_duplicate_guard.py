"""Tests for DuplicateGuard."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from finance_automation.models.account import Account
from finance_automation.models.transaction import Transaction
from finance_automation.repositories.transaction_repository import (
    TransactionRepository,
)
from finance_automation.services.action_resolver import (
    OriginalValues,
    ResolvedTransaction,
)
from finance_automation.services.duplicate_guard import DuplicateGuard


@pytest.fixture
def account(db_session: Session) -> Account:
    """Create a sample account."""
    account = Account(name="Main", type="checking")
    db_session.add(account)
    db_session.flush()
    return account


@pytest.fixture
def stored(db_session: Session, account: Account) -> Transaction:
    """Create a stored SMS transaction."""
    transaction = Transaction(
        transaction_date=date(2024, 3, 1),
        amount=Decimal("45000"),
        description="Rappi",
        type="expense",
        source="sms",
        raw_text="Compra por $45.000 en RAPPI",
        account_id=account.id,
    )
    db_session.add(transaction)
    db_session.flush()
    return transaction


def create_resolved(account_id: str, **overrides) -> ResolvedTransaction:  # type: ignore[no-untyped-def]
    """Create a resolved transaction for testing."""
    fields = {
        "description": "Rappi",
        "amount": Decimal("45000"),
        "type": "expense",
        "source": "sms",
        "original": OriginalValues(account_id=account_id, category_id=None),
        "account_id": account_id,
        "transaction_date": date(2024, 3, 2),
    }
    fields.update(overrides)
    return ResolvedTransaction(**fields)


class TestCheck:
    """Tests for duplicate lookups."""

    def test_same_raw_text_and_source_conflicts(  # type: ignore[no-untyped-def]
        self, db_session: Session, account: Account, stored: Transaction
    ) -> None:
        """Test raw text from the same source is a duplicate."""
        guard = DuplicateGuard(TransactionRepository(db_session))

        check = guard.check(
            create_resolved(account.id, raw_text="Compra por $45.000 en RAPPI")
        )

        assert check.is_conflict
        assert check.match.id == stored.id
        assert check.matched_on == "raw_text"

    def test_same_date_amount_account_conflicts(  # type: ignore[no-untyped-def]
        self, db_session: Session, account: Account, stored: Transaction
    ) -> None:
        """Test the (date, amount, account) tuple is a duplicate."""
        guard = DuplicateGuard(TransactionRepository(db_session))

        check = guard.check(
            create_resolved(account.id, transaction_date=date(2024, 3, 1))
        )

        assert check.is_conflict
        assert check.matched_on == "date_amount_account"

    def test_different_day_is_not_a_duplicate(  # type: ignore[no-untyped-def]
        self, db_session: Session, account: Account, stored: Transaction
    ) -> None:
        """Test a different date and raw text is no conflict."""
        guard = DuplicateGuard(TransactionRepository(db_session))

        check = guard.check(create_resolved(account.id))

        assert not check.is_conflict
        assert check.status == "none"
        assert check.match is None

    def test_deleted_transactions_are_ignored(  # type: ignore[no-untyped-def]
        self, db_session: Session, account: Account, stored: Transaction
    ) -> None:
        """Test soft-deleted rows never count as duplicates."""
        stored.deleted_at = datetime(2024, 3, 5)
        db_session.flush()
        guard = DuplicateGuard(TransactionRepository(db_session))

        check = guard.check(
            create_resolved(
                account.id,
                raw_text="Compra por $45.000 en RAPPI",
                transaction_date=date(2024, 3, 1),
            )
        )

        assert not check.is_conflict
