"""AccountRepository for reading the user's accounts."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_automation.models.account import Account


class AccountNotFoundError(Exception):
    """Raised when an account is not found."""

    pass


class AccountRepository:
    """Repository for account access."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy database session.
        """
        self._session = session

    def create(
        self,
        name: str,
        type: str,
        institution: str | None = None,
        last_four: str | None = None,
        currency: str = "COP",
        balance: Decimal = Decimal("0"),
        is_active: bool = True,
    ) -> Account:
        """Create a new account.

        Args:
            name: Display name.
            type: Account type (checking, savings, credit_card, cash, ...).
            institution: Bank or provider name as it appears in bank text.
            last_four: Last four digits of the account or card number.
            currency: ISO currency code.
            balance: Opening balance.
            is_active: Whether the account is in use.

        Returns:
            The created Account.
        """
        account = Account(
            name=name,
            type=type,
            institution=institution,
            last_four=last_four,
            currency=currency,
            balance=balance,
            is_active=is_active,
        )
        self._session.add(account)
        self._session.flush()
        return account

    def get(self, account_id: str) -> Account:
        """Get an account by ID.

        Raises:
            AccountNotFoundError: If account doesn't exist or was deleted.
        """
        account = self._session.get(Account, account_id)
        if account is None or account.deleted_at is not None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def get_active(self) -> list[Account]:
        """Get active, non-deleted accounts ordered by creation."""
        stmt = (
            select(Account)
            .where(Account.is_active == True)  # noqa: E712
            .where(Account.deleted_at.is_(None))
            .order_by(Account.created_at)
        )
        return list(self._session.execute(stmt).scalars().all())

    def get_existing_ids(self) -> set[str]:
        """Get IDs of every non-deleted account (valid transfer destinations)."""
        stmt = select(Account.id).where(Account.deleted_at.is_(None))
        return set(self._session.execute(stmt).scalars().all())

    def soft_delete(self, account_id: str) -> Account:
        """Mark an account deleted.

        Raises:
            AccountNotFoundError: If account doesn't exist.
        """
        account = self.get(account_id)
        account.deleted_at = datetime.utcnow()
        account.is_active = False
        self._session.flush()
        return account
