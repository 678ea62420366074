"""TransactionRepository for persisting resolved transactions."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_automation.models.transaction import Transaction
from finance_automation.services.action_resolver import ResolvedTransaction
from finance_automation.services.transfer_linker import TransferRequest


class TransactionNotFoundError(Exception):
    """Raised when a transaction is not found."""

    pass


class TransactionRepository:
    """Repository for transaction persistence and duplicate lookups."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy database session.
        """
        self._session = session

    def get(self, transaction_id: str) -> Transaction:
        """Get a live transaction by ID.

        Raises:
            TransactionNotFoundError: If it doesn't exist or was deleted.
        """
        transaction = self._session.get(Transaction, transaction_id)
        if transaction is None or transaction.deleted_at is not None:
            raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
        return transaction

    def create_resolved(
        self,
        resolved: ResolvedTransaction,
        duplicate_status: str | None = None,
    ) -> Transaction:
        """Insert a resolved transaction and, for transfers, its mirror.

        A mirror is created from the linker's request, or, when the
        transaction arrived already linked, only if no half of the transfer
        is stored on the destination account yet.

        Args:
            resolved: Engine output.
            duplicate_status: "confirmed" when the user kept a duplicate.

        Returns:
            The primary Transaction.
        """
        if resolved.account_id is None:
            raise ValueError("Resolved transaction has no account")

        transaction = Transaction(
            transaction_date=resolved.transaction_date or date.today(),
            transaction_time=resolved.transaction_time,
            amount=resolved.amount,
            description=resolved.description,
            notes=resolved.notes,
            type=resolved.type,
            source=resolved.source,
            account_id=resolved.account_id,
            category_id=resolved.category_id,
            raw_text=resolved.raw_text,
            transfer_to_account_id=resolved.transfer_to_account_id,
            transfer_id=resolved.transfer_id,
            is_reconciled=resolved.is_reconciled,
            reconciled_at=datetime.utcnow() if resolved.is_reconciled else None,
            applied_rules=resolved.applied_rules_payload() or None,
            duplicate_status=duplicate_status,
        )
        self._session.add(transaction)

        request = resolved.transfer_request
        if (
            request is None
            and resolved.transfer_id
            and resolved.transfer_to_account_id
            and not self.has_transfer_half(
                resolved.transfer_id, resolved.transfer_to_account_id
            )
        ):
            request = TransferRequest(
                transfer_id=resolved.transfer_id,
                source_account_id=resolved.account_id,
                destination_account_id=resolved.transfer_to_account_id,
                amount=resolved.amount,
                description=resolved.description,
                transaction_date=resolved.transaction_date,
                transaction_time=resolved.transaction_time,
            )
        if request is not None:
            self.create_mirror(request, transaction.transaction_date)

        self._session.flush()
        return transaction

    def create_mirror(
        self, request: TransferRequest, fallback_date: date
    ) -> Transaction:
        """Insert the destination half of a transfer.

        Args:
            request: Pairing request from the transfer linker.
            fallback_date: Date used when the request carries none.

        Returns:
            The mirrored Transaction.
        """
        mirror = Transaction(
            transaction_date=request.transaction_date or fallback_date,
            transaction_time=request.transaction_time,
            amount=request.amount,
            description=request.description,
            type=request.type,
            source="transfer",
            account_id=request.destination_account_id,
            transfer_to_account_id=request.source_account_id,
            transfer_id=request.transfer_id,
        )
        self._session.add(mirror)
        return mirror

    def has_transfer_half(self, transfer_id: str, account_id: str) -> bool:
        """Check whether a transfer already has a live row on an account."""
        stmt = (
            select(Transaction.id)
            .where(Transaction.transfer_id == transfer_id)
            .where(Transaction.account_id == account_id)
            .where(Transaction.deleted_at.is_(None))
            .limit(1)
        )
        return self._session.execute(stmt).first() is not None

    def get_by_transfer_id(self, transfer_id: str) -> list[Transaction]:
        """Get both live halves of a transfer."""
        stmt = (
            select(Transaction)
            .where(Transaction.transfer_id == transfer_id)
            .where(Transaction.deleted_at.is_(None))
            .order_by(Transaction.created_at)
        )
        return list(self._session.execute(stmt).scalars().all())

    def find_by_raw_text(self, raw_text: str, source: str) -> Transaction | None:
        """Find a live transaction created from the same raw text and source."""
        stmt = (
            select(Transaction)
            .where(Transaction.raw_text == raw_text)
            .where(Transaction.source == source)
            .where(Transaction.deleted_at.is_(None))
            .limit(1)
        )
        return self._session.execute(stmt).scalars().first()

    def find_by_date_amount_account(
        self, transaction_date: date, amount: Decimal, account_id: str
    ) -> Transaction | None:
        """Find a live transaction with the same date, amount and account."""
        stmt = (
            select(Transaction)
            .where(Transaction.transaction_date == transaction_date)
            .where(Transaction.amount == amount)
            .where(Transaction.account_id == account_id)
            .where(Transaction.deleted_at.is_(None))
            .limit(1)
        )
        return self._session.execute(stmt).scalars().first()

    def soft_delete(self, transaction_id: str) -> Transaction:
        """Mark a transaction deleted, together with its transfer counterpart.

        Raises:
            TransactionNotFoundError: If it doesn't exist or was deleted.
        """
        transaction = self.get(transaction_id)
        deleted_at = datetime.utcnow()
        transaction.deleted_at = deleted_at
        if transaction.transfer_id is not None:
            stmt = (
                select(Transaction)
                .where(Transaction.transfer_id == transaction.transfer_id)
                .where(Transaction.id != transaction.id)
                .where(Transaction.deleted_at.is_(None))
            )
            for counterpart in self._session.execute(stmt).scalars():
                counterpart.deleted_at = deleted_at
        self._session.flush()
        return transaction
