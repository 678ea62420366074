"""TransferLinker: turns a resolved transfer destination into a pairing request."""

import dataclasses
import logging
import uuid
from collections.abc import Callable, Collection
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from finance_automation.core.exceptions import RuleIssue
from finance_automation.services.action_resolver import ResolvedTransaction

logger = logging.getLogger(__name__)

TRANSFER_TYPE = "transfer"


@dataclass(frozen=True)
class TransferRequest:
    """The mirrored half of a transfer, for the persistence layer to create.

    The mirror is booked on the destination account, points back at the
    source account and shares the primary's transfer_id.
    """

    transfer_id: str
    source_account_id: str | None
    destination_account_id: str
    amount: Decimal
    description: str
    transaction_date: date | None = None
    transaction_time: str | None = None
    type: str = TRANSFER_TYPE


def _new_transfer_id() -> str:
    return str(uuid.uuid4())


class TransferLinker:
    """Creates at most one transfer pairing per resolution."""

    def __init__(self, id_factory: Callable[[], str] = _new_transfer_id) -> None:
        """Initialize the linker.

        Args:
            id_factory: Generates shared transfer identifiers.
        """
        self._id_factory = id_factory

    def _skip(
        self, resolved: ResolvedTransaction, reason: str
    ) -> ResolvedTransaction:
        logger.warning(
            "Transfer link skipped for '%s': %s", resolved.description, reason
        )
        return dataclasses.replace(
            resolved,
            transfer_to_account_id=None,
            issues=[
                *resolved.issues,
                RuleIssue(rule_id=None, rule_name="transfer", reason=reason),
            ],
        )

    def link(
        self,
        resolved: ResolvedTransaction,
        known_account_ids: Collection[str] | None = None,
    ) -> ResolvedTransaction:
        """Attach a transfer pairing request to a settled resolution.

        Args:
            resolved: Output of the action resolver. Not mutated.
            known_account_ids: Accounts that exist. None disables the check.

        Returns:
            A new ResolvedTransaction; unchanged when no pairing applies.
        """
        destination = resolved.transfer_to_account_id
        if not destination:
            return resolved

        # Re-resolution of an already linked transaction: never mirror twice
        if resolved.transfer_id:
            logger.debug(
                "Transaction already linked by transfer %s", resolved.transfer_id
            )
            return resolved

        if known_account_ids is not None and destination not in known_account_ids:
            return self._skip(resolved, f"destination account {destination} not found")
        if destination == resolved.account_id:
            return self._skip(
                resolved, f"destination account {destination} is the source account"
            )

        transfer_id = self._id_factory()
        request = TransferRequest(
            transfer_id=transfer_id,
            source_account_id=resolved.account_id,
            destination_account_id=destination,
            amount=resolved.amount,
            description=resolved.description,
            transaction_date=resolved.transaction_date,
            transaction_time=resolved.transaction_time,
        )
        return dataclasses.replace(
            resolved,
            type=TRANSFER_TYPE,
            transfer_id=transfer_id,
            transfer_request=request,
        )
