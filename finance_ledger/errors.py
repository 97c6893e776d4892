"""
Error Taxonomy

Every failure the ledger can report belongs to exactly one ErrorKind.
Services raise these exceptions; the orchestrator turns them into
tagged OperationResult values for callers.

CRITICAL: PartialTransferError is NOT a storage error. It means the two
wallets of a transfer are now durably inconsistent and a human has to
reconcile them. It must never be retried.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Finite set of failure modes."""
    VALIDATION = "validation_error"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NOT_FOUND = "not_found"
    SELF_REFERENCE = "self_reference"
    STORAGE = "storage_error"
    PARTIAL_TRANSFER = "partial_transfer"
    AUTHENTICATION = "authentication_error"


class LedgerError(Exception):
    """Base exception for ledger operations."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(LedgerError):
    """Malformed or out-of-range input. Raised before any mutation."""
    kind = ErrorKind.VALIDATION


class InsufficientFundsError(LedgerError):
    """Sender balance is below the transfer amount."""
    kind = ErrorKind.INSUFFICIENT_FUNDS

    def __init__(self, balance: Decimal, required: Decimal):
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient funds. Balance: {balance:.2f}, Required: {required:.2f}",
            details={"balance": str(balance), "required": str(required)},
        )


class NotFoundError(LedgerError):
    """Referenced user does not exist."""
    kind = ErrorKind.NOT_FOUND


class SelfReferenceError(LedgerError):
    """A user tried to transfer money to themselves."""
    kind = ErrorKind.SELF_REFERENCE


class AuthenticationError(LedgerError):
    """Registration or login rejected."""
    kind = ErrorKind.AUTHENTICATION


class PartialTransferError(LedgerError):
    """
    One side of a transfer was persisted and the other was not.

    Carries everything needed for manual reconciliation.
    """
    kind = ErrorKind.PARTIAL_TRANSFER

    def __init__(
        self,
        transfer_id: str,
        sender: str,
        recipient: str,
        amount: Decimal,
        persisted_side: str,
        cause: Exception,
    ):
        self.transfer_id = transfer_id
        self.sender = sender
        self.recipient = recipient
        self.amount = amount
        self.persisted_side = persisted_side
        super().__init__(
            f"Transfer {transfer_id} only persisted for {persisted_side}: "
            f"{sender} -> {recipient} {amount:.2f}. Manual reconciliation required.",
            details={
                "transfer_id": transfer_id,
                "sender": sender,
                "recipient": recipient,
                "amount": str(amount),
                "persisted_side": persisted_side,
                "cause": str(cause),
            },
        )
