"""
Operation Results

DESIGN DECISION: The session-facing layer never lets a LedgerError
escape. It returns an OperationResult tagged with either success or
exactly one ErrorKind, so callers have to branch on each failure mode.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from finance_ledger.errors import ErrorKind, LedgerError
from finance_ledger.models.ledger import Transaction


class OperationResult(BaseModel):
    """Outcome of one ledger operation."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    executed_at: datetime = Field(default_factory=datetime.now)

    # Success/failure
    success: bool
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    # Payload on success (Transaction, Budget, TransferReceipt, ...)
    value: Any = None

    # Non-blocking warnings, e.g. budget notifications
    warnings: list[str] = Field(default_factory=list)

    # Error details for reconciliation/debugging
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, value: Any = None, warnings: Optional[list[str]] = None) -> "OperationResult":
        return cls(success=True, value=value, warnings=warnings or [])

    @classmethod
    def failure(cls, error: LedgerError) -> "OperationResult":
        return cls(
            success=False,
            error_kind=error.kind,
            error_message=error.message,
            details=dict(error.details),
        )

    @property
    def is_critical(self) -> bool:
        """True when durable state may be inconsistent."""
        return self.error_kind == ErrorKind.PARTIAL_TRANSFER


class TransferReceipt(BaseModel):
    """Both legs of a completed transfer."""

    transfer_id: str
    sender: str
    recipient: str
    amount: Decimal
    sender_transaction: Transaction
    recipient_transaction: Transaction
    completed_at: datetime = Field(default_factory=datetime.now)
