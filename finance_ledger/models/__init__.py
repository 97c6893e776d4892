"""
Data Models Package

This package contains the ledger value types, the wallet aggregate,
users/sessions and the tagged operation results.
"""

from finance_ledger.models.ledger import (
    Budget,
    Category,
    Transaction,
    TransactionKind,
)
from finance_ledger.models.wallet import Wallet
from finance_ledger.models.user import Session, User
from finance_ledger.models.results import OperationResult, TransferReceipt

__all__ = [
    # Ledger models
    "Budget",
    "Category",
    "Transaction",
    "TransactionKind",
    "Wallet",
    # Users
    "Session",
    "User",
    # Results
    "OperationResult",
    "TransferReceipt",
]
