"""Services package."""

from finance_ledger.services.auth import AuthService
from finance_ledger.services.budgets import BudgetService
from finance_ledger.services.ledger import LedgerPostingService
from finance_ledger.services.notifications import NotificationService, NotificationSink
from finance_ledger.services.statistics import StatisticsService
from finance_ledger.services.storage import (
    CorruptRecordError,
    InMemoryUserDirectory,
    JsonWalletStorage,
    StorageError,
    UserDirectoryInterface,
    WalletStorageInterface,
)
from finance_ledger.services.transfer import TRANSFER_CATEGORY, TransferEngine

__all__ = [
    # Ledger services
    "BudgetService",
    "LedgerPostingService",
    "StatisticsService",
    "TRANSFER_CATEGORY",
    "TransferEngine",
    # Notifications
    "NotificationService",
    "NotificationSink",
    # Auth
    "AuthService",
    # Storage services
    "CorruptRecordError",
    "InMemoryUserDirectory",
    "JsonWalletStorage",
    "StorageError",
    "UserDirectoryInterface",
    "WalletStorageInterface",
]
