"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Wallets are stored as JSON files; the user directory is in memory.
"""

from finance_ledger.services.storage.interface import (
    CorruptRecordError,
    StorageError,
    UserDirectoryInterface,
    WalletStorageInterface,
)
from finance_ledger.services.storage.json_files import (
    WALLET_FILE_SUFFIX,
    JsonFileStore,
    JsonWalletStorage,
)
from finance_ledger.services.storage.records import (
    BudgetRecord,
    TransactionRecord,
    WalletRecord,
)
from finance_ledger.services.storage.user_directory import InMemoryUserDirectory

__all__ = [
    # Interfaces
    "UserDirectoryInterface",
    "WalletStorageInterface",
    # Exceptions
    "CorruptRecordError",
    "StorageError",
    # JSON implementation
    "WALLET_FILE_SUFFIX",
    "JsonFileStore",
    "JsonWalletStorage",
    # Record format
    "BudgetRecord",
    "TransactionRecord",
    "WalletRecord",
    # User directory
    "InMemoryUserDirectory",
]
