"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap JSON files for a real database later
2. Use failing or in-memory doubles in tests
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple. A wallet is always read and
written as one whole record.
"""

from abc import ABC, abstractmethod
from typing import Optional

from finance_ledger.errors import ErrorKind, LedgerError
from finance_ledger.models.user import User
from finance_ledger.models.wallet import Wallet


class WalletStorageInterface(ABC):
    """
    Abstract interface for durable wallet records.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self, user_id: str) -> Wallet:
        """
        Load a user's wallet.

        Args:
            user_id: The wallet owner's identifier

        Returns:
            The stored wallet, or a fresh empty wallet if none exists

        Raises:
            StorageError: If the record cannot be read
            CorruptRecordError: If the record is malformed
        """
        pass

    @abstractmethod
    def save(self, wallet: Wallet) -> bool:
        """
        Replace the user's whole record with this wallet.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    def exists(self, user_id: str) -> bool:
        """Check whether a durable record exists for the user."""
        pass

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        """
        Irreversibly delete the user's record.

        Returns:
            True if a record was deleted, False if there was none

        Raises:
            StorageError: If the record exists but cannot be removed
        """
        pass


class UserDirectoryInterface(ABC):
    """
    Abstract interface for the username -> user mapping.

    Implementations must be safe under concurrent access.
    Saving an existing username replaces it (last writer wins).
    """

    @abstractmethod
    def exists(self, username: str) -> bool:
        pass

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[User]:
        """Return the user, or None if unknown."""
        pass

    @abstractmethod
    def find_all(self) -> list[User]:
        pass

    @abstractmethod
    def save(self, user: User) -> None:
        pass

    @abstractmethod
    def delete(self, username: str) -> None:
        """Remove a user. Unknown usernames are ignored."""
        pass


class StorageError(LedgerError):
    """Base exception for storage operations."""
    kind = ErrorKind.STORAGE


class CorruptRecordError(StorageError):
    """A durable record exists but cannot be turned back into a wallet."""
    pass
