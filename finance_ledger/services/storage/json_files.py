"""
JSON File Storage Implementation

DESIGN DECISION: Each wallet lives in its own JSON file because:
1. Users can inspect their data directly
2. No database setup required
3. A whole-record overwrite is the natural unit of change

TRADEOFFS:
- No transactions across files (a transfer touches two files; the
  transfer engine detects and reports a half-written transfer)
- Whole-file rewrite per save (fine for personal ledgers)

Writes go to a temporary file in the same directory which then
replaces the record, so a crash mid-write never leaves a truncated
record behind.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from finance_ledger.config import get_settings
from finance_ledger.errors import ValidationError
from finance_ledger.logger import get_logger
from finance_ledger.models.wallet import Wallet
from finance_ledger.services.storage.interface import (
    CorruptRecordError,
    StorageError,
    WalletStorageInterface,
)
from finance_ledger.services.storage.records import WalletRecord


WALLET_FILE_SUFFIX = "_wallet.json"


class JsonFileStore:
    """
    Low-level file access inside the data directory.

    The directory is created on first use.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir) if data_dir is not None else get_settings().storage.data_dir
        self._logger = get_logger(__name__)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _ensure_data_dir(self) -> Path:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create data directory {self._data_dir}: {e}") from e
        return self._data_dir

    def path_for(self, filename: str) -> Path:
        return self._data_dir / filename

    def file_exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def read_text(self, filename: str) -> str:
        path = self.path_for(filename)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StorageError(f"File not found: {filename}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {filename}: {e}") from e

    def write_text(self, filename: str, content: str) -> None:
        """Atomically replace the file with new content."""
        directory = self._ensure_data_dir()
        target = self.path_for(filename)
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{filename}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, target)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise StorageError(f"Failed to write {filename}: {e}") from e

    def delete_file(self, filename: str) -> bool:
        path = self.path_for(filename)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete file {filename}: {e}") from e


class JsonWalletStorage(WalletStorageInterface):
    """
    JSON file implementation of wallet storage.

    Records are named <userId>_wallet.json inside the data directory.
    """

    def __init__(self, store: Optional[JsonFileStore] = None, data_dir: Optional[Path] = None):
        self._store = store or JsonFileStore(data_dir)
        self._logger = get_logger(__name__)

    @property
    def data_dir(self) -> Path:
        return self._store.data_dir

    def _filename(self, user_id: str) -> str:
        if user_id is None or not user_id.strip():
            raise ValidationError("User ID cannot be empty")
        if any(sep in user_id for sep in ("/", "\\", "\x00")) or user_id.strip() in {".", ".."}:
            raise ValidationError(f"User ID contains illegal characters: {user_id!r}")
        return f"{user_id}{WALLET_FILE_SUFFIX}"

    def load(self, user_id: str) -> Wallet:
        """Load a wallet, or return an empty one if there is no record."""
        filename = self._filename(user_id)
        if not self._store.file_exists(filename):
            self._logger.debug("wallet_created_empty", user_id=user_id)
            return Wallet(user_id)

        try:
            text = self._store.read_text(filename)
            record = WalletRecord.from_json(text)
            if record.user_id != user_id:
                raise ValueError(
                    f"Record belongs to {record.user_id!r}, expected {user_id!r}"
                )
            wallet = record.to_wallet()
        except ValueError as e:
            self._logger.error("wallet_record_corrupt", user_id=user_id, error=str(e))
            raise CorruptRecordError(
                f"Corrupt wallet record for {user_id}: {e}",
                details={"user_id": user_id, "file": filename},
            ) from e

        self._logger.debug(
            "wallet_loaded",
            user_id=user_id,
            transactions=len(record.transactions),
            budgets=len(record.budgets),
        )
        return wallet

    def save(self, wallet: Wallet) -> bool:
        """Overwrite the user's whole record."""
        if wallet is None:
            raise ValidationError("Wallet cannot be null")

        filename = self._filename(wallet.user_id)
        record = WalletRecord.from_wallet(wallet)
        self._store.write_text(filename, record.to_json())

        self._logger.info(
            "wallet_saved",
            user_id=wallet.user_id,
            balance=str(record.balance),
            transactions=len(record.transactions),
        )
        return True

    def exists(self, user_id: str) -> bool:
        try:
            filename = self._filename(user_id)
        except ValidationError:
            return False
        return self._store.file_exists(filename)

    def delete(self, user_id: str) -> bool:
        deleted = self._store.delete_file(self._filename(user_id))
        if deleted:
            self._logger.warning("wallet_deleted", user_id=user_id)
        return deleted
