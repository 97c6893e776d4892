"""
Main Orchestrator for Finance Ledger

This module ties together all the components and defines the
session-facing flows for:
1. Posting (income / expense)
2. Budgets (set / edit / delete)
3. Transfers between users
4. Account lifecycle (refresh / close)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every operation holds the lock of each user it touches
- Every operation starts from the durable record, not from a stale
  in-memory wallet
- Every mutation is saved before the operation reports success
- No LedgerError escapes; callers get a tagged OperationResult

There is no retry anywhere. A failed save is reported, and a
partially persisted transfer is reported as critical.
"""

from pathlib import Path
from typing import Any, Callable, Optional

from finance_ledger.config import get_settings
from finance_ledger.errors import ErrorKind, LedgerError, ValidationError
from finance_ledger.locks import UserLockRegistry
from finance_ledger.logger import configure_logging, get_logger
from finance_ledger.models.ledger import Category
from finance_ledger.models.results import OperationResult
from finance_ledger.models.user import Session
from finance_ledger.models.wallet import Wallet
from finance_ledger.services.auth import AuthService
from finance_ledger.services.budgets import BudgetService
from finance_ledger.services.ledger import LedgerPostingService
from finance_ledger.services.notifications import NotificationService
from finance_ledger.services.statistics import StatisticsService
from finance_ledger.services.storage import (
    InMemoryUserDirectory,
    JsonWalletStorage,
    UserDirectoryInterface,
    WalletStorageInterface,
)
from finance_ledger.services.transfer import TransferEngine
from finance_ledger.validation import require_category_name


class LedgerFlow:
    """
    Orchestrates every wallet-changing operation of a session.

    Flow of each operation:
    1. Lock → hold the user's lock (both users for transfers)
    2. Refresh → reload session.wallet from storage
    3. Apply → run the service call
    4. Save → persist the wallet
    5. Report → OperationResult with value and warnings

    A failure in steps 2-4 leaves the durable record untouched
    (except for the transfer case described in TransferEngine).
    """

    def __init__(
        self,
        wallet_storage: WalletStorageInterface,
        user_directory: UserDirectoryInterface,
        posting: Optional[LedgerPostingService] = None,
        budgets: Optional[BudgetService] = None,
        transfer_engine: Optional[TransferEngine] = None,
        notifications: Optional[NotificationService] = None,
        locks: Optional[UserLockRegistry] = None,
    ):
        self._wallets = wallet_storage
        self._users = user_directory
        self._locks = locks or UserLockRegistry()
        self._notifications = notifications or NotificationService()
        self._posting = posting or LedgerPostingService(self._notifications)
        self._budgets = budgets or BudgetService()
        self._transfers = transfer_engine or TransferEngine(
            user_directory, wallet_storage, self._locks
        )
        self._logger = get_logger(__name__)

    # Posting

    def post_income(
        self,
        session: Session,
        amount: Any,
        category_name: str,
        description: Optional[str] = "",
    ) -> OperationResult:
        return self._run(
            "post_income",
            session,
            lambda wallet: self._posting.post_income(
                wallet, amount, self._category(category_name, income=True), description
            ),
        )

    def post_expense(
        self,
        session: Session,
        amount: Any,
        category_name: str,
        description: Optional[str] = "",
    ) -> OperationResult:
        """Post an expense. Budget/balance warnings come back in result.warnings."""
        return self._run(
            "post_expense",
            session,
            lambda wallet: self._posting.post_expense(
                wallet, amount, self._category(category_name, income=False), description
            ),
            collect_warnings=True,
        )

    # Budgets

    def set_budget(self, session: Session, category_name: str, limit: Any) -> OperationResult:
        return self._run(
            "set_budget",
            session,
            lambda wallet: self._budgets.set_budget(wallet, category_name, limit),
        )

    def edit_budget(self, session: Session, category_name: str, new_limit: Any) -> OperationResult:
        return self._run(
            "edit_budget",
            session,
            lambda wallet: self._budgets.edit_budget(wallet, category_name, new_limit),
        )

    def delete_budget(self, session: Session, category_name: str) -> OperationResult:
        """Value is True if a budget was removed, False if there was none."""
        return self._run(
            "delete_budget",
            session,
            lambda wallet: self._budgets.delete_budget(wallet, category_name),
        )

    # Transfers

    def transfer(
        self,
        session: Session,
        recipient_username: str,
        amount: Any,
        description: Optional[str] = None,
    ) -> OperationResult:
        """
        Transfer money to another user.

        The engine saves both wallets itself; a PARTIAL_TRANSFER
        result is critical and must be reconciled by hand.
        """
        recipient = (recipient_username or "").strip()
        return self._run(
            "transfer",
            session,
            lambda wallet: self._transfers.transfer(session, recipient, amount, description),
            also_lock=(recipient,),
            persist=False,
        )

    # Account lifecycle

    def refresh(self, session: Session) -> OperationResult:
        """Reload the session's wallet from storage. Value is the wallet."""
        return self._run("refresh", session, lambda wallet: wallet, persist=False)

    def close_account(
        self,
        session: Session,
        auth_service: Optional[AuthService] = None,
    ) -> OperationResult:
        """
        Irreversibly delete the user's wallet record and directory entry.

        Value is True if a wallet record existed.
        """
        if session is None:
            return OperationResult.failure(ValidationError("Session cannot be null"))

        username = session.username
        try:
            with self._locks.hold(username):
                deleted = self._wallets.delete(username)
                self._users.delete(username)
        except LedgerError as e:
            self._log_failure("close_account", username, e)
            return OperationResult.failure(e)

        if auth_service is not None:
            auth_service.end_sessions_for(username)
        session.wallet = Wallet(username)
        self._logger.warning("account_closed", username=username, wallet_deleted=deleted)
        return OperationResult.ok(deleted)

    # Internals

    def _run(
        self,
        operation: str,
        session: Session,
        action: Callable[[Wallet], Any],
        also_lock: tuple[str, ...] = (),
        persist: bool = True,
        collect_warnings: bool = False,
    ) -> OperationResult:
        if session is None:
            return OperationResult.failure(ValidationError("Session cannot be null"))

        username = session.username
        try:
            with self._locks.hold(username, *also_lock):
                session.wallet = self._wallets.load(username)
                value = action(session.wallet)
                if persist:
                    self._wallets.save(session.wallet)
        except LedgerError as e:
            self._log_failure(operation, username, e)
            if collect_warnings:
                # Warnings of a posting that was not saved are meaningless
                self._notifications.clear_notifications(username)
            return OperationResult.failure(e)

        warnings = (
            self._notifications.get_notifications_and_clear(username)
            if collect_warnings
            else []
        )
        self._logger.debug("operation_succeeded", operation=operation, username=username)
        return OperationResult.ok(value, warnings)

    def _log_failure(self, operation: str, username: str, error: LedgerError) -> None:
        log = self._logger.critical if error.kind == ErrorKind.PARTIAL_TRANSFER else self._logger.warning
        log(
            "operation_failed",
            operation=operation,
            username=username,
            error_kind=error.kind.value,
            error_message=error.message,
            **{f"detail_{k}": v for k, v in error.details.items()},
        )

    @staticmethod
    def _category(name: Optional[str], income: bool) -> Category:
        name = require_category_name(name)
        return Category.income(name) if income else Category.expense(name)


def create_app_components(
    data_dir: Optional[Path] = None,
    bcrypt_rounds: Optional[int] = None,
) -> tuple[AuthService, LedgerFlow, StatisticsService]:
    """
    Factory function to create all application components.

    Args:
        data_dir: Directory for wallet records. Defaults to settings.
        bcrypt_rounds: Password hashing cost. Defaults to settings.

    Returns:
        (auth_service, ledger_flow, statistics_service)
    """
    app_settings = get_settings().app
    configure_logging(app_settings.log_level, app_settings.log_json)

    user_directory = InMemoryUserDirectory()
    wallet_storage = JsonWalletStorage(data_dir=data_dir)
    locks = UserLockRegistry()

    auth_service = AuthService(
        user_directory,
        wallet_storage,
        bcrypt_rounds=bcrypt_rounds,
    )
    ledger_flow = LedgerFlow(
        wallet_storage=wallet_storage,
        user_directory=user_directory,
        locks=locks,
    )

    return auth_service, ledger_flow, StatisticsService()
