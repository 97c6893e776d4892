"""
Budget and Balance Notifications

A side channel of expense posting: after an expense lands, the sink
looks at the affected budget and the wallet balance and produces
human-readable warnings.

IMPORTANT: The sink must never break a posting. The posting service
calls it after the ledger has changed and logs (but does not raise)
any failure coming out of it.
"""

import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from decimal import Decimal
from typing import Optional

from finance_ledger.config import get_settings
from finance_ledger.logger import get_logger
from finance_ledger.models.ledger import Budget, Category, TransactionKind
from finance_ledger.models.wallet import Wallet


class NotificationSink(ABC):
    """Receives posting events and turns them into warnings."""

    @abstractmethod
    def check_after_expense(self, wallet: Wallet, category: Category, amount: Decimal) -> None:
        pass

    @abstractmethod
    def check_balance_status(self, wallet: Wallet) -> None:
        pass


class NotificationService(NotificationSink):
    """
    Collects warnings per user.

    Warnings are kept until the user's caller drains them with
    get_notifications_and_clear().
    """

    def __init__(self, warning_threshold: Optional[float] = None):
        if warning_threshold is None:
            warning_threshold = get_settings().ledger.budget_warning_threshold
        self._warning_threshold = warning_threshold
        self._notifications: dict[str, list[str]] = defaultdict(list)
        self._lock = threading.Lock()
        self._logger = get_logger(__name__)

    def check_after_expense(self, wallet: Wallet, category: Category, amount: Decimal) -> None:
        budget = wallet.get_budget(category)
        if budget is not None:
            self.check_budget_limit(wallet.user_id, budget)

        self.check_balance_status(wallet)

    def check_budget_limit(self, user_id: str, budget: Budget) -> None:
        """Warn when a budget is exceeded or at/over the warning threshold."""
        if budget is None:
            return

        usage = budget.usage_percentage
        if budget.is_exceeded:
            self._add(
                user_id,
                f"⚠️  BUDGET EXCEEDED: Category '{budget.category.name}' - "
                f"Spent: {budget.spent:.2f}, Limit: {budget.limit:.2f}, "
                f"Over by: {budget.spent - budget.limit:.2f}",
            )
        elif usage >= self._warning_threshold * 100:
            self._add(
                user_id,
                f"⚠️  BUDGET WARNING: Category '{budget.category.name}' is at "
                f"{usage:.1f}% ({budget.spent:.2f} / {budget.limit:.2f})",
            )

    def check_balance_status(self, wallet: Wallet) -> None:
        """Warn on a negative balance or when expenses exceed income."""
        balance = wallet.balance
        if balance < 0:
            self._add(
                wallet.user_id,
                f"⚠️  NEGATIVE BALANCE: Current balance is {balance:.2f}",
            )

        total_income = sum(
            (t.amount for t in wallet.transactions_by_kind(TransactionKind.INCOME)),
            start=Decimal("0"),
        )
        total_expenses = sum(
            (t.amount for t in wallet.transactions_by_kind(TransactionKind.EXPENSE)),
            start=Decimal("0"),
        )
        if total_expenses > total_income and total_income > 0:
            self._add(
                wallet.user_id,
                f"⚠️  EXPENSES EXCEED INCOME: Expenses: {total_expenses:.2f}, "
                f"Income: {total_income:.2f}",
            )

    def _add(self, user_id: str, message: str) -> None:
        with self._lock:
            self._notifications[user_id].append(message)
        self._logger.warning("notification", user_id=user_id, message=message)

    def get_notifications(self, user_id: str) -> list[str]:
        with self._lock:
            return list(self._notifications.get(user_id, []))

    def get_notifications_and_clear(self, user_id: str) -> list[str]:
        with self._lock:
            return self._notifications.pop(user_id, [])

    def clear_notifications(self, user_id: Optional[str] = None) -> None:
        with self._lock:
            if user_id is None:
                self._notifications.clear()
            else:
                self._notifications.pop(user_id, None)
