"""
Statistics Service

Read-only aggregations over a wallet's ledger and budgets.
Nothing here mutates a wallet.

Category filters work on names only: asking for "Food" matches every
transaction filed under a category called "Food" of the requested kind.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from finance_ledger.models.ledger import ZERO, Budget, Category, Transaction, TransactionKind
from finance_ledger.models.wallet import Wallet


class StatisticsService:
    """Totals, per-category sums and period filters."""

    def total_income(self, wallet: Wallet) -> Decimal:
        return self._total(wallet.transactions_by_kind(TransactionKind.INCOME))

    def total_expenses(self, wallet: Wallet) -> Decimal:
        return self._total(wallet.transactions_by_kind(TransactionKind.EXPENSE))

    def income_by_category(self, wallet: Wallet) -> dict[Category, Decimal]:
        return self._group(wallet.transactions_by_kind(TransactionKind.INCOME))

    def expenses_by_category(self, wallet: Wallet) -> dict[Category, Decimal]:
        return self._group(wallet.transactions_by_kind(TransactionKind.EXPENSE))

    def budget_summary(self, wallet: Wallet) -> dict[Category, Budget]:
        """Copies of all budgets with their current spent totals."""
        return wallet.budgets

    def income_by_categories(self, wallet: Wallet, names: Optional[Iterable[str]]) -> Decimal:
        """Total income over the named categories (0 for no names)."""
        return self._total_for_names(wallet, TransactionKind.INCOME, names)

    def expenses_by_categories(self, wallet: Wallet, names: Optional[Iterable[str]]) -> Decimal:
        """Total expenses over the named categories (0 for no names)."""
        return self._total_for_names(wallet, TransactionKind.EXPENSE, names)

    def transactions_by_period(
        self,
        wallet: Wallet,
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> list[Transaction]:
        """
        Transactions with start <= timestamp <= end, in ledger order.

        If either bound is None, the whole ledger is returned.
        """
        transactions = list(wallet.transactions)
        if start is None or end is None:
            return transactions
        return [t for t in transactions if start <= t.timestamp <= end]

    def find_missing_categories(
        self,
        wallet: Wallet,
        names: Optional[Iterable[str]],
    ) -> list[str]:
        """
        Requested names that no transaction in the wallet uses.

        Names are compared trimmed but returned as given.
        """
        if names is None:
            return []
        used = {t.category.name for t in wallet.transactions}
        return [name for name in names if name.strip() not in used]

    def _total_for_names(
        self,
        wallet: Wallet,
        kind: TransactionKind,
        names: Optional[Iterable[str]],
    ) -> Decimal:
        wanted = {name.strip() for name in names or []}
        if not wanted:
            return ZERO
        return self._total(
            t for t in wallet.transactions_by_kind(kind) if t.category.name in wanted
        )

    @staticmethod
    def _total(transactions: Iterable[Transaction]) -> Decimal:
        return sum((t.amount for t in transactions), start=ZERO)

    @staticmethod
    def _group(transactions: Iterable[Transaction]) -> dict[Category, Decimal]:
        totals: dict[Category, Decimal] = defaultdict(lambda: ZERO)
        for transaction in transactions:
            totals[transaction.category] += transaction.amount
        return dict(totals)
