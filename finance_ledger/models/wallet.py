"""
Wallet Aggregate

The wallet is the only owner of a user's money state:
balance, the append-only ledger and the budget map.

INVARIANT: balance == sum(+income) - sum(expense) over the ledger,
immediately after every mutation.

All mutations and reads go through one re-entrant lock, so nobody can
observe a transaction without its balance change (or the reverse).
Read accessors hand out copies; the aggregate is only changed through
post() and the budget methods.
"""

import threading
from decimal import Decimal
from typing import Iterable, Optional

from finance_ledger.models.ledger import (
    ZERO,
    Budget,
    Category,
    Transaction,
    TransactionKind,
)


class Wallet:
    """A user's balance, transaction log and budgets."""

    def __init__(self, user_id: str):
        if user_id is None or not user_id.strip():
            raise ValueError("User ID cannot be empty")
        self._user_id = user_id
        self._balance = ZERO
        self._transactions: list[Transaction] = []
        self._transaction_ids: set[str] = set()
        self._budgets: dict[Category, Budget] = {}
        self._lock = threading.RLock()

    @classmethod
    def restore(
        cls,
        user_id: str,
        balance: Decimal,
        transactions: Iterable[Transaction],
        budgets: Iterable[Budget],
    ) -> "Wallet":
        """
        Rebuild a wallet from durable state.

        Transactions are replayed into the ledger without touching
        budgets (their spent totals are restored as stored).

        Raises:
            ValueError: if the stored balance disagrees with the ledger,
                        or ids/categories are duplicated
        """
        wallet = cls(user_id)
        for transaction in transactions:
            if transaction.id in wallet._transaction_ids:
                raise ValueError(f"Duplicate transaction id: {transaction.id}")
            wallet._transactions.append(transaction)
            wallet._transaction_ids.add(transaction.id)
            wallet._balance += transaction.signed_amount

        for budget in budgets:
            if budget.category in wallet._budgets:
                raise ValueError(f"Duplicate budget for category: {budget.category.name}")
            wallet._budgets[budget.category] = budget.model_copy()

        if wallet._balance != balance:
            raise ValueError(
                f"Stored balance {balance} does not match ledger balance {wallet._balance}"
            )
        return wallet

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def balance(self) -> Decimal:
        with self._lock:
            return self._balance

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        with self._lock:
            return tuple(self._transactions)

    @property
    def budgets(self) -> dict[Category, Budget]:
        with self._lock:
            return {
                category: budget.model_copy()
                for category, budget in self._budgets.items()
            }

    def snapshot(self) -> tuple[Decimal, tuple[Transaction, ...], list[Budget]]:
        """Balance, ledger and budgets read under a single lock hold."""
        with self._lock:
            return (
                self._balance,
                tuple(self._transactions),
                [budget.model_copy() for budget in self._budgets.values()],
            )

    def post(self, transaction: Transaction) -> Transaction:
        """
        Append a transaction and apply it to balance and budgets.

        Expense postings add to the budget of their category, if any.
        All effects are applied together under the wallet lock.
        """
        if transaction is None:
            raise ValueError("Transaction cannot be null")

        with self._lock:
            if transaction.id in self._transaction_ids:
                raise ValueError(f"Transaction already posted: {transaction.id}")

            budget = None
            if transaction.kind == TransactionKind.EXPENSE:
                budget = self._budgets.get(transaction.category)

            self._transactions.append(transaction)
            self._transaction_ids.add(transaction.id)
            self._balance += transaction.signed_amount
            if budget is not None:
                budget.add_spent(transaction.amount)

        return transaction

    def set_budget(self, category: Category, limit: Decimal) -> Budget:
        """Create a budget, or overwrite just the limit of an existing one."""
        if category is None:
            raise ValueError("Category cannot be null")

        with self._lock:
            existing = self._budgets.get(category)
            if existing is not None:
                existing.limit = limit
            else:
                existing = Budget(category=category, limit=limit)
                self._budgets[category] = existing
            return existing.model_copy()

    def get_budget(self, category: Category) -> Optional[Budget]:
        with self._lock:
            budget = self._budgets.get(category)
            return budget.model_copy() if budget is not None else None

    def remove_budget(self, category: Category) -> bool:
        """Remove a budget. Returns False if there was none."""
        with self._lock:
            return self._budgets.pop(category, None) is not None

    def ledger_balance(self) -> Decimal:
        """Recompute the balance from the ledger."""
        with self._lock:
            return sum(
                (t.signed_amount for t in self._transactions),
                start=ZERO,
            )

    def transactions_by_kind(self, kind: TransactionKind) -> list[Transaction]:
        with self._lock:
            return [t for t in self._transactions if t.kind == kind]

    def transactions_by_category(self, category: Category) -> list[Transaction]:
        with self._lock:
            return [t for t in self._transactions if t.category == category]

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"Wallet[user={self._user_id}, balance={self._balance:.2f}, "
                f"transactions={len(self._transactions)}, budgets={len(self._budgets)}]"
            )
