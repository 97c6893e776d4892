"""
Durable Wallet Record Format

One JSON document per user:

    {
      "userId": "alice",
      "balance": 4500.00,
      "transactions": [
        {"id", "amount", "category", "type", "date", "description"}, ...
      ],
      "budgets": [
        {"category", "categoryType", "limit", "spent"}, ...
      ]
    }

- type/categoryType are "INCOME" / "EXPENSE"
- date is an ISO-8601 local timestamp without timezone
- amounts are JSON numbers written digit for digit from the Decimal and
  parsed back as Decimal; no amount ever passes through float

ROUND-TRIP: from_wallet -> to_json -> from_json -> to_wallet reproduces
balance, transactions (same order) and budgets (same order).
"""

from datetime import datetime
from decimal import Decimal

import simplejson
from pydantic import BaseModel, ConfigDict, Field

from finance_ledger.models.ledger import (
    Budget,
    Category,
    Transaction,
    TransactionKind,
)
from finance_ledger.models.wallet import Wallet


def _encode_other(value):
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Cannot store {type(value).__name__} in a wallet record")


class TransactionRecord(BaseModel):
    """One ledger entry as stored."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    amount: Decimal
    category: str
    type: TransactionKind
    date: datetime
    description: str = ""

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionRecord":
        return cls(
            id=transaction.id,
            amount=transaction.amount,
            category=transaction.category.name,
            type=transaction.kind,
            date=transaction.timestamp,
            description=transaction.description,
        )

    def to_transaction(self) -> Transaction:
        return Transaction(
            id=self.id,
            amount=self.amount,
            category=Category(name=self.category, kind=self.type),
            kind=self.type,
            timestamp=self.date,
            description=self.description,
        )


class BudgetRecord(BaseModel):
    """One budget as stored."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category: str
    category_type: TransactionKind = Field(alias="categoryType")
    limit: Decimal
    spent: Decimal = Decimal("0")

    @classmethod
    def from_budget(cls, budget: Budget) -> "BudgetRecord":
        return cls(
            category=budget.category.name,
            category_type=budget.category.kind,
            limit=budget.limit,
            spent=budget.spent,
        )

    def to_budget(self) -> Budget:
        return Budget(
            category=Category(name=self.category, kind=self.category_type),
            limit=self.limit,
            spent=self.spent,
        )


class WalletRecord(BaseModel):
    """The whole durable record of one wallet."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)
    balance: Decimal
    transactions: list[TransactionRecord] = Field(default_factory=list)
    budgets: list[BudgetRecord] = Field(default_factory=list)

    @classmethod
    def from_wallet(cls, wallet: Wallet) -> "WalletRecord":
        balance, transactions, budgets = wallet.snapshot()
        return cls(
            user_id=wallet.user_id,
            balance=balance,
            transactions=[TransactionRecord.from_transaction(t) for t in transactions],
            budgets=[BudgetRecord.from_budget(b) for b in budgets],
        )

    def to_wallet(self) -> Wallet:
        """
        Rebuild the wallet.

        Raises:
            ValueError: if any entry is invalid or the balance disagrees
                        with the ledger
        """
        return Wallet.restore(
            user_id=self.user_id,
            balance=self.balance,
            transactions=[r.to_transaction() for r in self.transactions],
            budgets=[r.to_budget() for r in self.budgets],
        )

    def to_json(self) -> str:
        return simplejson.dumps(
            self.model_dump(by_alias=True),
            use_decimal=True,
            default=_encode_other,
            indent=2,
        )

    @classmethod
    def from_json(cls, text: str) -> "WalletRecord":
        """
        Parse a stored document.

        Raises:
            ValueError: on malformed JSON or schema violations
        """
        data = simplejson.loads(text, use_decimal=True)
        return cls.model_validate(data)
