"""
Core Ledger Models

These models define the value types every posting is made of:
1. TransactionKind - income or expense
2. Category - a (name, kind) pair
3. Transaction - an immutable ledger entry
4. Budget - a per-category spending limit with cumulative spent

DESIGN DECISION: Amounts are Decimal with at most two decimal places.
A value with more precision is rejected, never rounded.

NOTE: Category identity is the (name, kind) pair. "Food" as INCOME and
"Food" as EXPENSE are two different categories.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


ZERO = Decimal("0")


class TransactionKind(str, Enum):
    """
    Direction of a posting.

    The value is the name written to the durable record.
    """
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Category(BaseModel):
    """
    Classifies a transaction or budget.

    Immutable and hashable, so it can key the wallet's budget map.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name (trimmed, non-empty)"
    )
    kind: TransactionKind = Field(
        default=TransactionKind.EXPENSE,
        description="Transaction kind this category belongs to"
    )

    @field_validator('kind', mode='before')
    @classmethod
    def default_missing_kind(cls, v):
        return TransactionKind.EXPENSE if v is None else v

    @classmethod
    def income(cls, name: str) -> "Category":
        return cls(name=name, kind=TransactionKind.INCOME)

    @classmethod
    def expense(cls, name: str) -> "Category":
        return cls(name=name, kind=TransactionKind.EXPENSE)

    def with_kind(self, kind: TransactionKind) -> "Category":
        """Same name, given kind."""
        if self.kind == kind:
            return self
        return Category(name=self.name, kind=kind)

    def __str__(self) -> str:
        return self.name


class Transaction(BaseModel):
    """
    A single ledger entry.

    CRITICAL: Transactions are never mutated or removed.
    Correcting a mistake means posting a compensating entry.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        description="Unique transaction ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Positive amount"
    )
    category: Category
    kind: TransactionKind
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="Local time of the posting (no timezone)"
    )
    description: str = Field(
        default="",
        max_length=500,
    )

    @field_validator('description', mode='before')
    @classmethod
    def default_missing_description(cls, v: Optional[str]) -> str:
        return "" if v is None else v

    @model_validator(mode='after')
    def validate_category_kind(self) -> 'Transaction':
        """A transaction is always filed under a category of its own kind."""
        if self.category.kind != self.kind:
            raise ValueError(
                f"Category '{self.category.name}' is {self.category.kind.value}, "
                f"transaction is {self.kind.value}"
            )
        return self

    @property
    def signed_amount(self) -> Decimal:
        """+amount for income, -amount for expense."""
        return self.amount if self.kind == TransactionKind.INCOME else -self.amount

    def __str__(self) -> str:
        return (
            f"{self.kind.value}: {self.amount:.2f} ({self.category.name}) "
            f"- {self.description} [{self.timestamp.isoformat()}]"
        )


class Budget(BaseModel):
    """
    Spending limit for one category.

    The limit may be edited; spent only grows through postings and
    goes back to zero only through an explicit reset().
    """
    model_config = ConfigDict(validate_assignment=True)

    category: Category = Field(..., frozen=True)
    limit: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Maximum amount allowed for this category"
    )
    spent: Decimal = Field(
        default=ZERO,
        ge=0,
        decimal_places=2,
        description="Cumulative amount posted against this budget"
    )

    def add_spent(self, amount: Decimal) -> None:
        if amount < 0:
            raise ValueError("Cannot add negative amount to spent")
        self.spent = self.spent + amount

    def reset(self) -> None:
        self.spent = ZERO

    @property
    def remaining(self) -> Decimal:
        """Remaining budget (negative once exceeded)."""
        return self.limit - self.spent

    @property
    def is_exceeded(self) -> bool:
        return self.spent > self.limit

    @property
    def usage_percentage(self) -> float:
        """Percentage of the limit used (0-100+)."""
        if self.limit == 0:
            return 100.0 if self.spent > 0 else 0.0
        return float(self.spent / self.limit * 100)

    def __str__(self) -> str:
        return (
            f"{self.category.name}: {self.spent:.2f} / {self.limit:.2f} "
            f"({self.usage_percentage:.1f}%)"
        )
