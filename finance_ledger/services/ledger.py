"""
Ledger Posting Service

Validates and posts income and expense entries to a wallet.

FLOW:
1. Validate amount and category (ValidationError, nothing mutated)
2. Normalise the category kind to match the operation
3. Post the transaction (ledger, balance and budget change together)
4. Expenses only: inform the notification sink

A category of the wrong kind is not an error: income posted to an
EXPENSE-kind "Bonus" category is filed under ("Bonus", INCOME).
"""

from decimal import Decimal
from typing import Optional

from pydantic import ValidationError as SchemaValidationError

from finance_ledger.errors import ValidationError
from finance_ledger.logger import get_logger
from finance_ledger.models.ledger import Category, Transaction, TransactionKind
from finance_ledger.models.wallet import Wallet
from finance_ledger.services.notifications import NotificationSink
from finance_ledger.validation import AmountInput, coerce_amount


class LedgerPostingService:
    """Posts income and expenses to wallets."""

    def __init__(self, notification_sink: Optional[NotificationSink] = None):
        self._notifications = notification_sink
        self._logger = get_logger(__name__)

    def post_income(
        self,
        wallet: Wallet,
        amount: AmountInput,
        category: Category,
        description: Optional[str] = "",
    ) -> Transaction:
        """
        Post an income entry.

        Returns:
            The created transaction

        Raises:
            ValidationError: on a bad amount or missing category
        """
        return self._post(wallet, amount, category, description, TransactionKind.INCOME)

    def post_expense(
        self,
        wallet: Wallet,
        amount: AmountInput,
        category: Category,
        description: Optional[str] = "",
    ) -> Transaction:
        """
        Post an expense entry and update the category's budget, if any.

        Returns:
            The created transaction

        Raises:
            ValidationError: on a bad amount or missing category
        """
        transaction = self._post(wallet, amount, category, description, TransactionKind.EXPENSE)
        self._notify_expense(wallet, transaction.category, transaction.amount)
        return transaction

    def _post(
        self,
        wallet: Wallet,
        amount: AmountInput,
        category: Category,
        description: Optional[str],
        kind: TransactionKind,
    ) -> Transaction:
        if wallet is None:
            raise ValidationError("Wallet cannot be null")
        value = coerce_amount(amount)
        if category is None:
            raise ValidationError("Category cannot be null")
        if not category.name or not category.name.strip():
            raise ValidationError("Category name cannot be empty")

        try:
            transaction = Transaction(
                amount=value,
                category=category.with_kind(kind),
                kind=kind,
                description=description or "",
            )
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid transaction: {e.errors()[0]['msg']}") from e
        wallet.post(transaction)

        self._logger.info(
            "income_posted" if kind == TransactionKind.INCOME else "expense_posted",
            user_id=wallet.user_id,
            transaction_id=transaction.id,
            amount=str(transaction.amount),
            category=transaction.category.name,
            balance=str(wallet.balance),
        )
        return transaction

    def _notify_expense(self, wallet: Wallet, category: Category, amount: Decimal) -> None:
        if self._notifications is None:
            return
        try:
            self._notifications.check_after_expense(wallet, category, amount)
        except Exception as e:
            # Notifications are a side channel; the posting already happened
            self._logger.error(
                "notification_failed",
                user_id=wallet.user_id,
                category=category.name,
                error=str(e),
            )
