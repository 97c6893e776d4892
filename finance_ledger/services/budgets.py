"""
Budget Service

Budgets are always addressed as (name, EXPENSE), whatever kind the
caller had in mind. Setting a budget twice only changes the limit; the
amount already spent is kept.
"""

from decimal import Decimal
from typing import Optional

from finance_ledger.errors import ValidationError
from finance_ledger.logger import get_logger
from finance_ledger.models.ledger import Budget, Category
from finance_ledger.models.wallet import Wallet
from finance_ledger.validation import AmountInput, coerce_limit, require_category_name


class BudgetService:
    """Create, edit, inspect and delete category budgets."""

    def __init__(self):
        self._logger = get_logger(__name__)

    def set_budget(self, wallet: Wallet, category_name: str, limit: AmountInput) -> Budget:
        """
        Create a budget, or overwrite the limit of the existing one.

        Raises:
            ValidationError: on an empty category name or negative limit
        """
        if wallet is None:
            raise ValidationError("Wallet cannot be null")
        name = require_category_name(category_name)
        value = coerce_limit(limit)

        budget = wallet.set_budget(Category.expense(name), value)
        self._logger.info(
            "budget_set",
            user_id=wallet.user_id,
            category=name,
            limit=str(budget.limit),
            spent=str(budget.spent),
        )
        return budget

    def edit_budget(self, wallet: Wallet, category_name: str, new_limit: AmountInput) -> Budget:
        """Same as set_budget: creates the budget if it does not exist yet."""
        return self.set_budget(wallet, category_name, new_limit)

    def get_budget(self, wallet: Wallet, category_name: Optional[str]) -> Optional[Budget]:
        if wallet is None:
            raise ValidationError("Wallet cannot be null")
        category = self._lookup(category_name)
        return wallet.get_budget(category) if category is not None else None

    def delete_budget(self, wallet: Wallet, category_name: Optional[str]) -> bool:
        """
        Remove a budget.

        Returns:
            True if a budget was removed, False if none was set
        """
        if wallet is None:
            raise ValidationError("Wallet cannot be null")
        category = self._lookup(category_name)
        if category is None:
            return False

        removed = wallet.remove_budget(category)
        if removed:
            self._logger.info("budget_deleted", user_id=wallet.user_id, category=category.name)
        return removed

    def is_budget_exceeded(self, budget: Optional[Budget]) -> bool:
        return budget is not None and budget.is_exceeded

    def remaining_budget(self, budget: Optional[Budget]) -> Decimal:
        return budget.remaining if budget is not None else Decimal("0")

    @staticmethod
    def _lookup(category_name: Optional[str]) -> Optional[Category]:
        """Budget key for a name, or None if no budget could have that name."""
        try:
            return Category.expense(require_category_name(category_name))
        except ValidationError:
            return None
