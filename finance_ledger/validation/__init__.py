"""Input validation package."""

from finance_ledger.validation.validator import (
    AmountInput,
    InputValidator,
    coerce_amount,
    coerce_limit,
    require_category_name,
)

__all__ = [
    "AmountInput",
    "InputValidator",
    "coerce_amount",
    "coerce_limit",
    "require_category_name",
]
