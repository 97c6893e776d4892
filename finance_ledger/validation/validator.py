"""
Input Validation

DESIGN DECISION: Every value entering the ledger passes through one of
these checks BEFORE anything is mutated. A failed check raises
ValidationError and leaves all state untouched.

IMPORTANT: Validation NEVER silently fixes issues. An amount with more
than two decimal places is rejected, not rounded. The only
normalisations are trimming whitespace and writing amounts with
exactly two decimal places.
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from finance_ledger.config import get_settings
from finance_ledger.errors import ValidationError


CENT = Decimal("0.01")

MAX_CATEGORY_NAME_LENGTH = 100

AmountInput = Union[Decimal, int, float, str]

_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


def _to_decimal(value: AmountInput, field: str) -> Decimal:
    """Convert user or caller input to Decimal without float drift."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field.capitalize()} cannot be empty")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        # str() keeps the shortest representation: 0.1 -> "0.1"
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError(f"{field.capitalize()} cannot be empty")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"Invalid {field} format: {value}")
    else:
        raise ValidationError(f"Invalid {field} type: {type(value).__name__}")

    if not amount.is_finite():
        raise ValidationError(f"{field.capitalize()} must be a finite number")
    return amount


def _check_precision(amount: Decimal, field: str, max_amount: Optional[Decimal]) -> Decimal:
    ceiling = max_amount if max_amount is not None else get_settings().ledger.max_amount
    if amount > ceiling:
        raise ValidationError(f"{field.capitalize()} exceeds the maximum of {ceiling}")

    quantized = amount.quantize(CENT)
    if quantized != amount:
        raise ValidationError(f"{field.capitalize()} must have at most 2 decimal places")
    return quantized


def coerce_amount(
    value: AmountInput,
    field: str = "amount",
    max_amount: Optional[Decimal] = None,
) -> Decimal:
    """
    Validate a posting or transfer amount.

    Returns:
        The amount as a Decimal with two decimal places

    Raises:
        ValidationError: if missing, malformed, not positive or too precise
    """
    amount = _to_decimal(value, field)
    if amount <= 0:
        raise ValidationError(f"{field.capitalize()} must be positive")
    return _check_precision(amount, field, max_amount)


def coerce_limit(
    value: AmountInput,
    max_amount: Optional[Decimal] = None,
) -> Decimal:
    """Validate a budget limit (zero is allowed)."""
    limit = _to_decimal(value, "budget limit")
    if limit < 0:
        raise ValidationError("Budget limit cannot be negative")
    return _check_precision(limit, "budget limit", max_amount)


def require_category_name(name: Optional[str]) -> str:
    """Trim a category name and reject it if empty or too long."""
    if name is None or not str(name).strip():
        raise ValidationError("Category name cannot be empty")
    trimmed = str(name).strip()
    if len(trimmed) > MAX_CATEGORY_NAME_LENGTH:
        raise ValidationError(
            f"Category name must be at most {MAX_CATEGORY_NAME_LENGTH} characters"
        )
    return trimmed


class InputValidator:
    """
    Checks raw text coming from the user interface.

    Wraps the coercion helpers above and adds the account rules
    (username/password) and date parsing used by period reports.
    """

    def __init__(
        self,
        min_password_length: Optional[int] = None,
        username_min_length: Optional[int] = None,
        username_max_length: Optional[int] = None,
    ):
        auth = get_settings().auth
        self._min_password_length = min_password_length or auth.min_password_length
        self._username_min = username_min_length or auth.username_min_length
        self._username_max = username_max_length or auth.username_max_length

    @property
    def min_password_length(self) -> int:
        return self._min_password_length

    @property
    def username_min_length(self) -> int:
        return self._username_min

    @property
    def username_max_length(self) -> int:
        return self._username_max

    def validate_amount(self, text: AmountInput) -> Decimal:
        return coerce_amount(text)

    def validate_limit(self, text: AmountInput) -> Decimal:
        return coerce_limit(text)

    def validate_category(self, name: Optional[str]) -> str:
        return require_category_name(name)

    def validate_username(self, username: Optional[str]) -> bool:
        """3-20 alphanumeric characters by default."""
        if username is None:
            return False
        trimmed = username.strip()
        return (
            self._username_min <= len(trimmed) <= self._username_max
            and bool(_USERNAME_PATTERN.match(trimmed))
        )

    def validate_password(self, password: Optional[str]) -> bool:
        return password is not None and len(password) >= self._min_password_length

    def validate_date(self, text: Optional[str]) -> datetime:
        """
        Parse a yyyy-mm-dd date as local midnight.

        Raises:
            ValidationError: if empty or not in yyyy-mm-dd format
        """
        if text is None or not text.strip():
            raise ValidationError("Date cannot be empty")
        try:
            return datetime.strptime(text.strip(), "%Y-%m-%d")
        except ValueError:
            raise ValidationError("Invalid date format. Use: yyyy-mm-dd")
