"""Validation helpers for input precondition checks.

Eliminates repeated validation boilerplate across the cart, pricing and
loyalty modules.
"""

from decimal import Decimal
from numbers import Real

from .errors import ValidationError


def require_present(field: str, error_msg: str) -> None:
    """Require that a string field is non-empty."""
    if not field:
        raise ValidationError(error_msg)


def require_int(value: object, error_msg: str) -> None:
    """Require an integer value (bools are rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(error_msg)


def require_number(value: object, error_msg: str) -> None:
    """Require a real number (bools are rejected)."""
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        raise ValidationError(error_msg)


def require_positive(value: Real, error_msg: str) -> None:
    """Require that a value is greater than zero."""
    require_number(value, error_msg)
    if value <= 0:
        raise ValidationError(error_msg)


def require_non_negative(value: Real, error_msg: str) -> None:
    """Require that a value is zero or greater."""
    require_number(value, error_msg)
    if value < 0:
        raise ValidationError(error_msg)


def require_range(value: Real, low: Real, high: Real, error_msg: str) -> None:
    """Require ``low <= value <= high``."""
    require_number(value, error_msg)
    if value < low or value > high:
        raise ValidationError(error_msg)


def require_str(value: object, error_msg: str) -> None:
    """Require a ``str`` value (may be empty)."""
    if not isinstance(value, str):
        raise ValidationError(error_msg)
