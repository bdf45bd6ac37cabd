"""Environment configuration and logging setup."""

import logging
import os
from dataclasses import dataclass

import structlog

from .authorization import DEFAULT_SESSION_DURATION_MINUTES
from .errors import ValidationError, errmsg
from .pricing import DEFAULT_STACKING_ORDER, DiscountComponent, parse_stacking_order
from .roles import DISCOUNT_ALLOWED_ROLES, RoleSet
from .validation import require_positive

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "info") -> None:
    """Configure structlog with JSON rendering and ISO timestamps."""
    try:
        min_level = LOG_LEVELS[level.lower()]
    except KeyError:
        raise ValidationError(f"Unknown log level: {level!r}") from None
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


@dataclass(frozen=True)
class CheckoutConfig:
    session_duration_minutes: float = DEFAULT_SESSION_DURATION_MINUTES
    allowed_roles: RoleSet = DISCOUNT_ALLOWED_ROLES
    stacking_order: tuple[DiscountComponent, ...] = DEFAULT_STACKING_ORDER
    log_level: str = "info"


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def get_checkout_config() -> CheckoutConfig:
    """Get checkout configuration from environment.

    Environment variables:
        POS_SESSION_DURATION_MINUTES: Manager session TTL (default: 30)
        POS_DISCOUNT_ALLOWED_ROLES: Comma-separated roles that may authorize
            manual discounts (default: admin, superadmin, manager,
            store-manager, branch_manager)
        POS_DISCOUNT_STACKING_ORDER: Comma-separated discount order
            (default: manual,coupon,tier,redemption)
        POS_LOG_LEVEL: debug, info, warning or error (default: info)

    Raises:
        ValidationError: a variable is set to an invalid value.
    """
    duration_raw = os.environ.get("POS_SESSION_DURATION_MINUTES")
    duration: float = DEFAULT_SESSION_DURATION_MINUTES
    if duration_raw:
        try:
            duration = float(duration_raw)
        except ValueError:
            raise ValidationError(f"{errmsg.SESSION_DURATION_POSITIVE}: {duration_raw!r}") from None
        require_positive(duration, errmsg.SESSION_DURATION_POSITIVE)

    roles_raw = os.environ.get("POS_DISCOUNT_ALLOWED_ROLES")
    allowed_roles = DISCOUNT_ALLOWED_ROLES
    if roles_raw:
        allowed_roles = RoleSet.from_names(_split(roles_raw), strict=True)

    order_raw = os.environ.get("POS_DISCOUNT_STACKING_ORDER")
    stacking_order = DEFAULT_STACKING_ORDER
    if order_raw:
        stacking_order = parse_stacking_order(_split(order_raw))

    log_level = os.environ.get("POS_LOG_LEVEL", "info").lower()
    if log_level not in LOG_LEVELS:
        raise ValidationError(f"Unknown log level: {log_level!r}")

    return CheckoutConfig(
        session_duration_minutes=duration,
        allowed_roles=allowed_roles,
        stacking_order=stacking_order,
        log_level=log_level,
    )
