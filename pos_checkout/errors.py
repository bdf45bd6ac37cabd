"""Error types and message constants for the checkout core."""

from typing import Iterable, Optional


class errmsg:
    """Error message constants for the checkout domain."""

    QUANTITY_POSITIVE = "Quantity must be positive"
    PRICE_NEGATIVE = "Unit price cannot be negative"
    AMOUNT_INTEGER = "Amounts must be whole currency units"
    PRODUCT_ID_REQUIRED = "Product ID is required"
    ITEM_NOT_IN_CART = "Item not in cart"
    PERCENTAGE_RANGE = "Percentage must be 0-100"
    FIXED_DISCOUNT_NEGATIVE = "Fixed discount cannot be negative"
    INVALID_DISCOUNT_KIND = "Invalid discount kind"
    DISCOUNT_NEGATIVE = "Discount cannot be negative"
    AMOUNT_NEGATIVE = "Amount cannot be negative"
    MULTIPLIER_NEGATIVE = "Points multiplier cannot be negative"
    DISCOUNT_WINDOW = "Discount valid_from must not be after valid_to"
    DISCOUNT_WINDOW_TIMEZONE = "Discount window bounds must be timezone-aware"
    COUPON_CODE_REQUIRED = "Coupon code is required"
    COUPON_ALREADY_APPLIED = "Coupon already applied"
    SKU_REQUIRED = "SKU is required"
    BARCODE_INPUT_STRING = "Barcode input must be a string"
    BARCODE_LENGTH_POSITIVE = "Barcode length must be positive"
    BARCODE_UNRECOGNIZED = "Barcode format not recognized"
    INVALID_BARCODE_FORMAT = "Invalid barcode format"
    EMAIL_REQUIRED = "Email is required"
    PASSWORD_REQUIRED = "Password is required"
    UNKNOWN_ROLE = "Unknown role"
    SESSION_DURATION_POSITIVE = "Session duration must be positive"
    AUTHORIZATION_REQUIRED = "Manager authorization required for manual discount"
    INVALID_CREDENTIALS = "Invalid credentials"
    ROLE_NOT_ALLOWED = "Role not permitted to authorize discounts"
    POINTS_NEGATIVE = "Points cannot be negative"
    RATE_POSITIVE = "Points per currency unit must be positive"
    CAP_RANGE = "Redemption cap must be between 0 and 1"
    BELOW_MINIMUM_REDEMPTION = "Minimum redemption is {minimum} points"
    EXCEEDS_BALANCE = "Insufficient points: have {balance}, need {points}"
    EXCEEDS_CAP = "At most {cap} points can be redeemed on this order"
    BELOW_MINIMUM_ORDER = "Order must be at least {minimum} to redeem points"
    REDEMPTION_DISABLED = "Points redemption is not enabled"
    CUSTOMER_REQUIRED = "A loyalty customer is required to redeem points"
    STACKING_ORDER_INVALID = "Stacking order must name each discount exactly once"


class CheckoutError(Exception):
    """Base class for checkout errors.

    ``kind`` is a stable machine-readable tag; ``message`` is meant for people.
    """

    kind = "checkout_error"

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class ValidationError(CheckoutError):
    """Malformed caller input (quantity, price, barcode, config)."""

    kind = "validation"


class AuthorizationRequired(CheckoutError):
    """A privileged action was attempted without an active manager session."""

    kind = "authorization_required"

    def __init__(self, message: str = errmsg.AUTHORIZATION_REQUIRED):
        super().__init__(message)


class InvalidCredentials(CheckoutError):
    """The credential verifier rejected the email/password pair."""

    kind = "invalid_credentials"

    def __init__(self, message: str = errmsg.INVALID_CREDENTIALS, cause: Optional[Exception] = None):
        super().__init__(message, cause)


class RoleNotAllowed(CheckoutError):
    """The verified identity holds none of the allow-listed roles."""

    kind = "role_not_allowed"

    def __init__(self, roles: Iterable[str], allowed: Iterable[str]):
        self.roles = tuple(sorted(roles))
        self.allowed = tuple(sorted(allowed))
        super().__init__(
            f"{errmsg.ROLE_NOT_ALLOWED}: have [{', '.join(self.roles)}], "
            f"need one of [{', '.join(self.allowed)}]"
        )


class RedemptionPolicyViolation(CheckoutError):
    """A points redemption broke one of the loyalty policy bounds.

    ``points`` is the requested amount and ``bound`` the limit it crossed.
    """

    kind = "redemption_policy"

    def __init__(self, message: str, points: int, bound: int):
        super().__init__(message)
        self.points = points
        self.bound = bound


class BelowMinimumRedemption(RedemptionPolicyViolation):
    kind = "below_minimum_redemption"

    def __init__(self, points: int, minimum: int):
        super().__init__(errmsg.BELOW_MINIMUM_REDEMPTION.format(minimum=minimum), points, minimum)


class ExceedsBalance(RedemptionPolicyViolation):
    kind = "exceeds_balance"

    def __init__(self, points: int, balance: int):
        super().__init__(
            errmsg.EXCEEDS_BALANCE.format(balance=balance, points=points), points, balance
        )


class ExceedsCap(RedemptionPolicyViolation):
    kind = "exceeds_cap"

    def __init__(self, points: int, cap: int):
        super().__init__(errmsg.EXCEEDS_CAP.format(cap=cap), points, cap)


class BelowMinimumOrder(RedemptionPolicyViolation):
    kind = "below_minimum_order"

    def __init__(self, points: int, minimum: int):
        super().__init__(errmsg.BELOW_MINIMUM_ORDER.format(minimum=minimum), points, minimum)


class RedemptionDisabled(RedemptionPolicyViolation):
    kind = "redemption_disabled"

    def __init__(self, points: int):
        super().__init__(errmsg.REDEMPTION_DISABLED, points, 0)
