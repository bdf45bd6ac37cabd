"""Checkout computation core for point-of-sale terminals."""

from .errors import (
    CheckoutError,
    ValidationError,
    AuthorizationRequired,
    InvalidCredentials,
    RoleNotAllowed,
    RedemptionPolicyViolation,
    BelowMinimumRedemption,
    ExceedsBalance,
    ExceedsCap,
    BelowMinimumOrder,
    RedemptionDisabled,
)
from .barcode import (
    BarcodeFormat,
    generate_ean13,
    generate_upca,
    validate_ean13,
    validate_upca,
    generate_code128,
    generate_product_barcode,
    detect_format,
    format_barcode_display,
)
from .clock import Clock, SystemClock, FrozenClock
from .roles import Role, RoleSet, DISCOUNT_ALLOWED_ROLES
from .authorization import (
    Identity,
    CredentialVerifier,
    DiscountAuthorization,
    ManagerAuthorizationSession,
    AuthorizationRegistry,
)
from .cart import Cart, LineItem, ProductDiscount, DiscountKind
from .loyalty import (
    RedemptionRequest,
    RedemptionPolicy,
    Redemption,
    EarnRule,
    RoundingMode,
    MembershipTier,
    MembershipConfig,
    LoyaltyAccount,
    max_redeemable_points,
    estimate_discount,
    validate_redemption,
    is_valid_card_id,
)
from .pricing import (
    DiscountComponent,
    DEFAULT_STACKING_ORDER,
    CouponDiscount,
    TierDiscount,
    PricedLine,
    PriceBreakdown,
    PricingEngine,
    price_cart,
)
from .config import CheckoutConfig, configure_logging, get_checkout_config
from .terminal import CheckoutTerminal

__all__ = [
    # Errors
    "CheckoutError",
    "ValidationError",
    "AuthorizationRequired",
    "InvalidCredentials",
    "RoleNotAllowed",
    "RedemptionPolicyViolation",
    "BelowMinimumRedemption",
    "ExceedsBalance",
    "ExceedsCap",
    "BelowMinimumOrder",
    "RedemptionDisabled",
    # Barcodes
    "BarcodeFormat",
    "generate_ean13",
    "generate_upca",
    "validate_ean13",
    "validate_upca",
    "generate_code128",
    "generate_product_barcode",
    "detect_format",
    "format_barcode_display",
    # Time
    "Clock",
    "SystemClock",
    "FrozenClock",
    # Authorization
    "Role",
    "RoleSet",
    "DISCOUNT_ALLOWED_ROLES",
    "Identity",
    "CredentialVerifier",
    "DiscountAuthorization",
    "ManagerAuthorizationSession",
    "AuthorizationRegistry",
    # Cart and pricing
    "Cart",
    "LineItem",
    "ProductDiscount",
    "DiscountKind",
    "DiscountComponent",
    "DEFAULT_STACKING_ORDER",
    "CouponDiscount",
    "TierDiscount",
    "PricedLine",
    "PriceBreakdown",
    "PricingEngine",
    "price_cart",
    # Loyalty
    "RedemptionRequest",
    "RedemptionPolicy",
    "Redemption",
    "EarnRule",
    "RoundingMode",
    "MembershipTier",
    "MembershipConfig",
    "LoyaltyAccount",
    "max_redeemable_points",
    "estimate_discount",
    "validate_redemption",
    "is_valid_card_id",
    # Configuration
    "CheckoutConfig",
    "configure_logging",
    "get_checkout_config",
    "CheckoutTerminal",
]
