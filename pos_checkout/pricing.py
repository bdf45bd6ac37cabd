"""Cart pricing: subtotal, stacked discounts, total and points to earn.

Business Rules:
1. A line's unit price is base price plus variant modifier, never below zero
2. A catalog discount applies only inside its validity window
3. Every order-level discount is computed against the subtotal and clamped
   to what the earlier discounts left over
4. Manual discounts need an active manager authorization when they are set
5. Only one coupon per cart
6. The total never goes below zero
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from numbers import Real
from typing import Optional

import structlog

from .amounts import clamp, percent_of, to_decimal, to_int
from .authorization import AuthorizationCheck
from .cart import Cart, DiscountKind, LineItem, validate_discount_value
from .clock import Clock, SystemClock
from .errors import AuthorizationRequired, RedemptionPolicyViolation, RedemptionDisabled, ValidationError, errmsg
from .loyalty import (
    NO_REDEMPTION,
    EarnRule,
    LoyaltyAccount,
    MembershipConfig,
    MembershipTier,
    Redemption,
    RedemptionPolicy,
)
from .validation import require_int, require_non_negative, require_present


class DiscountComponent(str, Enum):
    MANUAL = "manual"
    COUPON = "coupon"
    TIER = "tier"
    REDEMPTION = "redemption"


DEFAULT_STACKING_ORDER: tuple[DiscountComponent, ...] = (
    DiscountComponent.MANUAL,
    DiscountComponent.COUPON,
    DiscountComponent.TIER,
    DiscountComponent.REDEMPTION,
)


def parse_stacking_order(names: Iterable["str | DiscountComponent"]) -> tuple[DiscountComponent, ...]:
    """Validate a stacking order; every component must appear exactly once."""
    try:
        order = tuple(DiscountComponent(str(getattr(n, "value", n)).strip().lower()) for n in names)
    except ValueError:
        raise ValidationError(errmsg.STACKING_ORDER_INVALID) from None
    if sorted(order) != sorted(DiscountComponent):
        raise ValidationError(errmsg.STACKING_ORDER_INVALID)
    return order


def order_discount_amount(subtotal: int, kind: DiscountKind, value: Real) -> int:
    """Requested discount on the whole order, before clamping."""
    if kind is DiscountKind.PERCENTAGE:
        return percent_of(subtotal, value)
    return to_int(to_decimal(value))


@dataclass(frozen=True)
class CouponDiscount:
    code: str
    kind: DiscountKind
    value: Real

    def __post_init__(self) -> None:
        require_present(self.code, errmsg.COUPON_CODE_REQUIRED)
        object.__setattr__(self, "kind", DiscountKind.parse(self.kind))
        validate_discount_value(self.kind, self.value)

    def amount(self, subtotal: int) -> int:
        return order_discount_amount(subtotal, self.kind, self.value)


@dataclass(frozen=True)
class TierDiscount:
    """Discount granted by the customer's loyalty tier."""

    kind: DiscountKind
    value: Real
    tier_name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", DiscountKind.parse(self.kind))
        validate_discount_value(self.kind, self.value)

    @classmethod
    def from_tier(cls, tier: MembershipTier) -> TierDiscount:
        return cls(kind=DiscountKind.PERCENTAGE, value=tier.discount_percent, tier_name=tier.name)

    def amount(self, subtotal: int) -> int:
        return order_discount_amount(subtotal, self.kind, self.value)


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    variant_sku: str
    quantity: int
    unit_price: int
    effective_unit_price: int
    line_total: int

    @property
    def discounted(self) -> bool:
        return self.effective_unit_price < self.unit_price


@dataclass(frozen=True)
class PriceBreakdown:
    """Result of one pricing pass.

    ``total == subtotal - discount_total`` always holds, and no component is
    negative or larger than what remained when it was applied.
    """

    lines: tuple[PricedLine, ...]
    subtotal: int
    manual_discount: int
    coupon_discount: int
    tier_discount: int
    redemption_discount: int
    total: int
    points_to_earn: int = 0
    points_redeemed: int = 0
    coupon_code: str = ""
    tier_name: str = ""

    @property
    def discount_total(self) -> int:
        return self.manual_discount + self.coupon_discount + self.tier_discount + self.redemption_discount

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def as_dict(self) -> dict:
        data = asdict(self)
        data["lines"] = [asdict(line) for line in self.lines]
        data["discount_total"] = self.discount_total
        return data


def price_lines(items: Iterable[LineItem], at: datetime) -> tuple[PricedLine, ...]:
    lines = []
    for item in items:
        effective = item.effective_unit_price(at)
        lines.append(
            PricedLine(
                product_id=item.product_id,
                variant_sku=item.variant_sku,
                quantity=item.quantity,
                unit_price=item.base_unit_price(),
                effective_unit_price=effective,
                line_total=effective * item.quantity,
            )
        )
    return tuple(lines)


def _points_for_discount(redemption: Redemption, granted: int) -> int:
    """Points actually spent when the redemption discount was clamped."""
    if granted >= redemption.discount or redemption.discount == 0:
        return redemption.points if granted > 0 else 0
    # Proportional share, rounded up so points still cover the granted amount.
    needed = -(-redemption.points * granted // redemption.discount)
    return min(redemption.points, needed)


def price_cart(
    items: Iterable[LineItem],
    *,
    at: datetime,
    manual_discount: int = 0,
    coupon: Optional[CouponDiscount] = None,
    tier_discount: Optional[TierDiscount] = None,
    redemption: Redemption = NO_REDEMPTION,
    stacking_order: Sequence[DiscountComponent] = DEFAULT_STACKING_ORDER,
    earn_rule: Optional[EarnRule] = None,
    earn_multiplier: Real = 1,
) -> PriceBreakdown:
    """Price a set of line items. Pure: identical inputs give equal breakdowns.

    ``manual_discount`` is taken as already accepted; authorization is the
    caller's concern (see ``PricingEngine.set_manual_discount``).
    """
    require_int(manual_discount, errmsg.AMOUNT_INTEGER)
    require_non_negative(manual_discount, errmsg.DISCOUNT_NEGATIVE)

    stacking_order = parse_stacking_order(stacking_order)

    lines = price_lines(items, at)
    subtotal = sum(line.line_total for line in lines)

    requested = {
        DiscountComponent.MANUAL: manual_discount,
        DiscountComponent.COUPON: coupon.amount(subtotal) if coupon else 0,
        DiscountComponent.TIER: tier_discount.amount(subtotal) if tier_discount else 0,
        DiscountComponent.REDEMPTION: redemption.discount,
    }
    applied = dict.fromkeys(DiscountComponent, 0)
    remaining = subtotal
    for component in stacking_order:
        amount = clamp(requested[component], 0, remaining)
        applied[component] = amount
        remaining -= amount

    total = max(0, remaining)
    points_to_earn = earn_rule.points_for(total, earn_multiplier) if earn_rule else 0

    return PriceBreakdown(
        lines=lines,
        subtotal=subtotal,
        manual_discount=applied[DiscountComponent.MANUAL],
        coupon_discount=applied[DiscountComponent.COUPON],
        tier_discount=applied[DiscountComponent.TIER],
        redemption_discount=applied[DiscountComponent.REDEMPTION],
        total=total,
        points_to_earn=points_to_earn,
        points_redeemed=_points_for_discount(redemption, applied[DiscountComponent.REDEMPTION]),
        coupon_code=coupon.code if coupon else "",
        tier_name=tier_discount.tier_name if tier_discount else "",
    )


class PricingEngine:
    """Discount state for one cart, recomputed on every cart change.

    Holds the inputs a cashier sets during a sale (manual discount, coupon,
    customer, points to redeem) and prices the cart with ``price_cart``.
    All state shares the cart's lock.
    """

    def __init__(
        self,
        cart: Cart,
        authorization: AuthorizationCheck,
        *,
        clock: Clock | None = None,
        membership: MembershipConfig | None = None,
        stacking_order: Sequence[DiscountComponent] = DEFAULT_STACKING_ORDER,
    ) -> None:
        self._cart = cart
        self._authorization = authorization
        self._clock = clock or SystemClock()
        self._membership = membership
        self._stacking_order = parse_stacking_order(stacking_order)
        self._manual_discount = 0
        self._coupon: CouponDiscount | None = None
        self._customer: LoyaltyAccount | None = None
        self._tier_override: TierDiscount | None = None
        self._points_to_redeem = 0
        self._log = structlog.get_logger().bind(component="pricing", terminal_id=cart.terminal_id)

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def manual_discount(self) -> int:
        return self._manual_discount

    @property
    def coupon(self) -> CouponDiscount | None:
        return self._coupon

    @property
    def customer(self) -> LoyaltyAccount | None:
        return self._customer

    @property
    def points_to_redeem(self) -> int:
        return self._points_to_redeem

    # --- Manual discount ---

    def set_manual_discount(self, amount: int) -> None:
        """Accept a manual discount if a manager session is active right now.

        Raises:
            ValidationError: amount is negative or not an integer.
            AuthorizationRequired: amount is non-zero and no manager
                authorization is active. The stored discount is unchanged.
        """
        require_int(amount, errmsg.AMOUNT_INTEGER)
        require_non_negative(amount, errmsg.DISCOUNT_NEGATIVE)
        with self._cart.lock:
            if amount > 0 and not self._authorization.is_authorized():
                self._log.info("manual_discount_rejected", amount=amount)
                raise AuthorizationRequired()
            self._manual_discount = amount
        self._log.info("manual_discount_set", amount=amount)

    def clear_manual_discount(self) -> None:
        with self._cart.lock:
            self._manual_discount = 0

    # --- Coupon ---

    def apply_coupon(self, code: str, kind: "str | DiscountKind", value: Real) -> CouponDiscount:
        coupon = CouponDiscount(code=code, kind=kind, value=value)
        with self._cart.lock:
            if self._coupon is not None:
                raise ValidationError(errmsg.COUPON_ALREADY_APPLIED)
            self._coupon = coupon
        self._log.info("coupon_applied", code=code, kind=coupon.kind.value, value=value)
        return coupon

    def remove_coupon(self) -> None:
        with self._cart.lock:
            self._coupon = None

    # --- Customer, tier and points ---

    def set_customer(self, account: LoyaltyAccount | None) -> None:
        """Attach the customer for tier pricing and redemption; ``None`` detaches."""
        with self._cart.lock:
            self._customer = account
            if account is None:
                self._points_to_redeem = 0

    def set_tier_discount(self, discount: TierDiscount | None) -> None:
        """Override the tier discount; ``None`` goes back to the customer's tier."""
        with self._cart.lock:
            self._tier_override = discount

    def _tier(self) -> MembershipTier | None:
        if self._customer is None or self._membership is None or not self._membership.enabled:
            return None
        return self._customer.tier(self._membership)

    def _tier_discount(self) -> TierDiscount | None:
        if self._tier_override is not None:
            return self._tier_override
        tier = self._tier()
        if tier is None or not tier.discount_percent:
            return None
        return TierDiscount.from_tier(tier)

    def _redemption_policy(self) -> RedemptionPolicy | None:
        if self._membership is None or not self._membership.enabled:
            return None
        return self._membership.redemption

    def subtotal(self) -> int:
        with self._cart.lock:
            return sum(line.line_total for line in price_lines(self._cart.items(), self._clock.now()))

    def max_redeemable_points(self) -> int:
        """Upper bound for a "use max points" action on the current cart."""
        with self._cart.lock:
            policy = self._redemption_policy()
            if policy is None or self._customer is None:
                return 0
            return policy.max_points(self.subtotal(), self._customer.points_balance)

    def _redeem(self, points: int, subtotal: int) -> Redemption:
        if points == 0:
            return NO_REDEMPTION
        policy = self._redemption_policy()
        if policy is None:
            raise RedemptionDisabled(points)
        if self._customer is None:
            raise ValidationError(errmsg.CUSTOMER_REQUIRED)
        return policy.redeem(subtotal, self._customer.points_balance, points)

    def set_points_to_redeem(self, points: int) -> Redemption:
        """Validate ``points`` against the current subtotal and keep it.

        Raises the specific ``RedemptionPolicyViolation`` when out of bounds;
        the previously accepted value is kept in that case.
        """
        require_int(points, errmsg.POINTS_NEGATIVE)
        require_non_negative(points, errmsg.POINTS_NEGATIVE)
        with self._cart.lock:
            redemption = self._redeem(points, self.subtotal())
            self._points_to_redeem = points
        self._log.info("points_redemption_set", points=points, discount=redemption.discount)
        return redemption

    def reset(self) -> None:
        """Drop every per-sale input."""
        with self._cart.lock:
            self._manual_discount = 0
            self._coupon = None
            self._customer = None
            self._tier_override = None
            self._points_to_redeem = 0

    def recompute(self) -> PriceBreakdown:
        with self._cart.lock:
            at = self._clock.now()
            items = self._cart.items()
            subtotal = sum(line.line_total for line in price_lines(items, at))

            try:
                redemption = self._redeem(self._points_to_redeem, subtotal)
            except (RedemptionPolicyViolation, ValidationError) as e:
                # The cart changed under an accepted redemption; it no longer fits.
                self._log.warning(
                    "points_redemption_dropped",
                    points=self._points_to_redeem,
                    reason=getattr(e, "kind", "validation"),
                )
                self._points_to_redeem = 0
                redemption = NO_REDEMPTION

            tier = self._tier()
            earn_rule = self._membership.earn_rule if self._membership and self._membership.enabled else None

            return price_cart(
                items,
                at=at,
                manual_discount=self._manual_discount,
                coupon=self._coupon,
                tier_discount=self._tier_discount(),
                redemption=redemption,
                stacking_order=self._stacking_order,
                earn_rule=earn_rule,
                earn_multiplier=tier.points_multiplier if tier else 1,
            )
