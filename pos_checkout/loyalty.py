"""Loyalty points: redemption bounds, tier lookup and earn rules.

Business Rules:
1. Points may cover at most ``max_redeem_percent`` of the subtotal
2. A redemption is either zero or at least ``min_redeem_points``
3. A customer can never redeem more points than their balance
4. Points convert to currency by floor division, never rounding up
5. The highest tier whose ``min_points`` is met applies to the customer
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from numbers import Real
from typing import Optional

from .amounts import to_decimal, to_int
from .errors import (
    BelowMinimumOrder,
    BelowMinimumRedemption,
    ExceedsBalance,
    ExceedsCap,
    RedemptionDisabled,
    ValidationError,
    errmsg,
)
from .validation import require_int, require_non_negative, require_positive, require_range


def _require_points(points: int) -> None:
    require_int(points, errmsg.POINTS_NEGATIVE)
    require_non_negative(points, errmsg.POINTS_NEGATIVE)


def cap_points(subtotal: int, cap_percent_of_subtotal: Real, points_per_currency_unit: Real) -> int:
    """Points worth ``cap_percent_of_subtotal`` of the subtotal, floored."""
    require_non_negative(subtotal, errmsg.AMOUNT_NEGATIVE)
    require_range(cap_percent_of_subtotal, 0, 1, errmsg.CAP_RANGE)
    require_positive(points_per_currency_unit, errmsg.RATE_POSITIVE)
    cap_amount = Decimal(subtotal) * to_decimal(cap_percent_of_subtotal)
    return to_int(cap_amount * to_decimal(points_per_currency_unit))


def max_redeemable_points(
    subtotal: int,
    points_balance: int,
    cap_percent_of_subtotal: Real,
    points_per_currency_unit: Real,
) -> int:
    """Most points the customer may spend on this subtotal.

    ``cap_percent_of_subtotal`` is a fraction: 0.10 means points may cover
    a tenth of the subtotal.
    """
    _require_points(points_balance)
    return max(0, min(points_balance, cap_points(subtotal, cap_percent_of_subtotal, points_per_currency_unit)))


def estimate_discount(points_to_redeem: int, points_per_currency_unit: Real) -> int:
    """Currency value of ``points_to_redeem``, rounded down."""
    _require_points(points_to_redeem)
    require_positive(points_per_currency_unit, errmsg.RATE_POSITIVE)
    return to_int(Decimal(points_to_redeem) / to_decimal(points_per_currency_unit))


@dataclass(frozen=True)
class RedemptionRequest:
    """A candidate points spend together with the bounds it must respect.

    ``max_redeem_points`` is the cap derived from the subtotal, before the
    balance is taken into account.
    """

    points_balance: int
    points_to_redeem: int
    min_redeem_points: int
    max_redeem_points: int
    points_per_currency_unit: Real

    @property
    def allowed_points(self) -> int:
        return max(0, min(self.points_balance, self.max_redeem_points))


def validate_redemption(request: RedemptionRequest) -> None:
    """Raise the specific policy violation for an out-of-bounds request."""
    _require_points(request.points_to_redeem)
    _require_points(request.points_balance)
    points = request.points_to_redeem
    if points == 0:
        return
    if points < request.min_redeem_points:
        raise BelowMinimumRedemption(points, request.min_redeem_points)
    if points > request.points_balance:
        raise ExceedsBalance(points, request.points_balance)
    if points > request.max_redeem_points:
        raise ExceedsCap(points, request.max_redeem_points)


@dataclass(frozen=True)
class Redemption:
    points: int
    discount: int


NO_REDEMPTION = Redemption(points=0, discount=0)


@dataclass(frozen=True)
class RedemptionPolicy:
    """Store-wide rules for turning points into a discount.

    ``max_redeem_percent`` is a percentage (10 means 10% of the subtotal).
    """

    enabled: bool = True
    min_redeem_points: int = 0
    min_order_amount: int = 0
    max_redeem_percent: Real = 100
    points_per_currency_unit: Real = 1

    def __post_init__(self) -> None:
        _require_points(self.min_redeem_points)
        require_non_negative(self.min_order_amount, errmsg.AMOUNT_NEGATIVE)
        require_range(self.max_redeem_percent, 0, 100, errmsg.PERCENTAGE_RANGE)
        require_positive(self.points_per_currency_unit, errmsg.RATE_POSITIVE)

    @property
    def cap_fraction(self) -> Decimal:
        return to_decimal(self.max_redeem_percent) / 100

    def max_points(self, subtotal: int, points_balance: int) -> int:
        if not self.enabled or subtotal < self.min_order_amount:
            return 0
        return max_redeemable_points(subtotal, points_balance, self.cap_fraction, self.points_per_currency_unit)

    def build_request(self, subtotal: int, points_balance: int, points_to_redeem: int) -> RedemptionRequest:
        return RedemptionRequest(
            points_balance=points_balance,
            points_to_redeem=points_to_redeem,
            min_redeem_points=self.min_redeem_points,
            max_redeem_points=cap_points(subtotal, self.cap_fraction, self.points_per_currency_unit),
            points_per_currency_unit=self.points_per_currency_unit,
        )

    def redeem(self, subtotal: int, points_balance: int, points_to_redeem: int) -> Redemption:
        """Validate a request and price it.

        Raises:
            RedemptionDisabled: redemption is switched off.
            BelowMinimumOrder: the subtotal is under ``min_order_amount``.
            BelowMinimumRedemption, ExceedsBalance, ExceedsCap: see
                ``validate_redemption``.
        """
        _require_points(points_to_redeem)
        if points_to_redeem == 0:
            return NO_REDEMPTION
        if not self.enabled:
            raise RedemptionDisabled(points_to_redeem)
        if subtotal < self.min_order_amount:
            raise BelowMinimumOrder(points_to_redeem, self.min_order_amount)

        request = self.build_request(subtotal, points_balance, points_to_redeem)
        validate_redemption(request)
        return Redemption(
            points=points_to_redeem,
            discount=estimate_discount(points_to_redeem, self.points_per_currency_unit),
        )


class RoundingMode(str, Enum):
    FLOOR = "floor"
    ROUND = "round"
    CEIL = "ceil"


@dataclass(frozen=True)
class EarnRule:
    """Award ``points_per_amount`` points for every ``amount_per_point`` spent."""

    points_per_amount: Real = 1
    amount_per_point: Real = 100
    rounding: RoundingMode = RoundingMode.FLOOR

    def __post_init__(self) -> None:
        require_non_negative(self.points_per_amount, errmsg.POINTS_NEGATIVE)
        require_positive(self.amount_per_point, errmsg.RATE_POSITIVE)
        try:
            object.__setattr__(self, "rounding", RoundingMode(self.rounding))
        except ValueError:
            raise ValidationError(f"Invalid rounding mode: {self.rounding!r}") from None

    def points_for(self, amount: int, multiplier: Real = 1) -> int:
        if amount <= 0:
            return 0
        raw = (
            Decimal(amount)
            / to_decimal(self.amount_per_point)
            * to_decimal(self.points_per_amount)
            * to_decimal(multiplier)
        )
        return max(0, to_int(raw, self.rounding.value))


@dataclass(frozen=True)
class MembershipTier:
    name: str
    min_points: int = 0
    points_multiplier: Real = 1
    discount_percent: Real = 0

    def __post_init__(self) -> None:
        _require_points(self.min_points)
        require_non_negative(self.points_multiplier, errmsg.MULTIPLIER_NEGATIVE)
        require_range(self.discount_percent, 0, 100, errmsg.PERCENTAGE_RANGE)


@dataclass(frozen=True)
class MembershipConfig:
    enabled: bool = True
    earn_rule: EarnRule = field(default_factory=EarnRule)
    tiers: tuple[MembershipTier, ...] = ()
    redemption: Optional[RedemptionPolicy] = None
    card_prefix: str = ""
    card_digits: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "tiers", tuple(sorted(self.tiers, key=lambda t: t.min_points)))

    def tier_for(self, lifetime_points: int) -> Optional[MembershipTier]:
        """Highest tier whose threshold ``lifetime_points`` meets."""
        current = None
        for tier in self.tiers:
            if lifetime_points >= tier.min_points:
                current = tier
        return current

    def tier_named(self, name: str) -> Optional[MembershipTier]:
        key = name.strip().lower()
        for tier in self.tiers:
            if tier.name.lower() == key:
                return tier
        return None


@dataclass(frozen=True)
class LoyaltyAccount:
    """A customer's membership as returned by the loyalty service.

    ``tier_name`` is a manual override; when empty the tier follows
    ``lifetime_points``.
    """

    card_id: str
    points_balance: int = 0
    lifetime_points: int = 0
    tier_name: str = ""

    def __post_init__(self) -> None:
        _require_points(self.points_balance)
        _require_points(self.lifetime_points)

    def tier(self, config: MembershipConfig) -> Optional[MembershipTier]:
        if self.tier_name:
            override = config.tier_named(self.tier_name)
            if override is not None:
                return override
        return config.tier_for(self.lifetime_points)


def is_valid_card_id(card_id: str, config: MembershipConfig) -> bool:
    """Card numbers are the configured prefix followed by exactly ``card_digits`` digits."""
    if not card_id or not card_id.startswith(config.card_prefix):
        return False
    digits = card_id[len(config.card_prefix):]
    if config.card_digits <= 0:
        return bool(re.fullmatch(r"[0-9]+", digits))
    return bool(re.fullmatch(rf"[0-9]{{{config.card_digits}}}", digits))
