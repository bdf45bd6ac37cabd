"""Test doubles and builders shared by unit and feature tests."""

from datetime import datetime, timezone

from pos_checkout import (
    EarnRule,
    Identity,
    InvalidCredentials,
    LineItem,
    MembershipConfig,
    MembershipTier,
    RedemptionPolicy,
    Role,
    RoleSet,
)

T0 = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

MANAGER = Identity(
    user_id="u-manager",
    email="manager@example.com",
    name="Mona Manager",
    roles=RoleSet.of(Role.BRANCH_MANAGER, Role.CASHIER),
)
CASHIER = Identity(
    user_id="u-cashier",
    email="cashier@example.com",
    name="Cal Cashier",
    roles=RoleSet.of(Role.CASHIER),
)
PASSWORD = "correct horse"


class StubVerifier:
    """Credential verifier backed by a dict; records every call."""

    def __init__(self, users: dict | None = None) -> None:
        self.users = users if users is not None else {
            MANAGER.email: (PASSWORD, MANAGER),
            CASHIER.email: (PASSWORD, CASHIER),
        }
        self.calls: list[str] = []

    def verify_credentials(self, email: str, password: str):
        self.calls.append(email)
        entry = self.users.get(email)
        if entry is None or entry[0] != password:
            return None
        return entry[1]


class RaisingVerifier:
    """Verifier that signals rejection by raising."""

    def verify_credentials(self, email: str, password: str):
        raise InvalidCredentials("account locked")


def item(product_id="p1", price=1000, quantity=1, **kwargs) -> LineItem:
    """Build a LineItem with sensible defaults."""
    return LineItem(product_id=product_id, unit_base_price=price, quantity=quantity, **kwargs)


def make_membership(**redemption_overrides) -> MembershipConfig:
    """Three-tier program; 10 points buy one currency unit, capped at 10% of the order."""
    redemption = dict(
        enabled=True,
        min_redeem_points=50,
        min_order_amount=0,
        max_redeem_percent=10,
        points_per_currency_unit=10,
    )
    redemption.update(redemption_overrides)
    return MembershipConfig(
        earn_rule=EarnRule(points_per_amount=1, amount_per_point=100),
        tiers=(
            MembershipTier(name="Bronze", min_points=0, points_multiplier=1, discount_percent=0),
            MembershipTier(name="Silver", min_points=1000, points_multiplier=1.5, discount_percent=5),
            MembershipTier(name="Gold", min_points=5000, points_multiplier=2, discount_percent=10),
        ),
        redemption=RedemptionPolicy(**redemption),
        card_prefix="MBR",
        card_digits=8,
    )
