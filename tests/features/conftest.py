"""Step definitions shared by the checkout feature files."""

import pytest
from pytest_bdd import given, parsers, then, when

from pos_checkout import (
    CheckoutConfig,
    CheckoutError,
    CheckoutTerminal,
    FrozenClock,
    LoyaltyAccount,
    ProductDiscount,
)

from ..fixtures import PASSWORD, T0, StubVerifier, item, make_membership


class CheckoutTestContext:
    """Test context for checkout BDD scenarios."""

    def __init__(self):
        self.clock = FrozenClock(T0)
        self.terminal = None
        self.error = None

    @property
    def pricing(self):
        return self.terminal.pricing

    def attempt(self, action, *args):
        try:
            result = action(*args)
            self.error = None
            return result
        except CheckoutError as e:
            self.error = e
            return None


@pytest.fixture
def ctx():
    """Fixture providing fresh test context for each scenario."""
    return CheckoutTestContext()


# --- Given steps ---

@given(parsers.parse("a terminal with a {minutes:d} minute manager session"))
def terminal_with_session(ctx, minutes):
    ctx.terminal = CheckoutTerminal.create(
        "lane-1",
        StubVerifier(),
        config=CheckoutConfig(session_duration_minutes=minutes),
        membership=make_membership(),
        clock=ctx.clock,
    )


@given(parsers.parse('the cart holds {quantity:d} units of "{product_id}" at {price:d}'))
def cart_holds(ctx, quantity, product_id, price):
    ctx.terminal.cart.add_item(item(product_id, price=price, quantity=quantity))


@given(
    parsers.parse(
        'the cart holds {quantity:d} units of "{product_id}" at {price:d} '
        "with a fixed catalog discount of {discount:d}"
    )
)
def cart_holds_discounted(ctx, quantity, product_id, price, discount):
    line = item(
        product_id,
        price=price,
        quantity=quantity,
        active_discount=ProductDiscount(kind="fixed", value=discount),
    )
    ctx.terminal.cart.add_item(line)


@given(
    parsers.parse(
        'the cart holds {quantity:d} units of "{product_id}" at {price:d} '
        "with a variant modifier of {modifier:d}"
    )
)
def cart_holds_variant(ctx, quantity, product_id, price, modifier):
    line = item(
        product_id,
        price=price,
        quantity=quantity,
        variant_sku=f"{product_id}-variant",
        variant_price_modifier=modifier,
    )
    ctx.terminal.cart.add_item(line)


@given(parsers.parse('a "{tier}" customer with {points:d} points'))
def loyalty_customer(ctx, tier, points):
    account = LoyaltyAccount(card_id="MBR00000001", points_balance=points, tier_name=tier)
    ctx.pricing.set_customer(account)


@given(parsers.parse('"{email}" authorized {minutes:d} minutes ago'))
def authorized_minutes_ago(ctx, email, minutes):
    ctx.terminal.manager_session.authorize(email, PASSWORD)
    ctx.clock.advance(minutes=minutes)


# --- When steps ---

@given(parsers.parse('"{email}" authorizes with the correct password'))
@when(parsers.parse('"{email}" authorizes with the correct password'))
def authorize_correct(ctx, email):
    ctx.attempt(ctx.terminal.manager_session.authorize, email, PASSWORD)


@when(parsers.parse('"{email}" authorizes with password "{password}"'))
def authorize_with(ctx, email, password):
    ctx.attempt(ctx.terminal.manager_session.authorize, email, password)


@when("the manager session is cleared")
def clear_session(ctx):
    ctx.terminal.manager_session.clear()


@when(parsers.parse("the cashier applies a manual discount of {amount:d}"))
def apply_manual_discount(ctx, amount):
    ctx.attempt(ctx.pricing.set_manual_discount, amount)


@when(parsers.parse('the cashier applies coupon "{code}" for {percent:d} percent'))
def apply_coupon(ctx, code, percent):
    ctx.attempt(ctx.pricing.apply_coupon, code, "percentage", percent)


@when(parsers.parse("the customer redeems {points:d} points"))
def redeem_points(ctx, points):
    ctx.attempt(ctx.pricing.set_points_to_redeem, points)


@when(parsers.parse('the quantity of "{product_id}" is changed to {quantity:d}'))
def change_quantity(ctx, product_id, quantity):
    ctx.terminal.cart.update_quantity(product_id, quantity)


# --- Then steps ---

@then(parsers.parse('the request is rejected with "{kind}"'))
def request_rejected(ctx, kind):
    assert ctx.error is not None, "Expected an error but the request succeeded"
    assert ctx.error.kind == kind


@then("the terminal is authorized")
def terminal_authorized(ctx):
    assert ctx.terminal.manager_session.is_authorized()


@then("the terminal is not authorized")
def terminal_not_authorized(ctx):
    assert not ctx.terminal.manager_session.is_authorized()


@then(parsers.parse("the subtotal is {amount:d}"))
def subtotal_is(ctx, amount):
    assert ctx.pricing.recompute().subtotal == amount


@then(parsers.parse("the total is {amount:d}"))
def total_is(ctx, amount):
    assert ctx.pricing.recompute().total == amount


@then(parsers.parse("the manual discount is {amount:d}"))
def manual_discount_is(ctx, amount):
    assert ctx.pricing.recompute().manual_discount == amount


@then(parsers.parse("the coupon discount is {amount:d}"))
def coupon_discount_is(ctx, amount):
    assert ctx.pricing.recompute().coupon_discount == amount


@then(parsers.parse("the tier discount is {amount:d}"))
def tier_discount_is(ctx, amount):
    assert ctx.pricing.recompute().tier_discount == amount


@then(parsers.parse("the redemption discount is {amount:d}"))
def redemption_discount_is(ctx, amount):
    assert ctx.pricing.recompute().redemption_discount == amount


@then(parsers.parse("the customer can redeem at most {points:d} points"))
def max_points_is(ctx, points):
    assert ctx.pricing.max_redeemable_points() == points


@then("recomputing twice gives identical breakdowns")
def recompute_idempotent(ctx):
    first = ctx.pricing.recompute()
    second = ctx.pricing.recompute()
    assert first == second
    assert first.as_dict() == second.as_dict()
