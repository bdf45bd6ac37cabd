"""Tests for line items and the cart."""

from datetime import datetime, timedelta

import pytest

from pos_checkout import Cart, DiscountKind, LineItem, ProductDiscount, ValidationError

from .fixtures import T0, item


class TestProductDiscount:
    """Tests for catalog discounts."""

    def test_fixed(self) -> None:
        """A fixed discount subtracts its value."""
        discount = ProductDiscount(kind=DiscountKind.FIXED, value=200)
        assert discount.apply(1000) == 800

    def test_fixed_never_below_zero(self) -> None:
        """A fixed discount larger than the price gives zero."""
        assert ProductDiscount(kind="fixed", value=5000).apply(1000) == 0

    def test_percentage_is_floored(self) -> None:
        """Percentage reductions round down."""
        # 15% of 999 is 149.85; only 149 comes off.
        assert ProductDiscount(kind="percentage", value=15).apply(999) == 850

    def test_window_is_inclusive(self) -> None:
        """Both window bounds are active instants."""
        discount = ProductDiscount(
            kind="fixed", value=100, valid_from=T0, valid_to=T0 + timedelta(days=1)
        )
        assert discount.is_active(T0)
        assert discount.is_active(T0 + timedelta(days=1))
        assert not discount.is_active(T0 - timedelta(seconds=1))
        assert not discount.is_active(T0 + timedelta(days=1, seconds=1))

    def test_open_window(self) -> None:
        """No bounds means always active."""
        assert ProductDiscount(kind="fixed", value=1).is_active(T0)

    @pytest.mark.parametrize(
        "kind,value",
        [("percentage", 101), ("percentage", -1), ("fixed", -5), ("bogus", 10)],
    )
    def test_invalid(self, kind, value) -> None:
        """Out-of-range values and unknown kinds are rejected."""
        with pytest.raises(ValidationError):
            ProductDiscount(kind=kind, value=value)

    def test_inverted_window_rejected(self) -> None:
        """valid_from must not be after valid_to."""
        with pytest.raises(ValidationError):
            ProductDiscount(kind="fixed", value=1, valid_from=T0, valid_to=T0 - timedelta(hours=1))

    @pytest.mark.parametrize("field", ["valid_from", "valid_to"])
    def test_naive_window_bound_rejected(self, field) -> None:
        """Window bounds without a timezone are rejected at construction."""
        with pytest.raises(ValidationError):
            ProductDiscount(kind="fixed", value=1, **{field: datetime(2024, 1, 1)})

    def test_non_datetime_window_bound_rejected(self) -> None:
        """Window bounds must be datetimes."""
        with pytest.raises(ValidationError):
            ProductDiscount(kind="fixed", value=1, valid_from="2024-01-01")

    def test_aware_window_prices_in_cart(self, cart: Cart, engine) -> None:
        """An aware window is compared against the clock during recompute."""
        discount = ProductDiscount(
            kind="fixed", value=200, valid_from=T0 - timedelta(days=1), valid_to=T0 + timedelta(days=1)
        )
        cart.add_item(item("tee", price=1000, quantity=2, active_discount=discount))
        assert engine.recompute().subtotal == 1600


class TestLineItem:
    """Tests for line item pricing."""

    def test_discounted_line_total(self) -> None:
        """Line total is the discounted unit price times quantity."""
        line = item(price=1000, quantity=3, active_discount=ProductDiscount(kind="fixed", value=200))
        assert line.effective_unit_price(T0) == 800
        assert line.line_total(T0) == 2400

    def test_variant_modifier(self) -> None:
        """The variant modifier is added to the base price."""
        line = item(price=1000, variant_sku="TEE-L", variant_price_modifier=150)
        assert line.is_variant
        assert line.base_unit_price() == 1150

    def test_negative_variant_modifier(self) -> None:
        """A negative modifier lowers every unit."""
        line = item(price=1000, quantity=3, variant_sku="TEE-S", variant_price_modifier=-200)
        assert line.base_unit_price() == 800
        assert line.line_total(T0) == 2400

    def test_negative_effective_price_clamped(self) -> None:
        """A modifier larger than the price clamps the unit price at zero."""
        line = item(price=100, variant_price_modifier=-300)
        assert line.base_unit_price() == 0
        assert line.line_total(T0) == 0

    def test_expired_discount_ignored(self) -> None:
        """A discount past its window does not apply."""
        discount = ProductDiscount(kind="fixed", value=200, valid_to=T0 - timedelta(minutes=1))
        assert item(price=1000, active_discount=discount).effective_unit_price(T0) == 1000

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"quantity": 0},
            {"quantity": -2},
            {"quantity": 1.5},
            {"price": -1},
            {"price": 9.99},
            {"product_id": ""},
        ],
    )
    def test_invalid(self, kwargs) -> None:
        """Bad quantities, prices and product ids are rejected."""
        with pytest.raises(ValidationError):
            item(**kwargs)


class TestCart:
    """Tests for cart mutation."""

    def test_add_and_count(self, cart: Cart) -> None:
        """Lines keep insertion order and counts add up."""
        cart.add_item(item("p1", quantity=2))
        cart.add_item(item("p2"))

        assert cart.line_count == 2
        assert cart.item_count == 3
        assert [i.product_id for i in cart.items()] == ["p1", "p2"]

    def test_same_product_merges(self, cart: Cart) -> None:
        """Scanning the same product again bumps its quantity."""
        cart.add_item(item("p1"))
        merged = cart.add_item(item("p1", quantity=2))

        assert merged.quantity == 3
        assert cart.line_count == 1

    def test_variants_are_separate_lines(self, cart: Cart) -> None:
        """Each variant SKU gets its own line."""
        cart.add_item(item("tee", variant_sku="TEE-M"))
        cart.add_item(item("tee", variant_sku="TEE-L"))
        assert cart.line_count == 2
        assert ("tee", "TEE-M") in cart

    def test_items_are_snapshots(self, cart: Cart) -> None:
        """Mutating returned items does not touch the cart."""
        cart.add_item(item("p1"))
        snapshot = cart.items()
        snapshot[0].quantity = 99
        assert cart.get("p1").quantity == 1

    def test_caller_item_not_aliased(self, cart: Cart) -> None:
        """The cart copies the item it is given."""
        line = item("p1")
        cart.add_item(line)
        cart.increment("p1")
        assert line.quantity == 1

    def test_update_quantity(self, cart: Cart) -> None:
        """Quantity can be set directly."""
        cart.add_item(item("p1"))
        assert cart.update_quantity("p1", 5).quantity == 5

    def test_update_quantity_rejects_zero(self, cart: Cart) -> None:
        """Zero quantity is rejected and the line is unchanged."""
        cart.add_item(item("p1"))
        with pytest.raises(ValidationError):
            cart.update_quantity("p1", 0)
        assert cart.get("p1").quantity == 1

    def test_increment_and_decrement(self, cart: Cart) -> None:
        """Increment and decrement move by one unit."""
        cart.add_item(item("p1"))
        assert cart.increment("p1").quantity == 2
        assert cart.decrement("p1").quantity == 1

    def test_decrement_last_unit_removes_line(self, cart: Cart) -> None:
        """Decrementing the last unit removes the line."""
        cart.add_item(item("p1"))
        assert cart.decrement("p1") is None
        assert cart.is_empty

    def test_missing_item(self, cart: Cart) -> None:
        """Operations on absent lines raise."""
        with pytest.raises(ValidationError):
            cart.get("nope")
        with pytest.raises(ValidationError):
            cart.remove_item("nope")
        with pytest.raises(ValidationError):
            cart.update_quantity("nope", 2)

    def test_remove_and_clear(self, cart: Cart) -> None:
        """Lines can be removed one at a time or all at once."""
        cart.add_item(item("p1"))
        cart.add_item(item("p2"))
        cart.remove_item("p1")
        assert cart.line_count == 1

        cart.clear()
        assert cart.is_empty
        assert cart.item_count == 0


def test_line_item_defaults() -> None:
    """A bare line item is one unit of the base product."""
    line = LineItem(product_id="p1", unit_base_price=500)
    assert line.quantity == 1
    assert line.key == ("p1", "")
    assert not line.is_variant
