"""Cart line items and the mutable cart owned by a POS session."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from numbers import Real
from typing import Optional

import structlog

from .amounts import percent_of, to_decimal
from .errors import ValidationError, errmsg
from .validation import (
    require_int,
    require_non_negative,
    require_positive,
    require_present,
    require_range,
)


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

    @classmethod
    def parse(cls, value: "str | DiscountKind") -> DiscountKind:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError(f"{errmsg.INVALID_DISCOUNT_KIND}: {value!r}") from None


def validate_discount_value(kind: DiscountKind, value: Real) -> None:
    if kind is DiscountKind.PERCENTAGE:
        require_range(value, 0, 100, errmsg.PERCENTAGE_RANGE)
    else:
        require_non_negative(value, errmsg.FIXED_DISCOUNT_NEGATIVE)


def apply_discount(price: int, kind: DiscountKind, value: Real) -> int:
    """Price after a percentage or fixed reduction, never below zero.

    Percentage reductions are floored so the discount never exceeds the
    stated rate.
    """
    if kind is DiscountKind.PERCENTAGE:
        return max(0, price - percent_of(price, value))
    return max(0, price - int(to_decimal(value)))


@dataclass(frozen=True)
class ProductDiscount:
    """A catalog discount on one product, optionally limited to a time window."""

    kind: DiscountKind
    value: Real
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", DiscountKind.parse(self.kind))
        validate_discount_value(self.kind, self.value)
        for bound in (self.valid_from, self.valid_to):
            # Bounds are compared with aware clock instants.
            if bound is not None and (not isinstance(bound, datetime) or bound.utcoffset() is None):
                raise ValidationError(errmsg.DISCOUNT_WINDOW_TIMEZONE)
        if self.valid_from and self.valid_to and self.valid_from > self.valid_to:
            raise ValidationError(errmsg.DISCOUNT_WINDOW)

    def is_active(self, at: datetime) -> bool:
        if self.valid_from is not None and at < self.valid_from:
            return False
        if self.valid_to is not None and at > self.valid_to:
            return False
        return True

    def apply(self, price: int) -> int:
        return apply_discount(price, self.kind, self.value)


@dataclass
class LineItem:
    product_id: str
    unit_base_price: int
    quantity: int = 1
    variant_sku: str = ""
    variant_price_modifier: int = 0
    active_discount: Optional[ProductDiscount] = None
    name: str = ""
    barcode: str = ""

    def __post_init__(self) -> None:
        require_present(self.product_id, errmsg.PRODUCT_ID_REQUIRED)
        require_int(self.unit_base_price, errmsg.AMOUNT_INTEGER)
        require_non_negative(self.unit_base_price, errmsg.PRICE_NEGATIVE)
        require_int(self.variant_price_modifier, errmsg.AMOUNT_INTEGER)
        require_int(self.quantity, errmsg.QUANTITY_POSITIVE)
        require_positive(self.quantity, errmsg.QUANTITY_POSITIVE)

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.variant_sku)

    @property
    def is_variant(self) -> bool:
        return bool(self.variant_sku)

    def base_unit_price(self) -> int:
        """Base price plus variant modifier, clamped at zero."""
        return max(0, self.unit_base_price + self.variant_price_modifier)

    def effective_unit_price(self, at: datetime) -> int:
        price = self.base_unit_price()
        if self.active_discount is not None and self.active_discount.is_active(at):
            price = self.active_discount.apply(price)
        return price

    def line_total(self, at: datetime) -> int:
        return self.effective_unit_price(at) * self.quantity


class Cart:
    """Line items for the sale in progress on one terminal.

    All mutation goes through the cart's lock; ``PricingEngine`` takes the
    same lock while it reads the items for a recompute.
    """

    def __init__(self, terminal_id: str = "") -> None:
        self.terminal_id = terminal_id
        self.lock = threading.RLock()
        self._items: dict[tuple[str, str], LineItem] = {}
        self._log = structlog.get_logger().bind(component="cart", terminal_id=terminal_id)

    def items(self) -> list[LineItem]:
        """Snapshot of the current lines, in insertion order."""
        with self.lock:
            return [replace(item) for item in self._items.values()]

    def get(self, product_id: str, variant_sku: str = "") -> LineItem:
        with self.lock:
            item = self._items.get((product_id, variant_sku))
            if item is None:
                raise ValidationError(errmsg.ITEM_NOT_IN_CART)
            return replace(item)

    def __contains__(self, key: object) -> bool:
        with self.lock:
            return key in self._items

    @property
    def item_count(self) -> int:
        """Total units across all lines."""
        with self.lock:
            return sum(item.quantity for item in self._items.values())

    @property
    def line_count(self) -> int:
        with self.lock:
            return len(self._items)

    @property
    def is_empty(self) -> bool:
        with self.lock:
            return not self._items

    def add_item(self, item: LineItem) -> LineItem:
        """Add a line, or bump the quantity when the same product/variant is scanned again."""
        with self.lock:
            existing = self._items.get(item.key)
            if existing is not None:
                existing.quantity += item.quantity
                self._log.info("cart_item_incremented", product_id=item.product_id, quantity=existing.quantity)
                return replace(existing)
            self._items[item.key] = replace(item)
            self._log.info(
                "cart_item_added",
                product_id=item.product_id,
                variant_sku=item.variant_sku,
                quantity=item.quantity,
            )
            return replace(item)

    def update_quantity(self, product_id: str, quantity: int, variant_sku: str = "") -> LineItem:
        require_int(quantity, errmsg.QUANTITY_POSITIVE)
        require_positive(quantity, errmsg.QUANTITY_POSITIVE)
        with self.lock:
            item = self._items.get((product_id, variant_sku))
            if item is None:
                raise ValidationError(errmsg.ITEM_NOT_IN_CART)
            item.quantity = quantity
            self._log.info("cart_quantity_updated", product_id=product_id, quantity=quantity)
            return replace(item)

    def increment(self, product_id: str, variant_sku: str = "") -> LineItem:
        with self.lock:
            item = self.get(product_id, variant_sku)
            return self.update_quantity(product_id, item.quantity + 1, variant_sku)

    def decrement(self, product_id: str, variant_sku: str = "") -> Optional[LineItem]:
        """Drop one unit; the line is removed when its quantity would reach zero."""
        with self.lock:
            item = self.get(product_id, variant_sku)
            if item.quantity <= 1:
                self.remove_item(product_id, variant_sku)
                return None
            return self.update_quantity(product_id, item.quantity - 1, variant_sku)

    def remove_item(self, product_id: str, variant_sku: str = "") -> None:
        with self.lock:
            if self._items.pop((product_id, variant_sku), None) is None:
                raise ValidationError(errmsg.ITEM_NOT_IN_CART)
            self._log.info("cart_item_removed", product_id=product_id, variant_sku=variant_sku)

    def clear(self) -> None:
        with self.lock:
            self._items.clear()
        self._log.info("cart_cleared")
