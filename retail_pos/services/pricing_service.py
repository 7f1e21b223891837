"""
Pricing engine: unit price resolution and line/cart totals.

All functions are pure and deterministic; the same inputs always give the
same Decimal results.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence, Tuple

from retail_pos.models.applied_discount import AppliedDiscount
from retail_pos.services.discount_service import ZERO, apply_sequentially, to_money


@dataclass(frozen=True)
class LineTotal:
    original: Decimal
    discounted: Decimal
    discount_amount: Decimal
    discounts: Tuple[AppliedDiscount, ...] = ()

    def to_dict(self):
        return {
            'original': str(self.original),
            'discounted': str(self.discounted),
            'discount_amount': str(self.discount_amount),
            'discounts': [d.to_dict() for d in self.discounts],
        }


@dataclass(frozen=True)
class CartTotals:
    items_subtotal: Decimal
    cart_discount_amount: Decimal
    total: Decimal
    lines: Tuple[LineTotal, ...] = ()
    cart_discounts: Tuple[AppliedDiscount, ...] = field(default=())

    def to_dict(self):
        return {
            'items_subtotal': str(self.items_subtotal),
            'cart_discount_amount': str(self.cart_discount_amount),
            'total': str(self.total),
            'lines': [line.to_dict() for line in self.lines],
            'cart_discounts': [d.to_dict() for d in self.cart_discounts],
        }


def resolve_unit_price(product_id, price_list_id, base_price,
                       price_overrides: Optional[Mapping] = None) -> Decimal:
    """
    Price-list override for (price_list_id, product_id) if any, else base_price.

    price_overrides maps (price_list_id, product_id) to the custom price.
    """
    if price_list_id is not None and price_overrides:
        custom = price_overrides.get((price_list_id, product_id))
        if custom is not None:
            return to_money(custom)
    return to_money(base_price)


def compute_line_total(unit_price, quantity, discounts: Sequence[AppliedDiscount] = ()) -> LineTotal:
    """Line total with discounts compounded in list order."""
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        qty = 0
    original = to_money(to_money(unit_price) * max(qty, 0))
    discount_amount, settled = apply_sequentially(discounts, original)
    return LineTotal(
        original=original,
        discounted=original - discount_amount,
        discount_amount=discount_amount,
        discounts=tuple(settled),
    )


def compute_cart_totals(lines: Sequence, cart_discounts: Sequence[AppliedDiscount] = ()) -> CartTotals:
    """
    Totals for a cart.

    lines are objects with unit_price, quantity and discounts (CartLine works).
    Cart discounts are compounded on the sum of discounted line totals.
    """
    line_totals: List[LineTotal] = [
        compute_line_total(line.unit_price, line.quantity, line.discounts)
        for line in lines
    ]
    items_subtotal = sum((lt.discounted for lt in line_totals), ZERO)
    cart_discount_amount, settled = apply_sequentially(cart_discounts, items_subtotal)
    return CartTotals(
        items_subtotal=items_subtotal,
        cart_discount_amount=cart_discount_amount,
        total=items_subtotal - cart_discount_amount,
        lines=tuple(line_totals),
        cart_discounts=tuple(settled),
    )
