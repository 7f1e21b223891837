"""
Cart aggregate for the till.

A Cart lives in memory (the HTTP layer keeps one per Flask session via
to_dict/from_dict) and never touches the database. Stock checks here use
the stock snapshot captured when the product was added; they are a guard
for the cashier, not a reservation.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from retail_pos.exceptions import (
    NotFoundError, OutOfStockError, InsufficientStockError, ValidationError
)
from retail_pos.models.applied_discount import AppliedDiscount
from retail_pos.models.discount_code import DiscountScope
from retail_pos.services.discount_service import ZERO, ensure_scope, ensure_not_applied, to_money
from retail_pos.services.pricing_service import CartTotals, compute_cart_totals, resolve_unit_price


@dataclass(frozen=True)
class ProductRef:
    """Product snapshot taken when the product is scanned."""
    id: int
    name: str
    sale_price: Decimal
    stock: int
    barcode: Optional[str] = None
    purchase_price: Decimal = ZERO

    @classmethod
    def from_model(cls, product) -> 'ProductRef':
        return cls(
            id=product.id,
            name=product.name,
            barcode=product.barcode,
            sale_price=to_money(product.sale_price),
            purchase_price=to_money(product.purchase_price or 0),
            stock=int(product.stock or 0),
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'ProductRef':
        return cls(
            id=data['id'],
            name=data['name'],
            barcode=data.get('barcode'),
            sale_price=to_money(data.get('sale_price', 0)),
            purchase_price=to_money(data.get('purchase_price', 0)),
            stock=int(data.get('stock', 0)),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'barcode': self.barcode,
            'sale_price': str(self.sale_price),
            'purchase_price': str(self.purchase_price),
            'stock': self.stock,
        }


@dataclass
class CartLine:
    product: ProductRef
    quantity: int
    unit_price: Decimal
    discounts: List[AppliedDiscount] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'product': self.product.to_dict(),
            'quantity': self.quantity,
            'unit_price': str(self.unit_price),
            'discounts': [d.to_dict() for d in self.discounts],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CartLine':
        return cls(
            product=ProductRef.from_dict(data['product']),
            quantity=int(data['quantity']),
            unit_price=to_money(data['unit_price']),
            discounts=[AppliedDiscount.from_dict(d) for d in data.get('discounts') or []],
        )


class Cart:
    """
    Open sale: lines, cart-level discounts and the cashier's selections.

    price_overrides maps (price_list_id, product_id) to a custom price and
    is reloaded by the caller; it is not part of the serialized state.
    """

    def __init__(self, price_overrides: Optional[Dict] = None, price_list_id=None,
                 default_price_list_id=None, customer_id=None):
        self.lines: List[CartLine] = []
        self.cart_discounts: List[AppliedDiscount] = []
        self.price_overrides = price_overrides or {}
        self.price_list_id = price_list_id
        self.default_price_list_id = default_price_list_id
        self.customer_id = customer_id

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def effective_price_list_id(self):
        """Selected list, else the default one."""
        return self.price_list_id if self.price_list_id is not None else self.default_price_list_id

    def _line(self, index: int) -> CartLine:
        if not isinstance(index, int) or index < 0 or index >= len(self.lines):
            raise NotFoundError("Riga del carrello non trovata", payload={'index': index})
        return self.lines[index]

    def find_line(self, product_id) -> Optional[int]:
        for index, line in enumerate(self.lines):
            if line.product.id == product_id:
                return index
        return None

    def add_or_increment(self, product, price_list_id=None) -> CartLine:
        """Add one unit of product; a product already in the cart gets +1."""
        if not isinstance(product, ProductRef):
            product = ProductRef.from_model(product)
        if product.stock <= 0:
            raise OutOfStockError(product.name)

        index = self.find_line(product.id)
        if index is not None:
            line = self.lines[index]
            if line.quantity >= product.stock:
                raise InsufficientStockError(product.name, line.quantity + 1, product.stock)
            line.quantity += 1
            line.product = product
            return line

        list_id = price_list_id if price_list_id is not None else self.effective_price_list_id
        unit_price = resolve_unit_price(product.id, list_id, product.sale_price, self.price_overrides)
        line = CartLine(product=product, quantity=1, unit_price=unit_price)
        self.lines.append(line)
        return line

    def set_quantity(self, index: int, quantity: int) -> Optional[CartLine]:
        """quantity <= 0 removes the line; above the stock snapshot is rejected."""
        line = self._line(index)
        try:
            quantity = int(quantity)
        except (TypeError, ValueError):
            raise ValidationError("Quantità non valida", payload={'quantity': quantity})
        if quantity <= 0:
            self.lines.pop(index)
            return None
        if quantity > line.product.stock:
            raise InsufficientStockError(line.product.name, quantity, line.product.stock)
        line.quantity = quantity
        return line

    def remove_line(self, index: int) -> CartLine:
        self._line(index)
        return self.lines.pop(index)

    def apply_line_discount(self, index: int, discount_code) -> AppliedDiscount:
        """Attach a validated product-scope DiscountCode to one line."""
        line = self._line(index)
        ensure_scope(discount_code, DiscountScope.PRODUCT)
        ensure_not_applied(discount_code.code, line.discounts)
        applied = AppliedDiscount.from_code(discount_code)
        line.discounts.append(applied)
        return applied

    def remove_line_discount(self, index: int, code: str) -> None:
        line = self._line(index)
        line.discounts = [d for d in line.discounts if not d.matches(code)]

    def apply_cart_discount(self, discount_code) -> AppliedDiscount:
        """Attach a validated cart-scope DiscountCode to the whole cart."""
        ensure_scope(discount_code, DiscountScope.CART)
        ensure_not_applied(discount_code.code, self.cart_discounts)
        applied = AppliedDiscount.from_code(discount_code)
        self.cart_discounts.append(applied)
        return applied

    def remove_cart_discount(self, code: str) -> None:
        self.cart_discounts = [d for d in self.cart_discounts if not d.matches(code)]

    def set_price_list(self, price_list_id) -> None:
        # Lines already in the cart keep the price resolved when they were added
        self.price_list_id = price_list_id

    def set_customer(self, customer_id) -> None:
        self.customer_id = customer_id

    def clear(self) -> None:
        """Empty the cart. The price list survives, the customer does not."""
        self.lines = []
        self.cart_discounts = []
        self.customer_id = None

    def totals(self) -> CartTotals:
        return compute_cart_totals(self.lines, self.cart_discounts)

    def to_dict(self) -> dict:
        return {
            'lines': [line.to_dict() for line in self.lines],
            'cart_discounts': [d.to_dict() for d in self.cart_discounts],
            'price_list_id': self.price_list_id,
            'default_price_list_id': self.default_price_list_id,
            'customer_id': self.customer_id,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict], price_overrides: Optional[Dict] = None) -> 'Cart':
        data = data or {}
        cart = cls(
            price_overrides=price_overrides,
            price_list_id=data.get('price_list_id'),
            default_price_list_id=data.get('default_price_list_id'),
            customer_id=data.get('customer_id'),
        )
        cart.lines = [CartLine.from_dict(line) for line in data.get('lines') or []]
        cart.cart_discounts = [AppliedDiscount.from_dict(d) for d in data.get('cart_discounts') or []]
        return cart


class ReturnCart:
    """Goods being returned. No stock check, no price lists, no discounts."""

    def __init__(self, customer_id=None):
        self.lines: List[CartLine] = []
        self.customer_id = customer_id

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def add(self, product, quantity: int = 1) -> CartLine:
        if quantity <= 0:
            raise ValidationError("La quantità deve essere maggiore di zero")
        if not isinstance(product, ProductRef):
            product = ProductRef.from_model(product)
        for line in self.lines:
            if line.product.id == product.id:
                line.quantity += quantity
                return line
        line = CartLine(product=product, quantity=quantity, unit_price=product.sale_price)
        self.lines.append(line)
        return line

    def set_quantity(self, index: int, quantity: int) -> Optional[CartLine]:
        if index < 0 or index >= len(self.lines):
            raise NotFoundError("Riga del reso non trovata", payload={'index': index})
        if quantity <= 0:
            self.lines.pop(index)
            return None
        self.lines[index].quantity = quantity
        return self.lines[index]

    def remove_line(self, index: int) -> CartLine:
        if index < 0 or index >= len(self.lines):
            raise NotFoundError("Riga del reso non trovata", payload={'index': index})
        return self.lines.pop(index)

    def clear(self) -> None:
        self.lines = []
        self.customer_id = None

    def total(self) -> Decimal:
        """Amount to give back (positive)."""
        return sum((to_money(line.unit_price * line.quantity) for line in self.lines), ZERO)
