"""
AppliedDiscount value object and its column type.

Discount lists are always a list of AppliedDiscount inside the application.
The encode/decode concern lives only here, at the persistence boundary.
Older rows may hold the list as JSON text (sometimes encoded twice); those
are decoded on read the same way as native JSON arrays.
"""
import json
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Optional, Any

from sqlalchemy.types import TypeDecorator, JSON

from retail_pos.models.discount_code import DiscountType


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return Decimal('NaN')


@dataclass(frozen=True)
class AppliedDiscount:
    """A discount applied to a cart line or to the whole cart."""
    code: str
    type: Any
    value: Decimal
    # Populated only at settlement time
    amount: Optional[Decimal] = None

    @classmethod
    def from_code(cls, discount_code) -> 'AppliedDiscount':
        """Build an unsettled snapshot from a DiscountCode row."""
        return cls(
            code=discount_code.code,
            type=_coerce_type(discount_code.type),
            value=_to_decimal(discount_code.value),
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'AppliedDiscount':
        amount = data.get('amount')
        return cls(
            code=str(data.get('code', '')),
            type=_coerce_type(data.get('type')),
            value=_to_decimal(data.get('value', 0)),
            amount=_to_decimal(amount) if amount is not None else None,
        )

    def with_amount(self, amount: Decimal) -> 'AppliedDiscount':
        return replace(self, amount=amount)

    def without_amount(self) -> 'AppliedDiscount':
        return replace(self, amount=None)

    def matches(self, code: str) -> bool:
        return self.code.lower() == (code or '').strip().lower()

    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'type': self.type.value if isinstance(self.type, DiscountType) else self.type,
            'value': str(self.value),
            'amount': str(self.amount) if self.amount is not None else None,
        }


def _coerce_type(value):
    """Map stored type text to DiscountType; unknown text is kept as-is."""
    if isinstance(value, DiscountType):
        return value
    try:
        return DiscountType(value)
    except ValueError:
        return value


class AppliedDiscountList(TypeDecorator):
    """JSON column holding a list of AppliedDiscount."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if not value:
            return []
        return [
            d.to_dict() if isinstance(d, AppliedDiscount) else AppliedDiscount.from_dict(d).to_dict()
            for d in value
        ]

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        while isinstance(value, str):
            value = json.loads(value) if value.strip() else []
        return [AppliedDiscount.from_dict(d) for d in value or []]
