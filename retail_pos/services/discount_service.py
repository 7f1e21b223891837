"""
Discount evaluation.

Pure functions: they never touch the database and never raise on
malformed numbers. A discount that cannot be evaluated has no effect.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional

from retail_pos.exceptions import DiscountScopeError, DuplicateDiscountError
from retail_pos.models.discount_code import DiscountType, DiscountScope

ZERO = Decimal('0.00')
CENT = Decimal('0.01')


def to_money(value) -> Decimal:
    """Quantize to cents (half up). Anything unusable becomes zero."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    if not amount.is_finite():
        return ZERO
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def non_negative_decimal(value) -> Optional[Decimal]:
    """Finite Decimal >= 0, or None."""
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite() or number < 0:
        return None
    return number


def compute_discount_amount(discount, base_amount) -> Decimal:
    """
    Monetary effect of one discount on base_amount, rounded to cents.

    percentage: base * value / 100 (capped at base)
    fixed:      min(value, base)
    Negative, NaN or non-numeric values and unknown types give zero.
    """
    base = non_negative_decimal(base_amount)
    value = non_negative_decimal(getattr(discount, 'value', None))
    if base is None or value is None:
        return ZERO

    discount_type = getattr(discount, 'type', None)
    if discount_type == DiscountType.PERCENTAGE:
        amount = base * value / Decimal('100')
    elif discount_type == DiscountType.FIXED:
        amount = value
    else:
        return ZERO

    return to_money(min(amount, base))


def apply_sequentially(discounts: Iterable, base_amount):
    """
    Apply discounts in list order, each on the balance left by the ones before.

    Returns (total_amount, discounts_with_amounts).
    """
    remaining = to_money(base_amount)
    total = ZERO
    settled = []
    for discount in discounts or []:
        amount = compute_discount_amount(discount, remaining)
        remaining -= amount
        total += amount
        settled.append(discount.with_amount(amount))
    return total, settled


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps are taken as UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def is_code_valid(discount_code, now: Optional[datetime] = None) -> bool:
    """Active and not expired (expiry_date is None or expiry_date > now)."""
    if not discount_code.is_active:
        return False
    if discount_code.expiry_date is None:
        return True
    now = now or datetime.now(timezone.utc)
    return _as_utc(discount_code.expiry_date) > _as_utc(now)


def validate_code(code: str, all_codes: Iterable, now: Optional[datetime] = None):
    """Return the valid code whose text matches case-insensitively, or None."""
    wanted = (code or '').strip().lower()
    if not wanted:
        return None
    for candidate in all_codes:
        if (candidate.code or '').lower() == wanted and is_code_valid(candidate, now):
            return candidate
    return None


def ensure_scope(discount_code, target: DiscountScope) -> None:
    """Reject cart codes on a line and product codes on the cart."""
    scope = discount_code.applies_to
    if scope != target:
        if target == DiscountScope.PRODUCT:
            raise DiscountScopeError("Questo codice si applica solo al carrello")
        raise DiscountScopeError("Questo codice si applica solo ai singoli prodotti")


def ensure_not_applied(code: str, applied: Iterable) -> None:
    """The same code may not be applied twice to one target."""
    if any(d.matches(code) for d in applied):
        raise DuplicateDiscountError(code)
