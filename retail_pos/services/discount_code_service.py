"""
Discount code management.
"""
import logging
from datetime import datetime

from retail_pos.exceptions import NotFoundError, ValidationError, InvalidDiscountCodeError
from retail_pos.models import DiscountType, DiscountScope
from retail_pos.services.discount_service import validate_code, non_negative_decimal

logger = logging.getLogger(__name__)


def _clean(fields: dict) -> dict:
    data = dict(fields)
    if 'code' in data:
        data['code'] = (data['code'] or '').strip().upper()
        if not data['code']:
            raise ValidationError("Il codice è obbligatorio")
    try:
        if 'type' in data:
            data['type'] = DiscountType(data['type'])
        if 'applies_to' in data:
            data['applies_to'] = DiscountScope(data['applies_to'])
    except ValueError as e:
        raise ValidationError(f"Valore non valido: {e}")
    if 'value' in data:
        value = non_negative_decimal(data['value'])
        if value is None:
            raise ValidationError("Il valore dello sconto deve essere un numero positivo")
        if data.get('type') == DiscountType.PERCENTAGE and value > 100:
            raise ValidationError("Una percentuale non può superare 100")
        data['value'] = value
    if isinstance(data.get('expiry_date'), str):
        raw = data['expiry_date'].strip()
        try:
            data['expiry_date'] = datetime.fromisoformat(raw) if raw else None
        except ValueError:
            raise ValidationError("Data di scadenza non valida", payload={'expiry_date': raw})
    return data


def create_discount_code(store, code, discount_type, value, applies_to=DiscountScope.CART,
                         expiry_date=None, is_active=True):
    """
    Create a code. Codes are stored upper-case; a duplicate (any case)
    fails on the unique index with StoreError.
    """
    data = _clean({
        'code': code,
        'type': discount_type,
        'value': value,
        'applies_to': applies_to,
        'expiry_date': expiry_date,
    })
    data['is_active'] = bool(is_active)
    discount_code = store.insert('discount_code', data)
    logger.info(f"[PRICING] Discount code {discount_code.code} created")
    return discount_code


EDITABLE_FIELDS = ('code', 'type', 'value', 'applies_to', 'expiry_date', 'is_active')


def update_discount_code(store, discount_code_id, **fields):
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError("Campi non modificabili", payload={'fields': sorted(unknown)})
    current = store.find_by_id('discount_code', discount_code_id)
    if current is None:
        raise NotFoundError("Codice sconto non trovato", payload={'discount_code_id': discount_code_id})
    if 'value' in fields and 'type' not in fields:
        fields['type'] = current.type
    return store.update('discount_code', discount_code_id, _clean(fields))


def delete_discount_code(store, discount_code_id) -> bool:
    return store.delete('discount_code', discount_code_id)


def list_discount_codes(store):
    return store.find_all('discount_code', order_by='code')


def find_valid_code(store, code: str, now: datetime = None):
    """The active, unexpired code matching `code` in any case, or None."""
    candidate = store.find_one('discount_code', code__ieq=(code or '').strip())
    return validate_code(code, [candidate] if candidate else [], now)


def require_valid_code(store, code: str, now: datetime = None):
    discount_code = find_valid_code(store, code, now)
    if discount_code is None:
        raise InvalidDiscountCodeError(code)
    return discount_code
