"""
Price list management.

At most one list is the default; set_default_price_list is its only writer.
"""
import logging
from decimal import Decimal
from typing import Dict, Tuple

from retail_pos.exceptions import NotFoundError, ValidationError
from retail_pos.services.discount_service import non_negative_decimal, to_money

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'description', 'is_active')


def _get_or_404(store, price_list_id):
    price_list = store.find_by_id('price_list', price_list_id)
    if price_list is None:
        raise NotFoundError("Listino non trovato", payload={'price_list_id': price_list_id})
    return price_list


def create_price_list(store, name: str, description: str = None, is_active: bool = True):
    name = (name or '').strip()
    if not name:
        raise ValidationError("Il nome del listino è obbligatorio")
    price_list = store.insert('price_list', {
        'name': name,
        'description': description or None,
        'is_active': bool(is_active),
        'is_default': False,
    })
    logger.info(f"[PRICING] Price list '{name}' created (id={price_list.id})")
    return price_list


def update_price_list(store, price_list_id, **fields):
    """Update name, description or is_active. is_default is not editable here."""
    _get_or_404(store, price_list_id)
    if 'is_default' in fields:
        raise ValidationError("Usa 'imposta predefinito' per cambiare il listino predefinito")
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError("Campi non modificabili", payload={'fields': sorted(unknown)})
    if 'name' in fields and not (fields['name'] or '').strip():
        raise ValidationError("Il nome del listino è obbligatorio")
    return store.update('price_list', price_list_id, fields)


def delete_price_list(store, price_list_id) -> None:
    _get_or_404(store, price_list_id)
    store.delete('price_list', price_list_id)
    logger.info(f"[PRICING] Price list {price_list_id} deleted")


def set_default_price_list(store, price_list_id):
    """Make price_list_id the only default list, in one transaction."""
    _get_or_404(store, price_list_id)
    with store.transaction():
        store.update_all('price_list', {'is_default': False}, id__ne=price_list_id, is_default=True)
        price_list = store.update('price_list', price_list_id, {'is_default': True})
    logger.info(f"[PRICING] Default price list is now {price_list_id}")
    return price_list


def set_price_for_product(store, price_list_id, product_id, custom_price):
    """Insert or update the custom price of a product in a list."""
    _get_or_404(store, price_list_id)
    if store.find_by_id('product', product_id) is None:
        raise NotFoundError("Prodotto non trovato", payload={'product_id': product_id})
    price = non_negative_decimal(custom_price)
    if price is None:
        raise ValidationError("Prezzo non valido", payload={'custom_price': str(custom_price)})
    price = to_money(price)

    existing = store.find_one('price_list_item', price_list_id=price_list_id, product_id=product_id)
    if existing:
        return store.update('price_list_item', existing.id, {'custom_price': price})
    return store.insert('price_list_item', {
        'price_list_id': price_list_id,
        'product_id': product_id,
        'custom_price': price,
    })


def get_default_price_list(store):
    return store.find_one('price_list', is_default=True)


def list_price_lists(store, active_only: bool = False):
    filters = {'is_active': True} if active_only else {}
    return store.find_all('price_list', order_by='name', **filters)


def list_active_price_lists(store):
    return list_price_lists(store, active_only=True)


def load_price_overrides(store) -> Dict[Tuple[int, int], Decimal]:
    """Every custom price keyed by (price_list_id, product_id)."""
    return {
        (item.price_list_id, item.product_id): item.custom_price
        for item in store.find_all('price_list_item')
    }
