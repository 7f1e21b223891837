"""
Stock load settlement (inbound goods).
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from retail_pos.exceptions import ValidationError
from retail_pos.services.cart_service import ProductRef
from retail_pos.services.discount_service import ZERO, to_money
from retail_pos.services.inventory_service import adjust_stock
from retail_pos.services.settlement import SettlementTrail, unit_of_work, invalidate_reports

logger = logging.getLogger(__name__)


@dataclass
class LoadItem:
    product: ProductRef
    quantity: int

    @property
    def value(self) -> Decimal:
        return to_money(self.product.purchase_price * self.quantity)


def create_load(items: Sequence[LoadItem], store, atomic: bool = False):
    """
    Register a stock load and increment stock.

    total_items is the number of lines, total_pieces the sum of quantities,
    total_value the sum of purchase_price * quantity.

    Raises:
        ValidationError: No items, or a quantity below 1
        StoreError: A step failed; .step and .completed_steps say where
    """
    if not items:
        raise ValidationError("Aggiungi almeno un prodotto al carico")
    for item in items:
        if int(item.quantity) <= 0:
            raise ValidationError(
                f"Quantità non valida per {item.product.name}",
                payload={'product': item.product.name, 'quantity': item.quantity}
            )

    total_pieces = sum(int(item.quantity) for item in items)
    total_value = sum((item.value for item in items), ZERO)

    trail = SettlementTrail('load', 'LOAD', atomic=atomic)
    with unit_of_work(store, atomic):
        with trail.step('stock_load'):
            load = store.insert('stock_load', {
                'total_items': len(items),
                'total_pieces': total_pieces,
                'total_value': total_value,
            })

        with trail.step('stock_load_items'):
            store.insert_many('stock_load_item', [
                {
                    'load_id': load.id,
                    'product_id': item.product.id,
                    'product_name': item.product.name,
                    'product_barcode': item.product.barcode,
                    'quantity': int(item.quantity),
                    'unit_cost': item.product.purchase_price,
                }
                for item in items
            ])

        for item in items:
            with trail.step(f'stock:{item.product.id}'):
                adjust_stock(store, item.product.id, int(item.quantity), product_name=item.product.name)

    trail.succeeded()
    logger.info(f"[LOAD] Load #{load.load_number}: {len(items)} products, {total_pieces} pieces, value {total_value}")
    invalidate_reports()
    return load
