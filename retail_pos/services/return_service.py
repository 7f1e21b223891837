"""
Return settlement.

No price lists or discounts: each line is refunded at the price it carries.
Totals are stored negative.
"""
import logging

from retail_pos.exceptions import EmptyCartError, ValidationError
from retail_pos.models import ReturnReason
from retail_pos.services.discount_service import ZERO, to_money
from retail_pos.services.inventory_service import adjust_stock
from retail_pos.services.settlement import SettlementTrail, unit_of_work, invalidate_reports

logger = logging.getLogger(__name__)


def _parse_reason(reason) -> ReturnReason:
    if isinstance(reason, ReturnReason):
        return reason
    if not reason:
        raise ValidationError("Seleziona un motivo del reso")
    try:
        return ReturnReason(reason)
    except ValueError:
        raise ValidationError("Motivo del reso non valido", payload={'reason': reason})


def create_return(cart, customer_id, reason, notes, store, atomic: bool = False):
    """
    Register returned goods and put them back in stock.

    Raises:
        EmptyCartError: No lines
        ValidationError: Missing or unknown reason
        StoreError: A step failed; .step and .completed_steps say where
    """
    if cart.is_empty:
        raise EmptyCartError()
    reason = _parse_reason(reason)

    line_values = [to_money(line.unit_price * line.quantity) for line in cart.lines]
    total = -sum(line_values, ZERO)

    trail = SettlementTrail('return', 'RETURN', atomic=atomic)
    with unit_of_work(store, atomic):
        with trail.step('return'):
            sale_return = store.insert('return', {
                'customer_id': customer_id,
                'reason': reason,
                'notes': notes or None,
                'total': total,
            })

        with trail.step('return_items'):
            store.insert_many('return_item', [
                {
                    'return_id': sale_return.id,
                    'product_id': line.product.id,
                    'product_name': line.product.name,
                    'product_barcode': line.product.barcode,
                    'quantity': line.quantity,
                    'unit_price': line.unit_price,
                    'subtotal': -value,
                }
                for line, value in zip(cart.lines, line_values)
            ])

        for line in cart.lines:
            with trail.step(f'stock:{line.product.id}'):
                adjust_stock(store, line.product.id, line.quantity, product_name=line.product.name)

    trail.succeeded()
    logger.info(f"[RETURN] Return #{sale_return.return_number} ({reason.value}): {len(cart.lines)} lines, total {total}")
    invalidate_reports()
    return sale_return
