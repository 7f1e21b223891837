"""
Sale settlement.

confirm_sale turns a Cart into a persisted Sale with its SaleItems and
moves stock. Steps run in a fixed order (header, items, stock) as
independent store calls; a failure stops the sequence and leaves the
committed steps in place unless atomic=True.
"""
import logging
from typing import Optional, Sequence

from retail_pos.exceptions import EmptyCartError, InsufficientStockError
from retail_pos.models import AppliedDiscount, SaleStatus
from retail_pos.services.inventory_service import adjust_stock
from retail_pos.services.pricing_service import compute_cart_totals
from retail_pos.services.settlement import SettlementTrail, unit_of_work, invalidate_reports

logger = logging.getLogger(__name__)


def confirm_sale(cart, store, customer_id=None, price_list_id=None,
                 cart_discounts: Optional[Sequence[AppliedDiscount]] = None,
                 atomic: bool = False, guarded_stock: bool = False):
    """
    Settle a cart into a completed Sale.

    Args:
        cart: Cart with at least one line
        store: DataStore
        customer_id: Customer contact (defaults to the cart's)
        price_list_id: Price list used (defaults to the cart's effective one)
        cart_discounts: Cart discounts (defaults to the cart's)
        atomic: Run every step inside store.transaction()
        guarded_stock: Conditional stock decrement instead of a literal write

    Returns:
        The Sale, with items

    Raises:
        EmptyCartError: No lines
        InsufficientStockError: A quantity exceeds the cart's stock snapshot
        StoreError: A step failed; .step and .completed_steps say where
    """
    if cart.is_empty:
        raise EmptyCartError()

    for line in cart.lines:
        if line.quantity > line.product.stock:
            raise InsufficientStockError(line.product.name, line.quantity, line.product.stock)

    if customer_id is None:
        customer_id = cart.customer_id
    if price_list_id is None:
        price_list_id = cart.effective_price_list_id
    if cart_discounts is None:
        cart_discounts = cart.cart_discounts

    # Freeze every discount amount now
    totals = compute_cart_totals(cart.lines, cart_discounts)
    first_code = totals.cart_discounts[0].code if totals.cart_discounts else None

    trail = SettlementTrail('sale', 'SALE', atomic=atomic)
    with unit_of_work(store, atomic):
        with trail.step('sale'):
            sale = store.insert('sale', {
                'customer_id': customer_id,
                'price_list_id': price_list_id,
                'subtotal': totals.items_subtotal,
                'discount_code': first_code,
                'discount_amount': totals.cart_discount_amount,
                'cart_discounts': list(totals.cart_discounts),
                'total': totals.total,
                'status': SaleStatus.COMPLETED,
            })

        with trail.step('sale_items'):
            store.insert_many('sale_item', [
                {
                    'sale_id': sale.id,
                    'product_id': line.product.id,
                    'product_name': line.product.name,
                    'product_barcode': line.product.barcode,
                    'quantity': line.quantity,
                    'original_price': line.product.sale_price,
                    'unit_price': line.unit_price,
                    'discounts': list(line_total.discounts),
                    'subtotal': line_total.discounted,
                }
                for line, line_total in zip(cart.lines, totals.lines)
            ])

        for line in cart.lines:
            with trail.step(f'stock:{line.product.id}'):
                adjust_stock(
                    store, line.product.id, -line.quantity,
                    known_stock=line.product.stock, guarded=guarded_stock,
                    product_name=line.product.name,
                )

    trail.succeeded()
    logger.info(
        f"[SALE] Sale #{sale.sale_number} confirmed: {len(cart.lines)} lines, "
        f"subtotal {totals.items_subtotal}, discounts {totals.cart_discount_amount}, total {totals.total}"
    )
    invalidate_reports()
    return sale


def list_sales(store, status=None, date_from=None, date_to=None, limit: int = 200):
    """Archive listing, newest first. date_to is exclusive."""
    filters = {}
    if status:
        filters['status'] = SaleStatus(status)
    if date_from:
        filters['created_at__gte'] = date_from
    if date_to:
        filters['created_at__lt'] = date_to
    return store.find_all('sale', order_by='-id', limit=limit, **filters)
