"""
Inventory helpers: stock writes, low-stock classification, valuation.
"""
import logging
from decimal import Decimal

from sqlalchemy import func

from retail_pos.exceptions import InsufficientStockError
from retail_pos.models import Product

logger = logging.getLogger(__name__)


def adjust_stock(store, product_id, delta: int, known_stock=None, guarded: bool = False,
                 product_name: str = None):
    """
    Move a product's stock by delta.

    Literal mode writes known_stock + delta, where known_stock is the value
    the caller last saw (the cart snapshot for sales). The write is clamped
    at zero; a concurrent movement in between is lost. Without known_stock
    the product is read first.

    Guarded mode issues a single conditional increment that only applies
    while the result stays >= 0, and raises InsufficientStockError otherwise.

    Returns the updated Product, or None if it no longer exists.
    """
    if guarded:
        product = store.increment('product', product_id, 'stock', delta, floor=0)
        if product is None and delta < 0:
            current = store.find_by_id('product', product_id)
            if current is not None:
                raise InsufficientStockError(current.name, -delta, current.stock)
        return product

    if known_stock is None:
        current = store.find_by_id('product', product_id)
        if current is None:
            logger.warning(f"[STOCK] Product {product_id} not found, stock not moved")
            return None
        known_stock = current.stock

    new_stock = int(known_stock) + int(delta)
    if new_stock < 0:
        logger.warning(
            f"[STOCK] Product {product_name or product_id} would go to {new_stock}, clamped to 0"
        )
        new_stock = 0
    return store.update('product', product_id, {'stock': new_stock})


def is_low_stock(product) -> bool:
    """stock <= min_stock; the boundary counts as low."""
    return (product.stock or 0) <= (product.min_stock or 0)


def get_low_stock_products(session, limit: int = None):
    """Products at or below their minimum, emptiest first."""
    query = session.query(Product).filter(Product.stock <= Product.min_stock).order_by(
        Product.stock.asc(), Product.name.asc()
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def get_stock_valuation(session) -> dict:
    """Pieces in stock and their value at purchase and sale price."""
    row = session.query(
        func.coalesce(func.sum(Product.stock), 0).label('pieces'),
        func.coalesce(func.sum(Product.stock * Product.purchase_price), 0).label('purchase_value'),
        func.coalesce(func.sum(Product.stock * Product.sale_price), 0).label('sale_value'),
        func.count(Product.id).label('products'),
    ).one()
    return {
        'products': int(row.products or 0),
        'pieces': int(row.pieces or 0),
        'purchase_value': Decimal(str(row.purchase_value or 0)).quantize(Decimal('0.01')),
        'sale_value': Decimal(str(row.sale_value or 0)).quantize(Decimal('0.01')),
    }
