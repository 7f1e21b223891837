"""
Dashboard and archive figures.
Read-only aggregates over settled documents, cached in Redis.
"""
import logging
from datetime import datetime, date, time, timedelta
from decimal import Decimal

from sqlalchemy import func, desc

from retail_pos.models import Sale, SaleItem, SaleStatus, StockLoad, Return, Product

logger = logging.getLogger(__name__)

CACHE_MODULE = 'dashboard'


def _dec(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal('0.01'))


def _cached(key: str, loader):
    """Serve from cache when it is configured, otherwise compute."""
    from flask import current_app
    from retail_pos.services.cache_service import get_cache
    try:
        cache = get_cache()
    except RuntimeError:
        return loader()
    return cache.memoize(CACHE_MODULE, key, loader, ttl=current_app.config.get('CACHE_DASHBOARD_TTL', 120))


def get_period_summary(session, start_dt: datetime, end_dt: datetime) -> dict:
    """
    Totals for [start_dt, end_dt).

    Returns:
        dict with sales_count, revenue, average_sale, discounts_total,
        cancelled_count, loads_count, loaded_pieces, load_cost,
        returns_count, returns_amount, margin
    """
    key = f"summary:{start_dt.isoformat()}:{end_dt.isoformat()}"
    return _cached(key, lambda: _compute_period_summary(session, start_dt, end_dt))


def _compute_period_summary(session, start_dt, end_dt) -> dict:
    sales = session.query(
        func.count(Sale.id).label('count'),
        func.coalesce(func.sum(Sale.total), 0).label('revenue'),
        func.coalesce(func.sum(Sale.discount_amount), 0).label('discounts'),
    ).filter(
        Sale.status == SaleStatus.COMPLETED,
        Sale.created_at >= start_dt,
        Sale.created_at < end_dt
    ).one()

    cancelled_count = session.query(func.count(Sale.id)).filter(
        Sale.status == SaleStatus.CANCELLED,
        Sale.created_at >= start_dt,
        Sale.created_at < end_dt
    ).scalar() or 0

    loads = session.query(
        func.count(StockLoad.id).label('count'),
        func.coalesce(func.sum(StockLoad.total_pieces), 0).label('pieces'),
        func.coalesce(func.sum(StockLoad.total_value), 0).label('value'),
    ).filter(
        StockLoad.created_at >= start_dt,
        StockLoad.created_at < end_dt
    ).one()

    returns = session.query(
        func.count(Return.id).label('count'),
        func.coalesce(func.sum(Return.total), 0).label('total'),
    ).filter(
        Return.created_at >= start_dt,
        Return.created_at < end_dt
    ).one()

    sales_count = int(sales.count or 0)
    revenue = _dec(sales.revenue)
    load_cost = _dec(loads.value)

    return {
        'sales_count': sales_count,
        'revenue': revenue,
        'average_sale': _dec(revenue / sales_count) if sales_count else Decimal('0.00'),
        'discounts_total': _dec(sales.discounts),
        'cancelled_count': int(cancelled_count),
        'loads_count': int(loads.count or 0),
        'loaded_pieces': int(loads.pieces or 0),
        'load_cost': load_cost,
        'returns_count': int(returns.count or 0),
        # Stored negative, shown as a positive amount
        'returns_amount': -_dec(returns.total),
        'margin': revenue - load_cost,
    }


def get_top_selling_products(session, limit: int = 5, start_dt: datetime = None, end_dt: datetime = None) -> list:
    """Products by pieces sold in completed sales, most sold first."""
    key = f"top:{limit}:{start_dt.isoformat() if start_dt else ''}:{end_dt.isoformat() if end_dt else ''}"
    return _cached(key, lambda: _compute_top_selling(session, limit, start_dt, end_dt))


def _compute_top_selling(session, limit, start_dt, end_dt) -> list:
    query = (
        session.query(
            SaleItem.product_id.label('product_id'),
            func.max(SaleItem.product_name).label('name'),
            func.sum(SaleItem.quantity).label('total_sold'),
            func.sum(SaleItem.subtotal).label('revenue'),
        )
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(Sale.status == SaleStatus.COMPLETED)
        .filter(SaleItem.product_id.isnot(None))
    )
    if start_dt:
        query = query.filter(Sale.created_at >= start_dt)
    if end_dt:
        query = query.filter(Sale.created_at < end_dt)

    rows = query.group_by(SaleItem.product_id).order_by(desc('total_sold')).limit(limit).all()

    stock = {}
    if rows:
        stock = dict(
            session.query(Product.id, Product.stock)
            .filter(Product.id.in_([row.product_id for row in rows]))
            .all()
        )

    return [
        {
            'product_id': row.product_id,
            'name': row.name,
            'total_sold': int(row.total_sold or 0),
            'revenue': _dec(row.revenue),
            'stock': stock.get(row.product_id),
        }
        for row in rows
    ]


def get_today_datetime_range():
    """(start, end) of today, end exclusive."""
    start_dt = datetime.combine(date.today(), time.min)
    return start_dt, start_dt + timedelta(days=1)


def get_month_datetime_range():
    """(start, end) of the current month, end exclusive."""
    today = date.today()
    start_dt = datetime.combine(today.replace(day=1), time.min)
    next_month = (start_dt.replace(day=28) + timedelta(days=4)).replace(day=1)
    return start_dt, next_month
