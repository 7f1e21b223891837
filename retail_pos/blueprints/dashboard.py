"""Dashboard blueprint: period summary and best sellers."""
from datetime import timedelta

from flask import Blueprint, request, jsonify, current_app

from retail_pos.database import get_session
from retail_pos.exceptions import ValidationError
from retail_pos.services.dashboard_service import (
    get_period_summary, get_top_selling_products, get_today_datetime_range, get_month_datetime_range
)
from retail_pos.utils.api import parse_date, parse_int

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/dashboard')


def _period():
    """
    Range from ?period=today|month or ?date_from/&date_to (date_to inclusive
    when given as a plain date).
    """
    period = request.args.get('period', 'today')
    date_from = parse_date(request.args.get('date_from'), 'date_from')
    date_to = parse_date(request.args.get('date_to'), 'date_to')
    if date_from or date_to:
        if not (date_from and date_to):
            raise ValidationError("Indica sia date_from che date_to")
        if len(request.args.get('date_to')) <= 10:
            date_to = date_to + timedelta(days=1)
        if date_to <= date_from:
            raise ValidationError("Intervallo di date non valido")
        return date_from, date_to
    if period == 'month':
        return get_month_datetime_range()
    if period == 'today':
        return get_today_datetime_range()
    raise ValidationError("Periodo non valido", payload={'period': period})


@dashboard_bp.route('/summary', methods=['GET'])
def summary():
    start_dt, end_dt = _period()
    data = get_period_summary(get_session(), start_dt, end_dt)
    return jsonify({
        'status': 'success',
        'start': start_dt.isoformat(),
        'end': end_dt.isoformat(),
        'summary': data,
    })


@dashboard_bp.route('/top-products', methods=['GET'])
def top_products():
    limit = parse_int(request.args.get('limit'), 'limit', required=False) \
        or current_app.config.get('TOP_PRODUCTS_LIMIT', 5)
    products = get_top_selling_products(get_session(), limit)
    return jsonify({'status': 'success', 'products': products})
