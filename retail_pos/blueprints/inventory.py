"""Inventory blueprint: stock loads and low-stock list."""
from flask import Blueprint, request, jsonify

from retail_pos.database import get_session
from retail_pos.exceptions import NotFoundError, ValidationError
from retail_pos.services.cart_service import ProductRef
from retail_pos.services.inventory_service import get_low_stock_products, get_stock_valuation
from retail_pos.services.stock_load_service import LoadItem, create_load
from retail_pos.utils.api import get_store, get_payload, parse_int, settlement_options

inventory_bp = Blueprint('inventory', __name__, url_prefix='/inventory')


@inventory_bp.route('/stock-loads', methods=['GET'])
def stock_loads_list():
    store = get_store()
    limit = parse_int(request.args.get('limit'), 'limit', required=False) or 100
    loads = store.find_all('stock_load', order_by='-id', limit=limit)
    return jsonify({'status': 'success', 'stock_loads': [load.to_dict(include_items=False) for load in loads]})


@inventory_bp.route('/stock-loads', methods=['POST'])
def stock_load_create():
    """Body: {"items": [{"product_id": 1, "quantity": 10}, ...]}"""
    store = get_store()
    payload = get_payload()
    rows = payload.get('items') or []
    if not isinstance(rows, list):
        raise ValidationError("Formato righe non valido")

    items = []
    for row in rows:
        product_id = parse_int(row.get('product_id'), 'product_id')
        product = store.find_by_id('product', product_id)
        if product is None:
            raise NotFoundError("Prodotto non trovato", payload={'product_id': product_id})
        items.append(LoadItem(ProductRef.from_model(product), parse_int(row.get('quantity'), 'quantity')))

    load = create_load(items, store, **settlement_options())
    return jsonify({'status': 'success', 'stock_load': load.to_dict()}), 201


@inventory_bp.route('/low-stock', methods=['GET'])
def low_stock():
    db_session = get_session()
    products = get_low_stock_products(db_session)
    return jsonify({
        'status': 'success',
        'products': [p.to_dict() for p in products],
        'valuation': get_stock_valuation(db_session),
    })
