"""Pricing blueprint: price lists and discount codes."""
from flask import Blueprint, request, jsonify

from retail_pos.exceptions import ValidationError
from retail_pos.services import price_list_service, discount_code_service
from retail_pos.utils.api import get_store, get_payload, parse_int, parse_bool, parse_money

pricing_bp = Blueprint('pricing', __name__, url_prefix='/pricing')


@pricing_bp.route('/price-lists', methods=['GET'])
def price_lists():
    store = get_store()
    lists = price_list_service.list_price_lists(store, active_only=parse_bool(request.args.get('active')))
    return jsonify({'status': 'success', 'price_lists': [pl.to_dict() for pl in lists]})


@pricing_bp.route('/price-lists', methods=['POST'])
def price_list_create():
    store = get_store()
    payload = get_payload()
    price_list = price_list_service.create_price_list(
        store,
        payload.get('name'),
        description=payload.get('description'),
        is_active=parse_bool(payload.get('is_active', True)),
    )
    return jsonify({'status': 'success', 'price_list': price_list.to_dict()}), 201


@pricing_bp.route('/price-lists/<int:price_list_id>', methods=['PATCH'])
def price_list_update(price_list_id):
    store = get_store()
    payload = dict(get_payload())
    if 'is_active' in payload:
        payload['is_active'] = parse_bool(payload['is_active'])
    price_list = price_list_service.update_price_list(store, price_list_id, **payload)
    return jsonify({'status': 'success', 'price_list': price_list.to_dict()})


@pricing_bp.route('/price-lists/<int:price_list_id>', methods=['DELETE'])
def price_list_delete(price_list_id):
    store = get_store()
    price_list_service.delete_price_list(store, price_list_id)
    return jsonify({'status': 'success'})


@pricing_bp.route('/price-lists/<int:price_list_id>/default', methods=['POST'])
def price_list_set_default(price_list_id):
    store = get_store()
    price_list = price_list_service.set_default_price_list(store, price_list_id)
    return jsonify({'status': 'success', 'price_list': price_list.to_dict()})


@pricing_bp.route('/price-lists/<int:price_list_id>/prices', methods=['GET'])
def price_list_prices(price_list_id):
    store = get_store()
    items = store.find_all('price_list_item', price_list_id=price_list_id)
    return jsonify({'status': 'success', 'prices': [item.to_dict() for item in items]})


@pricing_bp.route('/price-lists/<int:price_list_id>/prices', methods=['POST'])
def price_list_set_price(price_list_id):
    """Body: {"product_id": 1, "custom_price": "12,50"}"""
    store = get_store()
    payload = get_payload()
    item = price_list_service.set_price_for_product(
        store,
        price_list_id,
        parse_int(payload.get('product_id'), 'product_id'),
        parse_money(payload.get('custom_price'), 'custom_price'),
    )
    return jsonify({'status': 'success', 'price': item.to_dict()})


@pricing_bp.route('/discount-codes', methods=['GET'])
def discount_codes():
    store = get_store()
    codes = discount_code_service.list_discount_codes(store)
    return jsonify({'status': 'success', 'discount_codes': [c.to_dict() for c in codes]})


@pricing_bp.route('/discount-codes', methods=['POST'])
def discount_code_create():
    store = get_store()
    payload = get_payload()
    discount_code = discount_code_service.create_discount_code(
        store,
        payload.get('code'),
        payload.get('type'),
        parse_money(payload.get('value'), 'value'),
        applies_to=payload.get('applies_to') or 'cart',
        expiry_date=payload.get('expiry_date') or None,
        is_active=parse_bool(payload.get('is_active', True)),
    )
    return jsonify({'status': 'success', 'discount_code': discount_code.to_dict()}), 201


@pricing_bp.route('/discount-codes/<int:discount_code_id>', methods=['PATCH'])
def discount_code_update(discount_code_id):
    store = get_store()
    payload = dict(get_payload())
    if 'value' in payload:
        payload['value'] = parse_money(payload['value'], 'value')
    if 'is_active' in payload:
        payload['is_active'] = parse_bool(payload['is_active'])
    discount_code = discount_code_service.update_discount_code(store, discount_code_id, **payload)
    return jsonify({'status': 'success', 'discount_code': discount_code.to_dict()})


@pricing_bp.route('/discount-codes/validate', methods=['POST'])
def discount_code_validate():
    """Check a code typed at the till without applying it."""
    store = get_store()
    code = (get_payload().get('code') or '').strip()
    if not code:
        raise ValidationError("Campo obbligatorio: code", payload={'field': 'code'})
    discount_code = discount_code_service.require_valid_code(store, code)
    return jsonify({'status': 'success', 'discount_code': discount_code.to_dict()})
