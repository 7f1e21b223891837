"""Returns blueprint."""
from flask import Blueprint, request, jsonify

from retail_pos.exceptions import NotFoundError, ValidationError
from retail_pos.services.cart_service import ReturnCart
from retail_pos.services.return_service import create_return
from retail_pos.utils.api import get_store, get_payload, parse_int, settlement_options

returns_bp = Blueprint('returns', __name__, url_prefix='/returns')


@returns_bp.route('/', methods=['GET'])
def returns_list():
    store = get_store()
    limit = parse_int(request.args.get('limit'), 'limit', required=False) or 100
    returns = store.find_all('return', order_by='-id', limit=limit)
    return jsonify({'status': 'success', 'returns': [r.to_dict(include_items=False) for r in returns]})


@returns_bp.route('/', methods=['POST'])
def return_create():
    """
    Body: {"items": [{"product_id": 1, "quantity": 1}], "customer_id": null,
           "reason": "defective_product", "notes": "..."}
    """
    store = get_store()
    payload = get_payload()
    rows = payload.get('items') or []
    if not isinstance(rows, list):
        raise ValidationError("Formato righe non valido")

    cart = ReturnCart(customer_id=parse_int(payload.get('customer_id'), 'customer_id', required=False))
    for row in rows:
        product_id = parse_int(row.get('product_id'), 'product_id')
        product = store.find_by_id('product', product_id)
        if product is None:
            raise NotFoundError("Prodotto non trovato", payload={'product_id': product_id})
        cart.add(product, parse_int(row.get('quantity', 1), 'quantity'))

    sale_return = create_return(
        cart, cart.customer_id, payload.get('reason'), payload.get('notes'), store, **settlement_options()
    )
    return jsonify({'status': 'success', 'return': sale_return.to_dict()}), 201
