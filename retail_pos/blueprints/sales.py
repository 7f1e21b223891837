"""Sales blueprint: till cart, sale confirmation, archive and cancellation."""
from flask import Blueprint, request, session, jsonify, current_app

from retail_pos.exceptions import NotFoundError, ValidationError
from retail_pos.services.cart_service import Cart
from retail_pos.services.discount_code_service import require_valid_code
from retail_pos.services.price_list_service import load_price_overrides, get_default_price_list
from retail_pos.services.sales_service import confirm_sale, list_sales
from retail_pos.services.sale_cancel_service import cancel_sale
from retail_pos.utils.api import (
    get_store, get_payload, parse_int, parse_bool, parse_date, settlement_options
)

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')

CART_SESSION_KEY = 'cart'


def get_cart(store) -> Cart:
    """Cart of the current till session, with fresh price overrides."""
    cart = Cart.from_dict(session.get(CART_SESSION_KEY), price_overrides=load_price_overrides(store))
    default = get_default_price_list(store)
    cart.default_price_list_id = default.id if default and default.is_active else None
    return cart


def save_cart(cart: Cart) -> None:
    session[CART_SESSION_KEY] = cart.to_dict()
    session.modified = True


def _cart_response(cart: Cart, status_code: int = 200):
    return jsonify({
        'status': 'success',
        'cart': cart.to_dict(),
        'totals': cart.totals().to_dict(),
    }), status_code


def _find_product(store, payload):
    barcode = (payload.get('barcode') or '').strip()
    if barcode:
        product = store.find_one('product', barcode=barcode)
    else:
        product = store.find_by_id('product', parse_int(payload.get('product_id'), 'product_id'))
    if product is None:
        raise NotFoundError("Prodotto non trovato", payload={'barcode': barcode or None})
    return product


def _selectable_price_list(store, price_list_id):
    """Only active lists can be chosen at the till."""
    if price_list_id is None:
        return None
    price_list = store.find_by_id('price_list', price_list_id)
    if price_list is None:
        raise NotFoundError("Listino non trovato", payload={'price_list_id': price_list_id})
    if not price_list.is_active:
        raise ValidationError("Il listino non è attivo", payload={'price_list_id': price_list_id})
    return price_list_id


@sales_bp.route('/cart', methods=['GET'])
def cart_view():
    store = get_store()
    return _cart_response(get_cart(store))


@sales_bp.route('/cart/add', methods=['POST'])
def cart_add():
    """Scan or pick a product: +1 if already in the cart."""
    store = get_store()
    payload = get_payload()
    cart = get_cart(store)
    product = _find_product(store, payload)
    price_list_id = _selectable_price_list(
        store, parse_int(payload.get('price_list_id'), 'price_list_id', required=False)
    )

    cart.add_or_increment(product, price_list_id)
    save_cart(cart)
    current_app.logger.info(f"[cart_add] product={product.id} lines={len(cart.lines)}")
    return _cart_response(cart)


@sales_bp.route('/cart/quantity', methods=['POST'])
def cart_quantity():
    store = get_store()
    payload = get_payload()
    cart = get_cart(store)
    cart.set_quantity(parse_int(payload.get('index'), 'index'), parse_int(payload.get('quantity'), 'quantity'))
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/cart/remove', methods=['POST'])
def cart_remove():
    store = get_store()
    payload = get_payload()
    cart = get_cart(store)
    cart.remove_line(parse_int(payload.get('index'), 'index'))
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/cart/discounts', methods=['POST'])
def cart_discount_apply():
    """Apply a code to one line (index given) or to the whole cart."""
    store = get_store()
    payload = get_payload()
    cart = get_cart(store)
    discount_code = require_valid_code(store, payload.get('code'))
    index = parse_int(payload.get('index'), 'index', required=False)

    if index is None:
        cart.apply_cart_discount(discount_code)
    else:
        cart.apply_line_discount(index, discount_code)
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/cart/discounts', methods=['DELETE'])
def cart_discount_remove():
    store = get_store()
    payload = get_payload()
    code = (payload.get('code') or request.args.get('code') or '').strip()
    if not code:
        raise ValidationError("Campo obbligatorio: code", payload={'field': 'code'})
    cart = get_cart(store)
    index = parse_int(payload.get('index', request.args.get('index')), 'index', required=False)

    if index is None:
        cart.remove_cart_discount(code)
    else:
        cart.remove_line_discount(index, code)
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/cart/price-list', methods=['POST'])
def cart_price_list():
    store = get_store()
    payload = get_payload()
    price_list_id = _selectable_price_list(
        store, parse_int(payload.get('price_list_id'), 'price_list_id', required=False)
    )
    cart = get_cart(store)
    cart.set_price_list(price_list_id)
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/cart/customer', methods=['POST'])
def cart_customer():
    store = get_store()
    payload = get_payload()
    customer_id = parse_int(payload.get('customer_id'), 'customer_id', required=False)
    if customer_id is not None and store.find_by_id('contact', customer_id) is None:
        raise NotFoundError("Cliente non trovato", payload={'customer_id': customer_id})
    cart = get_cart(store)
    cart.set_customer(customer_id)
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/cart/clear', methods=['POST'])
def cart_clear():
    store = get_store()
    cart = get_cart(store)
    cart.clear()
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/confirm', methods=['POST'])
def confirm():
    """Settle the session cart; the cart is cleared only on success."""
    store = get_store()
    cart = get_cart(store)
    sale = confirm_sale(
        cart, store,
        guarded_stock=current_app.config.get('GUARDED_STOCK_UPDATES', False),
        **settlement_options()
    )
    cart.clear()
    save_cart(cart)
    return jsonify({'status': 'success', 'sale': sale.to_dict()}), 201


@sales_bp.route('/', methods=['GET'])
def sales_list():
    """Sales archive. Filters: status, date_from, date_to (exclusive)."""
    store = get_store()
    status = request.args.get('status') or None
    if status and status not in ('completed', 'cancelled'):
        raise ValidationError("Stato non valido", payload={'status': status})
    sales = list_sales(
        store,
        status=status,
        date_from=parse_date(request.args.get('date_from'), 'date_from'),
        date_to=parse_date(request.args.get('date_to'), 'date_to'),
    )
    return jsonify({'status': 'success', 'sales': [s.to_dict(include_items=False) for s in sales]})


@sales_bp.route('/<int:sale_id>', methods=['GET'])
def sale_detail(sale_id):
    store = get_store()
    sale = store.find_by_id('sale', sale_id)
    if sale is None:
        raise NotFoundError("Vendita non trovata", payload={'sale_id': sale_id})
    return jsonify({'status': 'success', 'sale': sale.to_dict()})


@sales_bp.route('/<int:sale_id>/cancel', methods=['POST'])
def sale_cancel(sale_id):
    store = get_store()
    payload = get_payload()
    sale = cancel_sale(
        sale_id,
        payload.get('reason'),
        payload.get('notes'),
        parse_bool(payload.get('issue_refund')),
        store,
        refund_sequence=current_app.config.get('REFUND_SEQUENCE_NAME', 'refund_number_seq'),
        guarded_stock=current_app.config.get('GUARDED_STOCK_UPDATES', False),
        **settlement_options()
    )
    return jsonify({'status': 'success', 'sale': sale.to_dict()})
