"""
HTTP API tests (Flask test client, cart kept in the session cookie).
"""

from decimal import Decimal

from retail_pos.models import DiscountType, DiscountScope


def add_to_cart(client, product_id):
    return client.post('/sales/cart/add', json={'product_id': product_id})


class TestCartAndConfirm:
    """Tests for the till flow."""

    def test_full_sale_and_cancel(self, client, store, make_product, make_code):
        product = make_product(sale_price='20.00', stock=10, barcode='8001234567890')
        product_id = product.id
        make_code('P10', value='10', applies_to=DiscountScope.PRODUCT)
        make_code('C5', discount_type=DiscountType.FIXED, value='5')

        add_to_cart(client, product_id)
        response = client.post('/sales/cart/add', json={'barcode': '8001234567890'})
        assert response.status_code == 200
        assert response.get_json()['cart']['lines'][0]['quantity'] == 2

        assert client.post('/sales/cart/discounts', json={'code': 'p10', 'index': 0}).status_code == 200
        response = client.post('/sales/cart/discounts', json={'code': 'c5'})
        totals = response.get_json()['totals']
        assert totals['items_subtotal'] == '36.00'
        assert totals['total'] == '31.00'

        response = client.post('/sales/confirm')
        assert response.status_code == 201
        sale = response.get_json()['sale']
        assert sale['total'] == '31.00'
        assert sale['sale_number'] == 1
        assert sale['items'][0]['discounts'][0]['amount'] == '4.00'
        assert store.find_by_id('product', product_id).stock == 8

        # Cart emptied after a successful sale
        assert client.get('/sales/cart').get_json()['cart']['lines'] == []

        response = client.post(f"/sales/{sale['id']}/cancel", json={
            'reason': 'customer_request', 'issue_refund': 'true'
        })
        assert response.status_code == 200
        cancelled = response.get_json()['sale']
        assert cancelled['status'] == 'cancelled'
        assert cancelled['refund_document_number'] == 'R-0001'
        assert store.find_by_id('product', product_id).stock == 10

        response = client.post(f"/sales/{sale['id']}/cancel", json={'reason': 'other'})
        assert response.status_code == 409
        assert response.get_json()['status'] == 'error'

    def test_confirm_empty_cart(self, client, session):
        response = client.post('/sales/confirm')
        assert response.status_code == 400
        assert response.get_json()['status'] == 'error'

    def test_invalid_code(self, client, make_product):
        add_to_cart(client, make_product().id)
        response = client.post('/sales/cart/discounts', json={'code': 'NESSUNO'})
        assert response.status_code == 400
        assert response.get_json()['code'] == 'NESSUNO'

    def test_out_of_stock(self, client, make_product):
        response = add_to_cart(client, make_product(stock=0).id)
        assert response.status_code == 409

    def test_unknown_product(self, client, session):
        assert add_to_cart(client, 999).status_code == 404

    def test_quantity_and_remove(self, client, make_product):
        add_to_cart(client, make_product(stock=5).id)

        response = client.post('/sales/cart/quantity', json={'index': 0, 'quantity': 6})
        assert response.status_code == 409

        response = client.post('/sales/cart/quantity', json={'index': 0, 'quantity': 4})
        assert response.get_json()['totals']['total'] == '80.00'

        response = client.post('/sales/cart/remove', json={'index': 0})
        assert response.get_json()['cart']['lines'] == []

    def test_price_list_selection(self, client, store, make_product):
        product = make_product(sale_price='20.00')
        product_id = product.id
        wholesale = store.insert('price_list', {'name': 'Ingrosso'})
        wholesale_id = wholesale.id
        store.insert('price_list_item', {
            'price_list_id': wholesale_id, 'product_id': product_id, 'custom_price': Decimal('15.00')
        })

        client.post('/sales/cart/price-list', json={'price_list_id': wholesale_id})
        response = add_to_cart(client, product_id)

        assert response.get_json()['cart']['lines'][0]['unit_price'] == '15.00'
        sale = client.post('/sales/confirm').get_json()['sale']
        assert sale['price_list_id'] == wholesale_id
        assert sale['total'] == '15.00'

    def test_inactive_price_list_not_selectable(self, client, store, make_product):
        product_id = make_product(sale_price='20.00').id
        retired = store.insert('price_list', {'name': 'Vecchio', 'is_active': False})
        retired_id = retired.id
        store.insert('price_list_item', {
            'price_list_id': retired_id, 'product_id': product_id, 'custom_price': Decimal('1.00')
        })

        response = client.post('/sales/cart/price-list', json={'price_list_id': retired_id})
        assert response.status_code == 400
        assert response.get_json()['price_list_id'] == retired_id

        response = client.post('/sales/cart/add', json={'product_id': product_id, 'price_list_id': retired_id})
        assert response.status_code == 400

        response = add_to_cart(client, product_id)
        assert response.get_json()['cart']['price_list_id'] is None
        assert response.get_json()['cart']['lines'][0]['unit_price'] == '20.00'


class TestArchive:

    def test_list_and_detail(self, client, make_product):
        add_to_cart(client, make_product().id)
        sale_id = client.post('/sales/confirm').get_json()['sale']['id']

        listed = client.get('/sales/?status=completed').get_json()['sales']
        assert [s['id'] for s in listed] == [sale_id]
        assert 'items' not in listed[0]
        assert client.get('/sales/?status=cancelled').get_json()['sales'] == []
        assert client.get(f'/sales/{sale_id}').get_json()['sale']['items'][0]['quantity'] == 1

    def test_invalid_status_filter(self, client, session):
        assert client.get('/sales/?status=draft').status_code == 400

    def test_unknown_sale(self, client, session):
        assert client.get('/sales/999').status_code == 404
        response = client.post('/sales/999/cancel', json={'reason': 'other'})
        assert response.status_code == 404

    def test_cancel_requires_reason(self, client, make_product):
        add_to_cart(client, make_product().id)
        sale_id = client.post('/sales/confirm').get_json()['sale']['id']
        assert client.post(f'/sales/{sale_id}/cancel', json={}).status_code == 400


class TestInventoryAndReturns:

    def test_stock_load(self, client, store, make_product):
        product = make_product(stock=1, purchase_price='2.00')
        product_id = product.id

        response = client.post('/inventory/stock-loads', json={
            'items': [{'product_id': product_id, 'quantity': 5}]
        })

        assert response.status_code == 201
        load = response.get_json()['stock_load']
        assert load['total_pieces'] == 5
        assert load['total_value'] == '10.00'
        assert store.find_by_id('product', product_id).stock == 6
        assert len(client.get('/inventory/stock-loads').get_json()['stock_loads']) == 1

    def test_stock_load_bad_quantity(self, client, make_product):
        response = client.post('/inventory/stock-loads', json={
            'items': [{'product_id': make_product().id, 'quantity': 0}]
        })
        assert response.status_code == 400

    def test_low_stock(self, client, make_product):
        make_product(name='Quasi finito', stock=1, min_stock=2)
        make_product(name='Pieno', stock=20, min_stock=2)

        data = client.get('/inventory/low-stock').get_json()

        assert [p['name'] for p in data['products']] == ['Quasi finito']
        assert data['valuation']['pieces'] == 21

    def test_return(self, client, store, make_product):
        product = make_product(sale_price='4.00', stock=0)
        product_id = product.id

        response = client.post('/returns/', json={
            'items': [{'product_id': product_id, 'quantity': 2}],
            'reason': 'wrong_product',
        })

        assert response.status_code == 201
        assert response.get_json()['return']['total'] == '-8.00'
        assert store.find_by_id('product', product_id).stock == 2


class TestPricingApi:

    def test_price_list_lifecycle(self, client, make_product):
        product_id = make_product().id
        list_id = client.post('/pricing/price-lists', json={'name': 'Ingrosso'}).get_json()['price_list']['id']

        response = client.post(f'/pricing/price-lists/{list_id}/prices', json={
            'product_id': product_id, 'custom_price': '1.234,50'
        })
        assert response.status_code == 200
        assert response.get_json()['price']['custom_price'] == '1234.50'

        response = client.post(f'/pricing/price-lists/{list_id}/default')
        assert response.get_json()['price_list']['is_default'] is True

        response = client.patch(f'/pricing/price-lists/{list_id}', json={'is_default': False})
        assert response.status_code == 400

    def test_discount_code_create_and_validate(self, client, session):
        response = client.post('/pricing/discount-codes', json={
            'code': 'estate', 'type': 'percentage', 'value': '15'
        })
        assert response.status_code == 201
        assert response.get_json()['discount_code']['code'] == 'ESTATE'

        response = client.post('/pricing/discount-codes/validate', json={'code': 'Estate'})
        assert response.status_code == 200

        response = client.post('/pricing/discount-codes/validate', json={'code': 'inverno'})
        assert response.status_code == 400


class TestDashboardAndMetrics:

    def test_summary(self, client, make_product):
        add_to_cart(client, make_product(sale_price='12.00').id)
        client.post('/sales/confirm')

        response = client.get('/dashboard/summary?date_from=2000-01-01&date_to=2100-12-31')

        assert response.status_code == 200
        summary = response.get_json()['summary']
        assert summary['sales_count'] == 1
        assert summary['revenue'] == '12.00'

    def test_summary_bad_period(self, client, session):
        assert client.get('/dashboard/summary?period=year').status_code == 400

    def test_top_products(self, client, make_product):
        add_to_cart(client, make_product(name='Caffè').id)
        client.post('/sales/confirm')

        products = client.get('/dashboard/top-products').get_json()['products']

        assert products[0]['name'] == 'Caffè'
        assert products[0]['total_sold'] == 1

    def test_metrics_endpoint(self, client, session):
        response = client.get('/metrics')
        assert response.status_code == 200
        assert b'http_requests_total' in response.data

    def test_unknown_route_is_json(self, client, session):
        response = client.get('/nowhere')
        assert response.status_code == 404
        assert response.get_json()['status'] == 'error'
