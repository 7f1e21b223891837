"""
Tests for the Flask CLI commands.
"""


class TestCliCommands:

    def test_init_db_on_sqlite(self, app, session):
        result = app.test_cli_runner().invoke(args=['init-db'])
        assert result.exit_code == 0
        assert 'Tabelle create.' in result.output
        assert 'max+1' in result.output

    def test_low_stock_lists_products(self, app, make_product):
        make_product(name='Latte', stock=1, min_stock=4, purchase_price='1.10', barcode='8000000000011')
        make_product(name='Pasta', stock=30, min_stock=4, purchase_price='0.80')

        result = app.test_cli_runner().invoke(args=['low-stock'])

        assert result.exit_code == 0
        assert 'Latte' in result.output
        assert 'Pasta' not in result.output
        assert 'Pezzi a magazzino: 31' in result.output
        assert '25,10' in result.output

    def test_low_stock_empty(self, app, make_product):
        make_product(stock=10, min_stock=1)
        result = app.test_cli_runner().invoke(args=['low-stock', '--limit', '5'])
        assert 'Nessun prodotto sotto scorta.' in result.output
