"""
Flask CLI commands.

Commands:
- flask init-db: Create tables (and the refund sequence on PostgreSQL)
- flask low-stock: List products at or below their minimum stock
"""

import click
from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from retail_pos.database import create_all, get_engine, get_session
from retail_pos.services.inventory_service import get_low_stock_products, get_stock_valuation
from retail_pos.utils.formatters import money_it


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create every table and the refund number sequence."""
        create_all()
        click.echo(click.style('Tabelle create.', fg='green'))

        engine = get_engine()
        if engine.dialect.name != 'postgresql':
            click.echo('Sequenza rimborsi non creata: numerazione max+1.')
            return

        sequence = current_app.config.get('REFUND_SEQUENCE_NAME', 'refund_number_seq')
        try:
            with engine.begin() as conn:
                conn.execute(text(f'CREATE SEQUENCE IF NOT EXISTS {sequence}'))
                # Continue after refunds numbered before the sequence existed
                conn.execute(text(
                    f"SELECT setval('{sequence}', GREATEST((SELECT COALESCE(MAX(refund_number), 0) FROM sale), 1), "
                    f"(SELECT MAX(refund_number) IS NOT NULL FROM sale))"
                ))
            click.echo(click.style(f'Sequenza {sequence} pronta.', fg='green'))
        except SQLAlchemyError as e:
            click.echo(click.style(f'Errore nella creazione della sequenza: {e}', fg='red'))
            raise SystemExit(1)

    @app.cli.command('low-stock')
    @click.option('--limit', default=None, type=int, help='Maximum number of products')
    def low_stock_command(limit):
        """Print products at or below their minimum stock."""
        session = get_session()
        products = get_low_stock_products(session, limit=limit)
        if not products:
            click.echo(click.style('Nessun prodotto sotto scorta.', fg='green'))
        for product in products:
            click.echo(
                f"{product.barcode or '-':<16} {product.name:<40} "
                f"stock {product.stock:>5}  min {product.min_stock:>5}"
            )
        valuation = get_stock_valuation(session)
        click.echo(
            f"\nPezzi a magazzino: {valuation['pieces']}  "
            f"valore d'acquisto: {money_it(valuation['purchase_value'])}"
        )
