"""
Data store used by the settlement services.

Settlements talk to persistence only through the small DataStore surface
below, one independently failable call per step. SqlAlchemyStore is the
implementation used by the app: unless a transaction() scope is open,
every call commits on its own, so a multi-step settlement is not atomic.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError

from retail_pos.exceptions import NotFoundError, StoreError, SequenceUnavailableError
from retail_pos.models import (
    Category, Brand, Typology, Contact, Product, PriceList, PriceListItem,
    DiscountCode, Sale, SaleItem, StockLoad, StockLoadItem, Return, ReturnItem
)

logger = logging.getLogger(__name__)


class DataStore:
    """
    Persistence port.

    Records are dicts on the way in and model instances on the way out.
    Every method may raise StoreError.
    """

    def insert(self, kind: str, record: Dict[str, Any]):
        raise NotImplementedError

    def insert_many(self, kind: str, records: Iterable[Dict[str, Any]]) -> list:
        return [self.insert(kind, record) for record in records]

    def update(self, kind: str, record_id, fields: Dict[str, Any]):
        raise NotImplementedError

    def update_all(self, kind: str, fields: Dict[str, Any], **filters) -> int:
        raise NotImplementedError

    def delete(self, kind: str, record_id) -> bool:
        raise NotImplementedError

    def find_by_id(self, kind: str, record_id):
        raise NotImplementedError

    def find_one(self, kind: str, order_by: Optional[str] = None, **filters):
        raise NotImplementedError

    def find_all(self, kind: str, order_by: Optional[str] = None, limit: Optional[int] = None, **filters) -> list:
        raise NotImplementedError

    def increment(self, kind: str, record_id, field: str, delta, floor=None):
        """
        Add delta to a numeric field in one statement.

        With floor set, the write only happens when the result stays >= floor;
        None is returned when the row is missing or the guard rejects it.
        """
        raise NotImplementedError

    def next_sequence(self, name: str) -> int:
        raise NotImplementedError

    @contextmanager
    def transaction(self):
        """Group several calls into one unit of work where supported."""
        yield self


class SqlAlchemyStore(DataStore):
    """DataStore over a SQLAlchemy session."""

    MODELS = {
        'category': Category,
        'brand': Brand,
        'typology': Typology,
        'contact': Contact,
        'product': Product,
        'price_list': PriceList,
        'price_list_item': PriceListItem,
        'discount_code': DiscountCode,
        'sale': Sale,
        'sale_item': SaleItem,
        'stock_load': StockLoad,
        'stock_load_item': StockLoadItem,
        'return': Return,
        'return_item': ReturnItem,
    }

    # Document numbers assigned by the store on insert
    NUMBERED = {
        'sale': 'sale_number',
        'stock_load': 'load_number',
        'return': 'return_number',
    }

    def __init__(self, session):
        self.session = session
        self._depth = 0

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _model(self, kind: str):
        try:
            return self.MODELS[kind]
        except KeyError:
            raise ValueError(f"Unknown entity kind: {kind}")

    def _column(self, model, name: str):
        column = getattr(model, name, None)
        if column is None:
            raise ValueError(f"{model.__name__} has no field '{name}'")
        return column

    def _commit(self):
        if self.in_transaction:
            self.session.flush()
        else:
            self.session.commit()

    @contextmanager
    def _call(self, action: str, kind: str):
        """Turn driver/ORM failures into StoreError."""
        try:
            yield
        except SQLAlchemyError as e:
            if not self.in_transaction:
                self.session.rollback()
            logger.error(f"[STORE] {action} {kind} failed: {e}")
            raise StoreError(
                f"Errore di archiviazione ({action} {kind})",
                payload={'kind': kind, 'action': action}
            ) from e

    def _next_number(self, model, field: str) -> int:
        column = self._column(model, field)
        current = self.session.query(func.coalesce(func.max(column), 0)).scalar()
        return int(current) + 1

    def _filtered(self, model, filters: Dict[str, Any]):
        query = self.session.query(model)
        for key, value in filters.items():
            name, _, op = key.partition('__')
            column = self._column(model, name)
            if not op:
                query = query.filter(column == value)
            elif op == 'isnull':
                query = query.filter(column.is_(None) if value else column.isnot(None))
            elif op == 'ieq':
                query = query.filter(func.lower(column) == (value or '').lower())
            elif op == 'ne':
                query = query.filter(column != value)
            elif op == 'in':
                query = query.filter(column.in_(list(value)))
            elif op == 'gte':
                query = query.filter(column >= value)
            elif op == 'lt':
                query = query.filter(column < value)
            else:
                raise ValueError(f"Unsupported lookup: {key}")
        return query

    def _ordered(self, query, model, order_by: Optional[str]):
        if not order_by:
            return query.order_by(model.id)
        if order_by.startswith('-'):
            return query.order_by(self._column(model, order_by[1:]).desc())
        return query.order_by(self._column(model, order_by))

    def insert(self, kind, record):
        model = self._model(kind)
        with self._call('insert', kind):
            values = dict(record)
            number_field = self.NUMBERED.get(kind)
            if number_field and values.get(number_field) is None:
                values[number_field] = self._next_number(model, number_field)
            obj = model(**values)
            self.session.add(obj)
            self._commit()
            return obj

    def insert_many(self, kind, records):
        model = self._model(kind)
        with self._call('insert', kind):
            objs = [model(**dict(record)) for record in records]
            self.session.add_all(objs)
            self._commit()
            return objs

    def update(self, kind, record_id, fields):
        model = self._model(kind)
        with self._call('update', kind):
            obj = self.session.get(model, record_id)
            if obj is None:
                raise NotFoundError(f"{model.__name__} {record_id} non trovato")
            for name, value in fields.items():
                self._column(model, name)
                setattr(obj, name, value)
            self._commit()
            return obj

    def update_all(self, kind, fields, **filters):
        model = self._model(kind)
        with self._call('update', kind):
            values = {self._column(model, name): value for name, value in fields.items()}
            count = self._filtered(model, filters).update(values, synchronize_session='fetch')
            self._commit()
            return count

    def delete(self, kind, record_id):
        model = self._model(kind)
        with self._call('delete', kind):
            obj = self.session.get(model, record_id)
            if obj is None:
                return False
            self.session.delete(obj)
            self._commit()
            return True

    def find_by_id(self, kind, record_id):
        model = self._model(kind)
        with self._call('find', kind):
            return self.session.get(model, record_id)

    def find_one(self, kind, order_by=None, **filters):
        model = self._model(kind)
        with self._call('find', kind):
            return self._ordered(self._filtered(model, filters), model, order_by).first()

    def find_all(self, kind, order_by=None, limit=None, **filters):
        model = self._model(kind)
        with self._call('find', kind):
            query = self._ordered(self._filtered(model, filters), model, order_by)
            if limit:
                query = query.limit(limit)
            return query.all()

    def increment(self, kind, record_id, field, delta, floor=None):
        model = self._model(kind)
        column = self._column(model, field)
        with self._call('increment', kind):
            query = self.session.query(model).filter(model.id == record_id)
            if floor is not None:
                query = query.filter(column + delta >= floor)
            updated = query.update({column: column + delta}, synchronize_session=False)
            self._commit()
            if not updated:
                return None
            obj = self.session.get(model, record_id)
            if obj is not None:
                self.session.refresh(obj)
            return obj

    def next_sequence(self, name):
        if self.session.get_bind().dialect.name != 'postgresql':
            raise SequenceUnavailableError(name)
        with self._call('sequence', name):
            if self.in_transaction:
                # A missing sequence must not abort the surrounding transaction
                with self.session.begin_nested():
                    value = self.session.execute(text("SELECT nextval(:name)"), {'name': name}).scalar()
            else:
                value = self.session.execute(text("SELECT nextval(:name)"), {'name': name}).scalar()
            return int(value)

    @contextmanager
    def transaction(self):
        """
        Unit-of-work scope. Calls made inside only flush; the outermost
        scope commits on success and rolls back on any exception.
        """
        outermost = not self.in_transaction
        self._depth += 1
        try:
            yield self
            if outermost:
                with self._call('commit', 'transaction'):
                    self.session.commit()
        except Exception:
            if outermost:
                self.session.rollback()
            raise
        finally:
            self._depth -= 1
