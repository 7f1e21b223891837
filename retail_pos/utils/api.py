"""Request helpers shared by the JSON blueprints."""
from datetime import datetime

from flask import current_app, request

from retail_pos.database import get_session
from retail_pos.exceptions import ValidationError
from retail_pos.store import SqlAlchemyStore
from retail_pos.utils.number_format import parse_amount


def get_store() -> SqlAlchemyStore:
    """Store bound to the request's scoped session."""
    return SqlAlchemyStore(get_session())


def settlement_options() -> dict:
    """Optional settlement hardening switched on from config."""
    return {
        'atomic': current_app.config.get('SETTLEMENT_ATOMIC', False),
    }


def get_payload() -> dict:
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def parse_int(value, field: str, required: bool = True):
    if value is None or value == '':
        if required:
            raise ValidationError(f"Campo obbligatorio: {field}", payload={'field': field})
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Valore non numerico: {field}", payload={'field': field})


def parse_money(value, field: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        raise ValidationError(str(e), payload={'field': field})


def parse_date(value, field: str):
    """ISO date or datetime from a query string; empty gives None."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Data non valida: {field}", payload={'field': field})


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or '').strip().lower() in ('1', 'true', 'yes', 'on', 'si', 'sì')
