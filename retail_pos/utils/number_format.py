"""Amount parsing for Italian-formatted input (1.234,56)."""
import re
from decimal import Decimal, InvalidOperation

IT_NUMBER_PATTERN = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")


def parse_amount(value) -> Decimal:
    """
    Parse a non-negative amount to Decimal.

    Accepts numbers, plain strings ("12.50") and Italian format
    ("1.234,56", "12,5"). Thousand groups must be well formed.

    Raises:
        ValueError: if the value is empty, malformed or negative.
    """
    if value is None or isinstance(value, bool):
        raise ValueError('Formato non valido. Usa 1.234,56')

    if isinstance(value, (int, float, Decimal)):
        decimal_value = Decimal(str(value))
    else:
        cleaned = str(value).strip()
        if not cleaned:
            raise ValueError('Formato non valido. Usa 1.234,56')
        if IT_NUMBER_PATTERN.match(cleaned) and (',' in cleaned or cleaned.count('.') > 1):
            normalized = cleaned.replace('.', '').replace(',', '.')
        else:
            normalized = cleaned
        try:
            decimal_value = Decimal(normalized)
        except (InvalidOperation, ValueError):
            raise ValueError('Formato non valido. Usa 1.234,56')

    if not decimal_value.is_finite():
        raise ValueError('Formato non valido. Usa 1.234,56')
    if decimal_value < 0:
        raise ValueError('Il valore non può essere negativo')

    return decimal_value
