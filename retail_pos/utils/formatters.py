"""
Formatting helpers for CLI output and printed documents (Italian style).
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union


def money_it(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Format an amount with two decimals, dot for thousands, comma for decimals.

    Examples:
        money_it(1500) -> "1.500,00"
        money_it(-3.5) -> "-3,50"
        money_it(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    num = abs(num)

    integer_part, decimal_part = f"{num:.2f}".split(".")
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    integer_formatted = '.'.join(groups)[::-1]

    return f"{sign}{integer_formatted},{decimal_part}"


def date_it(value: Union[date, datetime, None]) -> str:
    """dd/mm/yyyy, or "-"."""
    if value is None:
        return "-"
    return value.strftime('%d/%m/%Y')
