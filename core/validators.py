"""
Core — Shared Validators

@file core/validators.py
"""

import re

from core.exceptions import BusinessRuleViolation

QUANTITY_MESSAGE = 'La cantidad debe ser un entero distinto de cero'
INTEGER_RE = re.compile(r'^[+-]?\d+$')
# Largest magnitude the integer columns behind quantities and stock can hold.
QUANTITY_LIMIT = 2_147_483_647


def validate_quantity(value) -> int:
    """Non-zero integer. Booleans, fractions and non-numeric strings are rejected."""
    if isinstance(value, bool) or value is None:
        raise BusinessRuleViolation(QUANTITY_MESSAGE)
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, float) and value.is_integer():
        quantity = int(value)
    elif isinstance(value, str) and INTEGER_RE.match(value.strip()):
        quantity = int(value.strip())
    else:
        raise BusinessRuleViolation(QUANTITY_MESSAGE)
    if quantity == 0 or abs(quantity) > QUANTITY_LIMIT:
        raise BusinessRuleViolation(QUANTITY_MESSAGE)
    return quantity
