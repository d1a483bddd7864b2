"""
Documents — Input Validation

Line-item and date rules shared by document creation and update. Every
check here runs before any write; failures raise BusinessRuleViolation.

@file documents/validators.py
"""

from dataclasses import dataclass
from datetime import date, datetime

from django.utils.dateparse import parse_date, parse_datetime

from catalog.services import CatalogService
from core.exceptions import BusinessRuleViolation, ReferenceNotFoundError
from core.validators import QUANTITY_LIMIT, QUANTITY_MESSAGE, validate_quantity

from .numbering import OPERATION_DECREMENT, OPERATION_INCREMENT, TYPE_ADJUSTMENT


@dataclass(frozen=True)
class LineInput:
    product_id: str
    product_code: str
    quantity: int


def validate_item_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or str(value).strip() == '':
        raise BusinessRuleViolation('La fecha del remito es obligatoria.')
    raw = str(value).strip()
    try:
        parsed = parse_date(raw)
        if parsed is None:
            moment = parse_datetime(raw)
            parsed = moment.date() if moment else None
    except ValueError:
        parsed = None
    if parsed is None:
        raise BusinessRuleViolation('La fecha del remito es inválida.')
    return parsed


def parse_line_items(raw_items, doc_type: str, operation: str | None = None) -> list[LineInput]:
    """
    Validate wire line items ({cantidad, producto, codprod}) and apply the
    sign convention: receipts and reception notes take positive quantities;
    adjustments are signed deltas unless an operation forces the sign.
    """
    if not isinstance(raw_items, (list, tuple)) or not raw_items:
        raise BusinessRuleViolation('Debe incluir al menos un ítem de producto')

    lines = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise BusinessRuleViolation('Ítem de producto inválido.')
        product_id = raw.get('producto')
        if not product_id:
            raise BusinessRuleViolation('Cada ítem debe indicar el producto.')
        if not CatalogService.is_valid_id(product_id):
            raise BusinessRuleViolation(f'Identificador de producto inválido: {product_id}')
        quantity = validate_quantity(raw.get('cantidad'))

        if doc_type == TYPE_ADJUSTMENT:
            if operation == OPERATION_INCREMENT:
                quantity = abs(quantity)
            elif operation == OPERATION_DECREMENT:
                quantity = -abs(quantity)
        elif quantity < 0:
            raise BusinessRuleViolation(
                'Las cantidades de remitos y notas de recepción deben ser positivas.',
            )

        lines.append(LineInput(
            product_id=CatalogService.canonical_id(product_id),
            product_code=str(raw.get('codprod') or ''),
            quantity=quantity,
        ))
    return lines


def aggregate_lines(lines: list[LineInput]) -> dict[str, int]:
    """Net signed quantity per product, in first-seen order."""
    totals: dict[str, int] = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        if abs(totals[line.product_id]) > QUANTITY_LIMIT:
            raise BusinessRuleViolation(QUANTITY_MESSAGE)
    return totals


def resolve_products(product_ids, *, require_active: bool) -> dict:
    """Products keyed by str(pk). Missing or (when required) inactive products fail."""
    products = CatalogService.get_products(product_ids)
    for product_id in product_ids:
        product = products.get(product_id)
        if product is None:
            raise ReferenceNotFoundError(f'El producto {product_id} no existe.')
        if require_active and not product.is_active:
            raise ReferenceNotFoundError(
                f'El producto {product.code} está inactivo y no puede recibir stock.',
            )
    return products
