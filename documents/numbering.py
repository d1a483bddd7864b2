"""
Documents — Numbering

Pure functions for document numbers: type aliases, prefix normalisation,
sequence padding, display-number derivation and parsing, and the
adjustment-operation tokens. No database access here.

@file documents/numbering.py
"""

import re
import unicodedata

from django.conf import settings

SEQUENCE_WIDTH = 8
MAX_SEQUENCE = 10 ** SEQUENCE_WIDTH - 1
PREFIX_WIDTH = 4

TYPE_RECEIPT = 'R'
TYPE_RECEPTION_NOTE = 'NR'
TYPE_ADJUSTMENT = 'AJ'
DOCUMENT_TYPES = (TYPE_RECEIPT, TYPE_RECEPTION_NOTE, TYPE_ADJUSTMENT)

TYPE_ALIASES = {
    'R': TYPE_RECEIPT,
    'REMITO': TYPE_RECEIPT,
    'REMITOS': TYPE_RECEIPT,
    'NR': TYPE_RECEPTION_NOTE,
    'NOTA DE RECEPCION': TYPE_RECEPTION_NOTE,
    'NOTA DE RECEPCION NR': TYPE_RECEPTION_NOTE,
    'AJ': TYPE_ADJUSTMENT,
    'AJUSTE': TYPE_ADJUSTMENT,
    'AJUSTES': TYPE_ADJUSTMENT,
    'AJUSTE DE INVENTARIO': TYPE_ADJUSTMENT,
}

OPERATION_INCREMENT = 'INCREMENT'
OPERATION_DECREMENT = 'DECREMENT'

INCREMENT_TOKENS = frozenset({
    'INCREMENT', 'INCREMENTO', 'INCREMENTAR', 'INCREASE',
    'SUMAR', 'SUMA', 'MAS', 'MAS+', 'AJ+', 'AJUSTE+',
    'PLUS', 'POSITIVE', 'POSITIVO', 'POS', '+', 'ADD', 'AGREGAR',
})
DECREMENT_TOKENS = frozenset({
    'DECREMENT', 'DECREMENTO', 'DECREMENTAR', 'DECREASE',
    'RESTAR', 'RESTA', 'MENOS', 'MINUS', 'AJ-', 'AJUSTE-',
    'NEGATIVE', 'NEGATIVO', 'NEG', '-', 'QUITAR',
})

DISPLAY_NUMBER_RE = re.compile(r'^(?P<prefix>\d{4})(?P<type>NR|AJ|R)(?P<sequence>\d{8})$')
PREFIX_RE = re.compile(r'^\d{1,4}$')


def normalize_text(value) -> str:
    """Trimmed, upper-cased, accent-free text ('' for None)."""
    if value is None:
        return ''
    decomposed = unicodedata.normalize('NFD', str(value).strip())
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch)).upper()


def normalize_type(value) -> str | None:
    """Canonical type code ('R', 'NR', 'AJ') or None when unknown."""
    return TYPE_ALIASES.get(normalize_text(value))


def normalize_prefix(value) -> str:
    """
    Four-digit prefix. Empty input falls back to DOCUMENT_DEFAULT_PREFIX;
    numeric strings are left-padded; anything else is returned trimmed
    as-is (legacy records only, the create path rejects it).
    """
    if value is None or str(value).strip() == '':
        return settings.DOCUMENT_DEFAULT_PREFIX
    cleaned = str(value).strip()
    if PREFIX_RE.match(cleaned):
        return cleaned.zfill(PREFIX_WIDTH)
    return cleaned


def is_numeric_prefix(prefix: str) -> bool:
    return len(prefix) == PREFIX_WIDTH and prefix.isdigit()


def pad_sequence(value: int, width: int = SEQUENCE_WIDTH) -> str:
    return str(int(value or 0)).zfill(width)


def build_display_number(prefix: str, doc_type: str, sequence: int) -> str:
    """'0012' + 'NR' + 1 -> '0012NR00000001'."""
    return f'{prefix}{doc_type}{pad_sequence(sequence)}'


def parse_display_number(value) -> tuple[str, str, int] | None:
    """(prefix, type, sequence) for a well-formed display number, else None."""
    if value is None:
        return None
    match = DISPLAY_NUMBER_RE.match(str(value).strip().upper())
    if not match:
        return None
    sequence = int(match.group('sequence'))
    if sequence <= 0:
        return None
    return match.group('prefix'), match.group('type'), sequence


def parse_suggested_number(value, doc_type: str, prefix: str) -> int | None:
    """
    Sequence carried by a caller-suggested number, or None when the value is
    not acceptable for this type and prefix. Receipts also accept a bare
    positive integer (the supplier's remito number).
    """
    if value is None:
        return None
    raw = str(value).strip().upper()
    if not raw:
        return None
    if doc_type == TYPE_RECEIPT and raw.isdigit():
        sequence = int(raw)
        return sequence if 0 < sequence <= MAX_SEQUENCE else None
    parsed = parse_display_number(raw)
    if parsed is None:
        return None
    parsed_prefix, parsed_type, sequence = parsed
    if parsed_prefix != prefix or parsed_type != doc_type:
        return None
    return sequence


def parse_adjustment_operation(value) -> str | None:
    """OPERATION_INCREMENT / OPERATION_DECREMENT for a known token, else None."""
    if isinstance(value, bool):
        return OPERATION_DECREMENT if value else None
    token = normalize_text(value).replace('–', '-').replace(' ', '')
    if not token:
        return None
    if token in INCREMENT_TOKENS:
        return OPERATION_INCREMENT
    if token in DECREMENT_TOKENS:
        return OPERATION_DECREMENT
    return None
