"""
Documents — Service Layer

SequenceAllocator: next sequence per (type, prefix) under a row lock on the
bucket counter, with bounded retry on unique-index conflicts.
ReservationService: time-bounded claims on a sequence, lazy expiry.
DocumentService: the creation pipeline (validate -> allocate -> mutate stock
-> persist document -> persist ledger) as one atomic unit, plus update,
deactivation and next-number lookup.

@file documents/services.py
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from catalog.services import CatalogService
from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DEACTIVATE, AUDIT_ACTION_UPDATE
from core.exceptions import (
    BusinessRuleViolation,
    DuplicateDocumentError,
    ReferenceNotFoundError,
    ResourceNotFoundError,
    SequenceConflictError,
)
from core.identity import RequesterIdentity
from core.services import AuditService
from stock.models import StockMovement
from stock.services import StockService, kind_for_delta

from .models import Document, DocumentSequence, LineItem, SequenceReservation
from .numbering import (
    MAX_SEQUENCE,
    TYPE_ADJUSTMENT,
    TYPE_RECEPTION_NOTE,
    build_display_number,
    is_numeric_prefix,
    normalize_prefix,
    normalize_type,
    parse_adjustment_operation,
    parse_suggested_number,
)
from .validators import aggregate_lines, parse_line_items, resolve_products, validate_item_date

logger = logging.getLogger('distribuidora')

DOCUMENT_AUDIT_FIELDS = [
    'doc_type', 'prefix', 'sequence', 'display_number', 'provider',
    'item_date', 'adjustment_operation', 'notes', 'is_active',
]


def _insert_document(**fields) -> Document:
    """Insert inside a savepoint so a unique violation leaves the outer unit usable."""
    with transaction.atomic():
        return Document.objects.create(**fields)


def _resolve_type(value) -> str:
    doc_type = normalize_type(value)
    if doc_type is None:
        raise BusinessRuleViolation('Tipo de documento inválido. Valores permitidos: R, NR, AJ.')
    return doc_type


def _resolve_prefix(value) -> str:
    prefix = normalize_prefix(value)
    if not is_numeric_prefix(prefix):
        raise BusinessRuleViolation('El prefijo debe ser numérico de hasta 4 dígitos.')
    return prefix


def _resolve_operation(value) -> str | None:
    # False is "no direction given"; True asks for a decrement.
    if value is None or value == '' or value is False:
        return None
    operation = parse_adjustment_operation(value)
    if operation is None:
        raise BusinessRuleViolation(f'Operación de ajuste inválida: {value}')
    return operation


def _resolve_provider(provider_id) -> str:
    if not provider_id:
        raise BusinessRuleViolation('El proveedor es obligatorio.')
    if not CatalogService.is_valid_id(provider_id) or not CatalogService.provider_exists(provider_id):
        raise ReferenceNotFoundError('El proveedor indicado no existe.')
    return str(provider_id)


def _movement_kind(doc_type: str, delta: int) -> str:
    if doc_type == TYPE_ADJUSTMENT:
        return kind_for_delta(delta)
    return kind_for_delta(delta, inbound=StockMovement.Kind.PURCHASE)


def _stock_update(product, delta: int, new_stock: int) -> dict:
    entry = {'producto': str(product.pk), 'codprod': product.code}
    if delta > 0:
        entry['incremento'] = delta
        entry['operacion'] = 'increment'
    else:
        entry['decremento'] = -delta
        entry['operacion'] = 'decrement'
    entry['stkactual'] = new_stock
    return entry


# ---------------------------------------------------------------------------
# SequenceAllocator
# ---------------------------------------------------------------------------

class SequenceAllocator:
    """Candidate computation for a (type, prefix) bucket."""

    @staticmethod
    def committed_max(doc_type: str, prefix: str) -> int:
        result = Document.objects.filter(doc_type=doc_type, prefix=prefix).aggregate(top=Max('sequence'))
        return result['top'] or 0

    @staticmethod
    def lock_bucket(doc_type: str, prefix: str) -> DocumentSequence:
        """Get (seeding from existing documents) and row-lock the bucket counter."""
        counter, created = DocumentSequence.objects.get_or_create(
            doc_type=doc_type,
            prefix=prefix,
            defaults={'last_value': SequenceAllocator.committed_max(doc_type, prefix)},
        )
        if created:
            logger.info('Sequence bucket %s%s seeded at %s', prefix, doc_type, counter.last_value)
        return DocumentSequence.objects.select_for_update().get(pk=counter.pk)

    @staticmethod
    def held_by_others(doc_type: str, prefix: str, user_id, now=None) -> set[int]:
        now = now or timezone.now()
        return set(
            SequenceReservation.objects.filter(
                doc_type=doc_type,
                prefix=prefix,
                state=SequenceReservation.State.RESERVED,
                expires_at__gt=now,
            ).exclude(requested_by_id=user_id).values_list('sequence', flat=True),
        )

    @staticmethod
    def next_candidate(counter: DocumentSequence, user_id, skip=()) -> int:
        """1 + highest committed sequence, stepping over live claims of other users."""
        floor = max(counter.last_value, SequenceAllocator.committed_max(counter.doc_type, counter.prefix))
        taken = SequenceAllocator.held_by_others(counter.doc_type, counter.prefix, user_id) | set(skip)
        candidate = floor + 1
        while candidate in taken:
            candidate += 1
        if candidate > MAX_SEQUENCE:
            raise SequenceConflictError(
                f'La numeración {counter.prefix}{counter.doc_type} alcanzó su máximo de {MAX_SEQUENCE}.',
            )
        return candidate

    @staticmethod
    def advance(counter: DocumentSequence, sequence: int) -> None:
        if sequence > counter.last_value:
            counter.last_value = sequence
            counter.save(update_fields=['last_value', 'updated_at'])


# ---------------------------------------------------------------------------
# ReservationService
# ---------------------------------------------------------------------------

class ReservationService:
    """Reserve, look up, consume and expire sequence reservations."""

    @staticmethod
    def release_expired(doc_type: str | None = None, prefix: str | None = None, now=None) -> int:
        now = now or timezone.now()
        qs = SequenceReservation.objects.filter(
            state=SequenceReservation.State.RESERVED,
            expires_at__lte=now,
        )
        if doc_type is not None:
            qs = qs.filter(doc_type=doc_type)
        if prefix is not None:
            qs = qs.filter(prefix=prefix)
        released = qs.update(
            state=SequenceReservation.State.RELEASED,
            released_at=now,
            updated_at=now,
        )
        if released:
            logger.info('Released %s expired sequence reservation(s)', released)
        return released

    @staticmethod
    def live_for_sequence(doc_type: str, prefix: str, sequence: int) -> SequenceReservation | None:
        return SequenceReservation.objects.filter(
            doc_type=doc_type,
            prefix=prefix,
            sequence=sequence,
            state=SequenceReservation.State.RESERVED,
            expires_at__gt=timezone.now(),
        ).first()

    @staticmethod
    def live_for_requester(doc_type: str, prefix: str, user_id) -> SequenceReservation | None:
        return SequenceReservation.objects.filter(
            doc_type=doc_type,
            prefix=prefix,
            requested_by_id=user_id,
            state=SequenceReservation.State.RESERVED,
            expires_at__gt=timezone.now(),
        ).first()

    @staticmethod
    @transaction.atomic
    def reserve(*, identity: RequesterIdentity, doc_type: str, prefix: str) -> SequenceReservation:
        """
        Claim the next free sequence for the requester. An open claim of the
        same requester in the bucket is refreshed instead of duplicated.
        """
        doc_type = _resolve_type(doc_type)
        prefix = _resolve_prefix(prefix)
        ReservationService.release_expired(doc_type, prefix)
        expires_at = timezone.now() + timedelta(minutes=settings.DOCUMENT_RESERVATION_TTL_MINUTES)

        counter = SequenceAllocator.lock_bucket(doc_type, prefix)
        existing = ReservationService.live_for_requester(doc_type, prefix, identity.user_id)
        if existing is not None:
            existing.expires_at = expires_at
            existing.updated_by_id = identity.user_id
            existing.save(update_fields=['expires_at', 'updated_by', 'updated_at'])
            return existing

        tried: set[int] = set()
        for _attempt in range(settings.DOCUMENT_ALLOCATION_MAX_ATTEMPTS):
            sequence = SequenceAllocator.next_candidate(counter, identity.user_id, skip=tried)
            try:
                with transaction.atomic():
                    reservation = SequenceReservation.objects.create(
                        doc_type=doc_type,
                        prefix=prefix,
                        sequence=sequence,
                        requested_by_id=identity.user_id,
                        expires_at=expires_at,
                        created_by_id=identity.user_id,
                    )
            except IntegrityError:
                logger.warning('Reservation conflict on %s', build_display_number(prefix, doc_type, sequence))
                tried.add(sequence)
                continue
            logger.info(
                'Reserved %s for user %s until %s',
                build_display_number(prefix, doc_type, sequence), identity.user_id, expires_at.isoformat(),
            )
            return reservation

        raise SequenceConflictError('No se pudo reservar un número de documento. Intente nuevamente.')

    @staticmethod
    def consume(reservation: SequenceReservation, document: Document) -> None:
        now = timezone.now()
        reservation.state = SequenceReservation.State.CONSUMED
        reservation.consumed_at = now
        reservation.document = document
        reservation.save(update_fields=['state', 'consumed_at', 'document', 'updated_at'])


# ---------------------------------------------------------------------------
# DocumentService
# ---------------------------------------------------------------------------

class DocumentService:
    """Coordinator for inventory documents."""

    @staticmethod
    def get_document(document_id) -> Document:
        if not CatalogService.is_valid_id(document_id):
            raise ResourceNotFoundError('Documento no encontrado.')
        try:
            return (
                Document.objects
                .select_related('provider')
                .prefetch_related('items__product')
                .get(pk=document_id)
            )
        except Document.DoesNotExist:
            raise ResourceNotFoundError('Documento no encontrado.')

    @staticmethod
    def next_number(
        *,
        identity: RequesterIdentity,
        doc_type,
        prefix=None,
        reserve: bool = False,
    ) -> dict:
        """
        Next number for a bucket. Adjustments (or reserve=True) hold it for
        the requester; other types only peek.
        """
        doc_type = _resolve_type(doc_type)
        prefix = _resolve_prefix(prefix)
        reserved_until = None

        if reserve or doc_type == TYPE_ADJUSTMENT:
            reservation = ReservationService.reserve(identity=identity, doc_type=doc_type, prefix=prefix)
            sequence = reservation.sequence
            reserved_until = reservation.expires_at
        else:
            own = ReservationService.live_for_requester(doc_type, prefix, identity.user_id)
            if own is not None:
                sequence = own.sequence
                reserved_until = own.expires_at
            else:
                counter = DocumentSequence.objects.filter(doc_type=doc_type, prefix=prefix).first()
                if counter is None:
                    counter = DocumentSequence(doc_type=doc_type, prefix=prefix, last_value=0)
                sequence = SequenceAllocator.next_candidate(counter, identity.user_id)

        return {
            'ok': True,
            'tipo': doc_type,
            'prefijo': prefix,
            'nextSequence': sequence,
            'numero': build_display_number(prefix, doc_type, sequence),
            'reservadoHasta': reserved_until.isoformat() if reserved_until else None,
        }

    @staticmethod
    @transaction.atomic
    def create_document(
        *,
        identity: RequesterIdentity,
        doc_type,
        prefix=None,
        provider_id=None,
        item_date=None,
        items=None,
        adjustment_operation=None,
        suggested_number=None,
        notes: str = '',
    ) -> tuple[Document, list[dict]]:
        """
        Create a document and apply its stock deltas atomically.

        Returns (document, stock_updates). Nothing is written unless every
        step succeeds.
        """
        # 1. Normalise and validate; no write happens before this passes.
        doc_type = _resolve_type(doc_type)
        prefix = _resolve_prefix(prefix)
        provider_id = _resolve_provider(provider_id)
        item_date = validate_item_date(item_date)
        operation = _resolve_operation(adjustment_operation) if doc_type == TYPE_ADJUSTMENT else None

        # 2-3. Line items, sign convention and per-product aggregation.
        lines = parse_line_items(items, doc_type, operation)
        totals = aggregate_lines(lines)
        products = resolve_products(list(totals), require_active=doc_type == TYPE_RECEPTION_NOTE)
        for product_id, delta in totals.items():
            if delta == 0:
                raise BusinessRuleViolation(
                    f'La cantidad neta del producto {products[product_id].code} no puede ser cero.',
                )

        suggested_sequence = None
        if suggested_number not in (None, ''):
            suggested_sequence = parse_suggested_number(suggested_number, doc_type, prefix)
            if suggested_sequence is None:
                raise BusinessRuleViolation(
                    f'El número sugerido {suggested_number} no es válido para {prefix}{doc_type}.',
                )

        # 4-5. Idempotency guard and allocation.
        ReservationService.release_expired(doc_type, prefix)
        counter = SequenceAllocator.lock_bucket(doc_type, prefix)
        reservation = None
        fields = {
            'doc_type': doc_type,
            'prefix': prefix,
            'provider_id': provider_id,
            'item_date': item_date,
            'adjustment_operation': operation or '',
            'notes': notes or '',
            'created_by_id': identity.user_id,
            'updated_by_id': identity.user_id,
        }

        if suggested_sequence is not None:
            display_number = build_display_number(prefix, doc_type, suggested_sequence)
            DocumentService._guard_duplicate(display_number)
            reservation = ReservationService.live_for_sequence(doc_type, prefix, suggested_sequence)
            if reservation is not None and reservation.requested_by_id != identity.user_id:
                logger.warning('Suggested number %s is reserved by another user', display_number)
                raise SequenceConflictError(f'El número {display_number} está reservado por otro usuario.')
            if doc_type == TYPE_RECEPTION_NOTE and reservation is None:
                expected = SequenceAllocator.next_candidate(counter, identity.user_id)
                if expected != suggested_sequence:
                    next_display = build_display_number(prefix, doc_type, expected)
                    logger.warning('Reception note number moved: %s -> %s', display_number, next_display)
                    raise SequenceConflictError(
                        f'El número de nota de recepción cambió. Nuevo número: {next_display}',
                        extra={'nextSequence': expected, 'numero': next_display},
                    )
            try:
                document = _insert_document(
                    sequence=suggested_sequence, display_number=display_number, **fields,
                )
            except IntegrityError:
                DocumentService._guard_duplicate(display_number)
                raise SequenceConflictError(f'El número {display_number} ya fue utilizado.')
        else:
            reservation = ReservationService.live_for_requester(doc_type, prefix, identity.user_id)
            document = DocumentService._allocate_and_insert(counter, identity, reservation, fields)

        SequenceAllocator.advance(counter, document.sequence)
        if reservation is not None:
            ReservationService.consume(reservation, document)

        LineItem.objects.bulk_create([
            LineItem(
                document=document,
                position=position,
                product_id=line.product_id,
                product_code=line.product_code or products[line.product_id].code,
                quantity=line.quantity,
            )
            for position, line in enumerate(lines)
        ])

        # 6-7. One stock delta and one ledger row per distinct product.
        stock_updates = DocumentService._apply_deltas(
            document, totals, products, identity,
            kind_for=lambda delta: _movement_kind(doc_type, delta),
        )

        AuditService.log(
            identity=identity,
            action=AUDIT_ACTION_CREATE,
            model_name='Document',
            object_id=str(document.pk),
            new_values={
                **AuditService.snapshot(document, fields=DOCUMENT_AUDIT_FIELDS),
                'items': [{'producto': pid, 'cantidad': qty} for pid, qty in totals.items()],
            },
        )
        logger.info(
            'Document %s created by %s (%s product(s))',
            document.display_number, identity.user_id, len(totals),
        )
        return DocumentService.get_document(document.pk), stock_updates

    @staticmethod
    def _guard_duplicate(display_number: str, exclude_id=None) -> None:
        qs = Document.objects.active().filter(display_number=display_number)
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        if qs.exists():
            logger.warning('Duplicate active document number rejected: %s', display_number)
            raise DuplicateDocumentError(f'Ya existe un documento activo con el número {display_number}.')

    @staticmethod
    def _allocate_and_insert(counter, identity, reservation, fields) -> Document:
        """Reserved sequence verbatim, or candidate + retry on unique conflicts."""
        doc_type, prefix = counter.doc_type, counter.prefix

        if reservation is not None:
            display_number = build_display_number(prefix, doc_type, reservation.sequence)
            DocumentService._guard_duplicate(display_number)
            try:
                return _insert_document(
                    sequence=reservation.sequence, display_number=display_number, **fields,
                )
            except IntegrityError:
                raise SequenceConflictError(f'El número reservado {display_number} ya fue utilizado.')

        tried: set[int] = set()
        max_attempts = settings.DOCUMENT_ALLOCATION_MAX_ATTEMPTS
        for attempt in range(1, max_attempts + 1):
            sequence = SequenceAllocator.next_candidate(counter, identity.user_id, skip=tried)
            display_number = build_display_number(prefix, doc_type, sequence)
            DocumentService._guard_duplicate(display_number)
            try:
                return _insert_document(sequence=sequence, display_number=display_number, **fields)
            except IntegrityError:
                logger.warning(
                    'Sequence conflict on %s (attempt %s/%s)', display_number, attempt, max_attempts,
                )
                tried.add(sequence)

        logger.error('Sequence allocation exhausted for %s%s', prefix, doc_type)
        raise SequenceConflictError(
            'No se pudo asignar un número de documento por concurrencia. Intente nuevamente.',
        )

    @staticmethod
    def _apply_deltas(document, totals, products, identity, *, kind_for) -> list[dict]:
        updates = []
        for product_id, delta in totals.items():
            if delta == 0:
                continue
            product = products[product_id]
            new_stock = StockService.apply_delta(product_id, delta)
            StockService.record_movement(
                product_id=product_id,
                kind=kind_for(delta),
                quantity=abs(delta),
                reference_type=StockMovement.ReferenceType.DOCUMENT,
                reference_id=document.pk,
                reference_number=document.display_number,
                occurred_at=timezone.now(),
                recorded_by_id=identity.user_id,
            )
            updates.append(_stock_update(product, delta, new_stock))
        return updates

    @staticmethod
    @transaction.atomic
    def update_document(*, identity: RequesterIdentity, document_id, changes: dict) -> tuple[Document, list[dict]]:
        """
        Update non-numbering fields. `changes` may carry doc_type, prefix,
        provider_id, item_date, notes, items, adjustment_operation and is_active.
        Item changes apply the per-product net difference as adjustments.
        """
        document = DocumentService.get_document(document_id)
        document = Document.objects.select_for_update().get(pk=document.pk)
        old_values = AuditService.snapshot(document, fields=DOCUMENT_AUDIT_FIELDS)

        if changes.get('doc_type') not in (None, '') and normalize_type(changes['doc_type']) != document.doc_type:
            raise BusinessRuleViolation('No se puede modificar el tipo de un documento.')
        if changes.get('prefix') not in (None, '') and normalize_prefix(changes['prefix']) != document.prefix:
            raise BusinessRuleViolation('No se puede modificar el prefijo de un documento.')

        reactivate = changes.get('is_active') is True and not document.is_active
        if not document.is_active and not reactivate:
            raise BusinessRuleViolation('No se puede modificar un documento inactivo.')
        if reactivate:
            DocumentService._guard_duplicate(document.display_number, exclude_id=document.pk)

        update_fields = ['updated_by', 'updated_at']
        if 'provider_id' in changes:
            document.provider_id = _resolve_provider(changes['provider_id'])
            update_fields.append('provider')
        if 'item_date' in changes:
            document.item_date = validate_item_date(changes['item_date'])
            update_fields.append('item_date')
        if 'notes' in changes:
            document.notes = changes['notes'] or ''
            update_fields.append('notes')
        if document.doc_type == TYPE_ADJUSTMENT and changes.get('adjustment_operation') not in (None, '', False):
            document.adjustment_operation = _resolve_operation(changes['adjustment_operation'])
            update_fields.append('adjustment_operation')
        if reactivate:
            document.is_active = True
            document.deactivated_at = None
            document.deactivated_by_id = None
            update_fields += ['is_active', 'deactivated_at', 'deactivated_by']

        stock_updates = []
        if changes.get('items') is not None:
            stock_updates = DocumentService._replace_items(document, changes['items'], identity)

        document.updated_by_id = identity.user_id
        document.save(update_fields=update_fields)

        if changes.get('is_active') is False and document.is_active:
            document.deactivate(user_id=identity.user_id)

        AuditService.log(
            identity=identity,
            action=AUDIT_ACTION_UPDATE,
            model_name='Document',
            object_id=str(document.pk),
            old_values=old_values,
            new_values=AuditService.snapshot(document, fields=DOCUMENT_AUDIT_FIELDS),
        )
        logger.info('Document %s updated by %s', document.display_number, identity.user_id)
        return DocumentService.get_document(document.pk), stock_updates

    @staticmethod
    def _replace_items(document: Document, raw_items, identity) -> list[dict]:
        operation = document.adjustment_operation or None
        lines = parse_line_items(raw_items, document.doc_type, operation)
        new_totals = aggregate_lines(lines)
        old_totals: dict[str, int] = {}
        for item in document.items.all():
            key = str(item.product_id)
            old_totals[key] = old_totals.get(key, 0) + item.quantity

        products = resolve_products(
            list(new_totals), require_active=document.doc_type == TYPE_RECEPTION_NOTE,
        )
        products.update(CatalogService.get_products([pid for pid in old_totals if pid not in products]))

        differences = {}
        for product_id in list(old_totals) + [pid for pid in new_totals if pid not in old_totals]:
            delta = new_totals.get(product_id, 0) - old_totals.get(product_id, 0)
            if delta:
                differences[product_id] = delta

        document.items.all().delete()
        LineItem.objects.bulk_create([
            LineItem(
                document=document,
                position=position,
                product_id=line.product_id,
                product_code=line.product_code or products[line.product_id].code,
                quantity=line.quantity,
            )
            for position, line in enumerate(lines)
        ])
        return DocumentService._apply_deltas(
            document, differences, products, identity, kind_for=kind_for_delta,
        )

    @staticmethod
    @transaction.atomic
    def deactivate_document(*, identity: RequesterIdentity, document_id) -> Document:
        """Soft delete. Stock is not reversed and the number stays taken."""
        document = DocumentService.get_document(document_id)
        if not document.is_active:
            return document
        old_values = AuditService.snapshot(document, fields=DOCUMENT_AUDIT_FIELDS)
        document.deactivate(user_id=identity.user_id)
        AuditService.log(
            identity=identity,
            action=AUDIT_ACTION_DEACTIVATE,
            model_name='Document',
            object_id=str(document.pk),
            old_values=old_values,
            new_values=AuditService.snapshot(document, fields=DOCUMENT_AUDIT_FIELDS),
        )
        logger.info('Document %s deactivated by %s', document.display_number, identity.user_id)
        return document
