"""
Documents — Management Command: release_reservations

Releases every sequence reservation whose TTL has elapsed. Same work as
the periodic Celery sweep, for hosts running without a beat scheduler.

Usage::

    python manage.py release_reservations
    python manage.py release_reservations --tipo AJ --prefijo 0001

@file documents/management/commands/release_reservations.py
"""

from django.core.management.base import BaseCommand, CommandError

from documents.numbering import is_numeric_prefix, normalize_prefix, normalize_type
from documents.services import ReservationService


class Command(BaseCommand):
    help = 'Release expired document sequence reservations.'

    def add_arguments(self, parser):
        parser.add_argument('--tipo', help='Only this document type (R, NR, AJ).')
        parser.add_argument('--prefijo', help='Only this prefix.')

    def handle(self, *args, **options):
        doc_type = None
        if options.get('tipo'):
            doc_type = normalize_type(options['tipo'])
            if doc_type is None:
                raise CommandError(f'Unknown document type: {options["tipo"]}')
        prefix = None
        if options.get('prefijo'):
            prefix = normalize_prefix(options['prefijo'])
            if not is_numeric_prefix(prefix):
                raise CommandError(f'Invalid prefix: {options["prefijo"]}')

        released = ReservationService.release_expired(doc_type, prefix)
        self.stdout.write(self.style.SUCCESS(f'Done. {released} reservation(s) released.'))
