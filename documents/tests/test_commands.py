"""
Tests — release_reservations management command

@file documents/tests/test_commands.py
"""

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from django.utils import timezone

from documents.models import SequenceReservation
from tests.factories import SequenceReservationFactory


pytestmark = pytest.mark.django_db


def _expired(**kwargs):
    return SequenceReservationFactory(expires_at=timezone.now() - timedelta(minutes=1), **kwargs)


def test_releases_all_expired():
    _expired(sequence=1)
    _expired(doc_type='R', sequence=1)
    out = StringIO()
    call_command('release_reservations', stdout=out)
    assert 'Done. 2 reservation(s) released.' in out.getvalue()
    assert not SequenceReservation.objects.filter(state=SequenceReservation.State.RESERVED).exists()


def test_scoped_to_bucket():
    _expired(sequence=1)
    other = _expired(doc_type='R', sequence=1)
    call_command('release_reservations', '--tipo', 'ajuste', '--prefijo', '1', stdout=StringIO())
    other.refresh_from_db()
    assert other.state == SequenceReservation.State.RESERVED


def test_unknown_type_is_an_error():
    with pytest.raises(CommandError):
        call_command('release_reservations', '--tipo', 'factura', stdout=StringIO())
