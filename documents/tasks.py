"""
Documents — Celery Tasks

Periodic sweep of expired sequence reservations. Expiry is already
enforced lazily at allocation time; the sweep keeps the table tidy.

@file documents/tasks.py
"""

import logging

from celery import shared_task

logger = logging.getLogger('distribuidora')


@shared_task(name='documents.release_expired_reservations')
def release_expired_reservations_task():
    """
    Mark RESERVED reservations past expires_at as RELEASED.
    Registered with Celery Beat every RESERVATION_SWEEP_INTERVAL_MINUTES.
    """
    from .services import ReservationService

    count = ReservationService.release_expired()
    logger.info('release_expired_reservations_task completed: %d reservation(s) released.', count)
    return {'released_count': count}
