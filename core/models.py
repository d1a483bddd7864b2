"""
Core — Base Models & Audit Infrastructure

BaseModel gives every record a UUID key, timestamps and the users who
created and last touched it. ActivableModel adds deactivation: documents
and orders are never deleted, so their numbers stay taken. AuditLog keeps
one row per write against them.

@file core/models.py
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


def _actor_fk(verbose_name):
    return models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=verbose_name,
    )


class ActiveQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)

    def inactive(self):
        return self.filter(is_active=False)


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)
    created_by = _actor_fk(_('created by'))
    updated_by = _actor_fk(_('updated by'))

    class Meta:
        abstract = True


class ActivableModel(BaseModel):
    """
    Record that is switched off instead of removed.

    Orders stay off once deactivated. A document can be switched back on
    through DocumentService.update_document while no other active document
    holds its number.
    """

    is_active = models.BooleanField(_('active'), default=True, db_index=True)
    deactivated_at = models.DateTimeField(_('deactivated at'), null=True, blank=True)
    deactivated_by = _actor_fk(_('deactivated by'))

    objects = ActiveQuerySet.as_manager()

    class Meta:
        abstract = True

    def deactivate(self, user_id=None):
        self.is_active = False
        self.deactivated_at = timezone.now()
        self.deactivated_by_id = user_id
        self.updated_by_id = user_id
        self.save(update_fields=[
            'is_active', 'deactivated_at', 'deactivated_by', 'updated_by', 'updated_at',
        ])


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------

class AuditLog(models.Model):
    """
    Append-only trail of document and order writes.

    old_values / new_values hold JSON snapshots taken by
    AuditService.snapshot, so a row can be diffed without the live record.
    """

    class ActionChoices(models.TextChoices):
        CREATE = 'CREATE', _('Create')
        UPDATE = 'UPDATE', _('Update')
        DEACTIVATE = 'DEACTIVATE', _('Deactivate')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='audit_logs',
        verbose_name=_('actor'),
    )
    action = models.CharField(_('action'), max_length=20, choices=ActionChoices.choices, db_index=True)
    model_name = models.CharField(_('model'), max_length=100, db_index=True)
    object_id = models.CharField(_('object ID'), max_length=40, db_index=True)
    old_values = models.JSONField(_('old values'), null=True, blank=True)
    new_values = models.JSONField(_('new values'), null=True, blank=True)
    ip_address = models.GenericIPAddressField(_('IP address'), null=True, blank=True)
    user_agent = models.TextField(_('user agent'), blank=True, default='')
    timestamp = models.DateTimeField(_('timestamp'), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _('audit log')
        verbose_name_plural = _('audit logs')
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['model_name', 'object_id']),
            models.Index(fields=['actor', 'timestamp']),
        ]

    def __str__(self):
        return f'{self.action} {self.model_name}:{self.object_id} by {self.actor_id}'
