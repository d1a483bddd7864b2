"""
Core — Audit Service

Writes audit log entries for document and order operations.

@file core/services.py
"""

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from django.forms.models import model_to_dict

from core.identity import RequesterIdentity
from core.models import AuditLog

logger = logging.getLogger('distribuidora')


class AuditService:
    """Centralised audit logging for every engine write."""

    @staticmethod
    def log(
        *,
        identity: RequesterIdentity,
        action: str,
        model_name: str,
        object_id: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditLog:
        """One row per write, attributed to the requester that issued it."""
        entry = AuditLog.objects.create(
            actor_id=identity.user_id,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            old_values=old_values,
            new_values=new_values,
            ip_address=identity.ip_address,
            user_agent=identity.user_agent[:500],
        )
        logger.debug('Audit %s %s:%s by %s', action, model_name, object_id, identity.user_id)
        return entry

    @staticmethod
    def snapshot(instance, fields=None) -> dict[str, Any]:
        """
        Serialise a model instance to a plain dict suitable for JSON
        storage. Dates are ISO-formatted; UUIDs and Decimals stringified.
        """
        cleaned: dict[str, Any] = {}
        for key, value in model_to_dict(instance, fields=fields).items():
            if isinstance(value, (Decimal, UUID)):
                value = str(value)
            elif hasattr(value, 'isoformat'):
                value = value.isoformat()
            cleaned[key] = value
        return cleaned

    @staticmethod
    def changed_keys(old_values: dict | None, new_values: dict | None) -> list[str]:
        """Keys whose value differs between two snapshots."""
        old_values, new_values = old_values or {}, new_values or {}
        return sorted(
            key for key in set(old_values) | set(new_values)
            if old_values.get(key) != new_values.get(key)
        )
