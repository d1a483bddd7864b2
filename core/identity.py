"""
Core — Requester Identity

The engine never reads request.user directly. Views translate the
authenticated principal into a RequesterIdentity and pass only that to
the coordinators.

@file core/identity.py
"""

from dataclasses import dataclass
from uuid import UUID

from core.constants import ROLE_USER


def client_ip(request) -> str | None:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


@dataclass(frozen=True)
class RequesterIdentity:
    """Trusted `{_id, role}` claims supplied by the authentication layer."""

    user_id: UUID
    role: str = ROLE_USER
    ip_address: str | None = None
    user_agent: str = ''

    @classmethod
    def from_user(cls, user) -> 'RequesterIdentity':
        return cls(user_id=user.pk, role=getattr(user, 'role', ROLE_USER))

    @classmethod
    def from_request(cls, request) -> 'RequesterIdentity':
        return cls(
            user_id=request.user.pk,
            role=getattr(request.user, 'role', ROLE_USER),
            ip_address=client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )
