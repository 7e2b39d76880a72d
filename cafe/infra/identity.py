"""
Admin session resolution.

The session cookie is a ``django.core.signing`` token holding the staff id
and role. The role in the token is only a hint for the UI: services re-read
the staff row before authorizing anything.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from django.conf import settings
from django.core import signing

from cafe.domain.order import AdminRole

logger = logging.getLogger(__name__)

SESSION_SALT = "cafe.admin-session"


@dataclass(frozen=True)
class StaffIdentity:
    staff_id: UUID
    role: AdminRole


def issue_session_token(staff_id: UUID, role: AdminRole | str) -> str:
    """Signed cookie value for a logged-in staff member."""
    return signing.dumps(
        {"staffId": str(staff_id), "role": AdminRole(role).value},
        salt=SESSION_SALT,
        compress=True,
    )


def read_session_token(token: str | None) -> StaffIdentity | None:
    if not token:
        return None
    try:
        data = signing.loads(
            token,
            salt=SESSION_SALT,
            max_age=settings.CAFFICO_ADMIN_SESSION_MAX_AGE,
        )
        return StaffIdentity(staff_id=UUID(data["staffId"]), role=AdminRole(data["role"]))
    except signing.SignatureExpired:
        logger.info("admin_session_expired")
        return None
    except (signing.BadSignature, KeyError, ValueError, TypeError):
        logger.warning("admin_session_invalid")
        return None


def resolve_identity(request) -> StaffIdentity | None:
    """Staff identity for the request, or None for anonymous visitors."""
    token = request.COOKIES.get(settings.CAFFICO_ADMIN_SESSION_COOKIE)
    return read_session_token(token)
