"""
Staff authorization checks shared by the write operations.
"""
from __future__ import annotations

from collections.abc import Collection

from cafe.domain.errors import Unauthorized
from cafe.domain.order import AdminRole
from cafe.infra.models import AdminUserORM
from cafe.infra.repositories import AdminUserRepository


def require_staff(
    admin_repo: AdminUserRepository,
    staff_id,
    roles: Collection[AdminRole] | None = None,
) -> AdminUserORM:
    """
    Return the active staff row for ``staff_id``.

    Raises Unauthorized (with a generic message) when there is no such staff
    member or, if ``roles`` is given, when the role is not one of them.
    """
    if staff_id is None:
        raise Unauthorized()
    staff = admin_repo.get_active(staff_id)
    if staff is None:
        raise Unauthorized()
    if roles is not None and AdminRole(staff.role) not in roles:
        raise Unauthorized()
    return staff
