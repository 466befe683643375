"""
procureflow/security.py

Role checks for the procurement core.

Key rules:
- Identity is supplied by the caller (the acting user id travels in the payload);
  there is no session or login here.
- Staff: submit requests.
- Manager: approve / reject pending requests.
- Super admin: process approved requests through purchasing and receipt.

Every check resolves the acting user through the injected UserDirectory, so
the rules are the same for the HTTP boundary, the CLI and tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ForbiddenError
from .models import User, UserRole

if TYPE_CHECKING:
    from .directories import UserDirectory


def require_active_role(users: "UserDirectory", user_id: int, role: UserRole) -> User:
    """
    Return the active user with `role`, or raise ForbiddenError.

    Missing, inactive and wrong-role users are indistinguishable to the caller.
    """
    user = users.find_active_user(user_id, role=role)
    if user is None:
        raise ForbiddenError(f"User {user_id} is not an active {role.value}")
    return user


def require_manager(users: "UserDirectory", user_id: int) -> User:
    return require_active_role(users, user_id, UserRole.MANAGER)


def require_super_admin(users: "UserDirectory", user_id: int) -> User:
    return require_active_role(users, user_id, UserRole.SUPER_ADMIN)
