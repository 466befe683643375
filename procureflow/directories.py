"""
procureflow/directories.py

Read-only lookups consumed by the lifecycle engine and the query layer.

The engine never queries users or the catalog directly; it receives a
UserDirectory and a CatalogDirectory. The Sql* implementations read through
Flask-SQLAlchemy; tests may pass in-memory doubles with the same methods.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from .extensions import db
from .models import Category, Item, User, UserRole


class UserDirectory(Protocol):
    def find_user(self, user_id: int) -> User | None: ...

    def find_active_user(self, user_id: int, role: UserRole | None = None) -> User | None: ...


class CatalogDirectory(Protocol):
    def find_items_by_ids(self, item_ids: Iterable[int]) -> list[Item]: ...

    def find_category(self, category_id: int) -> Category | None: ...


class SqlUserDirectory:
    """UserDirectory backed by the users table."""

    def find_user(self, user_id: int) -> User | None:
        return db.session.get(User, user_id)

    def find_active_user(self, user_id: int, role: UserRole | None = None) -> User | None:
        q = User.query.filter(User.id == user_id, User.is_active.is_(True))
        if role is not None:
            q = q.filter(User.role == UserRole(role).value)
        return q.first()


class SqlCatalogDirectory:
    """CatalogDirectory backed by the categories/items tables."""

    def find_items_by_ids(self, item_ids: Iterable[int]) -> list[Item]:
        """Active items among `item_ids` (inactive or unknown ids are simply absent)."""
        ids = set(item_ids)
        if not ids:
            return []
        return (
            Item.query
            .filter(Item.id.in_(ids), Item.is_active.is_(True))
            .order_by(Item.id.asc())
            .all()
        )

    def find_category(self, category_id: int) -> Category | None:
        return db.session.get(Category, category_id)
