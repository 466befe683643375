"""
procureflow/catalog.py

User and catalog administration (users, categories, items).

Rules:
- Users are never deleted; deactivate with is_active=False.
- Email is unique; a duplicate surfaces as ConflictError.
- An item's category must exist and be active when the item is created or
  moved to another category. Deactivating a category does not touch items.
- Updates are partial: only supplied fields are written.

Audit:
- CREATE / UPDATE logged
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from .audit import log_action, serialize_model
from .directories import SqlCatalogDirectory
from .errors import ConflictError, NotFoundError, ValidationError
from .extensions import db
from .models import Category, Item, User, _money
from .schemas import (
    CreateCategoryInput,
    CreateItemInput,
    CreateUserInput,
    UpdateCategoryInput,
    UpdateItemInput,
    UpdateUserInput,
    parse_input,
)

logger = logging.getLogger(__name__)


def _get_or_404(model, entity_id: int):
    instance = db.session.get(model, entity_id)
    if instance is None:
        raise NotFoundError(f"{model.__name__} with ID {entity_id} not found")
    return instance


def _active_category(category_id: int) -> Category:
    category = SqlCatalogDirectory().find_category(category_id)
    if category is None:
        raise NotFoundError(f"Category with ID {category_id} not found")
    if not category.is_active:
        raise ValidationError(f"Category {category_id} is inactive")
    return category


def _audited_commit(entity, action: str, *, actor_id: int | None, before: dict | None = None) -> None:
    """Flush `entity`, add its audit row and commit; any failure rolls back."""
    try:
        db.session.flush()
        log_action(entity, action, actor_id=actor_id, before=before, after=serialize_model(entity))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


# ---------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------
def list_users() -> list[User]:
    return User.query.order_by(User.name.asc(), User.id.asc()).all()


def create_user(data: CreateUserInput | dict, *, actor_id: int | None = None) -> User:
    payload = parse_input(CreateUserInput, data)

    user = User(
        email=payload.email.strip().lower(),
        name=payload.name.strip(),
        role=payload.role.value,
        is_active=True,
    )
    db.session.add(user)
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(f"A user with email {user.email} already exists") from exc

    _audited_commit(user, "CREATE", actor_id=actor_id)

    logger.info("User %s created with role %s", user.id, user.role)
    return user


def update_user(user_id: int, data: UpdateUserInput | dict, *, actor_id: int | None = None) -> User:
    payload = parse_input(UpdateUserInput, data)
    user = _get_or_404(User, user_id)
    before = serialize_model(user)

    for name, value in payload.changes().items():
        if name == "email":
            value = value.strip().lower()
        elif name == "role":
            value = value.value
        setattr(user, name, value)

    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(f"A user with email {payload.email} already exists") from exc

    _audited_commit(user, "UPDATE", actor_id=actor_id, before=before)
    return user


# ---------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------
def list_categories(active_only: bool = False) -> list[Category]:
    q = Category.query
    if active_only:
        q = q.filter(Category.is_active.is_(True))
    return q.order_by(Category.name.asc()).all()


def create_category(data: CreateCategoryInput | dict, *, actor_id: int | None = None) -> Category:
    payload = parse_input(CreateCategoryInput, data)

    category = Category(
        name=payload.name.strip(),
        description=(payload.description or "").strip() or None,
        is_active=True,
    )
    db.session.add(category)
    _audited_commit(category, "CREATE", actor_id=actor_id)
    return category


def update_category(category_id: int, data: UpdateCategoryInput | dict, *, actor_id: int | None = None) -> Category:
    payload = parse_input(UpdateCategoryInput, data)
    category = _get_or_404(Category, category_id)
    before = serialize_model(category)

    for name, value in payload.changes().items():
        setattr(category, name, value)

    _audited_commit(category, "UPDATE", actor_id=actor_id, before=before)
    return category


# ---------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------
def list_items(active_only: bool = False, category_id: int | None = None) -> list[Item]:
    q = Item.query
    if active_only:
        q = q.filter(Item.is_active.is_(True))
    if category_id is not None:
        q = q.filter(Item.category_id == category_id)
    return q.order_by(Item.name.asc(), Item.id.asc()).all()


def create_item(data: CreateItemInput | dict, *, actor_id: int | None = None) -> Item:
    payload = parse_input(CreateItemInput, data)
    category = _active_category(payload.category_id)

    item = Item(
        name=payload.name.strip(),
        description=(payload.description or "").strip() or None,
        category_id=category.id,
        unit=payload.unit.strip(),
        estimated_price=_money(payload.estimated_price) if payload.estimated_price is not None else None,
        is_active=True,
    )
    db.session.add(item)
    _audited_commit(item, "CREATE", actor_id=actor_id)
    return item


def update_item(item_id: int, data: UpdateItemInput | dict, *, actor_id: int | None = None) -> Item:
    """
    Partial item update.

    Changing estimated_price only affects requests created afterwards;
    existing line items keep their snapshot.
    """
    payload = parse_input(UpdateItemInput, data)
    item = _get_or_404(Item, item_id)
    before = serialize_model(item)

    changes = payload.changes()
    if "category_id" in changes and changes["category_id"] != item.category_id:
        _active_category(changes["category_id"])
    if changes.get("estimated_price") is not None:
        changes["estimated_price"] = _money(changes["estimated_price"])

    for name, value in changes.items():
        setattr(item, name, value)

    _audited_commit(item, "UPDATE", actor_id=actor_id, before=before)
    return item
