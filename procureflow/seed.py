"""
procureflow/seed.py

Seed demo users, categories and items.

Rules:
- Safe to run multiple times (idempotent).
- Users match by email, categories by name, items by (category, name).
- Existing item prices are kept in sync with the defaults; existing requests
  are unaffected because line items hold their own price snapshot.
"""

from __future__ import annotations

from decimal import Decimal

from .extensions import db
from .models import Category, Item, User, UserRole


DEFAULT_USERS = [
    # email, name, role
    ("admin@example.com", "Super Admin", UserRole.SUPER_ADMIN),
    ("manager@example.com", "Department Manager", UserRole.MANAGER),
    ("staff@example.com", "Staff Member", UserRole.STAFF),
]


DEFAULT_CATALOG = [
    (
        "Office Supplies",
        "Paper, pens and desk consumables",
        [
            # name, unit, estimated_price
            ("A4 Paper Ream", "ream", Decimal("5.99")),
            ("Ballpoint Pens (box of 12)", "box", Decimal("4.50")),
            ("Stapler", "piece", Decimal("12.50")),
        ],
    ),
    (
        "Electronics",
        "Computers, peripherals and accessories",
        [
            ("Laptop", "piece", Decimal("1200.00")),
            ("USB-C Dock", "piece", Decimal("189.00")),
            ("Custom Cable Assembly", "piece", None),
        ],
    ),
    (
        "Furniture",
        None,
        [
            ("Office Chair", "piece", Decimal("249.00")),
            ("Standing Desk", "piece", Decimal("499.00")),
        ],
    ),
]


def seed_demo_data() -> dict[str, int]:
    """
    Create default users, categories and items if they don't exist.

    Returns how many rows of each kind were created by this run.
    """
    created = {"users": 0, "categories": 0, "items": 0}

    for email, name, role in DEFAULT_USERS:
        exists = User.query.filter_by(email=email).first()
        if exists:
            continue
        db.session.add(User(email=email, name=name, role=role.value, is_active=True))
        created["users"] += 1

    db.session.flush()

    for cat_name, cat_desc, items in DEFAULT_CATALOG:
        category = Category.query.filter_by(name=cat_name).first()
        if not category:
            category = Category(name=cat_name, description=cat_desc, is_active=True)
            db.session.add(category)
            db.session.flush()
            created["categories"] += 1

        for item_name, unit, price in items:
            exists = Item.query.filter_by(category_id=category.id, name=item_name).first()
            if exists:
                # keep core values in sync
                exists.unit = unit
                exists.estimated_price = price
                continue

            db.session.add(
                Item(
                    name=item_name,
                    category_id=category.id,
                    unit=unit,
                    estimated_price=price,
                    is_active=True,
                )
            )
            created["items"] += 1

    db.session.commit()
    return created
