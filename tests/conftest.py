"""Pytest configuration and fixtures."""

from datetime import datetime
from decimal import Decimal
from itertools import count

import pytest

from config import TestConfig
from procureflow import create_app
from procureflow.engine import RequestLifecycleEngine
from procureflow.extensions import db
from procureflow.models import Category, Item, PurchaseRequest, User, UserRole

_seq = count(1)


@pytest.fixture(scope="function")
def app():
    """Application bound to a fresh in-memory database."""
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def engine(app) -> RequestLifecycleEngine:
    return RequestLifecycleEngine()


@pytest.fixture
def make_user(app):
    def _make(role=UserRole.STAFF, *, is_active=True, name=None, email=None) -> User:
        n = next(_seq)
        user = User(
            email=email or f"user{n}@example.com",
            name=name or f"User {n}",
            role=UserRole(role).value,
            is_active=is_active,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_category(app):
    def _make(name=None, *, is_active=True) -> Category:
        category = Category(name=name or f"Category {next(_seq)}", is_active=is_active)
        db.session.add(category)
        db.session.commit()
        return category

    return _make


@pytest.fixture
def make_item(app, make_category):
    def _make(price="10.00", *, category=None, is_active=True, name=None) -> Item:
        category = category or make_category()
        item = Item(
            name=name or f"Item {next(_seq)}",
            category_id=category.id,
            unit="piece",
            estimated_price=Decimal(price) if price is not None else None,
            is_active=is_active,
        )
        db.session.add(item)
        db.session.commit()
        return item

    return _make


@pytest.fixture
def staff(make_user) -> User:
    return make_user(UserRole.STAFF, name="Sam Staff")


@pytest.fixture
def manager(make_user) -> User:
    return make_user(UserRole.MANAGER, name="Mia Manager")


@pytest.fixture
def admin(make_user) -> User:
    return make_user(UserRole.SUPER_ADMIN, name="Ada Admin")


@pytest.fixture
def make_request(engine, staff, make_item):
    """Create a pending request; lines default to one priced item."""

    def _make(*, staff_user=None, lines=None, title="Request") -> PurchaseRequest:
        if lines is None:
            lines = [{"item_id": make_item("10.00").id, "quantity": 1}]
        return engine.create_request(
            {"staff_id": (staff_user or staff).id, "title": title, "items": lines}
        )

    return _make


@pytest.fixture
def approved_request(engine, make_request, manager):
    def _make(**kwargs) -> PurchaseRequest:
        req = make_request(**kwargs)
        return engine.manager_action_on_request(
            {"request_id": req.id, "manager_id": manager.id, "action": "approve"}
        )

    return _make


@pytest.fixture
def set_created_at(app):
    def _set(request: PurchaseRequest, when: datetime) -> PurchaseRequest:
        request.created_at = when
        db.session.commit()
        return request

    return _set
