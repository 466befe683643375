"""
Procurement Request Management – Domain Models

Entities:
- User (staff / manager / super_admin), never hard-deleted
- Category and Item (the catalog)
- PurchaseRequest and RequestItem (the request aggregate)
- AuditLog (who changed what, with before/after snapshots)

IMPORTANT:
- Monetary columns are Numeric(12, 2) and always handled as Decimal in Python.
- Line items snapshot the item price at request creation; later catalog
  price changes never touch existing requests.
"""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from .extensions import db


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _to_decimal(value) -> Decimal | None:
    """Convert Numeric/float/int/str to Decimal; None stays None."""
    if value is None:
        return None
    return Decimal(str(value))


def _money(x: Decimal) -> Decimal:
    return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------
# Enumerations (stored as plain strings)
# ---------------------------------------------------------------------
class UserRole(str, enum.Enum):
    STAFF = "staff"
    MANAGER = "manager"
    SUPER_ADMIN = "super_admin"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    MANAGER_APPROVED = "manager_approved"
    MANAGER_REJECTED = "manager_rejected"
    ADMIN_PROCESSING = "admin_processing"
    PURCHASED = "purchased"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class ManagerAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


class AdminAction(str, enum.Enum):
    START_PROCESSING = "start_processing"
    MARK_PURCHASED = "mark_purchased"
    MARK_RECEIVED = "mark_received"
    CANCEL = "cancel"


# ---------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------
class User(db.Model):
    """System user. Deactivated instead of deleted."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, index=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def has_role(self, role: UserRole | str) -> bool:
        return self.role == UserRole(role).value

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


# ---------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------
class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    items = db.relationship("Item", back_populates="category", lazy=True)

    def __repr__(self):
        return f"<Category {self.name}>"


class Item(db.Model):
    """
    Catalog item.

    estimated_price may be null (price unknown); when present it is a
    non-negative 2-decimal amount. Category deactivation does not
    retroactively invalidate existing items.
    """

    __tablename__ = "items"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id"),
        nullable=False,
        index=True,
    )

    unit = db.Column(db.String(50), nullable=False)
    estimated_price = db.Column(db.Numeric(12, 2), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = db.relationship("Category", back_populates="items")

    __table_args__ = (
        db.CheckConstraint("estimated_price IS NULL OR estimated_price >= 0", name="ck_item_price_non_negative"),
    )

    def __repr__(self):
        return f"<Item {self.name}>"


# ---------------------------------------------------------------------
# Request aggregate
# ---------------------------------------------------------------------
class PurchaseRequest(db.Model):
    """
    A procurement request and its line items.

    Three independent references to User:
    - staff (required): who submitted it
    - manager (nullable): set once by the manager decision
    - admin (nullable): overwritten by each admin processing action
    """

    __tablename__ = "requests"

    id = db.Column(db.Integer, primary_key=True)

    staff_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    title = db.Column(db.String(255), nullable=False)
    justification = db.Column(db.Text, nullable=True)

    status = db.Column(
        db.String(30),
        nullable=False,
        default=RequestStatus.PENDING.value,
        index=True,
    )

    manager_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    manager_notes = db.Column(db.Text, nullable=True)

    admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    admin_notes = db.Column(db.Text, nullable=True)

    total_estimated_cost = db.Column(db.Numeric(12, 2), nullable=True)
    actual_cost = db.Column(db.Numeric(12, 2), nullable=True)

    purchase_date = db.Column(db.DateTime, nullable=True)
    received_date = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    staff = db.relationship("User", foreign_keys=[staff_id])
    manager = db.relationship("User", foreign_keys=[manager_id])
    admin = db.relationship("User", foreign_keys=[admin_id])

    items = db.relationship(
        "RequestItem",
        back_populates="request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RequestItem.id",
    )

    def __repr__(self):
        return f"<PurchaseRequest {self.id} {self.status}>"


class RequestItem(db.Model):
    """
    Line item of a request.

    Immutable once created, except actual_unit_cost (no processing action
    writes it today; the request-level actual_cost is the only outcome).
    """

    __tablename__ = "request_items"

    id = db.Column(db.Integer, primary_key=True)

    request_id = db.Column(
        db.Integer,
        db.ForeignKey("requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)

    # snapshot of Item.estimated_price at creation time
    estimated_unit_cost = db.Column(db.Numeric(12, 2), nullable=True)
    actual_unit_cost = db.Column(db.Numeric(12, 2), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    request = db.relationship("PurchaseRequest", back_populates="items")
    item = db.relationship("Item")

    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_request_item_quantity_positive"),
    )

    @property
    def estimated_line_total(self) -> Decimal | None:
        if self.estimated_unit_cost is None:
            return None
        return _money(_to_decimal(self.estimated_unit_cost) * self.quantity)


# ---------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------
class AuditLog(db.Model):
    """Who did what to which entity, with before/after column snapshots."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    actor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    entity_type = db.Column(db.String(50), nullable=False, index=True)
    entity_id = db.Column(db.Integer, nullable=False, index=True)

    action = db.Column(db.String(30), nullable=False, index=True)

    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    actor = db.relationship("User")
