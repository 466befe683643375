"""
User and catalog administration routes (JSON).

Audit:
- The acting user may be passed as the X-Actor-Id header; it is recorded on
  the audit row only (no authentication here).
"""

from flask import Blueprint, jsonify, request

from ... import catalog
from ...schemas import CategoryOut, ItemOut, UserOut

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


def _parse_optional_int(value):
    """Parse an optional int from headers/query. Returns None if empty/invalid."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _actor_id():
    return _parse_optional_int((request.headers.get("X-Actor-Id") or "").strip())


def _json_body() -> dict:
    """Request body as a dict; a non-object body reads as empty."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _active_only() -> bool:
    return (request.args.get("active") or "").strip().lower() in {"1", "true", "yes"}


# ---------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------
@catalog_bp.route("/users", methods=["GET"])
def list_users():
    return jsonify([UserOut.model_validate(u).model_dump(mode="json") for u in catalog.list_users()])


@catalog_bp.route("/users", methods=["POST"])
def create_user():
    user = catalog.create_user(_json_body(), actor_id=_actor_id())
    return jsonify(UserOut.model_validate(user).model_dump(mode="json")), 201


@catalog_bp.route("/users/<int:user_id>", methods=["PATCH"])
def update_user(user_id: int):
    user = catalog.update_user(user_id, _json_body(), actor_id=_actor_id())
    return jsonify(UserOut.model_validate(user).model_dump(mode="json"))


# ---------------------------------------------------------------------
# CATEGORIES
# ---------------------------------------------------------------------
@catalog_bp.route("/categories", methods=["GET"])
def list_categories():
    categories = catalog.list_categories(active_only=_active_only())
    return jsonify([CategoryOut.model_validate(c).model_dump(mode="json") for c in categories])


@catalog_bp.route("/categories", methods=["POST"])
def create_category():
    category = catalog.create_category(_json_body(), actor_id=_actor_id())
    return jsonify(CategoryOut.model_validate(category).model_dump(mode="json")), 201


@catalog_bp.route("/categories/<int:category_id>", methods=["PATCH"])
def update_category(category_id: int):
    category = catalog.update_category(category_id, _json_body(), actor_id=_actor_id())
    return jsonify(CategoryOut.model_validate(category).model_dump(mode="json"))


# ---------------------------------------------------------------------
# ITEMS
# ---------------------------------------------------------------------
@catalog_bp.route("/items", methods=["GET"])
def list_items():
    items = catalog.list_items(
        active_only=_active_only(),
        category_id=_parse_optional_int((request.args.get("category_id") or "").strip()),
    )
    return jsonify([ItemOut.model_validate(i).model_dump(mode="json") for i in items])


@catalog_bp.route("/items", methods=["POST"])
def create_item():
    item = catalog.create_item(_json_body(), actor_id=_actor_id())
    return jsonify(ItemOut.model_validate(item).model_dump(mode="json")), 201


@catalog_bp.route("/items/<int:item_id>", methods=["PATCH"])
def update_item(item_id: int):
    item = catalog.update_item(item_id, _json_body(), actor_id=_actor_id())
    return jsonify(ItemOut.model_validate(item).model_dump(mode="json"))
