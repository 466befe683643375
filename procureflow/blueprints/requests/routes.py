"""
procureflow/blueprints/requests/routes.py

Request lifecycle routes (JSON).

Thin adapters only: parse the payload, call the engine / query / report
operation, serialize the result. Errors raised by the core are rendered by
the app-level ProcurementError handler.

IMPORTANT:
- The acting user id travels in the payload (staff_id / manager_id / admin_id);
  role checks happen in the engine, never here.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...engine import RequestLifecycleEngine
from ...errors import NotFoundError
from ...queries import RequestQueries
from ...reports import get_reports
from ...schemas import RequestOut

requests_bp = Blueprint("requests", __name__, url_prefix="/api")


def _json_body() -> dict:
    """Request body as a dict; a non-object body reads as empty."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _dump(model, **kwargs):
    return model.model_dump(mode="json", **kwargs)


def _filter_from_args() -> dict:
    """Query-string filter; empty values are ignored."""
    keys = ("status", "staff_id", "manager_id", "date_from", "date_to")
    return {k: request.args[k] for k in keys if (request.args.get(k) or "").strip()}


# ---------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------
@requests_bp.route("/requests", methods=["POST"])
def create_request():
    created = RequestLifecycleEngine().create_request(_json_body())
    return jsonify(_dump(RequestOut.model_validate(created))), 201


@requests_bp.route("/requests/<int:request_id>/manager-action", methods=["POST"])
def manager_action(request_id: int):
    payload = {**_json_body(), "request_id": request_id}
    updated = RequestLifecycleEngine().manager_action_on_request(payload)
    return jsonify(_dump(RequestOut.model_validate(updated)))


@requests_bp.route("/requests/<int:request_id>/admin-action", methods=["POST"])
def admin_action(request_id: int):
    payload = {**_json_body(), "request_id": request_id}
    updated = RequestLifecycleEngine().admin_process_request(payload)
    return jsonify(_dump(RequestOut.model_validate(updated)))


# ---------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------
@requests_bp.route("/requests", methods=["GET"])
def list_requests():
    views = RequestQueries().get_requests(_filter_from_args())
    return jsonify([_dump(v) for v in views])


@requests_bp.route("/requests/pending", methods=["GET"])
def pending_requests():
    views = RequestQueries().get_pending_requests_for_manager()
    return jsonify([_dump(v) for v in views])


@requests_bp.route("/requests/<int:request_id>", methods=["GET"])
def get_request(request_id: int):
    view = RequestQueries().get_request_by_id(request_id)
    if view is None:
        raise NotFoundError(f"Request with ID {request_id} not found")
    return jsonify(_dump(view))


@requests_bp.route("/staff/<int:staff_id>/requests", methods=["GET"])
def staff_requests(staff_id: int):
    views = RequestQueries().get_staff_requests(staff_id)
    return jsonify([_dump(v) for v in views])


@requests_bp.route("/reports", methods=["GET"])
def reports():
    return jsonify(_dump(get_reports(), by_alias=True))
