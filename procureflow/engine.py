"""
procureflow/engine.py

Request Lifecycle Engine.

Creates requests against the user/catalog directories and applies the manager
decision and the super-admin processing transitions.

Transaction rules:
- One operation = one transaction on db.session (commit on success, rollback
  on any failure, so a failed creation leaves no request or line item behind).
- Status writes are a single conditional UPDATE whose predicate includes the
  status that was validated. If another writer moved the request in between,
  zero rows match and the caller gets InvalidStateError instead of a lost update.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import update

from .aggregate import compute_estimated_total
from .audit import log_action, serialize_model
from .directories import CatalogDirectory, SqlCatalogDirectory, SqlUserDirectory, UserDirectory
from .errors import InvalidStateError, NotFoundError, ValidationError
from .extensions import db
from .lifecycle import next_admin_status, next_manager_status
from .models import (
    AdminAction,
    PurchaseRequest,
    RequestItem,
    RequestStatus,
    _money,
)
from .schemas import AdminProcessInput, CreateRequestInput, ManagerActionInput, parse_input
from .security import require_manager, require_super_admin

logger = logging.getLogger(__name__)

# Optional admin payload fields and the actions that accept them.
ADMIN_FIELD_ACTIONS: dict[str, frozenset[AdminAction]] = {
    "actual_cost": frozenset({AdminAction.MARK_PURCHASED, AdminAction.MARK_RECEIVED}),
    "purchase_date": frozenset({AdminAction.MARK_PURCHASED}),
    "received_date": frozenset({AdminAction.MARK_RECEIVED}),
}


class RequestLifecycleEngine:
    """Validates and applies request creation and status transitions."""

    def __init__(self, users: UserDirectory | None = None, catalog: CatalogDirectory | None = None):
        self.users = users or SqlUserDirectory()
        self.catalog = catalog or SqlCatalogDirectory()

    # -----------------------------------------------------------------
    # Creation
    # -----------------------------------------------------------------
    def create_request(self, data: CreateRequestInput | dict) -> PurchaseRequest:
        payload = parse_input(CreateRequestInput, data)

        staff = self.users.find_active_user(payload.staff_id)
        if staff is None:
            raise NotFoundError(f"Staff user {payload.staff_id} not found or inactive")

        requested_ids = {line.item_id for line in payload.items}
        items = self.catalog.find_items_by_ids(requested_ids)
        if len(items) != len(requested_ids):
            raise NotFoundError("One or more items not found or inactive")

        prices = {item.id: item.estimated_price for item in items}
        total = compute_estimated_total(payload.items, prices)

        try:
            request = PurchaseRequest(
                staff_id=staff.id,
                title=payload.title,
                justification=payload.justification,
                status=RequestStatus.PENDING.value,
                total_estimated_cost=total,
            )
            db.session.add(request)
            db.session.flush()

            for line in payload.items:
                price = prices[line.item_id]
                db.session.add(
                    RequestItem(
                        request_id=request.id,
                        item_id=line.item_id,
                        quantity=line.quantity,
                        estimated_unit_cost=price,
                        notes=line.notes,
                    )
                )

            db.session.flush()
            log_action(request, "CREATE", actor_id=staff.id, after=serialize_model(request))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(
            "Request %s created by staff %s with %d line(s), estimated total %s",
            request.id,
            staff.id,
            len(payload.items),
            total,
        )
        return request

    # -----------------------------------------------------------------
    # Manager decision
    # -----------------------------------------------------------------
    def manager_action_on_request(self, data: ManagerActionInput | dict) -> PurchaseRequest:
        payload = parse_input(ManagerActionInput, data)

        request = self._get_request(payload.request_id)
        try:
            target = next_manager_status(request.status, payload.action)
        except InvalidStateError as exc:
            logger.warning(
                "Manager %s rejected on request %s in status %s",
                payload.action.value,
                request.id,
                request.status,
            )
            raise InvalidStateError(f"Request {request.id}: {exc.message}") from exc
        manager = require_manager(self.users, payload.manager_id)

        values = {
            "status": target.value,
            "manager_id": manager.id,
            "manager_notes": payload.notes,
            "updated_at": datetime.utcnow(),
        }
        request = self._commit_transition(
            request, RequestStatus.PENDING, values, payload.action.value, actor_id=manager.id
        )

        logger.info("Request %s %s by manager %s", request.id, target.value, manager.id)
        return request

    # -----------------------------------------------------------------
    # Admin processing
    # -----------------------------------------------------------------
    def admin_process_request(self, data: AdminProcessInput | dict) -> PurchaseRequest:
        payload = parse_input(AdminProcessInput, data)

        request = self._get_request(payload.request_id)
        admin = require_super_admin(self.users, payload.admin_id)

        current = RequestStatus(request.status)
        try:
            target = next_admin_status(current, payload.action)
        except InvalidStateError as exc:
            logger.warning(
                "Admin action %s rejected on request %s in status %s",
                payload.action.value,
                request.id,
                current.value,
            )
            raise InvalidStateError(f"Request {request.id}: {exc.message}") from exc

        for field, actions in ADMIN_FIELD_ACTIONS.items():
            if payload.supplied(field) and payload.action not in actions:
                raise ValidationError(f"{field} cannot be set with action '{payload.action.value}'")

        values = {
            "status": target.value,
            "admin_id": admin.id,
            "updated_at": datetime.utcnow(),
        }
        if payload.supplied("notes"):
            values["admin_notes"] = payload.notes
        if payload.supplied("actual_cost"):
            values["actual_cost"] = _money(payload.actual_cost) if payload.actual_cost is not None else None
        if payload.supplied("purchase_date"):
            values["purchase_date"] = payload.purchase_date
        if payload.supplied("received_date"):
            values["received_date"] = payload.received_date

        request = self._commit_transition(request, current, values, payload.action.value, actor_id=admin.id)

        logger.info("Request %s moved %s -> %s by admin %s", request.id, current.value, target.value, admin.id)
        return request

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------
    def _get_request(self, request_id: int) -> PurchaseRequest:
        request = db.session.get(PurchaseRequest, request_id)
        if request is None:
            raise NotFoundError(f"Request with ID {request_id} not found")
        return request

    def _commit_transition(
        self,
        request: PurchaseRequest,
        expected: RequestStatus,
        values: dict,
        action: str,
        *,
        actor_id: int,
    ) -> PurchaseRequest:
        """
        Conditional UPDATE guarded by the expected status, plus its audit row,
        committed together. Any failure rolls the whole unit back.
        """
        before = serialize_model(request)
        stmt = (
            update(PurchaseRequest)
            .where(PurchaseRequest.id == request.id, PurchaseRequest.status == expected.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = db.session.execute(stmt)
            if result.rowcount != 1:
                raise InvalidStateError(
                    f"Cannot {action} request {request.id}: status changed concurrently "
                    f"(expected '{expected.value}')"
                )
            db.session.flush()
            db.session.refresh(request)

            log_action(request, action, actor_id=actor_id, before=before, after=serialize_model(request))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return request


def create_request(data, *, users: UserDirectory | None = None, catalog: CatalogDirectory | None = None):
    return RequestLifecycleEngine(users, catalog).create_request(data)


def manager_action_on_request(data, *, users: UserDirectory | None = None):
    return RequestLifecycleEngine(users).manager_action_on_request(data)


def admin_process_request(data, *, users: UserDirectory | None = None):
    return RequestLifecycleEngine(users).admin_process_request(data)
