"""
procureflow/queries.py

Read paths producing the hydrated "request with details" view:
request + staff/manager/admin user projections + line items, each with its
item and the item's category.

All list paths are ordered by created_at descending (id descending as a
tie-breaker). Hydration goes through relationships, never inner joins, so a
request without line items or without manager/admin is never dropped.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import joinedload, selectinload

from .directories import SqlUserDirectory, UserDirectory
from .errors import NotFoundError
from .models import Item, PurchaseRequest, RequestItem, RequestStatus
from .schemas import RequestFilter, RequestWithDetails, parse_input


def _with_details(q):
    """Prevent N+1 when hydrating."""
    return q.options(
        joinedload(PurchaseRequest.staff),
        joinedload(PurchaseRequest.manager),
        joinedload(PurchaseRequest.admin),
        selectinload(PurchaseRequest.items)
        .joinedload(RequestItem.item)
        .joinedload(Item.category),
    )


def _newest_first(q):
    return q.order_by(PurchaseRequest.created_at.desc(), PurchaseRequest.id.desc())


def _hydrate(requests) -> list[RequestWithDetails]:
    return [RequestWithDetails.model_validate(r) for r in requests]


def apply_filter(q, request_filter: RequestFilter):
    """AND together the supplied predicates; date bounds are inclusive."""
    if request_filter.status is not None:
        q = q.filter(PurchaseRequest.status == request_filter.status.value)
    if request_filter.staff_id is not None:
        q = q.filter(PurchaseRequest.staff_id == request_filter.staff_id)
    if request_filter.manager_id is not None:
        q = q.filter(PurchaseRequest.manager_id == request_filter.manager_id)
    if request_filter.date_from is not None:
        q = q.filter(PurchaseRequest.created_at >= request_filter.date_from)
    if request_filter.date_to is not None:
        q = q.filter(PurchaseRequest.created_at <= request_filter.date_to)
    return q


class RequestQueries:
    def __init__(self, users: UserDirectory | None = None):
        self.users = users or SqlUserDirectory()

    def get_request_by_id(self, request_id: int) -> Optional[RequestWithDetails]:
        request = _with_details(PurchaseRequest.query).filter(PurchaseRequest.id == request_id).first()
        if request is None:
            return None
        return RequestWithDetails.model_validate(request)

    def get_staff_requests(self, staff_id: int) -> list[RequestWithDetails]:
        """
        Requests submitted by `staff_id`, newest first.

        An unknown user id raises NotFoundError; a known user without
        requests yields an empty list.
        """
        if self.users.find_user(staff_id) is None:
            raise NotFoundError(f"Staff member with id {staff_id} not found")

        q = _with_details(PurchaseRequest.query).filter(PurchaseRequest.staff_id == staff_id)
        return _hydrate(_newest_first(q).all())

    def get_requests(self, request_filter: RequestFilter | dict | None = None) -> list[RequestWithDetails]:
        q = _with_details(PurchaseRequest.query)
        if request_filter is not None:
            q = apply_filter(q, parse_input(RequestFilter, request_filter))
        return _hydrate(_newest_first(q).all())

    def get_pending_requests_for_manager(self) -> list[RequestWithDetails]:
        q = _with_details(PurchaseRequest.query).filter(PurchaseRequest.status == RequestStatus.PENDING.value)
        views = _hydrate(_newest_first(q).all())
        # pending requests have not been assigned yet
        for view in views:
            view.manager = None
            view.admin = None
        return views


def get_request_by_id(request_id: int) -> Optional[RequestWithDetails]:
    return RequestQueries().get_request_by_id(request_id)


def get_staff_requests(staff_id: int) -> list[RequestWithDetails]:
    return RequestQueries().get_staff_requests(staff_id)


def get_requests(request_filter: RequestFilter | dict | None = None) -> list[RequestWithDetails]:
    return RequestQueries().get_requests(request_filter)


def get_pending_requests_for_manager() -> list[RequestWithDetails]:
    return RequestQueries().get_pending_requests_for_manager()

