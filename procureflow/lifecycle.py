"""
procureflow/lifecycle.py

Request status state machine.

Two explicit tables:
- MANAGER_DECISIONS: the single-use manager gate out of `pending`
- ADMIN_TRANSITIONS: (status, action) -> status for super-admin processing

Terminal statuses (received, cancelled, manager_rejected) have no entry in
either table. Lookups raise InvalidStateError naming the rejected action and
the current status.
"""

from __future__ import annotations

from .errors import InvalidStateError
from .models import AdminAction, ManagerAction, RequestStatus

MANAGER_DECISIONS: dict[ManagerAction, RequestStatus] = {
    ManagerAction.APPROVE: RequestStatus.MANAGER_APPROVED,
    ManagerAction.REJECT: RequestStatus.MANAGER_REJECTED,
}

ADMIN_TRANSITIONS: dict[tuple[RequestStatus, AdminAction], RequestStatus] = {
    (RequestStatus.MANAGER_APPROVED, AdminAction.START_PROCESSING): RequestStatus.ADMIN_PROCESSING,
    (RequestStatus.MANAGER_APPROVED, AdminAction.CANCEL): RequestStatus.CANCELLED,
    (RequestStatus.ADMIN_PROCESSING, AdminAction.MARK_PURCHASED): RequestStatus.PURCHASED,
    (RequestStatus.ADMIN_PROCESSING, AdminAction.CANCEL): RequestStatus.CANCELLED,
    (RequestStatus.PURCHASED, AdminAction.MARK_RECEIVED): RequestStatus.RECEIVED,
    (RequestStatus.PURCHASED, AdminAction.CANCEL): RequestStatus.CANCELLED,
}

TERMINAL_STATUSES = frozenset(
    {
        RequestStatus.MANAGER_REJECTED,
        RequestStatus.RECEIVED,
        RequestStatus.CANCELLED,
    }
)


def next_manager_status(status: RequestStatus | str, action: ManagerAction | str) -> RequestStatus:
    status = RequestStatus(status)
    action = ManagerAction(action)
    if status is not RequestStatus.PENDING:
        raise InvalidStateError(
            f"Cannot {action.value} request: it is not in pending status. Current status: {status.value}"
        )
    return MANAGER_DECISIONS[action]


def next_admin_status(status: RequestStatus | str, action: AdminAction | str) -> RequestStatus:
    status = RequestStatus(status)
    action = AdminAction(action)
    try:
        return ADMIN_TRANSITIONS[(status, action)]
    except KeyError:
        raise InvalidStateError(
            f"Action '{action.value}' is not allowed for a request in status '{status.value}'"
        ) from None


def allowed_admin_actions(status: RequestStatus | str) -> list[AdminAction]:
    """Admin actions accepted from `status`, in declaration order."""
    status = RequestStatus(status)
    return [action for (source, action) in ADMIN_TRANSITIONS if source is status]


def is_terminal(status: RequestStatus | str) -> bool:
    return RequestStatus(status) in TERMINAL_STATUSES
