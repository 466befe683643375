"""
procureflow/errors.py

Typed error kinds raised by the request lifecycle, query and catalog layers.

Every error carries:
- code: machine-readable identifier (stable, safe to return from the API)
- http_status: status used by the blueprint error handler
- message: human-readable text naming the offending id/status/action

Nothing in the core catches and suppresses these; callers (blueprints, CLI,
tests) decide how to present them.
"""

from __future__ import annotations


class ProcurementError(Exception):
    """Base class for every error surfaced by the procurement core."""

    code = "procurement_error"
    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class NotFoundError(ProcurementError):
    """Referenced request/staff/item/category/user id does not exist."""

    code = "not_found"
    http_status = 404


class InvalidStateError(ProcurementError):
    """Action is not valid from the entity's current status."""

    code = "invalid_state"
    http_status = 409


class ForbiddenError(ProcurementError):
    """Acting user does not exist, is inactive or lacks the required role."""

    code = "forbidden"
    http_status = 403


class ValidationError(ProcurementError):
    """Structurally invalid input."""

    code = "validation_error"
    http_status = 422

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.errors:
            data["details"] = self.errors
        return data


class ConflictError(ProcurementError):
    """Uniqueness violation surfaced from storage."""

    code = "conflict"
    http_status = 409
