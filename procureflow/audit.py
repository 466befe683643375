"""
procureflow/audit.py

Audit logging helper utilities.

Goals:
- Capture WHO did WHAT to WHICH entity, with BEFORE/AFTER snapshots.
- The acting user id is passed explicitly (identity is supplied by the caller).

IMPORTANT:
- This helper ADDS AuditLog entries to the current SQLAlchemy session.
  The calling operation controls transaction boundaries (commit/rollback),
  so a failed operation leaves no audit row behind either.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .extensions import db
from .models import AuditLog


def _safe_str(value: Any) -> Optional[str]:
    """
    Convert a value to a stable string representation suitable for JSON and DB storage.

    - For Decimal/datetime: ISO / str form.
    - For None: return None.
    """
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def serialize_model(instance: Any) -> Dict[str, Optional[str]]:
    """
    Convert a SQLAlchemy model instance to a dict snapshot based on table columns.

    Captures only scalar column values (not relationships).
    """
    data: Dict[str, Optional[str]] = {}
    for column in instance.__table__.columns:
        data[column.name] = _safe_str(getattr(instance, column.name))
    return data


def log_action(
    entity: Any,
    action: str,
    *,
    actor_id: int | None = None,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Add an AuditLog entry to the current db session.

    Parameters:
        entity: SQLAlchemy model instance with .id (flush first)
        action: CREATE / UPDATE / APPROVE / START_PROCESSING / ...
        actor_id: id of the user performing the action, if known
        before: dict snapshot (optional)
        after: dict snapshot (optional)
    """
    entity_id = getattr(entity, "id", None)
    if entity_id is None:
        raise ValueError("log_action entity must have an 'id' attribute (after flush).")

    entry = AuditLog(
        actor_id=actor_id,
        entity_type=entity.__class__.__name__,
        entity_id=int(entity_id),
        action=str(action).upper(),
        before_data=json.dumps(before, ensure_ascii=False) if before else None,
        after_data=json.dumps(after, ensure_ascii=False) if after else None,
    )
    db.session.add(entry)
    return entry
