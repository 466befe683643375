"""
procureflow/reports.py

Procurement report: cross-request counts, spend totals, category and monthly
rollups. Computed fresh on every call.

Bucketing:
- approved  = past the manager gate, not yet completed
              (manager_approved, admin_processing, purchased)
- rejected  = manager_rejected or cancelled
- completed = received

Date arithmetic (processing time, month buckets) is done in Python so the
same code runs on SQLite and PostgreSQL.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from .extensions import db
from .models import Category, Item, PurchaseRequest, RequestItem, RequestStatus, _money, _to_decimal
from .schemas import CategorySummary, MonthlyTrend, ProcurementReport

APPROVED_STATUSES = (
    RequestStatus.MANAGER_APPROVED,
    RequestStatus.ADMIN_PROCESSING,
    RequestStatus.PURCHASED,
)
REJECTED_STATUSES = (
    RequestStatus.MANAGER_REJECTED,
    RequestStatus.CANCELLED,
)

DEFAULT_TOP_CATEGORIES = 5
DEFAULT_TREND_MONTHS = 12


def _status_counts() -> dict[str, int]:
    rows = (
        db.session.query(PurchaseRequest.status, func.count(PurchaseRequest.id))
        .group_by(PurchaseRequest.status)
        .all()
    )
    return {status: count for status, count in rows}


def _total_spent() -> Decimal:
    total = (
        db.session.query(func.sum(PurchaseRequest.actual_cost))
        .filter(
            PurchaseRequest.status == RequestStatus.RECEIVED.value,
            PurchaseRequest.actual_cost.isnot(None),
        )
        .scalar()
    )
    return _money(_to_decimal(total) or Decimal("0"))


def _average_processing_days() -> float:
    rows = (
        db.session.query(PurchaseRequest.created_at, PurchaseRequest.received_date)
        .filter(
            PurchaseRequest.status == RequestStatus.RECEIVED.value,
            PurchaseRequest.received_date.isnot(None),
        )
        .all()
    )
    if not rows:
        return 0.0
    seconds = sum((received - created).total_seconds() for created, received in rows)
    return seconds / len(rows) / 86400


def _top_categories(limit: int) -> list[CategorySummary]:
    """
    Categories ranked by the number of distinct requests touching them.

    A request with several lines in one category counts once, and its
    actual_cost is added once. Tie order is whatever the database yields.
    """
    touched = (
        db.session.query(
            Item.category_id.label("category_id"),
            RequestItem.request_id.label("request_id"),
        )
        .select_from(RequestItem)
        .join(Item, Item.id == RequestItem.item_id)
        .distinct()
        .subquery()
    )

    request_count = func.count(touched.c.request_id)
    rows = (
        db.session.query(
            Category.name,
            request_count,
            func.coalesce(func.sum(PurchaseRequest.actual_cost), 0),
        )
        .join(touched, touched.c.category_id == Category.id)
        .join(PurchaseRequest, PurchaseRequest.id == touched.c.request_id)
        .group_by(Category.id, Category.name)
        .order_by(request_count.desc())
        .limit(limit)
        .all()
    )
    return [
        CategorySummary(
            category_name=name,
            request_count=count,
            total_amount=_money(_to_decimal(amount)),
        )
        for name, count, amount in rows
    ]


def _trend_window_start(now: datetime, months: int) -> datetime:
    """First day of the month `months - 1` months before `now`'s month."""
    index = now.year * 12 + (now.month - 1) - (months - 1)
    return datetime(index // 12, index % 12 + 1, 1)


def _monthly_trends(months: int, now: datetime) -> list[MonthlyTrend]:
    start = _trend_window_start(now, months)
    rows = (
        db.session.query(PurchaseRequest.created_at, PurchaseRequest.actual_cost)
        .filter(PurchaseRequest.created_at >= start)
        .order_by(PurchaseRequest.created_at.desc())
        .all()
    )

    buckets: "OrderedDict[str, list]" = OrderedDict()
    for created_at, actual_cost in rows:
        bucket = buckets.setdefault(created_at.strftime("%Y-%m"), [0, Decimal("0")])
        bucket[0] += 1
        if actual_cost is not None:
            bucket[1] += _to_decimal(actual_cost)

    return [
        MonthlyTrend(month=month, request_count=count, total_amount=_money(amount))
        for month, (count, amount) in sorted(buckets.items(), reverse=True)
    ]


def get_reports(now: datetime | None = None) -> ProcurementReport:
    """Build a ProcurementReport snapshot. `now` anchors the monthly window (UTC)."""
    now = now or datetime.utcnow()
    top_n = current_app.config.get("REPORT_TOP_CATEGORIES", DEFAULT_TOP_CATEGORIES)
    months = current_app.config.get("REPORT_TREND_MONTHS", DEFAULT_TREND_MONTHS)

    counts = _status_counts()

    return ProcurementReport(
        total_requests=sum(counts.values()),
        pending_requests=counts.get(RequestStatus.PENDING.value, 0),
        approved_requests=sum(counts.get(s.value, 0) for s in APPROVED_STATUSES),
        rejected_requests=sum(counts.get(s.value, 0) for s in REJECTED_STATUSES),
        completed_requests=counts.get(RequestStatus.RECEIVED.value, 0),
        total_spent=_total_spent(),
        average_processing_time=_average_processing_days(),
        top_categories=_top_categories(top_n),
        monthly_trends=_monthly_trends(months, now),
    )
