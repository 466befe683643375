"""Procurement report aggregates."""

from datetime import datetime
from decimal import Decimal

import pytest

from procureflow.reports import _trend_window_start, get_reports

NOW = datetime(2026, 10, 18, 12, 0)


@pytest.fixture
def receive(engine, approved_request, admin, set_created_at):
    """Drive a new request to `received` with the given cost and dates."""

    def _receive(cost, *, lines=None, created=None, received=None):
        req = approved_request(lines=lines)
        if created is not None:
            set_created_at(req, created)
        engine.admin_process_request({"request_id": req.id, "admin_id": admin.id, "action": "start_processing"})
        engine.admin_process_request(
            {"request_id": req.id, "admin_id": admin.id, "action": "mark_purchased", "actual_cost": cost}
        )
        fields = {"received_date": received} if received is not None else {}
        return engine.admin_process_request(
            {"request_id": req.id, "admin_id": admin.id, "action": "mark_received", **fields}
        )

    return _receive


def test_empty_dataset(app):
    report = get_reports(now=NOW)

    assert report.total_requests == 0
    assert report.pending_requests == 0
    assert report.approved_requests == 0
    assert report.rejected_requests == 0
    assert report.completed_requests == 0
    assert report.total_spent == Decimal("0.00")
    assert report.average_processing_time == 0.0
    assert report.top_categories == []
    assert report.monthly_trends == []


def test_status_buckets(engine, make_request, approved_request, receive, manager, admin):
    make_request()
    rejected = make_request()
    engine.manager_action_on_request({"request_id": rejected.id, "manager_id": manager.id, "action": "reject"})
    approved_request()
    processing = approved_request()
    engine.admin_process_request({"request_id": processing.id, "admin_id": admin.id, "action": "start_processing"})
    cancelled = approved_request()
    engine.admin_process_request({"request_id": cancelled.id, "admin_id": admin.id, "action": "cancel"})
    receive("40.00")

    report = get_reports(now=NOW)

    assert report.total_requests == 6
    assert report.pending_requests == 1
    assert report.approved_requests == 2
    assert report.rejected_requests == 2
    assert report.completed_requests == 1
    assert report.total_spent == Decimal("40.00")


def test_total_spent_only_counts_received(engine, approved_request, receive, admin):
    receive("100.00")
    receive("25.50")
    purchased = approved_request()
    engine.admin_process_request({"request_id": purchased.id, "admin_id": admin.id, "action": "start_processing"})
    engine.admin_process_request(
        {"request_id": purchased.id, "admin_id": admin.id, "action": "mark_purchased", "actual_cost": "999.00"}
    )

    assert get_reports(now=NOW).total_spent == Decimal("125.50")


def test_top_categories_ranked_by_request_count(receive, make_category, make_item):
    electronics = make_category("Electronics")
    office = make_category("Office Supplies")
    laptop = make_item("1200.00", category=electronics)
    dock = make_item("189.00", category=electronics)
    paper = make_item("5.99", category=office)

    # two lines in one category still count as one request
    receive("3000.00", lines=[{"item_id": laptop.id, "quantity": 2}, {"item_id": dock.id, "quantity": 1}])
    receive("500.00", lines=[{"item_id": dock.id, "quantity": 2}])
    receive("100.00", lines=[{"item_id": paper.id, "quantity": 10}])

    top = get_reports(now=NOW).top_categories

    assert [c.category_name for c in top] == ["Electronics", "Office Supplies"]
    assert top[0].request_count == 2
    assert top[0].total_amount == Decimal("3500.00")
    assert top[1].request_count == 1
    assert top[1].total_amount == Decimal("100.00")


def test_top_categories_limit(app, receive, make_category, make_item):
    app.config["REPORT_TOP_CATEGORIES"] = 2
    for _ in range(3):
        item = make_item(category=make_category())
        receive("1.00", lines=[{"item_id": item.id, "quantity": 1}])

    assert len(get_reports(now=NOW).top_categories) == 2


def test_top_categories_include_unpriced_requests(make_request):
    make_request()
    top = get_reports(now=NOW).top_categories
    assert len(top) == 1
    assert top[0].request_count == 1
    assert top[0].total_amount == Decimal("0.00")


def test_average_processing_time_in_fractional_days(receive):
    receive("10.00", created=datetime(2026, 9, 1, 0, 0), received=datetime(2026, 9, 3, 0, 0))
    receive("10.00", created=datetime(2026, 9, 1, 0, 0), received=datetime(2026, 9, 2, 12, 0))

    assert get_reports(now=NOW).average_processing_time == pytest.approx(1.75)


def test_received_without_date_is_ignored_for_processing_time(receive):
    receive("10.00", created=datetime(2026, 9, 1), received=datetime(2026, 9, 5))
    receive("10.00")

    assert get_reports(now=NOW).average_processing_time == pytest.approx(4.0)


def test_monthly_trends_window_and_order(make_request, receive, set_created_at):
    set_created_at(make_request(), datetime(2026, 10, 2))
    receive("200.00", created=datetime(2026, 10, 1), received=datetime(2026, 10, 4))
    receive("50.00", created=datetime(2026, 8, 20), received=datetime(2026, 8, 25))
    set_created_at(make_request(), datetime(2025, 11, 1))
    # outside the trailing twelve months
    set_created_at(make_request(), datetime(2025, 10, 31, 23, 59))

    trends = get_reports(now=NOW).monthly_trends

    assert [t.month for t in trends] == ["2026-10", "2026-08", "2025-11"]
    assert [t.request_count for t in trends] == [2, 1, 1]
    assert trends[0].total_amount == Decimal("200.00")
    assert trends[2].total_amount == Decimal("0.00")


@pytest.mark.parametrize(
    "now, months, expected",
    [
        (datetime(2026, 10, 18), 12, datetime(2025, 11, 1)),
        (datetime(2026, 1, 31), 12, datetime(2025, 2, 1)),
        (datetime(2026, 12, 1), 1, datetime(2026, 12, 1)),
        (datetime(2026, 3, 15), 3, datetime(2026, 1, 1)),
    ],
)
def test_trend_window_start(now, months, expected):
    assert _trend_window_start(now, months) == expected


def test_report_serializes_with_camel_case_keys(receive):
    receive("12.34", created=datetime(2026, 10, 1))
    data = get_reports(now=NOW).model_dump(mode="json", by_alias=True)

    assert data["totalSpent"] == 12.34
    assert data["completedRequests"] == 1
    assert set(data["topCategories"][0]) == {"categoryName", "requestCount", "totalAmount"}
    assert set(data["monthlyTrends"][0]) == {"month", "requestCount", "totalAmount"}


def test_processing_time_uses_utc_for_offset_timestamps(receive):
    # 2026-10-02T12:00+12:00 is midnight UTC, one day after creation
    receive("10.00", created=datetime(2026, 10, 1), received="2026-10-02T12:00:00+12:00")

    assert get_reports(now=NOW).average_processing_time == pytest.approx(1.0)
