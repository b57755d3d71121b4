from datetime import date

import pytest

from mindfold.services import reports_service
from mindfold.services.reports_service import build_wrap, percent_change, score_label, wrap_window


def test_week_window_is_sunday_to_saturday():
    # 2026-10-21 is a Wednesday
    start, end, label = wrap_window("week", 0, date(2026, 10, 21))
    assert (start, end) == (date(2026, 10, 18), date(2026, 10, 24))
    assert label == "Oct 18 – Oct 24"

    start, end, _ = wrap_window("week", 1, date(2026, 10, 18))
    assert (start, end) == (date(2026, 10, 11), date(2026, 10, 17))


def test_month_window_with_offset():
    start, end, label = wrap_window("month", 0, date(2026, 10, 19))
    assert (start, end, label) == (date(2026, 10, 1), date(2026, 10, 31), "October 2026")

    start, end, label = wrap_window("month", 10, date(2026, 10, 19))
    assert (start, end, label) == (date(2025, 12, 1), date(2025, 12, 31), "December 2025")


def test_all_time_window():
    assert wrap_window("all", 3, date(2026, 10, 19)) == (None, None, "All Time")


@pytest.mark.parametrize("score,label", [
    (95, "Excellent"), (80, "Excellent"), (60, "Good"), (59, "Fair"), (20, "Needs Attention"), (19, "Critical"), (0, "Critical"),
])
def test_score_label(score, label):
    assert score_label(score) == label


def test_percent_change():
    assert percent_change(150, 100) == 50
    assert percent_change(50, 100) == -50
    assert percent_change(5, 0) == 100
    assert percent_change(0, 0) == 0


def test_wrap_metrics_trend_and_extremes(db_session, make_profile, make_entry):
    user = make_profile("wrapped@example.com")
    make_entry(user, date(2026, 10, 18), score=40)
    make_entry(user, date(2026, 10, 19), score=50)
    make_entry(user, date(2026, 10, 20), score=70)
    make_entry(user, date(2026, 10, 21), score=80)
    make_entry(user, date(2026, 10, 25), score=10)

    wrap = build_wrap(db_session, user.id, "week", 0, today=date(2026, 10, 21))
    assert wrap["entry_count"] == 4
    assert wrap["start_date"] == "2026-10-18"
    assert wrap["end_date"] == "2026-10-24"

    mental = wrap["metrics"]["mental_health_score"]
    assert mental == {"avg": 60.0, "count": 4, "trend": 30.0}
    assert wrap["best_day"]["entry_date"] == "2026-10-21"
    assert wrap["worst_day"]["entry_date"] == "2026-10-18"
    # (60 + 60 + 60 + (100 - 60) + (100 - 60)) / 5
    assert wrap["overall_score"] == 52
    assert wrap["overall_label"] == "Fair"


def test_wrap_trend_needs_four_entries(db_session, make_profile, make_entry):
    user = make_profile("wrapped@example.com")
    make_entry(user, date(2026, 10, 18), score=40)
    make_entry(user, date(2026, 10, 19), score=90)
    wrap = build_wrap(db_session, user.id, "week", 0, today=date(2026, 10, 19))
    assert wrap["metrics"]["happiness_score"]["trend"] == 0.0


def test_empty_wrap(db_session, make_profile):
    user = make_profile("wrapped@example.com")
    wrap = build_wrap(db_session, user.id, "month", 0, today=date(2026, 10, 19))
    assert wrap["entry_count"] == 0
    assert wrap["overall_score"] == 0
    assert wrap["overall_label"] == "Critical"
    assert wrap["best_day"] is None


def test_unscored_entries_are_ignored(db_session, make_profile, make_entry):
    user = make_profile("wrapped@example.com")
    make_entry(user, date(2026, 10, 19), mental_health_score=None)
    assert build_wrap(db_session, user.id, "all")["entry_count"] == 0


def test_wraps_endpoint(client, auth_headers, make_profile, make_entry):
    from mindfold.db import models

    user = make_profile("wrapped@example.com")
    make_entry(user, models.now_utc().date(), score=90)
    headers = auth_headers("wrapped@example.com")

    body = client.get("/wraps", params={"period": "all"}, headers=headers).json()
    assert body["period_label"] == "All Time"
    assert body["entry_count"] == 1

    assert client.get("/wraps", params={"period": "decade"}, headers=headers).status_code == 400
    assert client.get("/wraps", params={"offset": -1}, headers=headers).status_code == 422


def test_dashboard_overview(client, auth_headers, make_profile, make_entry):
    user = make_profile("dash@example.com", full_name="Dana")
    for day in range(1, 8):
        make_entry(user, date(2026, 10, day), score=day * 10)

    body = client.get("/dashboard/overview", headers=auth_headers("dash@example.com")).json()
    assert body["full_name"] == "Dana"
    assert body["total_entries"] == 7
    assert body["averages"]["mental_health"] == 40
    assert body["averages"]["burnout_risk"] == 40
    assert len(body["recent_entries"]) == 5
    assert body["recent_entries"][0]["entry_date"] == "2026-10-07"


def test_range_days_cover_supported_ranges():
    assert reports_service.RANGE_DAYS == {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
