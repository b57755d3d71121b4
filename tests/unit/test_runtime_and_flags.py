from datetime import date, datetime, timezone

import pytest

from mindfold.utils import feature_flags
from mindfold.utils.dates import add_months, ensure_utc, parse_iso_datetime, period_end, week_start
from mindfold.utils.runtime import dev_mode_active


def test_feature_flags_default_on():
    flags = feature_flags.get_feature_flags()
    assert flags == {
        "llm_features_enabled": True,
        "usage_limits_enforced": True,
        "verification_emails_enabled": True,
    }


@pytest.mark.parametrize("raw,expected", [("false", False), ("0", False), ("", False), ("YES", True), ("maybe", True)])
def test_feature_flag_parsing(monkeypatch, raw, expected):
    monkeypatch.setenv("USAGE_LIMITS_ENFORCED", raw)
    feature_flags.refresh_feature_flag_cache()
    assert feature_flags.usage_limits_enforced() is expected


def test_feature_flags_are_cached_until_refresh(monkeypatch):
    assert feature_flags.llm_features_enabled() is True
    monkeypatch.setenv("LLM_FEATURES_ENABLED", "off")
    assert feature_flags.llm_features_enabled() is True
    feature_flags.refresh_feature_flag_cache()
    assert feature_flags.llm_features_enabled() is False


def test_dev_mode_off_by_default():
    assert dev_mode_active() is False


def test_dev_mode_allows_loopback_base_url(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "http://localhost:3000")
    assert dev_mode_active() is True


def test_dev_mode_refuses_public_host(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "https://app.mindfold.example")
    with pytest.raises(RuntimeError):
        dev_mode_active()

    monkeypatch.setenv("DEV_MODE_ALLOWED_HOSTS", "app.mindfold.example")
    assert dev_mode_active() is True


def test_dev_mode_without_base_url_needs_opt_in(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.delenv("PYTEST_CURRENT_TEST", raising=False)
    with pytest.raises(RuntimeError):
        dev_mode_active()
    monkeypatch.setenv("ALLOW_DEV_MODE", "true")
    assert dev_mode_active() is True


def test_add_months_clamps_day():
    assert add_months(datetime(2026, 1, 31), 1) == datetime(2026, 2, 28)
    assert add_months(datetime(2026, 11, 15), 3) == datetime(2027, 2, 15)
    assert add_months(datetime(2026, 3, 31), -1) == datetime(2026, 2, 28)


def test_period_end_by_cycle():
    start = datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert period_end(start, "monthly") == datetime(2026, 11, 19, tzinfo=timezone.utc)
    assert period_end(start, "yearly") == datetime(2027, 10, 19, tzinfo=timezone.utc)


def test_week_start_is_monday():
    assert week_start(date(2026, 10, 19)) == date(2026, 10, 19)
    assert week_start(date(2026, 10, 25)) == date(2026, 10, 19)


def test_parse_iso_datetime():
    assert parse_iso_datetime("2026-10-19T10:00:00Z") == datetime(2026, 10, 19, 10, tzinfo=timezone.utc)
    assert parse_iso_datetime("not a date") is None
    assert parse_iso_datetime(None) is None
    assert ensure_utc(datetime(2026, 1, 1)).tzinfo is timezone.utc
