"""Tests for status-tracker/app/dates.py — deadline arithmetic."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from app import dates


# ── Parsing ──────────────────────────────────────────────────────────────


class TestParseDate:
    def test_iso_date(self):
        assert dates.parse_date("2025-06-01") == date(2025, 6, 1)

    def test_iso_timestamp(self):
        assert dates.parse_date("2025-06-01T14:30:00Z") == date(2025, 6, 1)

    def test_date_and_datetime_objects(self):
        assert dates.parse_date(date(2025, 6, 1)) == date(2025, 6, 1)
        assert dates.parse_date(datetime(2025, 6, 1, 8, 0)) == date(2025, 6, 1)

    @pytest.mark.parametrize("value", [None, "", "not a date", "2025-13-45", 20250601])
    def test_invalid_returns_none(self, value):
        assert dates.parse_date(value) is None

    def test_to_iso(self):
        assert dates.to_iso("2025-06-01T00:00:00") == "2025-06-01"
        assert dates.to_iso("garbage") is None


# ── OPT / employment ─────────────────────────────────────────────────────


def test_opt_window_opens_90_days_before_graduation():
    assert dates.calculate_opt_application_start(date(2025, 6, 1)) == date(2025, 3, 3)


def test_opt_deadline_and_grace_period():
    program_end = date(2025, 6, 1)
    assert dates.calculate_opt_application_deadline(program_end) == date(2025, 7, 31)
    assert dates.calculate_grace_period_end(program_end) == date(2025, 7, 31)


def test_unemployment_limit():
    assert dates.calculate_unemployment_limit(date(2025, 1, 1)) == date(2025, 4, 1)


def test_dso_report_deadline():
    assert dates.calculate_dso_report_deadline(date(2025, 2, 25)) == date(2025, 3, 7)


def test_address_change_deadline():
    assert dates.calculate_address_change_deadline(date(2025, 5, 1)) == date(2025, 5, 11)


# ── STEM OPT ─────────────────────────────────────────────────────────────


def test_stem_deadline_is_before_expiry():
    assert dates.calculate_stem_opt_deadline(date(2025, 6, 30)) == date(2025, 5, 31)


def test_stem_reporting_every_six_months():
    reports = dates.calculate_stem_reporting_deadlines(date(2025, 7, 1), date(2027, 7, 1))
    assert reports == [date(2026, 1, 1), date(2026, 7, 1), date(2027, 1, 1)]


def test_stem_reporting_month_end_does_not_drift():
    reports = dates.calculate_stem_reporting_deadlines(date(2025, 8, 31), date(2026, 9, 1))
    assert reports == [date(2026, 2, 28), date(2026, 8, 31)]


def test_stem_reporting_empty_when_range_too_short():
    assert dates.calculate_stem_reporting_deadlines(date(2025, 1, 1), date(2025, 6, 1)) == []


# ── H-1B calendar ────────────────────────────────────────────────────────


def test_h1b_registration_period():
    assert dates.calculate_h1b_registration_period(2026) == (date(2026, 3, 1), date(2026, 3, 18))


def test_h1b_start_is_october_first():
    assert dates.calculate_h1b_start_date(2026) == date(2026, 10, 1)


class TestCapGap:
    def test_gap_when_opt_ends_before_october(self):
        assert dates.calculate_cap_gap_period(date(2026, 6, 30), 2026) == (date(2026, 6, 30), date(2026, 10, 1))

    def test_no_gap_when_opt_covers_start(self):
        assert dates.calculate_cap_gap_period(date(2026, 12, 31), 2026) is None


# ── Processing estimates ─────────────────────────────────────────────────


def test_add_business_days_skips_weekends():
    # Friday + 1 business day -> Monday
    assert dates.add_business_days(date(2025, 1, 3), 1) == date(2025, 1, 6)
    assert dates.add_business_days(date(2025, 1, 6), 15) == date(2025, 1, 27)


def test_opt_processing_estimate():
    assert dates.calculate_opt_processing_estimate(date(2025, 1, 31)) == (date(2025, 4, 30), date(2025, 6, 30))


def test_h1b_premium_processing():
    earliest, latest = dates.calculate_h1b_processing_estimate(date(2025, 4, 1), premium=True)
    assert earliest == latest == date(2025, 4, 22)


def test_h1b_regular_processing():
    assert dates.calculate_h1b_processing_estimate(date(2025, 4, 1)) == (date(2025, 7, 1), date(2025, 10, 1))


# ── Render-time helpers ──────────────────────────────────────────────────

TODAY = date(2025, 1, 15)


def test_days_until_and_past_future():
    assert dates.days_until(date(2025, 1, 25), TODAY) == 10
    assert dates.days_until(date(2025, 1, 10), TODAY) == -5
    assert dates.is_past_date(date(2025, 1, 14), TODAY)
    assert dates.is_future_date(date(2025, 1, 16), TODAY)
    assert not dates.is_future_date(TODAY, TODAY)


def test_notification_dates_future_only_and_sorted():
    due = date(2025, 2, 1)
    result = dates.calculate_notification_dates(due, [30, 14, 7, 1], TODAY)
    assert result == [date(2025, 1, 18), date(2025, 1, 25), date(2025, 1, 31)]


@pytest.mark.parametrize("offset,expected", [
    (-3, "critical"), (2, "critical"), (5, "high"), (20, "medium"), (45, "low"),
])
def test_deadline_urgency(offset, expected):
    due = date.fromordinal(TODAY.toordinal() + offset)
    assert dates.get_deadline_urgency(due, TODAY) == expected


def test_warning_period():
    assert dates.is_within_warning_period(date(2025, 1, 20), today=TODAY)
    assert not dates.is_within_warning_period(date(2025, 1, 10), today=TODAY)
    assert not dates.is_within_warning_period(date(2025, 3, 1), today=TODAY)


def test_format_display_date():
    assert dates.format_display_date("2025-03-03") == "Mar 03, 2025"
    assert dates.format_display_date("nope") == ""


@pytest.mark.parametrize("target,expected", [
    (date(2025, 1, 15), "Today"),
    (date(2025, 1, 16), "Tomorrow"),
    (date(2025, 1, 25), "in 10 days"),
    (date(2025, 3, 1), "in 1 month"),
    (date(2025, 1, 14), "1 day ago"),
    (date(2024, 11, 1), "2 months ago"),
])
def test_format_relative_date(target, expected):
    assert dates.format_relative_date(target, TODAY) == expected


def test_reasonable_date():
    assert dates.is_reasonable_date(date(2026, 1, 1), TODAY)
    assert not dates.is_reasonable_date(date(1925, 1, 1), TODAY)
    assert not dates.is_reasonable_date(date(2205, 1, 1), TODAY)
