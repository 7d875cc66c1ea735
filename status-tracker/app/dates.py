"""Deadline date calculator.

Pure date arithmetic: each ``calculate_*`` function turns one anchor date
(graduation, program end, EAD receipt, ...) into a derived deadline using a
fixed offset from ``DEADLINE_OFFSETS``. Nothing here reads the wall clock
except the render-time helpers at the bottom, and those accept an explicit
``today`` so callers and tests can pin it.

Offsets are illustrative, not legal advice. They can be overridden per
install through ``data/config/status-tracker.json``::

    {"deadline_offsets": {"grace_period": 60}}
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from shared.config_store import get_config_mapping

TOOL_NAME = "status-tracker"

# ── Offset tables ────────────────────────────────────────────────────────────

_DEFAULT_DEADLINE_OFFSETS: dict[str, int] = {
    "opt_application_start": -90,     # days before graduation
    "opt_application_deadline": 60,   # days after program end
    "grace_period": 60,               # days after program end
    "unemployment_limit": 90,         # days after OPT start
    "stem_application_deadline": -30, # days before OPT expiry
    "stem_reporting_interval_months": 6,
    "address_change_deadline": 10,    # days after moving
    "employment_report_deadline": 10, # days to report to DSO
    "h1b_premium_business_days": 15,
}

# (month, day) pairs; fixed every calendar year
ANNUAL_IMMIGRATION_DATES: dict[str, tuple[int, int]] = {
    "h1b_registration_start": (3, 1),
    "h1b_registration_end": (3, 18),
    "h1b_petition_start": (4, 1),
    "h1b_status_start": (10, 1),
}

# (min_months, max_months)
PROCESSING_TIMES: dict[str, tuple[int, int]] = {
    "opt_application": (3, 5),
    "stem_opt_application": (3, 5),
    "h1b_petition": (3, 6),
}

DEADLINE_OFFSETS: dict[str, int] = get_config_mapping(
    TOOL_NAME, "deadline_offsets", _DEFAULT_DEADLINE_OFFSETS
)

# Days-remaining cutoffs for urgency labels
PRIORITY_THRESHOLDS: dict[str, int] = {"critical": 3, "high": 7, "medium": 30}


# ── Parsing ──────────────────────────────────────────────────────────────────


def parse_date(value: date | datetime | str | None) -> date | None:
    """Coerce a stored date value into a ``date``.

    Accepts ``date``/``datetime`` objects and ISO-8601 strings (date-only or
    full timestamps). Returns None for empty or unparseable input; callers
    treat that the same as a missing anchor.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        return None


def to_iso(value: date | datetime | str | None) -> str | None:
    """Normalize a date value to ``YYYY-MM-DD`` for storage."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None


# ── OPT deadlines ────────────────────────────────────────────────────────────


def calculate_opt_application_start(graduation_date: date) -> date:
    """OPT filing window opens 90 days before graduation."""
    return graduation_date + timedelta(days=DEADLINE_OFFSETS["opt_application_start"])


def calculate_opt_application_deadline(program_end_date: date) -> date:
    return program_end_date + timedelta(days=DEADLINE_OFFSETS["opt_application_deadline"])


def calculate_grace_period_end(program_end_date: date) -> date:
    return program_end_date + timedelta(days=DEADLINE_OFFSETS["grace_period"])


def calculate_unemployment_limit(opt_start_date: date) -> date:
    return opt_start_date + timedelta(days=DEADLINE_OFFSETS["unemployment_limit"])


# ── STEM OPT deadlines ───────────────────────────────────────────────────────


def calculate_stem_opt_deadline(current_opt_expiry: date) -> date:
    """Recommended last day to file the STEM extension before OPT runs out."""
    return current_opt_expiry + timedelta(days=DEADLINE_OFFSETS["stem_application_deadline"])


def calculate_stem_reporting_deadlines(stem_start: date, stem_end: date) -> list[date]:
    """Validation report dates every six months, strictly before *stem_end*."""
    step = relativedelta(months=DEADLINE_OFFSETS["stem_reporting_interval_months"])
    deadlines: list[date] = []
    n = 1
    current = stem_start + step
    while current < stem_end:
        deadlines.append(current)
        n += 1
        # offset from the start each time so month-end days don't drift
        current = stem_start + step * n
    return deadlines


# ── H-1B calendar ────────────────────────────────────────────────────────────


def _annual(key: str, year: int) -> date:
    month, day = ANNUAL_IMMIGRATION_DATES[key]
    return date(year, month, day)


def calculate_h1b_registration_period(year: int) -> tuple[date, date]:
    """The March registration window as ``(start, end)``."""
    return _annual("h1b_registration_start", year), _annual("h1b_registration_end", year)


def calculate_h1b_start_date(year: int) -> date:
    """H-1B status always starts October 1."""
    return _annual("h1b_status_start", year)


def calculate_cap_gap_period(opt_expiry: date, h1b_year: int) -> tuple[date, date] | None:
    """Gap between OPT expiry and the October 1 H-1B start, or None if no gap."""
    h1b_start = calculate_h1b_start_date(h1b_year)
    if opt_expiry < h1b_start:
        return opt_expiry, h1b_start
    return None


# ── Compliance deadlines ─────────────────────────────────────────────────────


def calculate_address_change_deadline(move_date: date) -> date:
    return move_date + timedelta(days=DEADLINE_OFFSETS["address_change_deadline"])


def calculate_dso_report_deadline(employment_start: date) -> date:
    return employment_start + timedelta(days=DEADLINE_OFFSETS["employment_report_deadline"])


# ── Processing estimates ─────────────────────────────────────────────────────


def add_business_days(start: date, business_days: int) -> date:
    """Add *business_days* weekdays to *start*, skipping Saturdays and Sundays."""
    current = start
    remaining = business_days
    step = 1 if business_days >= 0 else -1
    while remaining:
        current += timedelta(days=step)
        if current.weekday() < 5:
            remaining -= step
    return current


def calculate_processing_time_estimate(
    submission_date: date, min_months: int, max_months: int
) -> tuple[date, date]:
    """Earliest and latest expected decision dates."""
    return (
        submission_date + relativedelta(months=min_months),
        submission_date + relativedelta(months=max_months),
    )


def calculate_opt_processing_estimate(application_date: date) -> tuple[date, date]:
    return calculate_processing_time_estimate(application_date, *PROCESSING_TIMES["opt_application"])


def calculate_h1b_processing_estimate(filing_date: date, premium: bool = False) -> tuple[date, date]:
    if premium:
        decided = add_business_days(filing_date, DEADLINE_OFFSETS["h1b_premium_business_days"])
        return decided, decided
    return calculate_processing_time_estimate(filing_date, *PROCESSING_TIMES["h1b_petition"])


# ── Render-time helpers (depend on "today") ──────────────────────────────────


def _today(today: date | None) -> date:
    return today if today is not None else date.today()


def days_until(target: date, today: date | None = None) -> int:
    """Whole days from *today* to *target*; negative when past."""
    return (target - _today(today)).days


def is_past_date(target: date, today: date | None = None) -> bool:
    return target < _today(today)


def is_future_date(target: date, today: date | None = None) -> bool:
    return target > _today(today)


def calculate_notification_dates(
    due_date: date, days_before: list[int], today: date | None = None
) -> list[date]:
    """Reminder dates for a deadline, future ones only, soonest first."""
    dates = {due_date - timedelta(days=d) for d in days_before}
    return sorted(d for d in dates if is_future_date(d, today))


def get_deadline_urgency(due_date: date, today: date | None = None) -> str:
    """``critical`` / ``high`` / ``medium`` / ``low`` from days remaining.

    Overdue deadlines are critical.
    """
    days = days_until(due_date, today)
    if days <= PRIORITY_THRESHOLDS["critical"]:
        return "critical"
    if days <= PRIORITY_THRESHOLDS["high"]:
        return "high"
    if days <= PRIORITY_THRESHOLDS["medium"]:
        return "medium"
    return "low"


def is_within_warning_period(due_date: date, warning_days: int = 14, today: date | None = None) -> bool:
    days = days_until(due_date, today)
    return 0 <= days <= warning_days


def format_display_date(value: date | str) -> str:
    """``Mar 03, 2025`` style display string; empty for bad input."""
    parsed = parse_date(value)
    return parsed.strftime("%b %d, %Y") if parsed else ""


def format_relative_date(target: date, today: date | None = None) -> str:
    """Human phrasing such as "in 12 days", "Tomorrow" or "2 months ago"."""
    days = days_until(target, today)
    if days < 0:
        ago = -days
        if ago == 1:
            return "1 day ago"
        if ago < 30:
            return f"{ago} days ago"
        months = ago // 30
        return "1 month ago" if months == 1 else f"{months} months ago"
    if days == 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    if days < 30:
        return f"in {days} days"
    months = days // 30
    return "in 1 month" if months == 1 else f"in {months} months"


def is_reasonable_date(value: date, today: date | None = None) -> bool:
    """Within ten years either side of today; catches typos like 1925 or 2205."""
    now = _today(today)
    span = timedelta(days=365 * 10)
    return now - span < value < now + span
