"""User profile record.

One profile per install. Dates are kept as ISO-8601 strings so the record is
JSON-serializable as-is, and parsed to ``date`` values on demand. Profiles are
never mutated in place: updates build a new object with ``updated_at``
refreshed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from datetime import date, datetime
from typing import Any

from app.dates import parse_date, to_iso
from app.statuses import ImmigrationStatus, parse_status

DEFAULT_USER_ID = "user_default"

DATE_FIELDS: tuple[str, ...] = (
    "graduation_date",
    "program_end_date",
    "opt_application_date",
    "opt_approval_date",
    "ead_received_date",
    "ead_expiry_date",
    "stem_opt_application_date",
    "stem_opt_expiry_date",
    "h1b_registration_date",
    "h1b_approval_date",
    "h1b_start_date",
    "h1b_expiry_date",
    "employment_start_date",
    "passport_expiry_date",
    "visa_expiry_date",
    "i20_expiry_date",
)

_PROTECTED_FIELDS = frozenset({"id", "created_at"})


@dataclass(frozen=True)
class UserProfile:
    """A single user's immigration journey."""

    id: str = DEFAULT_USER_ID
    name: str = "User"
    email: str | None = None

    current_status: ImmigrationStatus = ImmigrationStatus.F1_STUDENT

    # Key dates (ISO strings)
    graduation_date: str | None = None
    program_end_date: str | None = None
    opt_application_date: str | None = None
    opt_approval_date: str | None = None
    ead_received_date: str | None = None
    ead_expiry_date: str | None = None
    stem_opt_application_date: str | None = None
    stem_opt_expiry_date: str | None = None
    h1b_registration_date: str | None = None
    h1b_approval_date: str | None = None
    h1b_start_date: str | None = None
    h1b_expiry_date: str | None = None

    # Education
    has_stem_degree: bool = False
    degree_field: str | None = None
    university_name: str | None = None

    # Employment
    current_employer: str | None = None
    employment_start_date: str | None = None
    job_title: str | None = None
    has_job_offer: bool = False

    # Documents
    sevis_id: str | None = None
    passport_number: str | None = None
    passport_expiry_date: str | None = None
    visa_expiry_date: str | None = None
    i20_expiry_date: str | None = None

    # H-1B
    h1b_lottery_selected: bool | None = None
    h1b_lottery_year: int | None = None
    employer_willing_to_sponsor: bool | None = None

    created_at: str = ""
    updated_at: str = ""


_FIELD_NAMES = frozenset(f.name for f in fields(UserProfile))


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _normalize(values: dict[str, Any]) -> dict[str, Any]:
    """Coerce dates to ISO strings and the status to the enum."""
    out = dict(values)
    for key in DATE_FIELDS:
        if key in out:
            value = out[key]
            # keep unparseable strings; the generator skips them
            out[key] = to_iso(value) or (value if isinstance(value, str) and value else None)
    if "current_status" in out:
        out["current_status"] = parse_status(out["current_status"]) or ImmigrationStatus.OTHER
    return out


def create_profile(**values: Any) -> UserProfile:
    """Build a new profile with defaults and fresh timestamps.

    Raises:
        TypeError: if an unknown field name is given.
    """
    unknown = set(values) - _FIELD_NAMES
    if unknown:
        raise TypeError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    now = _now()
    values.setdefault("created_at", now)
    values.setdefault("updated_at", now)
    return UserProfile(**_normalize(values))


def update_profile(profile: UserProfile, **updates: Any) -> UserProfile:
    """Return a new profile with *updates* applied and ``updated_at`` refreshed.

    Raises:
        ValueError: on an attempt to change ``id`` or ``created_at``.
        TypeError: if an unknown field name is given.
    """
    protected = _PROTECTED_FIELDS & set(updates)
    if protected:
        raise ValueError(f"Cannot update protected fields: {', '.join(sorted(protected))}")
    unknown = set(updates) - _FIELD_NAMES
    if unknown:
        raise TypeError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    updates = _normalize(updates)
    updates["updated_at"] = _now()
    return replace(profile, **updates)


def profile_to_dict(profile: UserProfile) -> dict[str, Any]:
    """JSON-safe dict of every field."""
    data = asdict(profile)
    data["current_status"] = profile.current_status.value
    return data


def profile_from_dict(data: dict[str, Any]) -> UserProfile:
    """Rebuild a profile from stored JSON. Unknown keys are ignored."""
    known = {k: v for k, v in data.items() if k in _FIELD_NAMES}
    known["current_status"] = known.get("current_status")
    return UserProfile(**_normalize(known))


def profile_date(profile: UserProfile, field_name: str) -> date | None:
    """Parse one of the profile's date fields; None when absent or invalid."""
    return parse_date(getattr(profile, field_name, None))


# ── Convenience predicates ───────────────────────────────────────────────────


def has_graduation_date(profile: UserProfile) -> bool:
    return profile_date(profile, "graduation_date") is not None


def has_ead_card(profile: UserProfile) -> bool:
    return profile_date(profile, "ead_received_date") is not None


def has_stem_opt(profile: UserProfile) -> bool:
    return profile.has_stem_degree and profile.current_status is ImmigrationStatus.STEM_OPT_APPROVED


def is_h1b_candidate(profile: UserProfile) -> bool:
    """EAD in hand, a job offer, and an employer willing to sponsor."""
    return (
        has_ead_card(profile)
        and profile.has_job_offer
        and profile.employer_willing_to_sponsor is True
    )
