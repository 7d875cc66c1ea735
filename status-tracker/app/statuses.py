"""Immigration status model and transition rules.

Enumerates every status on the F-1 → OPT → STEM OPT → H-1B path, groups them
into phases, and defines which status-to-status moves are legal. All tables
are immutable mappings keyed by the enum; every status appears in each one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class ImmigrationStatus(str, Enum):
    """A user's current position in the immigration process."""

    # F-1 student phase
    F1_STUDENT = "F1_STUDENT"
    GRADUATED = "GRADUATED"

    # OPT phase
    OPT_NOT_APPLIED = "OPT_NOT_APPLIED"
    OPT_PENDING = "OPT_PENDING"
    OPT_APPROVED = "OPT_APPROVED"
    EAD_RECEIVED = "EAD_RECEIVED"

    # Employment phase
    JOB_SEARCHING = "JOB_SEARCHING"
    JOB_OFFER_RECEIVED = "JOB_OFFER_RECEIVED"
    EMPLOYED = "EMPLOYED"

    # STEM OPT extension phase
    STEM_OPT_ELIGIBLE = "STEM_OPT_ELIGIBLE"
    STEM_OPT_PENDING = "STEM_OPT_PENDING"
    STEM_OPT_APPROVED = "STEM_OPT_APPROVED"

    # H-1B phase
    H1B_PREPARING = "H1B_PREPARING"
    H1B_REGISTERED = "H1B_REGISTERED"
    H1B_SELECTED = "H1B_SELECTED"
    H1B_PETITION_FILED = "H1B_PETITION_FILED"
    H1B_APPROVED = "H1B_APPROVED"
    H1B_ACTIVE = "H1B_ACTIVE"

    # Alternative / end states
    H1B_NOT_SELECTED = "H1B_NOT_SELECTED"
    STATUS_EXPIRED = "STATUS_EXPIRED"
    OTHER = "OTHER"


class ImmigrationPhase(str, Enum):
    STUDENT = "STUDENT"
    OPT = "OPT"
    EMPLOYMENT = "EMPLOYMENT"
    STEM_OPT = "STEM_OPT"
    H1B = "H1B"
    OTHER = "OTHER"


_S = ImmigrationStatus

# ── Labels and descriptions ──────────────────────────────────────────────────

STATUS_LABELS: MappingProxyType[ImmigrationStatus, str] = MappingProxyType({
    _S.F1_STUDENT: "F-1 Student",
    _S.GRADUATED: "Graduated",
    _S.OPT_NOT_APPLIED: "OPT Not Applied",
    _S.OPT_PENDING: "OPT Application Pending",
    _S.OPT_APPROVED: "OPT Approved",
    _S.EAD_RECEIVED: "EAD Card Received",
    _S.JOB_SEARCHING: "Job Searching",
    _S.JOB_OFFER_RECEIVED: "Job Offer Received",
    _S.EMPLOYED: "Employed",
    _S.STEM_OPT_ELIGIBLE: "STEM OPT Eligible",
    _S.STEM_OPT_PENDING: "STEM OPT Extension Pending",
    _S.STEM_OPT_APPROVED: "STEM OPT Approved (24 months)",
    _S.H1B_PREPARING: "Preparing for H-1B",
    _S.H1B_REGISTERED: "H-1B Registered (March)",
    _S.H1B_SELECTED: "H-1B Lottery Selected",
    _S.H1B_PETITION_FILED: "H-1B Petition Filed",
    _S.H1B_APPROVED: "H-1B Approved",
    _S.H1B_ACTIVE: "H-1B Work Authorization Active",
    _S.H1B_NOT_SELECTED: "H-1B Lottery Not Selected",
    _S.STATUS_EXPIRED: "Status Expired",
    _S.OTHER: "Other Status",
})

STATUS_DESCRIPTIONS: MappingProxyType[ImmigrationStatus, str] = MappingProxyType({
    _S.F1_STUDENT: "Currently enrolled as F-1 student. Plan to apply for OPT 90 days before graduation.",
    _S.GRADUATED: "Graduated from university. Apply for OPT within your grace period.",
    _S.OPT_NOT_APPLIED: "Eligible to apply for OPT. Application must be filed within 90 days before to 60 days after program end.",
    _S.OPT_PENDING: "OPT application (Form I-765) submitted to USCIS. Processing time: 3-5 months.",
    _S.OPT_APPROVED: "OPT approved by USCIS. Waiting for EAD card arrival.",
    _S.EAD_RECEIVED: "EAD card received. Can begin employment and apply for SSN.",
    _S.JOB_SEARCHING: "Authorized to search for employment. Must maintain valid status.",
    _S.JOB_OFFER_RECEIVED: "Job offer received. Coordinate start date with EAD validity.",
    _S.EMPLOYED: "Currently employed with valid work authorization.",
    _S.STEM_OPT_ELIGIBLE: "Eligible for 24-month STEM OPT extension with qualifying degree.",
    _S.STEM_OPT_PENDING: "STEM OPT extension application submitted. Must apply before current OPT expires.",
    _S.STEM_OPT_APPROVED: "STEM OPT extension approved. Total work authorization: 36 months (12 + 24).",
    _S.H1B_PREPARING: "Preparing for H-1B application. Discuss sponsorship with your employer.",
    _S.H1B_REGISTERED: "H-1B registration submitted during March window. Awaiting lottery results.",
    _S.H1B_SELECTED: "Selected in H-1B lottery. Prepare to file full petition (Form I-129).",
    _S.H1B_PETITION_FILED: "H-1B petition filed with USCIS. Processing time: 3-6 months (or 15 business days with premium processing).",
    _S.H1B_APPROVED: "H-1B petition approved. Work authorization begins October 1st.",
    _S.H1B_ACTIVE: "H-1B work authorization active. Valid for 3 years, renewable up to 6 years.",
    _S.H1B_NOT_SELECTED: "Not selected in H-1B lottery. Consider alternatives or reapply next year.",
    _S.STATUS_EXPIRED: "Current immigration status has expired. Seek immediate legal consultation.",
    _S.OTHER: "Other immigration status not listed above.",
})

STATUS_TO_PHASE: MappingProxyType[ImmigrationStatus, ImmigrationPhase] = MappingProxyType({
    _S.F1_STUDENT: ImmigrationPhase.STUDENT,
    _S.GRADUATED: ImmigrationPhase.STUDENT,
    _S.OPT_NOT_APPLIED: ImmigrationPhase.OPT,
    _S.OPT_PENDING: ImmigrationPhase.OPT,
    _S.OPT_APPROVED: ImmigrationPhase.OPT,
    _S.EAD_RECEIVED: ImmigrationPhase.OPT,
    _S.JOB_SEARCHING: ImmigrationPhase.EMPLOYMENT,
    _S.JOB_OFFER_RECEIVED: ImmigrationPhase.EMPLOYMENT,
    _S.EMPLOYED: ImmigrationPhase.EMPLOYMENT,
    _S.STEM_OPT_ELIGIBLE: ImmigrationPhase.STEM_OPT,
    _S.STEM_OPT_PENDING: ImmigrationPhase.STEM_OPT,
    _S.STEM_OPT_APPROVED: ImmigrationPhase.STEM_OPT,
    _S.H1B_PREPARING: ImmigrationPhase.H1B,
    _S.H1B_REGISTERED: ImmigrationPhase.H1B,
    _S.H1B_SELECTED: ImmigrationPhase.H1B,
    _S.H1B_PETITION_FILED: ImmigrationPhase.H1B,
    _S.H1B_APPROVED: ImmigrationPhase.H1B,
    _S.H1B_ACTIVE: ImmigrationPhase.H1B,
    _S.H1B_NOT_SELECTED: ImmigrationPhase.H1B,
    _S.STATUS_EXPIRED: ImmigrationPhase.OTHER,
    _S.OTHER: ImmigrationPhase.OTHER,
})

PHASE_LABELS: MappingProxyType[ImmigrationPhase, str] = MappingProxyType({
    ImmigrationPhase.STUDENT: "F-1 Student",
    ImmigrationPhase.OPT: "OPT Phase",
    ImmigrationPhase.EMPLOYMENT: "Employment",
    ImmigrationPhase.STEM_OPT: "STEM OPT Extension",
    ImmigrationPhase.H1B: "H-1B Process",
    ImmigrationPhase.OTHER: "Other",
})

# ── Transition table ─────────────────────────────────────────────────────────

# OTHER is in every list: it is the manual-correction escape hatch.
VALID_TRANSITIONS: MappingProxyType[ImmigrationStatus, tuple[ImmigrationStatus, ...]] = MappingProxyType({
    _S.F1_STUDENT: (_S.GRADUATED, _S.OPT_NOT_APPLIED, _S.OTHER),
    _S.GRADUATED: (_S.OPT_NOT_APPLIED, _S.OPT_PENDING, _S.OTHER),
    _S.OPT_NOT_APPLIED: (_S.OPT_PENDING, _S.STATUS_EXPIRED, _S.OTHER),
    _S.OPT_PENDING: (
        _S.OPT_APPROVED,
        _S.OPT_NOT_APPLIED,  # denied, may reapply
        _S.STATUS_EXPIRED,
        _S.OTHER,
    ),
    _S.OPT_APPROVED: (_S.EAD_RECEIVED, _S.OTHER),
    _S.EAD_RECEIVED: (
        _S.JOB_SEARCHING,
        _S.JOB_OFFER_RECEIVED,
        _S.EMPLOYED,
        _S.STEM_OPT_ELIGIBLE,
        _S.OTHER,
    ),
    _S.JOB_SEARCHING: (_S.JOB_OFFER_RECEIVED, _S.EMPLOYED, _S.STATUS_EXPIRED, _S.OTHER),
    _S.JOB_OFFER_RECEIVED: (
        _S.EMPLOYED,
        _S.JOB_SEARCHING,  # offer fell through
        _S.OTHER,
    ),
    _S.EMPLOYED: (
        _S.STEM_OPT_ELIGIBLE,
        _S.STEM_OPT_PENDING,
        _S.H1B_PREPARING,
        _S.H1B_REGISTERED,
        _S.JOB_SEARCHING,  # job ended
        _S.STATUS_EXPIRED,
        _S.OTHER,
    ),
    _S.STEM_OPT_ELIGIBLE: (_S.STEM_OPT_PENDING, _S.EMPLOYED, _S.STATUS_EXPIRED, _S.OTHER),
    _S.STEM_OPT_PENDING: (
        _S.STEM_OPT_APPROVED,
        _S.STEM_OPT_ELIGIBLE,  # denied
        _S.STATUS_EXPIRED,
        _S.OTHER,
    ),
    _S.STEM_OPT_APPROVED: (_S.EMPLOYED, _S.H1B_PREPARING, _S.STATUS_EXPIRED, _S.OTHER),
    _S.H1B_PREPARING: (_S.H1B_REGISTERED, _S.EMPLOYED, _S.OTHER),
    _S.H1B_REGISTERED: (_S.H1B_SELECTED, _S.H1B_NOT_SELECTED, _S.OTHER),
    _S.H1B_SELECTED: (_S.H1B_PETITION_FILED, _S.OTHER),
    _S.H1B_PETITION_FILED: (
        _S.H1B_APPROVED,
        _S.H1B_PREPARING,  # denied, try again
        _S.STATUS_EXPIRED,
        _S.OTHER,
    ),
    _S.H1B_APPROVED: (_S.H1B_ACTIVE, _S.OTHER),
    _S.H1B_ACTIVE: (_S.OTHER,),
    _S.H1B_NOT_SELECTED: (
        _S.H1B_PREPARING,  # next year's lottery
        _S.EMPLOYED,
        _S.STATUS_EXPIRED,
        _S.OTHER,
    ),
    _S.STATUS_EXPIRED: (_S.OTHER,),
    _S.OTHER: tuple(s for s in ImmigrationStatus if s is not _S.OTHER),
})

RECOMMENDED_NEXT: MappingProxyType[ImmigrationStatus, ImmigrationStatus] = MappingProxyType({
    _S.F1_STUDENT: _S.GRADUATED,
    _S.GRADUATED: _S.OPT_PENDING,
    _S.OPT_NOT_APPLIED: _S.OPT_PENDING,
    _S.OPT_PENDING: _S.OPT_APPROVED,
    _S.OPT_APPROVED: _S.EAD_RECEIVED,
    _S.EAD_RECEIVED: _S.JOB_SEARCHING,
    _S.JOB_SEARCHING: _S.JOB_OFFER_RECEIVED,
    _S.JOB_OFFER_RECEIVED: _S.EMPLOYED,
    _S.EMPLOYED: _S.H1B_PREPARING,
    _S.STEM_OPT_ELIGIBLE: _S.STEM_OPT_PENDING,
    _S.STEM_OPT_PENDING: _S.STEM_OPT_APPROVED,
    _S.STEM_OPT_APPROVED: _S.EMPLOYED,
    _S.H1B_PREPARING: _S.H1B_REGISTERED,
    _S.H1B_REGISTERED: _S.H1B_SELECTED,
    _S.H1B_SELECTED: _S.H1B_PETITION_FILED,
    _S.H1B_PETITION_FILED: _S.H1B_APPROVED,
    _S.H1B_APPROVED: _S.H1B_ACTIVE,
    _S.H1B_NOT_SELECTED: _S.H1B_PREPARING,
    _S.H1B_ACTIVE: _S.OTHER,
    _S.STATUS_EXPIRED: _S.OTHER,
    _S.OTHER: _S.F1_STUDENT,
})

_URGENT_STATUSES = frozenset({
    _S.OPT_NOT_APPLIED,
    _S.GRADUATED,
    _S.STATUS_EXPIRED,
    _S.H1B_SELECTED,  # petition must be filed
})

_WORK_AUTHORIZED_STATUSES = frozenset({
    _S.EAD_RECEIVED,
    _S.JOB_SEARCHING,
    _S.JOB_OFFER_RECEIVED,
    _S.EMPLOYED,
    _S.STEM_OPT_APPROVED,
    _S.H1B_ACTIVE,
})

_STEM_ELIGIBLE_STATUSES = frozenset({_S.OPT_APPROVED, _S.EAD_RECEIVED, _S.EMPLOYED})

_H1B_ELIGIBLE_STATUSES = frozenset({_S.EMPLOYED, _S.STEM_OPT_APPROVED})

_TYPICAL_PATH: tuple[ImmigrationStatus, ...] = (
    _S.F1_STUDENT,
    _S.GRADUATED,
    _S.OPT_PENDING,
    _S.OPT_APPROVED,
    _S.EAD_RECEIVED,
    _S.EMPLOYED,
    _S.H1B_PREPARING,
    _S.H1B_REGISTERED,
    _S.H1B_SELECTED,
    _S.H1B_PETITION_FILED,
    _S.H1B_APPROVED,
    _S.H1B_ACTIVE,
)

_SUGGESTION_REASONS: dict[ImmigrationStatus, str] = {
    _S.OPT_PENDING: "Submit OPT application to USCIS",
    _S.EAD_RECEIVED: "EAD card has arrived",
    _S.EMPLOYED: "Started working with valid authorization",
    _S.STEM_OPT_PENDING: "Apply for 24-month STEM extension",
    _S.H1B_REGISTERED: "Employer registered for H-1B lottery",
    _S.H1B_ACTIVE: "H-1B status is now effective",
}


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a transition request. Invalid requests are never raised."""

    valid: bool
    error: str | None = None


# ── Lookups ──────────────────────────────────────────────────────────────────


def parse_status(value: str | ImmigrationStatus | None) -> ImmigrationStatus | None:
    """Parse a status name (case-insensitive). Returns None for unknown input."""
    if isinstance(value, ImmigrationStatus):
        return value
    if not value:
        return None
    try:
        return ImmigrationStatus(str(value).strip().upper())
    except ValueError:
        return None


def get_next_statuses(current: ImmigrationStatus) -> tuple[ImmigrationStatus, ...]:
    """All statuses reachable from *current* in one step."""
    return VALID_TRANSITIONS.get(current, ())


def is_valid_transition(current: ImmigrationStatus, new: ImmigrationStatus) -> bool:
    """True when *new* equals *current* or is an allowed successor."""
    if current == new:
        return True
    return new in get_next_statuses(current)


def get_recommended_next_status(current: ImmigrationStatus) -> ImmigrationStatus | None:
    """Most likely next status on the typical path.

    Falls back to the first allowed successor, and returns None for a status
    with no successors at all.
    """
    next_statuses = get_next_statuses(current)
    if not next_statuses:
        return None
    return RECOMMENDED_NEXT.get(current, next_statuses[0])


def is_terminal_status(status: ImmigrationStatus) -> bool:
    """True when nothing but the OTHER escape hatch follows *status*."""
    return all(s is _S.OTHER for s in get_next_statuses(status))


def validate_transition(current: ImmigrationStatus, new: ImmigrationStatus) -> TransitionResult:
    if is_valid_transition(current, new):
        return TransitionResult(valid=True)
    return TransitionResult(
        valid=False,
        error=(
            f"Cannot transition from {current.value} to {new.value}. "
            "This transition is not allowed."
        ),
    )


# ── Phase and eligibility checks ─────────────────────────────────────────────


def get_current_phase(status: ImmigrationStatus) -> ImmigrationPhase:
    return STATUS_TO_PHASE[status]


def is_in_phase(status: ImmigrationStatus, phase: ImmigrationPhase) -> bool:
    return get_current_phase(status) == phase


def requires_immediate_action(status: ImmigrationStatus) -> bool:
    return status in _URGENT_STATUSES


def can_work(status: ImmigrationStatus) -> bool:
    return status in _WORK_AUTHORIZED_STATUSES


def is_stem_opt_eligible(status: ImmigrationStatus, has_stem_degree: bool) -> bool:
    return has_stem_degree and status in _STEM_ELIGIBLE_STATUSES


def is_h1b_eligible(status: ImmigrationStatus, has_job_offer: bool) -> bool:
    return has_job_offer and status in _H1B_ELIGIBLE_STATUSES


def get_typical_progression_path(start: ImmigrationStatus) -> list[ImmigrationStatus]:
    """The typical journey from *start* to H-1B.

    Statuses off the typical path return just themselves.
    """
    if start in _TYPICAL_PATH:
        return list(_TYPICAL_PATH[_TYPICAL_PATH.index(start):])
    return [start]


def get_transition_suggestions(current: ImmigrationStatus) -> list[dict]:
    """Each allowed next status with a short reason, recommended first.

    Returns dicts with ``status``, ``label``, ``reason`` and ``priority``
    (``"high"`` for the recommended status, ``"medium"`` otherwise).
    """
    recommended = get_recommended_next_status(current)
    suggestions = [
        {
            "status": status,
            "label": STATUS_LABELS[status],
            "reason": _SUGGESTION_REASONS.get(status, "Next step in immigration process"),
            "priority": "high" if status == recommended else "medium",
        }
        for status in get_next_statuses(current)
    ]
    # stable sort keeps table order within each priority
    suggestions.sort(key=lambda s: 0 if s["priority"] == "high" else 1)
    return suggestions
