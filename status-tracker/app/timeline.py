"""Timeline generator.

Turns a ``UserProfile`` into the three derived collections the tracker shows:

- **deadlines**: dated obligations computed from the profile's anchor dates
  (graduation, program end, EAD receipt, document expiries, ...),
- **action items**: the hand-written to-do list for the current status,
- **events**: milestones already reached or still ahead.

Every function here is pure. The only notion of "now" is the explicit
``as_of`` / ``today`` argument, so a pinned date always reproduces the same
output. Records carry ids derived from their content rather than random ids,
which keeps regenerated timelines byte-identical and lets callers merge
repeated runs by title.

Missing or unparseable anchor dates skip the rule that needs them; nothing in
this module raises for incomplete profiles.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Iterable, TypeVar

from shared.config_store import get_config_mapping, get_config_value

from app.dates import (
    TOOL_NAME,
    calculate_cap_gap_period,
    calculate_dso_report_deadline,
    calculate_grace_period_end,
    calculate_h1b_registration_period,
    calculate_h1b_start_date,
    calculate_opt_application_deadline,
    calculate_opt_application_start,
    calculate_stem_opt_deadline,
    calculate_stem_reporting_deadlines,
    calculate_unemployment_limit,
    parse_date,
)
from app.profile import UserProfile, profile_date
from app.resources import (
    USCIS_URLS,
    ResourceLink,
    ResourceType,
    get_form_resources,
    get_topic_resources,
)
from app.statuses import ImmigrationStatus, get_recommended_next_status

_S = ImmigrationStatus


class DeadlineType(str, Enum):
    # OPT
    OPT_APPLICATION_WINDOW_START = "OPT_APPLICATION_WINDOW_START"
    OPT_APPLICATION_DEADLINE = "OPT_APPLICATION_DEADLINE"
    OPT_GRACE_PERIOD_END = "OPT_GRACE_PERIOD_END"

    # Employment
    UNEMPLOYMENT_90_DAY_LIMIT = "UNEMPLOYMENT_90_DAY_LIMIT"

    # STEM OPT
    STEM_OPT_APPLICATION_DEADLINE = "STEM_OPT_APPLICATION_DEADLINE"
    STEM_REPORTING_REQUIREMENT = "STEM_REPORTING_REQUIREMENT"

    # H-1B
    H1B_REGISTRATION_PERIOD = "H1B_REGISTRATION_PERIOD"
    H1B_START_DATE = "H1B_START_DATE"
    CAP_GAP_EXTENSION = "CAP_GAP_EXTENSION"

    # Compliance
    DSO_EMPLOYMENT_REPORT = "DSO_EMPLOYMENT_REPORT"

    # Document expiry
    PASSPORT_EXPIRY = "PASSPORT_EXPIRY"
    VISA_EXPIRY = "VISA_EXPIRY"
    I20_EXPIRY = "I20_EXPIRY"
    EAD_EXPIRY = "EAD_EXPIRY"
    H1B_EXPIRY = "H1B_EXPIRY"


class DeadlinePriority(str, Enum):
    CRITICAL = "CRITICAL"  # missing it is a status violation
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class DeadlineStatus(str, Enum):
    UPCOMING = "UPCOMING"
    DUE_SOON = "DUE_SOON"
    OVERDUE = "OVERDUE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ActionCategory(str, Enum):
    APPLICATION = "APPLICATION"
    DOCUMENT = "DOCUMENT"
    INFORMATION = "INFORMATION"
    NOTIFICATION = "NOTIFICATION"
    PLANNING = "PLANNING"


# Reminder lead times in days. Override per install with
# {"notification_days_before": {"critical": [14, 7, 1]}}
_DEFAULT_NOTIFICATION_DAYS: dict[str, list[int]] = {
    "critical": [30, 14, 7, 3, 1],
    "important": [30, 14, 7],
    "document": [180, 90, 60, 30],
    "unemployment": [60, 30, 14, 7],
    "stem_application": [60, 30, 14],
    "registration": [60, 30, 14, 7],
    "report": [7, 3, 1],
}

NOTIFICATION_DAYS: dict[str, list[int]] = get_config_mapping(
    TOOL_NAME, "notification_days_before", _DEFAULT_NOTIFICATION_DAYS
)

DUE_SOON_DAYS = 14

DEFAULT_UPCOMING_LIMIT = 5

_ACTIVE_STATUSES = frozenset({DeadlineStatus.UPCOMING, DeadlineStatus.DUE_SOON})


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Deadline:
    id: str
    type: DeadlineType
    title: str
    description: str
    due_date: str
    priority: DeadlinePriority
    action_required: str
    status: DeadlineStatus = DeadlineStatus.UPCOMING
    related_status: ImmigrationStatus | None = None
    notification_enabled: bool = True
    notification_days_before: tuple[int, ...] = ()
    completed_at: str | None = None


@dataclass(frozen=True)
class ActionItem:
    id: str
    title: str
    description: str
    category: ActionCategory
    related_status: ImmigrationStatus
    is_required: bool
    order: int
    is_completed: bool = False
    due_date: str | None = None
    estimated_duration: str | None = None
    resources: tuple[ResourceLink, ...] = ()


@dataclass(frozen=True)
class TimelineEvent:
    id: str
    status: ImmigrationStatus
    title: str
    description: str
    date: str
    is_completed: bool
    is_current: bool
    order: int


@dataclass(frozen=True)
class ImmigrationTimeline:
    """Everything derived from one profile at one point in time."""

    user_id: str
    current_status: ImmigrationStatus
    deadlines: tuple[Deadline, ...] = ()
    action_items: tuple[ActionItem, ...] = ()
    events: tuple[TimelineEvent, ...] = ()
    upcoming_deadlines: tuple[Deadline, ...] = ()
    next_milestone: TimelineEvent | None = None
    recommended_next_status: ImmigrationStatus | None = None
    as_of: str = ""


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def create_deadline(
    deadline_type: DeadlineType,
    title: str,
    description: str,
    due_date: date,
    priority: DeadlinePriority,
    action_required: str,
    related_status: ImmigrationStatus | None = None,
    notification_days_before: Iterable[int] | None = None,
) -> Deadline:
    """Build an UPCOMING deadline with an id derived from its type, title and date."""
    due = due_date.isoformat()
    if notification_days_before is None:
        notification_days_before = NOTIFICATION_DAYS["critical"]
    return Deadline(
        id=f"deadline-{_slug(deadline_type.value)}-{_slug(title)}-{due}",
        type=deadline_type,
        title=title,
        description=description,
        due_date=due,
        priority=priority,
        action_required=action_required,
        related_status=related_status,
        notification_days_before=tuple(notification_days_before),
    )


def create_action_item(
    title: str,
    description: str,
    category: ActionCategory,
    related_status: ImmigrationStatus,
    is_required: bool,
    order: int,
    due_date: date | None = None,
    estimated_duration: str | None = None,
    resources: Iterable[ResourceLink] = (),
) -> ActionItem:
    return ActionItem(
        id=f"action-{_slug(title)}",
        title=title,
        description=description,
        category=category,
        related_status=related_status,
        is_required=is_required,
        order=order,
        due_date=due_date.isoformat() if due_date else None,
        estimated_duration=estimated_duration,
        resources=tuple(resources),
    )


# ---------------------------------------------------------------------------
# Deadlines
# ---------------------------------------------------------------------------

_STEM_APPLICATION_STATUSES = frozenset({
    _S.OPT_APPROVED, _S.EAD_RECEIVED, _S.EMPLOYED, _S.STEM_OPT_ELIGIBLE,
})
_CAP_GAP_STATUSES = frozenset({_S.H1B_SELECTED, _S.H1B_PETITION_FILED, _S.H1B_APPROVED})

# (profile field, type, title, description, action, priority, lead-time key)
_DOCUMENT_EXPIRY_RULES: tuple[tuple[str, DeadlineType, str, str, str, DeadlinePriority, str], ...] = (
    (
        "passport_expiry_date", DeadlineType.PASSPORT_EXPIRY,
        "Passport Expiration", "Renew passport before expiration",
        "Contact your country's embassy to renew passport",
        DeadlinePriority.HIGH, "document",
    ),
    (
        "visa_expiry_date", DeadlineType.VISA_EXPIRY,
        "Visa Expiration", "Visa stamp expires; needed only for re-entry to the US",
        "Plan a visa renewal appointment before any international travel",
        DeadlinePriority.MEDIUM, "document",
    ),
    (
        "i20_expiry_date", DeadlineType.I20_EXPIRY,
        "I-20 Expiration", "Program end date on your I-20",
        "Ask your DSO about an extension or complete your program on time",
        DeadlinePriority.HIGH, "document",
    ),
    (
        "ead_expiry_date", DeadlineType.EAD_EXPIRY,
        "EAD Card Expiration", "Work authorization expires - apply for extension if needed",
        "Apply for extension or transition to H-1B",
        DeadlinePriority.CRITICAL, "unemployment",
    ),
    (
        "h1b_expiry_date", DeadlineType.H1B_EXPIRY,
        "H-1B Status Expiration", "H-1B approval period ends",
        "Work with your employer on an H-1B extension petition",
        DeadlinePriority.HIGH, "document",
    ),
)


def resolve_lottery_year(profile: UserProfile, as_of: date | None = None) -> int:
    """The H-1B registration year the profile is working towards.

    An explicit ``h1b_lottery_year`` wins. Otherwise this is the year of the
    next registration window that has not yet closed on *as_of*.
    """
    if profile.h1b_lottery_year:
        return profile.h1b_lottery_year
    today = as_of or date.today()
    _, window_end = calculate_h1b_registration_period(today.year)
    return today.year if today <= window_end else today.year + 1


def resolve_h1b_start_year(profile: UserProfile, as_of: date | None = None) -> int:
    start = profile_date(profile, "h1b_start_date")
    if start is not None:
        return start.year
    return resolve_lottery_year(profile, as_of)


def current_opt_expiry(profile: UserProfile) -> date | None:
    """Latest of the EAD and STEM OPT expiry dates."""
    candidates = [
        d for d in (profile_date(profile, "ead_expiry_date"), profile_date(profile, "stem_opt_expiry_date"))
        if d is not None
    ]
    return max(candidates) if candidates else None


def generate_deadlines(profile: UserProfile, as_of: date | None = None) -> list[Deadline]:
    """Derive every applicable deadline, in rule order (unsorted)."""
    status = profile.current_status
    deadlines: list[Deadline] = []

    # OPT phase
    graduation = profile_date(profile, "graduation_date")
    if graduation and status in (_S.F1_STUDENT, _S.GRADUATED):
        deadlines.append(create_deadline(
            DeadlineType.OPT_APPLICATION_WINDOW_START,
            "OPT Application Window Opens",
            "You can start applying for OPT 90 days before graduation",
            calculate_opt_application_start(graduation),
            DeadlinePriority.HIGH,
            "Prepare OPT application documents (I-765 form)",
            related_status=_S.OPT_PENDING,
            notification_days_before=NOTIFICATION_DAYS["important"],
        ))

    program_end = profile_date(profile, "program_end_date")
    if program_end:
        if status is _S.OPT_NOT_APPLIED:
            deadlines.append(create_deadline(
                DeadlineType.OPT_APPLICATION_DEADLINE,
                "OPT Application Deadline",
                "Last day to submit OPT application (60 days after program end)",
                calculate_opt_application_deadline(program_end),
                DeadlinePriority.CRITICAL,
                "Submit Form I-765 to USCIS immediately",
                related_status=_S.OPT_PENDING,
            ))
        deadlines.append(create_deadline(
            DeadlineType.OPT_GRACE_PERIOD_END,
            "Grace Period Ends",
            "Must have valid status or leave the US",
            calculate_grace_period_end(program_end),
            DeadlinePriority.CRITICAL,
            "Ensure you have valid immigration status",
        ))

    # Employment
    ead_received = profile_date(profile, "ead_received_date")
    if ead_received:
        deadlines.append(create_deadline(
            DeadlineType.UNEMPLOYMENT_90_DAY_LIMIT,
            "90-Day Unemployment Limit",
            "Must find employment within 90 days of OPT start",
            calculate_unemployment_limit(ead_received),
            DeadlinePriority.CRITICAL,
            "Secure job offer and start employment",
            related_status=_S.EMPLOYED,
            notification_days_before=NOTIFICATION_DAYS["unemployment"],
        ))

    employment_start = profile_date(profile, "employment_start_date")
    if employment_start and status is _S.EMPLOYED:
        deadlines.append(create_deadline(
            DeadlineType.DSO_EMPLOYMENT_REPORT,
            "Report Employment to DSO",
            "Report your employer and start date to your DSO within 10 days",
            calculate_dso_report_deadline(employment_start),
            DeadlinePriority.MEDIUM,
            "Update employment details with your DSO or the SEVP portal",
            related_status=_S.EMPLOYED,
            notification_days_before=NOTIFICATION_DAYS["report"],
        ))

    # STEM OPT
    ead_expiry = profile_date(profile, "ead_expiry_date")
    if profile.has_stem_degree and ead_expiry and status in _STEM_APPLICATION_STATUSES:
        deadlines.append(create_deadline(
            DeadlineType.STEM_OPT_APPLICATION_DEADLINE,
            "STEM OPT Extension Deadline",
            "Apply for STEM OPT extension before current OPT expires",
            calculate_stem_opt_deadline(ead_expiry),
            DeadlinePriority.HIGH,
            "Submit I-765 with I-983 Training Plan",
            related_status=_S.STEM_OPT_PENDING,
            notification_days_before=NOTIFICATION_DAYS["stem_application"],
        ))

    stem_expiry = profile_date(profile, "stem_opt_expiry_date")
    if status is _S.STEM_OPT_APPROVED and ead_expiry and stem_expiry:
        # the STEM extension picks up where the initial EAD ends
        reports = calculate_stem_reporting_deadlines(ead_expiry, stem_expiry)
        for n, due in enumerate(reports, start=1):
            deadlines.append(create_deadline(
                DeadlineType.STEM_REPORTING_REQUIREMENT,
                f"STEM OPT Validation Report #{n}",
                "Six-month validation report to your DSO during STEM OPT",
                due,
                DeadlinePriority.HIGH,
                "Confirm your address, employer and training plan with your DSO",
                related_status=_S.STEM_OPT_APPROVED,
                notification_days_before=NOTIFICATION_DAYS["important"],
            ))

    # H-1B
    if status in (_S.EMPLOYED, _S.H1B_PREPARING):
        start, _ = calculate_h1b_registration_period(resolve_lottery_year(profile, as_of))
        deadlines.append(create_deadline(
            DeadlineType.H1B_REGISTRATION_PERIOD,
            "H-1B Registration Period",
            "H-1B lottery registration window (typically March 1-18)",
            start,
            DeadlinePriority.CRITICAL,
            "Ensure employer submits H-1B registration",
            related_status=_S.H1B_REGISTERED,
            notification_days_before=NOTIFICATION_DAYS["registration"],
        ))

    opt_expiry = current_opt_expiry(profile)
    if status in _CAP_GAP_STATUSES and opt_expiry:
        gap = calculate_cap_gap_period(opt_expiry, resolve_h1b_start_year(profile, as_of))
        if gap is not None:
            gap_start, gap_end = gap
            deadlines.append(create_deadline(
                DeadlineType.CAP_GAP_EXTENSION,
                "Cap-Gap Extension Begins",
                f"OPT ends before H-1B status starts on {gap_end.isoformat()}; "
                "cap-gap keeps your status and work authorization in between",
                gap_start,
                DeadlinePriority.HIGH,
                "Ask your DSO for an updated I-20 showing the cap-gap extension",
                related_status=_S.H1B_APPROVED,
                notification_days_before=NOTIFICATION_DAYS["important"],
            ))

    if status is _S.H1B_APPROVED:
        deadlines.append(create_deadline(
            DeadlineType.H1B_START_DATE,
            "H-1B Status Begins",
            "H-1B work authorization becomes effective (October 1st)",
            calculate_h1b_start_date(resolve_h1b_start_year(profile, as_of)),
            DeadlinePriority.HIGH,
            "Coordinate with employer for status change",
            related_status=_S.H1B_ACTIVE,
            notification_days_before=NOTIFICATION_DAYS["important"],
        ))

    # Document expiry
    for field_name, dtype, title, desc, action, priority, lead in _DOCUMENT_EXPIRY_RULES:
        expiry = profile_date(profile, field_name)
        if expiry:
            deadlines.append(create_deadline(
                dtype, title, desc, expiry, priority, action,
                notification_days_before=NOTIFICATION_DAYS[lead],
            ))

    return deadlines


# ---------------------------------------------------------------------------
# Action items
# ---------------------------------------------------------------------------


def generate_action_items(profile: UserProfile) -> list[ActionItem]:
    """The to-do list for the profile's current status, in display order."""
    status = profile.current_status
    actions: list[ActionItem] = []

    if status is _S.F1_STUDENT:
        if profile_date(profile, "graduation_date"):
            actions.append(create_action_item(
                "Understand OPT Requirements",
                "Learn about Optional Practical Training eligibility and process",
                ActionCategory.INFORMATION, _S.F1_STUDENT, True, 1,
                estimated_duration="30 minutes",
                resources=get_topic_resources("OPT"),
            ))
        actions.append(create_action_item(
            "Keep Your I-20 Current",
            "Make sure your I-20 program end date matches your expected graduation",
            ActionCategory.DOCUMENT, _S.F1_STUDENT, False, 2,
            estimated_duration="15 minutes",
            resources=get_form_resources("I-20"),
        ))

    elif status in (_S.GRADUATED, _S.OPT_NOT_APPLIED):
        program_end = profile_date(profile, "program_end_date")
        actions.append(create_action_item(
            "Prepare OPT Application",
            "Gather required documents and complete Form I-765",
            ActionCategory.APPLICATION, _S.OPT_PENDING, True, 1,
            due_date=calculate_opt_application_deadline(program_end) if program_end else None,
            estimated_duration="2-3 hours",
            resources=(ResourceLink("Form I-765", USCIS_URLS["form_i765"], ResourceType.USCIS_FORM),),
        ))
        actions.append(create_action_item(
            "Request OPT Recommendation from DSO",
            "Your DSO must recommend OPT in SEVIS before you file",
            ActionCategory.NOTIFICATION, _S.OPT_PENDING, True, 2,
            estimated_duration="30 minutes",
        ))

    elif status is _S.OPT_PENDING:
        actions.append(create_action_item(
            "Track OPT Case Status",
            "Check your I-765 receipt number on the USCIS case status page",
            ActionCategory.INFORMATION, _S.OPT_PENDING, False, 1,
            estimated_duration="5 minutes",
            resources=get_topic_resources("CASE_STATUS"),
        ))
        actions.append(create_action_item(
            "Start Your Job Search",
            "Line up offers so you can begin work as soon as the EAD arrives",
            ActionCategory.PLANNING, _S.JOB_SEARCHING, False, 2,
        ))

    elif status is _S.OPT_APPROVED:
        actions.append(create_action_item(
            "Watch for Your EAD Card",
            "The card is mailed to the address on your I-765",
            ActionCategory.DOCUMENT, _S.EAD_RECEIVED, True, 1,
            resources=get_form_resources("AR-11"),
        ))

    elif status is _S.EAD_RECEIVED:
        actions.append(create_action_item(
            "Apply for Social Security Number",
            "Visit SSA office with EAD card and required documents",
            ActionCategory.APPLICATION, _S.EAD_RECEIVED, True, 1,
            estimated_duration="1-2 hours",
            resources=get_form_resources("SSN"),
        ))
        actions.append(create_action_item(
            "Report Employment to DSO",
            "Inform your Designated School Official about your employment",
            ActionCategory.NOTIFICATION, _S.EMPLOYED, True, 2,
            estimated_duration="15 minutes",
        ))

    elif status is _S.JOB_SEARCHING:
        ead_received = profile_date(profile, "ead_received_date")
        actions.append(create_action_item(
            "Track Unemployment Days",
            "OPT allows at most 90 days of unemployment",
            ActionCategory.PLANNING, _S.EMPLOYED, True, 1,
            due_date=calculate_unemployment_limit(ead_received) if ead_received else None,
        ))

    elif status is _S.JOB_OFFER_RECEIVED:
        actions.append(create_action_item(
            "Report New Employer to DSO",
            "Employer name and address must be reported within 10 days of starting",
            ActionCategory.NOTIFICATION, _S.EMPLOYED, True, 1,
            estimated_duration="15 minutes",
        ))

    elif status is _S.EMPLOYED:
        if profile.has_stem_degree:
            actions.append(create_action_item(
                "Consider STEM OPT Extension",
                "Evaluate eligibility for 24-month STEM OPT extension",
                ActionCategory.PLANNING, _S.STEM_OPT_ELIGIBLE, False, 1,
                estimated_duration="1 hour",
                resources=get_topic_resources("STEM_OPT"),
            ))
        actions.append(create_action_item(
            "Discuss H-1B Sponsorship with Employer",
            "Talk to your employer about H-1B visa sponsorship",
            ActionCategory.PLANNING, _S.H1B_PREPARING, False, 2,
            estimated_duration="30 minutes",
            resources=get_topic_resources("H1B"),
        ))

    elif status is _S.STEM_OPT_ELIGIBLE:
        ead_expiry = profile_date(profile, "ead_expiry_date")
        actions.append(create_action_item(
            "Complete Form I-983 Training Plan",
            "Fill out the training plan with your employer and submit it to your DSO",
            ActionCategory.DOCUMENT, _S.STEM_OPT_PENDING, True, 1,
            estimated_duration="2-3 hours",
            resources=get_form_resources("I-983"),
        ))
        actions.append(create_action_item(
            "File STEM OPT Extension",
            "Submit Form I-765 with the DSO-recommended I-20",
            ActionCategory.APPLICATION, _S.STEM_OPT_PENDING, True, 2,
            due_date=calculate_stem_opt_deadline(ead_expiry) if ead_expiry else None,
            estimated_duration="2 hours",
            resources=get_form_resources("I-765"),
        ))

    elif status is _S.STEM_OPT_PENDING:
        actions.append(create_action_item(
            "Track STEM OPT Case Status",
            "You may keep working for up to 180 days while the extension is pending",
            ActionCategory.INFORMATION, _S.STEM_OPT_PENDING, False, 1,
            resources=get_topic_resources("CASE_STATUS"),
        ))

    elif status is _S.STEM_OPT_APPROVED:
        actions.append(create_action_item(
            "Submit Validation Reports",
            "Confirm your information with your DSO every six months",
            ActionCategory.NOTIFICATION, _S.STEM_OPT_APPROVED, True, 1,
            estimated_duration="15 minutes",
        ))
        actions.append(create_action_item(
            "Complete Annual I-983 Self-Evaluation",
            "Review progress on your training plan with your employer",
            ActionCategory.DOCUMENT, _S.STEM_OPT_APPROVED, True, 2,
            estimated_duration="1 hour",
            resources=get_form_resources("I-983"),
        ))

    elif status is _S.H1B_PREPARING:
        actions.append(create_action_item(
            "Prepare H-1B Registration",
            "Work with employer to prepare H-1B lottery registration",
            ActionCategory.APPLICATION, _S.H1B_REGISTERED, True, 1,
            estimated_duration="2 hours",
            resources=get_topic_resources("H1B"),
        ))

    elif status is _S.H1B_REGISTERED:
        actions.append(create_action_item(
            "Wait for Lottery Results",
            "Selections are announced by the end of March",
            ActionCategory.INFORMATION, _S.H1B_SELECTED, False, 1,
        ))

    elif status is _S.H1B_SELECTED:
        actions.append(create_action_item(
            "File H-1B Petition",
            "Employer files Form I-129 with a certified LCA starting April 1",
            ActionCategory.APPLICATION, _S.H1B_PETITION_FILED, True, 1,
            resources=get_form_resources("I-129") + get_form_resources("LCA"),
        ))

    elif status is _S.H1B_PETITION_FILED:
        actions.append(create_action_item(
            "Track H-1B Petition",
            "Ask your employer about premium processing for a faster decision",
            ActionCategory.INFORMATION, _S.H1B_APPROVED, False, 1,
            resources=get_topic_resources("CASE_STATUS"),
        ))

    elif status is _S.H1B_APPROVED:
        actions.append(create_action_item(
            "Prepare for H-1B Start",
            "Status changes on October 1; confirm start date with your employer",
            ActionCategory.PLANNING, _S.H1B_ACTIVE, True, 1,
        ))

    elif status is _S.H1B_NOT_SELECTED:
        actions.append(create_action_item(
            "Plan Next Steps",
            "Review STEM OPT, cap-exempt employers or next year's lottery",
            ActionCategory.PLANNING, _S.H1B_NOT_SELECTED, True, 1,
            estimated_duration="1 hour",
        ))

    elif status is _S.STATUS_EXPIRED:
        actions.append(create_action_item(
            "Contact DSO or Attorney Immediately",
            "Get advice on reinstatement or departure options",
            ActionCategory.NOTIFICATION, _S.STATUS_EXPIRED, True, 1,
        ))

    return actions


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

_PAST_REGISTRATION = frozenset({
    _S.H1B_SELECTED, _S.H1B_NOT_SELECTED, _S.H1B_PETITION_FILED, _S.H1B_APPROVED, _S.H1B_ACTIVE,
})


def _event(status: ImmigrationStatus, title: str, description: str, when: date,
           is_completed: bool, is_current: bool, order: int) -> TimelineEvent:
    return TimelineEvent(
        id=f"event-{_slug(status.value)}",
        status=status,
        title=title,
        description=description,
        date=when.isoformat(),
        is_completed=is_completed,
        is_current=is_current,
        order=order,
    )


def generate_timeline_events(profile: UserProfile) -> list[TimelineEvent]:
    """Milestones from the profile's recorded dates, sorted by ``(date, order)``."""
    status = profile.current_status
    candidates: list[tuple[ImmigrationStatus, str, str, date | None, bool]] = [
        (
            _S.GRADUATED, "Graduate from University", "Complete your degree program",
            profile_date(profile, "graduation_date"), status is not _S.F1_STUDENT,
        ),
        (
            _S.OPT_PENDING, "Apply for OPT", "Submit Form I-765 to USCIS",
            profile_date(profile, "opt_application_date"),
            status not in (_S.F1_STUDENT, _S.GRADUATED, _S.OPT_NOT_APPLIED),
        ),
        (
            _S.EAD_RECEIVED, "Receive EAD Card", "Employment Authorization Document arrived",
            profile_date(profile, "ead_received_date"), True,
        ),
        (
            _S.EMPLOYED, "Start Employment",
            f"Begin work at {profile.current_employer or 'employer'}",
            profile_date(profile, "employment_start_date"), True,
        ),
        (
            _S.H1B_REGISTERED, "H-1B Registration Submitted", "Entered H-1B lottery",
            profile_date(profile, "h1b_registration_date"),
            profile.h1b_lottery_selected is not None or status in _PAST_REGISTRATION,
        ),
        (
            _S.H1B_ACTIVE, "H-1B Work Authorization Begins", "H-1B status becomes effective",
            profile_date(profile, "h1b_start_date"), status is _S.H1B_ACTIVE,
        ),
    ]

    events: list[TimelineEvent] = []
    for event_status, title, description, when, completed in candidates:
        if when is None:
            continue
        events.append(_event(
            event_status, title, description, when,
            is_completed=completed,
            is_current=status is event_status,
            order=len(events),
        ))
    events.sort(key=lambda e: (e.date, e.order))
    return events


def get_next_milestone(events: Iterable[TimelineEvent]) -> TimelineEvent | None:
    pending = [e for e in events if not e.is_completed]
    return min(pending, key=lambda e: (e.date, e.order)) if pending else None


# ---------------------------------------------------------------------------
# Queries over deadlines
# ---------------------------------------------------------------------------


def sort_deadlines_by_date(deadlines: Iterable[Deadline]) -> list[Deadline]:
    """Ascending by due date; ties keep their incoming order."""
    return sorted(deadlines, key=lambda d: d.due_date)


def get_active_deadlines(deadlines: Iterable[Deadline]) -> list[Deadline]:
    return [d for d in deadlines if d.status in _ACTIVE_STATUSES]


def get_upcoming_deadlines(
    deadlines: Iterable[Deadline], limit: int | None = None, today: date | None = None
) -> list[Deadline]:
    """Active deadlines due on or after *today*, soonest first."""
    today = today or date.today()
    cutoff = today.isoformat()
    upcoming = sort_deadlines_by_date(
        d for d in get_active_deadlines(deadlines) if d.due_date >= cutoff
    )
    return upcoming if limit is None else upcoming[:max(limit, 0)]


def deadline_status(deadline: Deadline, today: date | None = None) -> DeadlineStatus:
    """Status of *deadline* as seen on *today*.

    COMPLETED and CANCELLED are sticky; everything else is recomputed from the
    due date: OVERDUE once past, DUE_SOON within two weeks, else UPCOMING.
    """
    if deadline.status in (DeadlineStatus.COMPLETED, DeadlineStatus.CANCELLED):
        return deadline.status
    due = parse_date(deadline.due_date)
    if due is None:
        return deadline.status
    today = today or date.today()
    if due < today:
        return DeadlineStatus.OVERDUE
    if due <= today + timedelta(days=DUE_SOON_DAYS):
        return DeadlineStatus.DUE_SOON
    return DeadlineStatus.UPCOMING


def is_deadline_due_soon(deadline: Deadline, today: date | None = None) -> bool:
    return deadline_status(deadline, today) is DeadlineStatus.DUE_SOON


def is_deadline_overdue(deadline: Deadline, today: date | None = None) -> bool:
    return deadline_status(deadline, today) is DeadlineStatus.OVERDUE


_T = TypeVar("_T", Deadline, ActionItem, TimelineEvent)


def merge_by_title(existing: Iterable[_T], new: Iterable[_T]) -> list[_T]:
    """Keep everything in *existing*, then append new items with unseen titles."""
    merged = list(existing)
    seen = {item.title for item in merged}
    for item in new:
        if item.title not in seen:
            seen.add(item.title)
            merged.append(item)
    return merged


# ---------------------------------------------------------------------------
# Full timeline
# ---------------------------------------------------------------------------


def generate_user_timeline(
    profile: UserProfile, as_of: date | None = None, upcoming_limit: int | None = None
) -> ImmigrationTimeline:
    """Build the complete timeline for *profile* as seen on *as_of*.

    *upcoming_limit* defaults to the configured ``upcoming_limit``.
    """
    as_of = as_of or date.today()
    if upcoming_limit is None:
        upcoming_limit = get_config_value(TOOL_NAME, "upcoming_limit", DEFAULT_UPCOMING_LIMIT)
    deadlines = sort_deadlines_by_date(generate_deadlines(profile, as_of))
    events = generate_timeline_events(profile)
    return ImmigrationTimeline(
        user_id=profile.id,
        current_status=profile.current_status,
        deadlines=tuple(deadlines),
        action_items=tuple(generate_action_items(profile)),
        events=tuple(events),
        upcoming_deadlines=tuple(get_upcoming_deadlines(deadlines, upcoming_limit, as_of)),
        next_milestone=get_next_milestone(events),
        recommended_next_status=get_recommended_next_status(profile.current_status),
        as_of=as_of.isoformat(),
    )


# ── Serialization ────────────────────────────────────────────────────────────


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def to_dict(record: Deadline | ActionItem | TimelineEvent | ImmigrationTimeline) -> dict[str, Any]:
    """JSON-safe dict for any timeline record; enums become their values."""
    return _jsonable(asdict(record))


def deadline_from_dict(data: dict[str, Any]) -> Deadline:
    """Rebuild a stored deadline. Unknown keys are ignored."""
    related = data.get("related_status")
    return Deadline(
        id=data["id"],
        type=DeadlineType(data["type"]),
        title=data["title"],
        description=data.get("description", ""),
        due_date=data["due_date"],
        priority=DeadlinePriority(data["priority"]),
        action_required=data.get("action_required", ""),
        status=DeadlineStatus(data.get("status", DeadlineStatus.UPCOMING.value)),
        related_status=ImmigrationStatus(related) if related else None,
        notification_enabled=data.get("notification_enabled", True),
        notification_days_before=tuple(data.get("notification_days_before", ())),
        completed_at=data.get("completed_at"),
    )
