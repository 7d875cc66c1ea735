"""Static resource tables: government URLs, guides, and document checklists.

The URLs are opaque payloads attached to action items; nothing here fetches
or validates them.

Part of the status tracker tool.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from app.dates import days_until, parse_date
from app.profile import UserProfile
from app.statuses import ImmigrationStatus


class ResourceType(str, Enum):
    USCIS_FORM = "USCIS_FORM"
    USCIS_GUIDE = "USCIS_GUIDE"
    DSO_CONTACT = "DSO_CONTACT"
    EXTERNAL_GUIDE = "EXTERNAL_GUIDE"
    VIDEO_TUTORIAL = "VIDEO_TUTORIAL"


class DocumentStatus(str, Enum):
    VALID = "VALID"
    EXPIRING_SOON = "EXPIRING_SOON"  # within 90 days of expiry
    EXPIRED = "EXPIRED"
    NOT_APPLICABLE = "NOT_APPLICABLE"


@dataclass(frozen=True)
class ResourceLink:
    """A link to official guidance, attached to action items."""

    title: str
    url: str
    type: ResourceType


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

USCIS_URLS: dict[str, str] = {
    "homepage": "https://www.uscis.gov",
    "case_status": "https://egov.uscis.gov/casestatus/landing.do",
    "form_i765": "https://www.uscis.gov/i-765",
    "form_i983": "https://www.uscis.gov/i-983",
    "form_i129": "https://www.uscis.gov/i-129",
    "form_i20": "https://studyinthestates.dhs.gov/students/prepare-for-life-in-the-us/obtaining-your-form-i-20",
    "form_i94": "https://i94.cbp.dhs.gov",
    "form_ar11": "https://www.uscis.gov/ar-11",
    "opt_overview": "https://studyinthestates.dhs.gov/opt",
    "stem_opt_overview": "https://studyinthestates.dhs.gov/stem-opt-extension",
    "h1b_overview": "https://www.uscis.gov/working-in-the-united-states/temporary-workers/h-1b-specialty-occupations",
    "f1_visa_info": "https://studyinthestates.dhs.gov/students",
    "processing_times": "https://egov.uscis.gov/processing-times/",
    "contact": "https://www.uscis.gov/about-us/contact-us",
}

GOVERNMENT_URLS: dict[str, str] = {
    "ssa_homepage": "https://www.ssa.gov",
    "ssa_application": "https://www.ssa.gov/number-card",
    "ssa_office_locator": "https://secure.ssa.gov/ICON/main.jsp",
    "study_in_states": "https://studyinthestates.dhs.gov",
    "stem_degree_list": "https://www.ice.gov/sevis/stemlist",
    "dol_h1b": "https://www.dol.gov/agencies/eta/foreign-labor/programs/h-1b",
    "dos_visa_info": "https://travel.state.gov/content/travel/en/us-visas.html",
}

CONTACT_INFO: dict[str, dict[str, str]] = {
    "USCIS": {
        "phone": "1-800-375-5283",
        "hours": "Monday-Friday, 8am-8pm ET",
        "website": USCIS_URLS["contact"],
    },
    "SSA": {
        "phone": "1-800-772-1213",
        "hours": "Monday-Friday, 8am-7pm local time",
        "website": GOVERNMENT_URLS["ssa_homepage"],
    },
}

# ---------------------------------------------------------------------------
# Resource collections
# ---------------------------------------------------------------------------

FORM_RESOURCES: dict[str, tuple[ResourceLink, ...]] = {
    "I-765": (
        ResourceLink("Form I-765 (Application for Employment Authorization)", USCIS_URLS["form_i765"], ResourceType.USCIS_FORM),
        ResourceLink("I-765 Instructions", f"{USCIS_URLS['form_i765']}/i-765-instructions", ResourceType.USCIS_GUIDE),
    ),
    "I-983": (
        ResourceLink("Form I-983 (Training Plan for STEM OPT)", USCIS_URLS["form_i983"], ResourceType.USCIS_FORM),
    ),
    "I-129": (
        ResourceLink("Form I-129 (Petition for Nonimmigrant Worker)", USCIS_URLS["form_i129"], ResourceType.USCIS_FORM),
    ),
    "LCA": (
        ResourceLink("Labor Condition Application (LCA)", GOVERNMENT_URLS["dol_h1b"], ResourceType.EXTERNAL_GUIDE),
    ),
    "I-20": (
        ResourceLink("Form I-20 Information", USCIS_URLS["form_i20"], ResourceType.USCIS_GUIDE),
    ),
    "I-94": (
        ResourceLink("I-94 Arrival/Departure Record", USCIS_URLS["form_i94"], ResourceType.USCIS_FORM),
    ),
    "AR-11": (
        ResourceLink("Form AR-11 (Change of Address)", USCIS_URLS["form_ar11"], ResourceType.USCIS_FORM),
    ),
    "SSN": (
        ResourceLink("Apply for Social Security Number", GOVERNMENT_URLS["ssa_application"], ResourceType.EXTERNAL_GUIDE),
        ResourceLink("Find SSA Office", GOVERNMENT_URLS["ssa_office_locator"], ResourceType.EXTERNAL_GUIDE),
    ),
}

TOPIC_RESOURCES: dict[str, tuple[ResourceLink, ...]] = {
    "OPT": (
        ResourceLink("OPT Overview", USCIS_URLS["opt_overview"], ResourceType.USCIS_GUIDE),
        ResourceLink("OPT Timeline and Deadlines", f"{USCIS_URLS['opt_overview']}/timeline", ResourceType.USCIS_GUIDE),
    ),
    "STEM_OPT": (
        ResourceLink("STEM OPT Extension", USCIS_URLS["stem_opt_overview"], ResourceType.USCIS_GUIDE),
        ResourceLink("STEM Designated Degree Programs", GOVERNMENT_URLS["stem_degree_list"], ResourceType.EXTERNAL_GUIDE),
    ),
    "H1B": (
        ResourceLink("H-1B Specialty Occupations", USCIS_URLS["h1b_overview"], ResourceType.USCIS_GUIDE),
        ResourceLink("H-1B Cap and Lottery", f"{USCIS_URLS['h1b_overview']}/h-1b-cap", ResourceType.USCIS_GUIDE),
    ),
    "F1_STUDENT": (
        ResourceLink("Study in the States", GOVERNMENT_URLS["study_in_states"], ResourceType.USCIS_GUIDE),
        ResourceLink("F-1 Student Visa Information", USCIS_URLS["f1_visa_info"], ResourceType.USCIS_GUIDE),
    ),
    "SSN": (
        ResourceLink("Social Security Number Application", GOVERNMENT_URLS["ssa_application"], ResourceType.EXTERNAL_GUIDE),
    ),
    "CASE_STATUS": (
        ResourceLink("Check Case Status Online", USCIS_URLS["case_status"], ResourceType.USCIS_GUIDE),
        ResourceLink("Processing Times", USCIS_URLS["processing_times"], ResourceType.USCIS_GUIDE),
    ),
}


def get_form_resources(form: str) -> tuple[ResourceLink, ...]:
    return FORM_RESOURCES.get(form, ())


def get_topic_resources(topic: str) -> tuple[ResourceLink, ...]:
    return TOPIC_RESOURCES.get(topic, ())


# ---------------------------------------------------------------------------
# Document checklists
# ---------------------------------------------------------------------------

_S = ImmigrationStatus

REQUIRED_DOCUMENTS: dict[ImmigrationStatus, tuple[str, ...]] = {
    _S.F1_STUDENT: ("Passport", "F-1 Visa", "I-20", "I-94"),
    _S.OPT_PENDING: ("Passport", "F-1 Visa", "I-20", "I-94", "I-765 Receipt"),
    _S.OPT_APPROVED: ("Passport", "F-1 Visa", "I-20", "I-94", "I-765 Receipt", "EAD Card"),
    _S.EMPLOYED: ("Passport", "EAD Card", "I-20", "Job Offer Letter"),
    _S.STEM_OPT_PENDING: ("Passport", "F-1 Visa", "I-20", "EAD Card", "I-983 Training Plan", "STEM Degree Proof"),
    _S.STEM_OPT_APPROVED: ("Passport", "F-1 Visa", "I-20", "EAD Card", "I-983 Training Plan", "STEM Degree Proof"),
    _S.H1B_PETITION_FILED: ("Passport", "I-129 Receipt", "I-94", "LCA"),
    _S.H1B_APPROVED: ("Passport", "I-797 Approval Notice", "I-94", "LCA"),
    _S.H1B_ACTIVE: ("Passport", "H-1B Visa", "I-797 Approval Notice", "I-94", "LCA"),
}

_DEFAULT_DOCUMENTS: tuple[str, ...] = ("Passport", "Visa", "I-94")

# profile field -> document name
_PROFILE_DOCUMENT_FIELDS: dict[str, str] = {
    "passport_expiry_date": "Passport",
    "visa_expiry_date": "Visa",
    "i20_expiry_date": "I-20",
    "ead_expiry_date": "EAD Card",
    "h1b_expiry_date": "H-1B Approval",
}

EXPIRING_SOON_DAYS = 90


def get_required_documents(status: ImmigrationStatus) -> list[str]:
    """Documents a user in *status* should keep on hand."""
    return list(REQUIRED_DOCUMENTS.get(status, _DEFAULT_DOCUMENTS))


def get_document_status(
    expiry: date | None, today: date | None = None, threshold_days: int = EXPIRING_SOON_DAYS
) -> DocumentStatus:
    if expiry is None:
        return DocumentStatus.NOT_APPLICABLE
    remaining = days_until(expiry, today)
    if remaining < 0:
        return DocumentStatus.EXPIRED
    if remaining <= threshold_days:
        return DocumentStatus.EXPIRING_SOON
    return DocumentStatus.VALID


def get_profile_documents(profile: UserProfile, today: date | None = None) -> list[dict]:
    """Summarize the expiry-tracked documents on a profile, soonest first.

    Documents without a (parseable) expiry date are left out.
    """
    docs: list[dict] = []
    for field_name, label in _PROFILE_DOCUMENT_FIELDS.items():
        expiry = parse_date(getattr(profile, field_name, None))
        if expiry is None:
            continue
        docs.append({
            "name": label,
            "field": field_name,
            "expiry_date": expiry.isoformat(),
            "days_until_expiry": days_until(expiry, today),
            "status": get_document_status(expiry, today).value,
        })
    docs.sort(key=lambda d: d["expiry_date"])
    return docs
