"""Status-aware profile form configuration.

For each immigration status, which ``UserProfile`` fields a client should ask
for (required / optional), which it should hide, and the help line shown
above the form. Field names are ``UserProfile`` attribute names.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from app.profile import DATE_FIELDS, UserProfile
from app.statuses import ImmigrationStatus

_S = ImmigrationStatus


@dataclass(frozen=True)
class FormFieldConfig:
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    hidden: tuple[str, ...] = ()
    help_text: str = ""


@dataclass(frozen=True)
class FieldMetadata:
    label: str
    field_type: str  # "date", "text", "boolean", "number"
    placeholder: str = ""
    help_text: str = ""


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Field metadata
# ---------------------------------------------------------------------------

FIELD_METADATA: dict[str, FieldMetadata] = {
    # Student
    "graduation_date": FieldMetadata("Graduation Date", "date", "When do you graduate?",
                                     "Your expected or actual graduation date"),
    "program_end_date": FieldMetadata("Program End Date", "date", "Program end date on your I-20",
                                      "Starts the 60-day grace period"),
    "university_name": FieldMetadata("University Name", "text", "Your university"),
    "degree_field": FieldMetadata("Degree Field", "text", "e.g. Computer Science"),
    "has_stem_degree": FieldMetadata("Do you have a STEM degree?", "boolean",
                                     help_text="STEM degrees qualify for 24-month OPT extension"),
    "sevis_id": FieldMetadata("SEVIS ID", "text", "N00...", "Printed on your I-20"),
    "i20_expiry_date": FieldMetadata("I-20 Expiry Date", "date", "When does your I-20 end?"),

    # OPT
    "opt_application_date": FieldMetadata("OPT Application Date", "date", "When did you apply?",
                                          "Date you submitted I-765 for OPT"),
    "opt_approval_date": FieldMetadata("OPT Approval Date", "date", "When was OPT approved?"),
    "ead_received_date": FieldMetadata("EAD Card Received Date", "date", "When did you receive EAD?",
                                       "This determines your OPT start date"),
    "ead_expiry_date": FieldMetadata("EAD Expiry Date", "date", "When does EAD expire?",
                                     "Usually 12 months after start date"),

    # STEM OPT
    "stem_opt_application_date": FieldMetadata("STEM OPT Application Date", "date", "When did you apply?"),
    "stem_opt_expiry_date": FieldMetadata("STEM OPT Expiry Date", "date", "When does it expire?",
                                          "Usually 24 months after start"),

    # Employment
    "has_job_offer": FieldMetadata("Do you have a job offer?", "boolean",
                                   help_text="Required for STEM OPT and H-1B"),
    "current_employer": FieldMetadata("Employer Name", "text", "Your employer"),
    "employment_start_date": FieldMetadata("Employment Start Date", "date", "When did you start?",
                                           "Report to your DSO within 10 days"),
    "job_title": FieldMetadata("Job Title", "text", "Your position"),
    "employer_willing_to_sponsor": FieldMetadata("Will your employer sponsor H-1B?", "boolean"),

    # H-1B
    "h1b_lottery_year": FieldMetadata("H-1B Lottery Year", "number", "e.g. 2026"),
    "h1b_registration_date": FieldMetadata("H-1B Registration Date", "date", "When did you enter lottery?"),
    "h1b_lottery_selected": FieldMetadata("Selected in H-1B lottery?", "boolean"),
    "h1b_approval_date": FieldMetadata("H-1B Approval Date", "date", "When was H-1B approved?"),
    "h1b_start_date": FieldMetadata("H-1B Start Date", "date", "When did H-1B start?",
                                    "Usually October 1st"),
    "h1b_expiry_date": FieldMetadata("H-1B Expiry Date", "date", "When does H-1B expire?",
                                     "Usually 3 years initially"),

    # Documents
    "passport_number": FieldMetadata("Passport Number", "text"),
    "passport_expiry_date": FieldMetadata("Passport Expiry Date", "date", "When does your passport expire?",
                                          "Keep it valid at least six months beyond your stay"),
    "visa_expiry_date": FieldMetadata("Visa Expiry Date", "date", "Date on your visa stamp"),
}

# ---------------------------------------------------------------------------
# Per-status configuration
# ---------------------------------------------------------------------------

_OPT_FIELDS = ("opt_application_date", "opt_approval_date", "ead_received_date", "ead_expiry_date")
_STEM_FIELDS = ("stem_opt_application_date", "stem_opt_expiry_date")
_H1B_FIELDS = (
    "h1b_lottery_year", "h1b_registration_date", "h1b_lottery_selected",
    "h1b_approval_date", "h1b_start_date", "h1b_expiry_date",
)
_EMPLOYMENT_FIELDS = ("current_employer", "employment_start_date", "job_title")


FORM_FIELDS_BY_STATUS: dict[ImmigrationStatus, FormFieldConfig] = {
    _S.F1_STUDENT: FormFieldConfig(
        required=("graduation_date",),
        optional=("program_end_date", "has_stem_degree", "university_name", "degree_field", "i20_expiry_date"),
        hidden=_OPT_FIELDS + _STEM_FIELDS + _H1B_FIELDS + _EMPLOYMENT_FIELDS,
        help_text="We'll calculate when you can apply for OPT (90 days before graduation)",
    ),
    _S.GRADUATED: FormFieldConfig(
        required=("graduation_date", "program_end_date"),
        optional=("has_stem_degree", "university_name", "degree_field"),
        hidden=_OPT_FIELDS + _STEM_FIELDS + _H1B_FIELDS + _EMPLOYMENT_FIELDS,
        help_text="Your OPT application window and grace period are counted from your program end date",
    ),
    _S.OPT_NOT_APPLIED: FormFieldConfig(
        required=("program_end_date",),
        optional=("graduation_date", "has_stem_degree"),
        hidden=_OPT_FIELDS + _STEM_FIELDS + _H1B_FIELDS + _EMPLOYMENT_FIELDS,
        help_text="You have 60 days after your program ends to file for OPT",
    ),
    _S.OPT_PENDING: FormFieldConfig(
        required=("graduation_date", "opt_application_date"),
        optional=("program_end_date", "has_stem_degree"),
        hidden=("ead_received_date", "ead_expiry_date") + _STEM_FIELDS + _H1B_FIELDS + _EMPLOYMENT_FIELDS,
        help_text="Track your OPT application status and expected approval timeline",
    ),
    _S.OPT_APPROVED: FormFieldConfig(
        required=("opt_approval_date",),
        optional=("graduation_date", "ead_received_date", "ead_expiry_date", "has_stem_degree", "has_job_offer"),
        hidden=_STEM_FIELDS + _H1B_FIELDS,
        help_text="Your EAD card is on the way; watch the mail",
    ),
    _S.EAD_RECEIVED: FormFieldConfig(
        required=("ead_received_date", "ead_expiry_date"),
        optional=("has_stem_degree", "has_job_offer", "current_employer"),
        hidden=_STEM_FIELDS + _H1B_FIELDS,
        help_text="Your 90-day unemployment clock starts on your OPT start date",
    ),
    _S.JOB_SEARCHING: FormFieldConfig(
        required=("ead_received_date",),
        optional=("ead_expiry_date", "has_stem_degree", "has_job_offer"),
        hidden=_STEM_FIELDS + _H1B_FIELDS + ("employment_start_date", "job_title"),
        help_text="Track your unemployment days while you search",
    ),
    _S.JOB_OFFER_RECEIVED: FormFieldConfig(
        required=("has_job_offer", "current_employer"),
        optional=("ead_received_date", "ead_expiry_date", "job_title", "employment_start_date",
                  "employer_willing_to_sponsor"),
        hidden=_STEM_FIELDS + _H1B_FIELDS,
        help_text="Report your new employer to your DSO once you start",
    ),
    _S.EMPLOYED: FormFieldConfig(
        required=("current_employer", "employment_start_date"),
        optional=("ead_received_date", "ead_expiry_date", "job_title", "has_stem_degree",
                  "employer_willing_to_sponsor"),
        hidden=_STEM_FIELDS + ("h1b_approval_date", "h1b_start_date", "h1b_expiry_date"),
        help_text="Track your OPT expiration and prepare for next steps",
    ),
    _S.STEM_OPT_ELIGIBLE: FormFieldConfig(
        required=("has_stem_degree", "ead_expiry_date", "current_employer"),
        optional=("degree_field", "job_title", "employment_start_date"),
        hidden=_H1B_FIELDS,
        help_text="File your STEM OPT extension before your current EAD expires",
    ),
    _S.STEM_OPT_PENDING: FormFieldConfig(
        required=("ead_expiry_date", "stem_opt_application_date", "has_job_offer", "current_employer"),
        optional=("job_title",),
        hidden=("graduation_date", "has_stem_degree") + _H1B_FIELDS,
        help_text="Track your STEM OPT application and I-983 requirements",
    ),
    _S.STEM_OPT_APPROVED: FormFieldConfig(
        required=("ead_expiry_date", "stem_opt_expiry_date", "current_employer"),
        optional=("stem_opt_application_date", "job_title"),
        hidden=("graduation_date", "has_stem_degree"),
        help_text="Track I-983 reporting deadlines and STEM OPT expiration",
    ),
    _S.H1B_PREPARING: FormFieldConfig(
        required=("current_employer", "employer_willing_to_sponsor"),
        optional=("h1b_lottery_year", "ead_expiry_date", "stem_opt_expiry_date"),
        hidden=("graduation_date", "has_stem_degree", "h1b_approval_date", "h1b_start_date", "h1b_expiry_date"),
        help_text="Registration opens every March; make sure your employer is ready",
    ),
    _S.H1B_REGISTERED: FormFieldConfig(
        required=("h1b_registration_date", "current_employer"),
        optional=("h1b_lottery_year", "ead_expiry_date", "stem_opt_expiry_date"),
        hidden=("graduation_date", "has_stem_degree", "h1b_approval_date", "h1b_start_date", "h1b_expiry_date"),
        help_text="Track lottery results and prepare for potential H-1B approval",
    ),
    _S.H1B_SELECTED: FormFieldConfig(
        required=("h1b_lottery_selected", "current_employer"),
        optional=("h1b_registration_date", "h1b_lottery_year", "ead_expiry_date", "stem_opt_expiry_date"),
        hidden=("graduation_date", "has_stem_degree", "h1b_expiry_date"),
        help_text="Your employer can file the H-1B petition from April 1",
    ),
    _S.H1B_PETITION_FILED: FormFieldConfig(
        required=("current_employer",),
        optional=("ead_expiry_date", "stem_opt_expiry_date", "h1b_registration_date", "h1b_start_date"),
        hidden=("graduation_date", "has_stem_degree"),
        help_text="Track your H-1B processing and prepare for status change",
    ),
    _S.H1B_APPROVED: FormFieldConfig(
        required=("h1b_approval_date", "current_employer"),
        optional=("h1b_start_date", "h1b_expiry_date", "ead_expiry_date", "stem_opt_expiry_date"),
        hidden=("graduation_date", "has_stem_degree"),
        help_text="H-1B status begins October 1; cap-gap may cover you until then",
    ),
    _S.H1B_ACTIVE: FormFieldConfig(
        required=("h1b_start_date", "current_employer"),
        optional=("h1b_expiry_date", "job_title"),
        hidden=("graduation_date", "ead_received_date", "has_stem_degree") + _STEM_FIELDS,
        help_text="Track H-1B expiration and renewal deadlines",
    ),
    _S.H1B_NOT_SELECTED: FormFieldConfig(
        optional=("ead_expiry_date", "stem_opt_expiry_date", "has_stem_degree", "h1b_lottery_year"),
        hidden=("h1b_approval_date", "h1b_start_date", "h1b_expiry_date"),
        help_text="Check how long your current work authorization lasts",
    ),
    _S.STATUS_EXPIRED: FormFieldConfig(
        optional=("program_end_date", "ead_expiry_date", "stem_opt_expiry_date", "i20_expiry_date"),
        help_text="Contact your DSO or an immigration attorney right away",
    ),
    _S.OTHER: FormFieldConfig(
        help_text="Enter whatever dates apply to your situation",
    ),
}

_FALLBACK_CONFIG = FormFieldConfig(help_text="Select your immigration status to see relevant fields")

_PROFILE_FIELDS = frozenset(f.name for f in fields(UserProfile))


def get_form_config(status: ImmigrationStatus) -> FormFieldConfig:
    return FORM_FIELDS_BY_STATUS.get(status, _FALLBACK_CONFIG)


def should_show_field(field_name: str, status: ImmigrationStatus) -> bool:
    return field_name not in get_form_config(status).hidden


def is_field_required(field_name: str, status: ImmigrationStatus) -> bool:
    return field_name in get_form_config(status).required


def get_visible_fields(status: ImmigrationStatus) -> list[str]:
    """Required fields first, then optional ones."""
    config = get_form_config(status)
    return list(config.required) + list(config.optional)


def get_field_label(field_name: str) -> str:
    meta = FIELD_METADATA.get(field_name)
    return meta.label if meta else field_name


def _is_present(field_name: str, value: Any) -> bool:
    meta = FIELD_METADATA.get(field_name)
    if meta is not None and meta.field_type == "boolean":
        return value is not None
    if isinstance(value, str):
        return value.strip() != ""
    return value is not None


def validate_profile_for_status(
    status: ImmigrationStatus, data: UserProfile | Mapping[str, Any]
) -> ValidationResult:
    """Check that every required field for *status* has a value.

    Reports all missing fields at once as ``"<Label> is required"``. Booleans
    count as filled when set to either value.
    """
    if isinstance(data, UserProfile):
        values: Mapping[str, Any] = {name: getattr(data, name) for name in _PROFILE_FIELDS}
    else:
        values = data

    errors = [
        f"{get_field_label(name)} is required"
        for name in get_form_config(status).required
        if not _is_present(name, values.get(name))
    ]
    return ValidationResult(is_valid=not errors, errors=errors)


def get_date_fields(status: ImmigrationStatus) -> list[str]:
    """Visible date fields for *status*, for clients that render date pickers."""
    return [name for name in get_visible_fields(status) if name in DATE_FIELDS]
