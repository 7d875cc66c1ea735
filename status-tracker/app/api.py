"""FastAPI backend for the Status Tracker tool.

Exposes the status model, the stored profile, and the derived timeline over
REST. Each request loads the tracker state from the JSON store, applies the
change, and saves it back.
"""

from __future__ import annotations

from datetime import date

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from shared.logger import get_logger

from app.dates import parse_date
from app.form_config import (
    FIELD_METADATA,
    get_form_config,
    validate_profile_for_status,
)
from app.profile import profile_to_dict
from app.resources import (
    TOPIC_RESOURCES,
    get_profile_documents,
    get_required_documents,
    get_topic_resources,
)
from app.state import TrackerState
from app.statuses import (
    STATUS_DESCRIPTIONS,
    STATUS_LABELS,
    ImmigrationStatus,
    can_work,
    get_current_phase,
    get_next_statuses,
    get_recommended_next_status,
    get_transition_suggestions,
    is_terminal_status,
    parse_status,
    requires_immediate_action,
)
from app.timeline import get_upcoming_deadlines, to_dict

app = FastAPI(title="Status Tracker API", version="1.0.0")

log = get_logger(component="api")


# ── Request / response schemas ───────────────────────────────────────────────


class ProfileIn(BaseModel):
    name: str | None = None
    email: str | None = None
    current_status: str | None = None

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

    has_stem_degree: bool | None = None
    degree_field: str | None = None
    university_name: str | None = None

    current_employer: str | None = None
    employment_start_date: str | None = None
    job_title: str | None = None
    has_job_offer: bool | None = None

    sevis_id: str | None = None
    passport_number: str | None = None
    passport_expiry_date: str | None = None
    visa_expiry_date: str | None = None
    i20_expiry_date: str | None = None

    h1b_lottery_selected: bool | None = None
    h1b_lottery_year: int | None = None
    employer_willing_to_sponsor: bool | None = None


class StatusChange(BaseModel):
    status: str


class ValidateRequest(BaseModel):
    status: str | None = None
    data: dict | None = None


# ── Helpers ──────────────────────────────────────────────────────────────────


def _status_or_404(value: str) -> ImmigrationStatus:
    status = parse_status(value)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Unknown status '{value}'")
    return status


def _status_or_422(value: str) -> ImmigrationStatus:
    status = parse_status(value)
    if status is None:
        raise HTTPException(
            status_code=422,
            detail=f"Invalid status '{value}'. "
                   f"Must be one of: {', '.join(s.value for s in ImmigrationStatus)}",
        )
    return status


def _date_or_422(value: str | None, name: str) -> date | None:
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise HTTPException(status_code=422, detail=f"Invalid {name} '{value}'")
    return parsed


def _loaded_state() -> TrackerState:
    state = TrackerState.load()
    if state.profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return state


# null is ignored for these; the profile always carries a value
_NON_NULLABLE_FIELDS = frozenset({"name", "current_status", "has_stem_degree", "has_job_offer"})


def _profile_fields(body: ProfileIn) -> dict:
    fields = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k not in _NON_NULLABLE_FIELDS
    }
    if fields.get("current_status") is not None:
        fields["current_status"] = _status_or_422(fields["current_status"])
    return fields


def _status_summary(status: ImmigrationStatus) -> dict:
    return {
        "value": status.value,
        "label": STATUS_LABELS[status],
        "description": STATUS_DESCRIPTIONS[status],
        "phase": get_current_phase(status).value,
        "requires_immediate_action": requires_immediate_action(status),
        "can_work": can_work(status),
    }


# ── Statuses ─────────────────────────────────────────────────────────────────


@app.get("/api/statuses")
def api_list_statuses() -> list[dict]:
    """Return every status with its label, phase and flags."""
    return [_status_summary(s) for s in ImmigrationStatus]


@app.get("/api/statuses/{status}/transitions")
def api_status_transitions(status: str) -> dict:
    """Allowed next statuses, the recommended one, and ranked suggestions."""
    current = _status_or_404(status)
    recommended = get_recommended_next_status(current)
    return {
        "status": current.value,
        "next_statuses": [s.value for s in get_next_statuses(current)],
        "recommended": recommended.value if recommended else None,
        "is_terminal": is_terminal_status(current),
        "suggestions": [
            {**s, "status": s["status"].value} for s in get_transition_suggestions(current)
        ],
    }


# ── Profile CRUD ─────────────────────────────────────────────────────────────


@app.get("/api/profile")
def api_get_profile() -> dict:
    return profile_to_dict(_loaded_state().profile)


@app.post("/api/profile", status_code=201)
def api_create_profile(body: ProfileIn) -> dict:
    """Create the profile, replacing any existing one."""
    fields = {k: v for k, v in _profile_fields(body).items() if v is not None}
    state = TrackerState()
    try:
        profile = state.create(**fields)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    state.save()
    log.info("profile_created", status=profile.current_status.value)
    return profile_to_dict(profile)


@app.put("/api/profile")
def api_update_profile(body: ProfileIn) -> dict:
    """Update profile fields. Changing ``current_status`` here skips transition checks."""
    state = _loaded_state()
    fields = _profile_fields(body)
    if not fields:
        return profile_to_dict(state.profile)
    try:
        profile = state.update(**fields)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    state.save()
    return profile_to_dict(profile)


@app.delete("/api/profile")
def api_delete_profile() -> dict:
    state = _loaded_state()
    state.clear()
    state.save()
    log.info("profile_deleted_via_api")
    return {"deleted": True}


@app.post("/api/profile/status")
def api_change_status(body: StatusChange) -> dict:
    """Move the profile to a new status, enforcing the transition rules."""
    new_status = _status_or_404(body.status)
    state = _loaded_state()
    result = state.change_status(new_status)
    if not result.valid:
        raise HTTPException(status_code=422, detail=result.error)
    state.save()
    return {
        "profile": profile_to_dict(state.profile),
        "deadlines": [to_dict(d) for d in state.deadlines],
    }


@app.post("/api/profile/validate")
def api_validate_profile(body: ValidateRequest) -> dict:
    """Check required fields for a status.

    Validates ``data`` when given, otherwise the stored profile. The status
    defaults to the profile's current status.
    """
    if body.data is None or body.status is None:
        profile = _loaded_state().profile
    else:
        profile = None
    status = _status_or_404(body.status) if body.status else profile.current_status
    result = validate_profile_for_status(status, body.data if body.data is not None else profile)
    return {"status": status.value, "is_valid": result.is_valid, "errors": result.errors}


# ── Timeline ─────────────────────────────────────────────────────────────────


@app.get("/api/timeline")
def api_get_timeline(as_of: str | None = None) -> dict:
    """The full derived timeline for the stored profile."""
    state = _loaded_state()
    return to_dict(state.timeline(_date_or_422(as_of, "as_of")))


@app.get("/api/deadlines")
def api_list_deadlines() -> list[dict]:
    """Every tracked deadline, soonest first."""
    return [to_dict(d) for d in _loaded_state().deadlines]


@app.get("/api/deadlines/upcoming")
def api_upcoming_deadlines(limit: int | None = None, today: str | None = None) -> list[dict]:
    state = _loaded_state()
    upcoming = get_upcoming_deadlines(state.deadlines, limit, _date_or_422(today, "today"))
    return [to_dict(d) for d in upcoming]


# ── Forms / documents / resources ────────────────────────────────────────────


@app.get("/api/form-config/{status}")
def api_form_config(status: str) -> dict:
    current = _status_or_404(status)
    config = get_form_config(current)
    return {
        "status": current.value,
        "required": list(config.required),
        "optional": list(config.optional),
        "hidden": list(config.hidden),
        "help_text": config.help_text,
        "fields": {
            name: {
                "label": FIELD_METADATA[name].label,
                "field_type": FIELD_METADATA[name].field_type,
                "placeholder": FIELD_METADATA[name].placeholder,
                "help_text": FIELD_METADATA[name].help_text,
            }
            for name in config.required + config.optional
            if name in FIELD_METADATA
        },
    }


@app.get("/api/documents")
def api_documents(today: str | None = None) -> dict:
    """Required documents for the current status and expiry tracking."""
    profile = _loaded_state().profile
    return {
        "status": profile.current_status.value,
        "required": get_required_documents(profile.current_status),
        "tracked": get_profile_documents(profile, _date_or_422(today, "today")),
    }


@app.get("/api/resources/{topic}")
def api_topic_resources(topic: str) -> list[dict]:
    key = topic.upper()
    if key not in TOPIC_RESOURCES:
        raise HTTPException(status_code=404, detail=f"Unknown topic '{topic}'")
    return [
        {"title": r.title, "url": r.url, "type": r.type.value}
        for r in get_topic_resources(key)
    ]
