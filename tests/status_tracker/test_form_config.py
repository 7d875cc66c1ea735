"""Tests for status-tracker/app/form_config.py."""

from __future__ import annotations

import dataclasses

import pytest

from app.form_config import (
    FIELD_METADATA,
    FORM_FIELDS_BY_STATUS,
    get_date_fields,
    get_form_config,
    get_visible_fields,
    is_field_required,
    should_show_field,
    validate_profile_for_status,
)
from app.profile import DATE_FIELDS, UserProfile
from app.statuses import ImmigrationStatus as S

_PROFILE_FIELDS = {f.name for f in dataclasses.fields(UserProfile)}


def test_every_status_configured():
    assert set(FORM_FIELDS_BY_STATUS) == set(S)


@pytest.mark.parametrize("status", list(S))
def test_config_fields_are_profile_fields(status):
    config = get_form_config(status)
    for name in config.required + config.optional + config.hidden:
        assert name in _PROFILE_FIELDS, name
        assert name in FIELD_METADATA, name


@pytest.mark.parametrize("status", list(S))
def test_required_fields_are_not_hidden(status):
    config = get_form_config(status)
    assert not set(config.required) & set(config.hidden)


def test_student_form():
    assert is_field_required("graduation_date", S.F1_STUDENT)
    assert not should_show_field("ead_received_date", S.F1_STUDENT)
    assert should_show_field("university_name", S.F1_STUDENT)
    assert get_visible_fields(S.F1_STUDENT)[0] == "graduation_date"
    assert "OPT" in get_form_config(S.F1_STUDENT).help_text


def test_date_fields_subset():
    for name in get_date_fields(S.EMPLOYED):
        assert name in DATE_FIELDS
    assert "current_employer" not in get_date_fields(S.EMPLOYED)


class TestValidateProfileForStatus:
    def test_reports_every_missing_field(self):
        result = validate_profile_for_status(S.EMPLOYED, {})
        assert result.is_valid is False
        assert result.errors == ["Employer Name is required", "Employment Start Date is required"]

    def test_valid_mapping(self):
        result = validate_profile_for_status(
            S.EMPLOYED, {"current_employer": "Acme", "employment_start_date": "2025-01-01"}
        )
        assert result.is_valid
        assert result.errors == []

    def test_blank_string_is_missing(self):
        result = validate_profile_for_status(S.F1_STUDENT, {"graduation_date": "  "})
        assert result.errors == ["Graduation Date is required"]

    def test_false_boolean_counts_as_present(self):
        result = validate_profile_for_status(
            S.H1B_PREPARING, {"current_employer": "Acme", "employer_willing_to_sponsor": False}
        )
        assert result.is_valid

    def test_none_boolean_is_missing(self):
        result = validate_profile_for_status(S.H1B_PREPARING, {"current_employer": "Acme"})
        assert result.errors == ["Will your employer sponsor H-1B? is required"]

    def test_accepts_profile(self, employed_profile):
        assert validate_profile_for_status(S.EMPLOYED, employed_profile).is_valid

    def test_other_has_no_requirements(self):
        assert validate_profile_for_status(S.OTHER, {}).is_valid
