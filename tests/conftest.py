"""Shared fixtures for all tests."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest

import app.storage as storage_mod
from app.profile import UserProfile
from app.statuses import ImmigrationStatus


@pytest.fixture(autouse=True)
def tmp_data_dir(tmp_path: Path):
    """Point profile storage at a per-test directory."""
    data_dir = tmp_path / "profile"
    with patch.object(storage_mod, "DATA_DIR", data_dir):
        yield data_dir


@pytest.fixture()
def today() -> date:
    return date(2025, 1, 15)


@pytest.fixture()
def student_profile() -> UserProfile:
    """An F-1 student graduating in June 2025."""
    return UserProfile(
        name="Priya",
        email="priya@example.com",
        current_status=ImmigrationStatus.F1_STUDENT,
        graduation_date="2025-06-01",
        program_end_date="2025-06-01",
        has_stem_degree=True,
        degree_field="Computer Science",
        university_name="State University",
        sevis_id="N0012345678",
        passport_number="X1234567",
        passport_expiry_date="2028-04-30",
        created_at="2025-01-01T09:00:00",
        updated_at="2025-01-01T09:00:00",
    )


@pytest.fixture()
def employed_profile() -> UserProfile:
    """On OPT with an EAD in hand and a job."""
    return UserProfile(
        name="Wei",
        current_status=ImmigrationStatus.EMPLOYED,
        graduation_date="2024-05-15",
        program_end_date="2024-05-15",
        opt_application_date="2024-03-01",
        ead_received_date="2024-07-01",
        ead_expiry_date="2025-06-30",
        employment_start_date="2024-07-15",
        current_employer="Acme Corp",
        job_title="Data Analyst",
        has_job_offer=True,
        has_stem_degree=True,
        employer_willing_to_sponsor=True,
        created_at="2024-07-01T09:00:00",
        updated_at="2024-07-01T09:00:00",
    )
