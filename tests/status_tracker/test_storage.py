"""Tests for status-tracker/app/storage.py — JSON profile persistence."""

from __future__ import annotations

import dataclasses
import json
from datetime import date
from unittest.mock import patch

import pytest

import app.storage as storage_mod
from app.statuses import ImmigrationStatus
from app.timeline import generate_deadlines, generate_user_timeline, to_dict

AS_OF = date(2025, 1, 15)


# ── Profile ──────────────────────────────────────────────────────────────


class TestProfileStorage:
    def test_load_when_missing(self):
        assert storage_mod.load_profile() is None
        assert storage_mod.has_profile() is False

    def test_save_and_load(self, employed_profile, tmp_data_dir):
        storage_mod.save_profile(employed_profile)
        assert (tmp_data_dir / "user_profile.json").exists()
        assert storage_mod.has_profile()
        assert storage_mod.load_profile() == employed_profile

    def test_file_is_readable_json(self, employed_profile, tmp_data_dir):
        storage_mod.save_profile(employed_profile)
        data = json.loads((tmp_data_dir / "user_profile.json").read_text())
        assert data["current_status"] == "EMPLOYED"
        assert data["ead_received_date"] == "2024-07-01"

    def test_corrupt_file_reads_as_none(self, tmp_data_dir):
        tmp_data_dir.mkdir(parents=True)
        (tmp_data_dir / "user_profile.json").write_text("{not json")
        assert storage_mod.load_profile() is None

    def test_non_object_reads_as_none(self, tmp_data_dir):
        tmp_data_dir.mkdir(parents=True)
        (tmp_data_dir / "user_profile.json").write_text("[]")
        assert storage_mod.load_profile() is None

    def test_delete(self, employed_profile):
        storage_mod.save_profile(employed_profile)
        assert storage_mod.delete_profile() is True
        assert storage_mod.delete_profile() is False
        assert storage_mod.load_profile() is None


class TestUpdateStoredProfile:
    def test_updates_and_persists(self, employed_profile):
        storage_mod.save_profile(employed_profile)
        updated = storage_mod.update_stored_profile(current_status="H1B_PREPARING")
        assert updated.current_status is ImmigrationStatus.H1B_PREPARING
        assert storage_mod.load_profile().current_status is ImmigrationStatus.H1B_PREPARING

    def test_missing_profile_raises(self):
        with pytest.raises(storage_mod.StorageError) as exc_info:
            storage_mod.update_stored_profile(name="X")
        assert exc_info.value.key == "user_profile"
        assert exc_info.value.operation == "update"

    def test_protected_field_raises(self, employed_profile):
        storage_mod.save_profile(employed_profile)
        with pytest.raises(storage_mod.StorageError):
            storage_mod.update_stored_profile(id="other")


class TestTimelineSurvivesStorage:
    @pytest.mark.parametrize("fixture_name", ["student_profile", "employed_profile"])
    def test_same_timeline_after_reload(self, fixture_name, request):
        profile = request.getfixturevalue(fixture_name)
        before = to_dict(generate_user_timeline(profile, AS_OF))
        storage_mod.save_profile(profile)
        after = to_dict(generate_user_timeline(storage_mod.load_profile(), AS_OF))
        assert after == before

    def test_unparseable_date_survives(self, employed_profile):
        profile = dataclasses.replace(employed_profile, ead_expiry_date="end of June")
        before = to_dict(generate_user_timeline(profile, AS_OF))
        storage_mod.save_profile(profile)
        restored = storage_mod.load_profile()
        assert restored.ead_expiry_date == "end of June"
        assert to_dict(generate_user_timeline(restored, AS_OF)) == before


def test_write_failure_raises_storage_error(employed_profile, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    with patch.object(storage_mod, "DATA_DIR", blocker / "profile"):
        with pytest.raises(storage_mod.StorageError) as exc_info:
            storage_mod.save_profile(employed_profile)
    assert exc_info.value.operation == "set"


# ── Deadlines ────────────────────────────────────────────────────────────


class TestDeadlineStorage:
    def test_round_trip(self, employed_profile):
        deadlines = generate_deadlines(employed_profile, date(2025, 1, 15))
        storage_mod.save_deadlines(deadlines)
        assert storage_mod.load_deadlines() == deadlines

    def test_empty_when_missing(self):
        assert storage_mod.load_deadlines() == []

    def test_malformed_entries_skipped(self, employed_profile, tmp_data_dir):
        deadlines = generate_deadlines(employed_profile, date(2025, 1, 15))
        storage_mod.save_deadlines(deadlines[:1])
        path = tmp_data_dir / "deadlines.json"
        data = json.loads(path.read_text())
        data.append({"id": "broken"})
        data.append("not a dict")
        path.write_text(json.dumps(data))
        assert storage_mod.load_deadlines() == deadlines[:1]


def test_clear_all(employed_profile):
    storage_mod.save_profile(employed_profile)
    storage_mod.save_deadlines([])
    storage_mod.clear_all()
    assert not storage_mod.has_item(storage_mod.StorageKey.USER_PROFILE)
    assert not storage_mod.has_item(storage_mod.StorageKey.DEADLINES)
