"""JSON file persistence for the tracker.

One file per storage key under ``DATA_DIR``: the user profile lives in
``user_profile.json`` and the accumulated deadline collection in
``deadlines.json``. Reads are forgiving (a missing or corrupt file reads as
None); writes raise ``StorageError`` so callers can tell the user the change
was not saved.
"""

from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from shared.logger import get_logger

from app.profile import UserProfile, profile_from_dict, profile_to_dict, update_profile
from app.timeline import Deadline, deadline_from_dict, to_dict

# ── Paths ────────────────────────────────────────────────────────────────────

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.environ.get("TRACKER_DATA_DIR", BASE_DIR / "data" / "profile"))

log = get_logger(component="storage")


class StorageKey(str, Enum):
    USER_PROFILE = "user_profile"
    DEADLINES = "deadlines"


class StorageError(Exception):
    """A read or write against the JSON store failed."""

    def __init__(self, message: str, key: str, operation: str, original: Exception | None = None):
        super().__init__(message)
        self.key = key
        self.operation = operation  # "get", "set", "update", "remove"
        self.original = original


# ── Generic key/value helpers ────────────────────────────────────────────────


def _ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def _item_path(key: StorageKey) -> Path:
    return DATA_DIR / f"{key.value}.json"


def get_item(key: StorageKey) -> Any | None:
    """Load the JSON stored under *key*, or None if absent or unreadable."""
    path = _item_path(key)
    if not path.exists():
        return None
    try:
        with open(path) as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        log.warning("storage_read_failed", key=key.value, error=str(exc))
        return None


def set_item(key: StorageKey, value: Any) -> None:
    try:
        _ensure_data_dir()
        with open(_item_path(key), "w") as f:
            json.dump(value, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError) as exc:
        raise StorageError(f"Failed to save {key.value}", key.value, "set", exc) from exc


def remove_item(key: StorageKey) -> bool:
    """Delete the file for *key*. Returns True if it existed."""
    path = _item_path(key)
    if not path.exists():
        return False
    try:
        path.unlink()
    except OSError as exc:
        raise StorageError(f"Failed to remove {key.value}", key.value, "remove", exc) from exc
    return True


def has_item(key: StorageKey) -> bool:
    return _item_path(key).exists()


# ── User profile ─────────────────────────────────────────────────────────────


def save_profile(profile: UserProfile) -> None:
    set_item(StorageKey.USER_PROFILE, profile_to_dict(profile))
    log.info("profile_saved", user_id=profile.id, status=profile.current_status.value)


def load_profile() -> UserProfile | None:
    """Return the stored profile, or None if there is none or it is unreadable."""
    data = get_item(StorageKey.USER_PROFILE)
    if not isinstance(data, dict):
        return None
    try:
        return profile_from_dict(data)
    except (TypeError, ValueError) as exc:
        log.warning("profile_load_failed", error=str(exc))
        return None


def update_stored_profile(**updates: Any) -> UserProfile:
    """Apply *updates* to the stored profile, save, and return the new profile.

    Raises:
        StorageError: when no profile is stored or the update is rejected.
    """
    key = StorageKey.USER_PROFILE.value
    current = load_profile()
    if current is None:
        raise StorageError("No user profile found to update", key, "update")
    try:
        updated = update_profile(current, **updates)
    except (TypeError, ValueError) as exc:
        raise StorageError(str(exc), key, "update", exc) from exc
    save_profile(updated)
    return updated


def delete_profile() -> bool:
    deleted = remove_item(StorageKey.USER_PROFILE)
    if deleted:
        log.info("profile_deleted")
    return deleted


def has_profile() -> bool:
    return has_item(StorageKey.USER_PROFILE)


# ── Tracked deadlines ────────────────────────────────────────────────────────


def save_deadlines(deadlines: list[Deadline]) -> None:
    set_item(StorageKey.DEADLINES, [to_dict(d) for d in deadlines])


def load_deadlines() -> list[Deadline]:
    """Stored deadlines; malformed entries are skipped."""
    data = get_item(StorageKey.DEADLINES)
    if not isinstance(data, list):
        return []
    deadlines: list[Deadline] = []
    for entry in data:
        if not isinstance(entry, dict):
            log.warning("deadline_skipped", entry_id=None)
            continue
        try:
            deadlines.append(deadline_from_dict(entry))
        except (KeyError, TypeError, ValueError):
            log.warning("deadline_skipped", entry_id=entry.get("id"))
    return deadlines


def clear_all() -> None:
    """Remove every stored item."""
    for key in StorageKey:
        remove_item(key)
