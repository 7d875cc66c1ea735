"""In-memory tracker state.

``TrackerState`` holds the one profile plus the deadline collection that has
accumulated across status changes. Every mutation goes through a method here;
the timeline functions it calls stay pure. ``load``/``save`` move the state to
and from the JSON store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from shared.logger import get_logger

from app import storage
from app.profile import UserProfile, create_profile, update_profile
from app.statuses import (
    ImmigrationStatus,
    TransitionResult,
    get_recommended_next_status,
    validate_transition,
)
from app.timeline import (
    Deadline,
    ImmigrationTimeline,
    generate_deadlines,
    generate_user_timeline,
    get_upcoming_deadlines,
    merge_by_title,
    sort_deadlines_by_date,
)

log = get_logger(component="state")


class NoProfileError(LookupError):
    """Raised when an operation needs a profile and none is set."""


@dataclass
class TrackerState:
    profile: UserProfile | None = None
    deadlines: list[Deadline] = field(default_factory=list)

    # ── Persistence ──────────────────────────────────────────────────────────

    @classmethod
    def load(cls) -> TrackerState:
        """Restore state from storage; an empty state if nothing is stored."""
        return cls(profile=storage.load_profile(), deadlines=storage.load_deadlines())

    def save(self) -> None:
        if self.profile is None:
            storage.clear_all()
            return
        storage.save_profile(self.profile)
        storage.save_deadlines(self.deadlines)

    # ── Profile ──────────────────────────────────────────────────────────────

    def _require_profile(self) -> UserProfile:
        if self.profile is None:
            raise NoProfileError("No user profile has been set up")
        return self.profile

    def set_profile(self, profile: UserProfile, as_of: date | None = None) -> UserProfile:
        """Replace the profile and recompute deadlines from scratch."""
        self.profile = profile
        self.deadlines = sort_deadlines_by_date(generate_deadlines(profile, as_of))
        log.info("profile_set", status=profile.current_status.value, deadlines=len(self.deadlines))
        return profile

    def create(self, as_of: date | None = None, **values: Any) -> UserProfile:
        return self.set_profile(create_profile(**values), as_of)

    def update(self, as_of: date | None = None, **fields: Any) -> UserProfile:
        """Apply field updates and regenerate deadlines from the edited profile.

        Deadlines are rebuilt rather than merged; ones carried over from
        earlier statuses are dropped.

        Raises:
            NoProfileError: if no profile is set.
            ValueError / TypeError: for protected or unknown fields.
        """
        self.profile = update_profile(self._require_profile(), **fields)
        self.deadlines = sort_deadlines_by_date(generate_deadlines(self.profile, as_of))
        log.info("profile_updated", fields=sorted(fields))
        return self.profile

    def clear(self) -> None:
        self.profile = None
        self.deadlines = []

    # ── Status ───────────────────────────────────────────────────────────────

    def change_status(
        self, new_status: ImmigrationStatus, as_of: date | None = None
    ) -> TransitionResult:
        """Move the profile to *new_status* if the transition is allowed.

        On success the profile is replaced and newly applicable deadlines are
        merged into the collection by title. On failure nothing changes.
        """
        profile = self._require_profile()
        result = validate_transition(profile.current_status, new_status)
        if not result.valid:
            log.info(
                "status_change_rejected",
                current=profile.current_status.value,
                requested=new_status.value,
            )
            return result
        self.profile = update_profile(profile, current_status=new_status)
        self.refresh_deadlines(as_of)
        log.info(
            "status_changed",
            previous=profile.current_status.value,
            current=new_status.value,
        )
        return result

    def recommended_next_status(self) -> ImmigrationStatus | None:
        if self.profile is None:
            return None
        return get_recommended_next_status(self.profile.current_status)

    # ── Deadlines / timeline ─────────────────────────────────────────────────

    def refresh_deadlines(self, as_of: date | None = None) -> list[Deadline]:
        """Regenerate deadlines and add those whose title is not tracked yet."""
        generated = generate_deadlines(self._require_profile(), as_of)
        self.deadlines = sort_deadlines_by_date(merge_by_title(self.deadlines, generated))
        return self.deadlines

    def upcoming_deadlines(self, limit: int | None = None, today: date | None = None) -> list[Deadline]:
        return get_upcoming_deadlines(self.deadlines, limit, today)

    def timeline(self, as_of: date | None = None, upcoming_limit: int | None = None) -> ImmigrationTimeline:
        return generate_user_timeline(self._require_profile(), as_of, upcoming_limit)
