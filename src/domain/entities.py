"""
Domain entities with business logic.

Patterns used
-------------
- **Value Objects** ``Coordinate`` / ``ReferencePoint`` / ``NearestResult``
  carry the inputs and outputs of nearest-entity resolution.
- **State Pattern** on ``SyncTask``: enforces valid lifecycle transitions
  (PENDING -> SYNCING -> SUCCESS | ERROR, ERROR -> PENDING on retry).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from .enums import (
    SUBMISSION_TRANSITIONS,
    SYNC_TRANSITIONS,
    Language,
    SubmissionStatus,
    SyncStatus,
)

DEFAULT_MAX_RETRIES = 3


class InvalidStateTransition(Exception):
    """Raised when a status change violates a state machine."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ReferencePoint:
    """A city or pharmacy that can be picked by nearest-entity resolution."""

    id: Any
    coordinate: Optional[Coordinate]
    display_name: str = ""


@dataclass(frozen=True)
class NearestResult:
    point: Optional[ReferencePoint] = None
    distance_km: float = math.inf

    @property
    def found(self) -> bool:
        return self.point is not None


@dataclass(frozen=True)
class SyncResult:
    processed: int
    created: int
    updated: int
    city_name: str = ""


def localized_name(name_me: str, name_en: Optional[str], lang: Language) -> str:
    """Pick the display name for *lang*; English falls back to Montenegrin."""
    if lang == Language.EN and name_en:
        return name_en
    return name_me


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class SyncTask:
    city_slug: str
    city_name: str = ""
    status: SyncStatus = SyncStatus.PENDING
    retry_count: int = 0
    max_retries: int = DEFAULT_MAX_RETRIES
    error: Optional[str] = None
    result: Optional[SyncResult] = None

    def __post_init__(self) -> None:
        if not self.city_name:
            self.city_name = self.city_slug

    @property
    def can_retry(self) -> bool:
        return self.retry_count < self.max_retries

    def transition_to(self, new_status: SyncStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = SYNC_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition sync task from {self.status.value} to {new_status.value}"
            )
        self.status = new_status


def check_submission_transition(
    current: SubmissionStatus, new_status: SubmissionStatus
) -> None:
    allowed = SUBMISSION_TRANSITIONS.get(current, set())
    if new_status not in allowed:
        raise InvalidStateTransition(
            f"Cannot change submission from {current.value} to {new_status.value}"
        )
