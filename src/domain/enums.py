"""Domain enumerations and state-transition rules."""

import enum


class SyncStatus(str, enum.Enum):
    PENDING = "pending"
    SYNCING = "syncing"
    SUCCESS = "success"
    ERROR = "error"


# State machine: maps current status -> set of valid next statuses
SYNC_TRANSITIONS: dict[SyncStatus, set[SyncStatus]] = {
    SyncStatus.PENDING: {SyncStatus.SYNCING},
    SyncStatus.SYNCING: {SyncStatus.SUCCESS, SyncStatus.ERROR},
    SyncStatus.ERROR: {SyncStatus.PENDING},  # requeued for retry
    SyncStatus.SUCCESS: set(),
}


class SubmissionStatus(str, enum.Enum):
    RECEIVED = "received"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    REJECTED = "rejected"


SUBMISSION_TRANSITIONS: dict[SubmissionStatus, set[SubmissionStatus]] = {
    SubmissionStatus.RECEIVED: {
        SubmissionStatus.REVIEWED,
        SubmissionStatus.APPROVED,
        SubmissionStatus.REJECTED,
    },
    SubmissionStatus.REVIEWED: {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED},
    SubmissionStatus.APPROVED: set(),
    SubmissionStatus.REJECTED: set(),
}


class Language(str, enum.Enum):
    ME = "me"
    EN = "en"
