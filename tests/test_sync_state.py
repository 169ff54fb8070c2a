"""Unit tests for sync task and submission state transitions (State Pattern)."""

import pytest

from src.domain.entities import (
    InvalidStateTransition,
    SyncTask,
    check_submission_transition,
)
from src.domain.enums import SubmissionStatus, SyncStatus


class TestSyncTaskStateMachine:
    def test_initial_status_is_pending(self):
        task = SyncTask("bar")
        assert task.status == SyncStatus.PENDING
        assert task.retry_count == 0
        assert task.error is None

    def test_name_defaults_to_slug(self):
        assert SyncTask("herceg-novi").city_name == "herceg-novi"
        assert SyncTask("bar", "Bar").city_name == "Bar"

    # ── Valid transitions ─────────────────────────────────────────

    def test_pending_to_syncing(self):
        task = SyncTask("bar")
        task.transition_to(SyncStatus.SYNCING)
        assert task.status == SyncStatus.SYNCING

    def test_syncing_to_success(self):
        task = SyncTask("bar", status=SyncStatus.SYNCING)
        task.transition_to(SyncStatus.SUCCESS)
        assert task.status == SyncStatus.SUCCESS

    def test_syncing_to_error(self):
        task = SyncTask("bar", status=SyncStatus.SYNCING)
        task.transition_to(SyncStatus.ERROR)
        assert task.status == SyncStatus.ERROR

    def test_error_requeues_to_pending(self):
        task = SyncTask("bar", status=SyncStatus.ERROR)
        task.transition_to(SyncStatus.PENDING)
        assert task.status == SyncStatus.PENDING

    # ── Invalid transitions ───────────────────────────────────────

    def test_pending_to_success_fails(self):
        task = SyncTask("bar")
        with pytest.raises(InvalidStateTransition):
            task.transition_to(SyncStatus.SUCCESS)

    def test_success_is_terminal(self):
        task = SyncTask("bar", status=SyncStatus.SUCCESS)
        for status in SyncStatus:
            with pytest.raises(InvalidStateTransition):
                task.transition_to(status)

    def test_error_cannot_jump_to_syncing(self):
        task = SyncTask("bar", status=SyncStatus.ERROR)
        with pytest.raises(InvalidStateTransition):
            task.transition_to(SyncStatus.SYNCING)

    # ── Retry budget ──────────────────────────────────────────────

    def test_can_retry_until_budget_spent(self):
        task = SyncTask("bar", max_retries=2)
        assert task.can_retry
        task.retry_count = 2
        assert not task.can_retry

    def test_zero_retries(self):
        assert not SyncTask("bar", max_retries=0).can_retry


class TestSubmissionTransitions:
    @pytest.mark.parametrize(
        "current,new",
        [
            (SubmissionStatus.RECEIVED, SubmissionStatus.REVIEWED),
            (SubmissionStatus.RECEIVED, SubmissionStatus.APPROVED),
            (SubmissionStatus.RECEIVED, SubmissionStatus.REJECTED),
            (SubmissionStatus.REVIEWED, SubmissionStatus.APPROVED),
            (SubmissionStatus.REVIEWED, SubmissionStatus.REJECTED),
        ],
    )
    def test_allowed(self, current, new):
        check_submission_transition(current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            (SubmissionStatus.APPROVED, SubmissionStatus.REJECTED),
            (SubmissionStatus.REJECTED, SubmissionStatus.APPROVED),
            (SubmissionStatus.REVIEWED, SubmissionStatus.RECEIVED),
            (SubmissionStatus.RECEIVED, SubmissionStatus.RECEIVED),
        ],
    )
    def test_rejected(self, current, new):
        with pytest.raises(InvalidStateTransition):
            check_submission_transition(current, new)
