"""Tests for the job status state machine."""

from __future__ import annotations

import pytest

from siteeval.core.types import DataGap, GapSeverity
from siteeval.evaluation.completeness import CompletenessReport
from siteeval.evaluation.models import JobStatus
from siteeval.evaluation.status import (
    TERMINAL_STATES,
    InvalidTransitionError,
    can_transition,
    check_transition,
    derive_status,
)


def _report(percent: float) -> CompletenessReport:
    return CompletenessReport(percent=percent)


CRITICAL = DataGap(section="location", field="coordinates", reason="x", severity=GapSeverity.CRITICAL)
WARNING = DataGap(section="climate", field="rainfall", reason="x")


class TestTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            (JobStatus.CREATED, JobStatus.IN_PROGRESS),
            (JobStatus.IN_PROGRESS, JobStatus.COMPLETE),
            (JobStatus.IN_PROGRESS, JobStatus.REQUIRES_MANUAL_DATA),
            (JobStatus.REQUIRES_MANUAL_DATA, JobStatus.IN_PROGRESS),
            (JobStatus.ON_HOLD, JobStatus.IN_PROGRESS),
            (JobStatus.CREATED, JobStatus.CANCELLED),
            (JobStatus.IN_PROGRESS, JobStatus.ON_HOLD),
            (JobStatus.REQUIRES_MANUAL_DATA, JobStatus.CANCELLED),
        ],
    )
    def test_allowed(self, current, target) -> None:
        assert can_transition(current, target)
        assert check_transition(current, target) == target

    @pytest.mark.parametrize(
        "current,target",
        [
            (JobStatus.CREATED, JobStatus.COMPLETE),
            (JobStatus.COMPLETE, JobStatus.IN_PROGRESS),
            (JobStatus.COMPLETE, JobStatus.CANCELLED),
            (JobStatus.CANCELLED, JobStatus.IN_PROGRESS),
            (JobStatus.CANCELLED, JobStatus.ON_HOLD),
            (JobStatus.ON_HOLD, JobStatus.COMPLETE),
        ],
    )
    def test_rejected(self, current, target) -> None:
        assert not can_transition(current, target)
        with pytest.raises(InvalidTransitionError) as exc_info:
            check_transition(current, target)
        assert exc_info.value.current == current
        assert isinstance(exc_info.value, ValueError)

    def test_terminal_states(self) -> None:
        assert TERMINAL_STATES == {JobStatus.COMPLETE, JobStatus.CANCELLED}
        for state in TERMINAL_STATES:
            assert not any(can_transition(state, target) for target in JobStatus)


class TestDeriveStatus:
    def test_complete_at_threshold(self) -> None:
        assert derive_status(_report(80.0), []) == JobStatus.COMPLETE

    def test_in_progress_below_threshold(self) -> None:
        assert derive_status(_report(79.9), [WARNING]) == JobStatus.IN_PROGRESS

    def test_warning_does_not_block_complete(self) -> None:
        assert derive_status(_report(91.7), [WARNING]) == JobStatus.COMPLETE

    def test_critical_gap_requires_manual_data(self) -> None:
        assert derive_status(_report(100.0), [WARNING, CRITICAL]) == JobStatus.REQUIRES_MANUAL_DATA

    def test_custom_threshold(self) -> None:
        assert derive_status(_report(70.0), [], threshold=60.0) == JobStatus.COMPLETE
