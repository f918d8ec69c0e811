"""Evaluation job status state machine."""

from __future__ import annotations

from typing import Iterable

from siteeval.core.types import DataGap, GapSeverity
from siteeval.evaluation.completeness import CompletenessReport
from siteeval.evaluation.models import JobStatus

DEFAULT_COMPLETE_THRESHOLD = 80.0

TERMINAL_STATES = frozenset({JobStatus.COMPLETE, JobStatus.CANCELLED})

_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.CREATED: frozenset({JobStatus.IN_PROGRESS, JobStatus.CANCELLED, JobStatus.ON_HOLD}),
    JobStatus.IN_PROGRESS: frozenset(
        {
            JobStatus.COMPLETE,
            JobStatus.REQUIRES_MANUAL_DATA,
            JobStatus.CANCELLED,
            JobStatus.ON_HOLD,
        }
    ),
    JobStatus.REQUIRES_MANUAL_DATA: frozenset(
        {JobStatus.IN_PROGRESS, JobStatus.CANCELLED, JobStatus.ON_HOLD}
    ),
    JobStatus.ON_HOLD: frozenset({JobStatus.IN_PROGRESS, JobStatus.CANCELLED}),
    JobStatus.COMPLETE: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


class InvalidTransitionError(ValueError):
    """Raised for a status change the state machine does not allow."""

    def __init__(self, current: JobStatus, target: JobStatus) -> None:
        super().__init__(f"Cannot move job from {current.value} to {target.value}")
        self.current = current
        self.target = target


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in _TRANSITIONS[current]


def check_transition(current: JobStatus, target: JobStatus) -> JobStatus:
    """Return ``target`` if reachable from ``current``, else raise."""
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)
    return target


def derive_status(
    report: CompletenessReport,
    gaps: Iterable[DataGap],
    threshold: float = DEFAULT_COMPLETE_THRESHOLD,
) -> JobStatus:
    """Status an in-progress job settles into after a refresh.

    Any Critical gap requires manual data. Otherwise the job is Complete
    once the completeness percentage reaches ``threshold``.
    """
    if any(g.severity == GapSeverity.CRITICAL for g in gaps):
        return JobStatus.REQUIRES_MANUAL_DATA
    if report.percent >= threshold:
        return JobStatus.COMPLETE
    return JobStatus.IN_PROGRESS
