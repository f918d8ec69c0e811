"""In-memory store for evaluation jobs."""

from __future__ import annotations

from typing import Callable

from siteeval.evaluation.models import EvaluationJob


class JobStore:
    """In-memory dict store for jobs.

    Same pattern as LocationStore, suitable for single-process use.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, EvaluationJob] = {}

    def get_by_id(self, job_id: str) -> EvaluationJob | None:
        return self._jobs.get(job_id)

    def find(self, predicate: Callable[[EvaluationJob], bool]) -> list[EvaluationJob]:
        return [job for job in self._jobs.values() if predicate(job)]

    def insert(self, job: EvaluationJob) -> None:
        if job.id in self._jobs:
            raise ValueError(f"Job {job.id} already exists")
        self._jobs[job.id] = job

    def update(self, job: EvaluationJob) -> None:
        if job.id not in self._jobs:
            raise KeyError(f"Job {job.id} not found")
        self._jobs[job.id] = job

    def list_all(self) -> list[EvaluationJob]:
        return list(self._jobs.values())

    @property
    def job_count(self) -> int:
        return len(self._jobs)
