"""Protocol definitions for the persistence collaborator.

Each protocol mirrors the public methods of the corresponding in-memory
store exactly, so sync (in-memory) and async (database) implementations
satisfy the same interface. Callers wrap every call in ``resolve()``.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from siteeval.evaluation.models import EvaluationJob
from siteeval.locations.models import Location


@runtime_checkable
class LocationRepository(Protocol):
    """Protocol for canonical location storage."""

    def get_by_id(self, location_id: str) -> Location | None: ...

    def find(self, predicate: Callable[[Location], bool]) -> list[Location]: ...

    def insert(self, location: Location) -> None: ...

    def update(self, location: Location) -> None: ...

    def list_all(self) -> list[Location]: ...


@runtime_checkable
class JobRepository(Protocol):
    """Protocol for evaluation job storage."""

    def get_by_id(self, job_id: str) -> EvaluationJob | None: ...

    def find(self, predicate: Callable[[EvaluationJob], bool]) -> list[EvaluationJob]: ...

    def insert(self, job: EvaluationJob) -> None: ...

    def update(self, job: EvaluationJob) -> None: ...

    def list_all(self) -> list[EvaluationJob]: ...
