"""Evaluation job service: create, run, hold, cancel and query jobs.

Running a job refreshes its Location through the orchestrator, scores the
cached sections, collects gaps whose severity depends on the job purpose and
derives the status from the score and the gaps.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable

from siteeval.core.config import EvaluationConfig
from siteeval.core.types import ALL_CATEGORIES, Category, CompletenessStatus, DataGap, GapSeverity
from siteeval.evaluation.completeness import CompletenessReport, score_location
from siteeval.evaluation.models import (
    CreateJobRequest,
    DataSectionStatus,
    EvaluationJob,
    JobListFilter,
    JobPurpose,
    JobSortField,
    JobStatus,
)
from siteeval.evaluation.status import check_transition, derive_status
from siteeval.locations.models import Location
from siteeval.locations.resolver import LocationNotFoundError, LocationResolver
from siteeval.refresh.orchestrator import ProviderOrchestrator, RefreshResult
from siteeval.repositories import resolve

if TYPE_CHECKING:
    from siteeval.repositories.protocols import JobRepository, LocationRepository

logger = logging.getLogger(__name__)

REQUIRED_CATEGORIES: dict[JobPurpose, frozenset[Category]] = {
    JobPurpose.DEVELOPMENT: frozenset({Category.ZONING}),
    JobPurpose.SUBDIVISION: frozenset({Category.ZONING}),
    JobPurpose.RESOURCE_CONSENT: frozenset({Category.ZONING}),
    JobPurpose.BUILDING_CONSENT: frozenset({Category.HAZARDS, Category.GEOTECH}),
    JobPurpose.SITE_INVESTIGATION: frozenset({Category.GEOTECH}),
    JobPurpose.PURCHASE: frozenset({Category.LAND}),
    JobPurpose.SALE: frozenset({Category.LAND}),
    JobPurpose.DUE_DILIGENCE: frozenset({Category.LAND}),
}

_SECTION_STATUS = {
    CompletenessStatus.COMPLETE: DataSectionStatus.COMPLETE,
    CompletenessStatus.PARTIAL: DataSectionStatus.PARTIAL,
    CompletenessStatus.MISSING: DataSectionStatus.NOT_AVAILABLE,
}


def required_categories(purpose: JobPurpose) -> frozenset[Category]:
    return REQUIRED_CATEGORIES.get(purpose, frozenset())


class EvaluationService:
    """Orchestrates jobs over shared Locations."""

    def __init__(
        self,
        resolver: LocationResolver,
        orchestrator: ProviderOrchestrator,
        location_store: LocationRepository,
        job_store: JobRepository,
        config: EvaluationConfig | None = None,
    ) -> None:
        self._resolver = resolver
        self._orchestrator = orchestrator
        self._locations = location_store
        self._jobs = job_store
        self._config = config or EvaluationConfig()

    # -- lifecycle -----------------------------------------------------------

    async def create_job(self, request: CreateJobRequest) -> EvaluationJob:
        location = await self._resolve_location(request)
        now = datetime.now(timezone.utc)
        job = EvaluationJob(
            job_reference=await self._next_reference(now),
            title=request.title or f"{_purpose_label(request.purpose)} - {location.short_address()}",
            location_id=location.id,
            address=location.address,
            customer_name=request.customer_name,
            customer_reference=request.customer_reference,
            customer_email=request.customer_email,
            customer_company=request.customer_company,
            created_by=request.created_by,
            purpose=request.purpose,
            description=request.description,
            created_at=now,
        )
        await resolve(self._jobs.insert(job))
        logger.info("Created job %s for location %s", job.job_reference, location.id)

        if request.start_immediately:
            job = await self.run(job.id)
        return job

    async def run(
        self,
        job_id: str,
        categories: Iterable[Category | str] | None = None,
        now: datetime | None = None,
    ) -> EvaluationJob:
        """Refresh the job's location and re-derive completeness, gaps and status."""
        job = await self.get_job(job_id)
        now = now or datetime.now(timezone.utc)
        if now > datetime.now(timezone.utc):
            raise ValueError(f"Run time {now.isoformat()} is in the future")
        if job.status != JobStatus.IN_PROGRESS:
            job.status = check_transition(job.status, JobStatus.IN_PROGRESS)
        job.started_at = job.started_at or now
        job.last_updated = now

        location = await resolve(self._locations.get_by_id(job.location_id))
        if location is None:
            raise LocationNotFoundError(f"Location {job.location_id} not found")

        try:
            result = await self._orchestrator.refresh(location, categories, now)
        finally:
            await resolve(self._locations.update(location))

        report = score_location(location)
        job.address = location.address
        job.completeness_percent = report.percent
        job.sections = self._section_statuses(report, result)
        job.gaps = self._collect_gaps(job, location, report, result)
        job.warnings = _warnings(location)

        target = derive_status(report, job.gaps, self._config.complete_threshold_percent)
        if target != JobStatus.IN_PROGRESS:
            job.status = check_transition(job.status, target)
        if job.status == JobStatus.COMPLETE:
            job.completed_at = now

        await resolve(self._jobs.update(job))
        logger.info(
            "Job %s is %s at %.1f%% with %d gap(s)",
            job.job_reference,
            job.status.value,
            job.completeness_percent,
            len(job.gaps),
        )
        return job

    async def cancel(self, job_id: str) -> EvaluationJob:
        return await self._move(job_id, JobStatus.CANCELLED)

    async def hold(self, job_id: str) -> EvaluationJob:
        return await self._move(job_id, JobStatus.ON_HOLD)

    # -- queries -------------------------------------------------------------

    async def get_job(self, job_id: str) -> EvaluationJob:
        job = await resolve(self._jobs.get_by_id(job_id))
        if job is None:
            raise KeyError(f"Job {job_id} not found")
        return job

    async def get_by_reference(self, job_reference: str) -> EvaluationJob | None:
        ref = job_reference.strip().upper()
        matches = await resolve(self._jobs.find(lambda j: j.job_reference.upper() == ref))
        return matches[0] if matches else None

    async def jobs_for_location(self, location_id: str) -> list[EvaluationJob]:
        jobs = await resolve(self._jobs.find(lambda j: j.location_id == location_id))
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    async def search(self, query: str, limit: int = 20) -> list[EvaluationJob]:
        """Case-insensitive match on reference, title, address or customer."""
        q = query.strip().casefold()
        if not q:
            return []

        def matches(job: EvaluationJob) -> bool:
            fields = (
                job.job_reference,
                job.title,
                job.address,
                job.customer_name,
                job.customer_reference or "",
                job.customer_company or "",
            )
            return any(q in f.casefold() for f in fields)

        jobs = await resolve(self._jobs.find(matches))
        jobs.sort(key=lambda j: j.created_at, reverse=True)
        return jobs[:limit]

    async def list_jobs(self, filter: JobListFilter | None = None) -> list[EvaluationJob]:
        f = filter or JobListFilter()

        def keep(job: EvaluationJob) -> bool:
            if f.status is not None and job.status != f.status:
                return False
            if f.purpose is not None and job.purpose != f.purpose:
                return False
            if f.customer_name and f.customer_name.casefold() not in job.customer_name.casefold():
                return False
            if f.from_date is not None and job.created_at < f.from_date:
                return False
            if f.to_date is not None and job.created_at > f.to_date:
                return False
            return True

        jobs = await resolve(self._jobs.find(keep))
        sort_keys = {
            JobSortField.CREATED: lambda j: j.created_at,
            JobSortField.REFERENCE: lambda j: j.job_reference,
            JobSortField.CUSTOMER: lambda j: j.customer_name.casefold(),
            JobSortField.STATUS: lambda j: j.status.value,
            JobSortField.COMPLETENESS: lambda j: j.completeness_percent,
        }
        jobs.sort(key=sort_keys[f.sort_by], reverse=f.descending)
        return jobs[f.skip : f.skip + f.take]

    # -- helpers -------------------------------------------------------------

    async def _resolve_location(self, request: CreateJobRequest) -> Location:
        if request.location_id:
            return await self._resolver.get(request.location_id)
        if request.address:
            return await self._resolver.resolve_by_address(request.address)
        if request.title_reference:
            return await self._resolver.resolve_by_title(request.title_reference)
        if request.latitude is not None and request.longitude is not None:
            return await self._resolver.resolve_by_coordinates(request.latitude, request.longitude)
        raise ValueError("A location id, address, title reference or coordinates are required")

    async def _next_reference(self, now: datetime) -> str:
        prefix = f"{self._config.job_reference_prefix}-{now.year}-"
        existing = await resolve(self._jobs.find(lambda j: j.job_reference.startswith(prefix)))
        highest = 0
        for job in existing:
            suffix = job.job_reference[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{prefix}{highest + 1:05d}"

    async def _move(self, job_id: str, target: JobStatus) -> EvaluationJob:
        job = await self.get_job(job_id)
        job.status = check_transition(job.status, target)
        job.last_updated = datetime.now(timezone.utc)
        await resolve(self._jobs.update(job))
        logger.info("Job %s moved to %s", job.job_reference, target.value)
        return job

    @staticmethod
    def _section_statuses(
        report: CompletenessReport, result: RefreshResult
    ) -> dict[Category, DataSectionStatus]:
        sections: dict[Category, DataSectionStatus] = {}
        for category in ALL_CATEGORIES:
            status = _SECTION_STATUS[report.status_of(category)]
            if category in result.failed and status == DataSectionStatus.NOT_AVAILABLE:
                status = DataSectionStatus.FAILED
            sections[category] = status
        return sections

    @staticmethod
    def _collect_gaps(
        job: EvaluationJob,
        location: Location,
        report: CompletenessReport,
        result: RefreshResult,
    ) -> list[DataGap]:
        required = required_categories(job.purpose)
        gaps: list[DataGap] = []
        seen: set[tuple[str, str, str]] = set()

        def add(gap: DataGap) -> None:
            key = (gap.section, gap.field, gap.reason)
            if key not in seen:
                seen.add(key)
                gaps.append(gap)

        if not location.has_coordinates:
            add(
                DataGap(
                    section="location",
                    field="coordinates",
                    reason="Coordinates could not be resolved",
                    severity=GapSeverity.CRITICAL,
                    suggested_action="Enter the site coordinates manually",
                )
            )

        missing_required = {
            c.value for c in required if report.status_of(c) == CompletenessStatus.MISSING
        }
        escalated: set[str] = set()
        for gap in result.gaps:
            if gap.section in missing_required:
                gap = gap.model_copy(update={"severity": GapSeverity.CRITICAL})
                escalated.add(gap.section)
            add(gap)

        for category in sorted(required):
            if category.value in missing_required and category.value not in escalated:
                add(
                    DataGap(
                        section=category.value,
                        field=category.value,
                        reason=f"Required for {_purpose_label(job.purpose).lower()} evaluations",
                        severity=GapSeverity.CRITICAL,
                        suggested_action="Obtain the data manually",
                    )
                )

        if report.missing_count == len(ALL_CATEGORIES):
            add(
                DataGap(
                    section="location",
                    field="data",
                    reason="No data could be retrieved for this location",
                    severity=GapSeverity.CRITICAL,
                    suggested_action="Check provider coverage for this region",
                )
            )
        return gaps


def _purpose_label(purpose: JobPurpose) -> str:
    return purpose.value.replace("_", " ").title()


def _warnings(location: Location) -> list[str]:
    warnings: list[str] = []
    hazards = location.hazards
    if hazards is not None and hazards.liquefaction is not None:
        if hazards.liquefaction.requires_geotech_assessment:
            warnings.append(
                f"Liquefaction category {hazards.liquefaction.category} requires geotechnical assessment"
            )
    if location.geotech is not None and location.geotech.investigation_required:
        warnings.append(
            f"No boreholes within {location.geotech.search_radius_m:.0f} m; "
            "site investigation required"
        )
    return warnings

