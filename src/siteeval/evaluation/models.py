"""Evaluation job models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field

from siteeval.core.types import Category, DataGap, GapSeverity


class JobStatus(StrEnum):
    """Lifecycle status of an evaluation job."""

    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    REQUIRES_MANUAL_DATA = "requires_manual_data"
    CANCELLED = "cancelled"
    ON_HOLD = "on_hold"


class JobPurpose(StrEnum):
    """Why the customer wants the site evaluated."""

    GENERAL_ENQUIRY = "general_enquiry"
    PURCHASE = "purchase"
    SALE = "sale"
    DEVELOPMENT = "development"
    SUBDIVISION = "subdivision"
    RESOURCE_CONSENT = "resource_consent"
    BUILDING_CONSENT = "building_consent"
    DUE_DILIGENCE = "due_diligence"
    INSURANCE = "insurance"
    VALUATION = "valuation"
    SITE_INVESTIGATION = "site_investigation"
    OTHER = "other"


class DataSectionStatus(StrEnum):
    """Per-category progress shown on a job."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"
    NOT_AVAILABLE = "not_available"


def _pending_sections() -> dict[Category, DataSectionStatus]:
    return {c: DataSectionStatus.PENDING for c in Category}


class EvaluationJob(BaseModel):
    """One engagement to evaluate a location for a customer and purpose.

    Several jobs may reference the same Location; each owns its own status,
    gap list and section progress.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    job_reference: str = ""
    title: str = ""

    location_id: str
    address: str = ""

    customer_name: str = ""
    customer_reference: str | None = None
    customer_email: str | None = None
    customer_company: str | None = None
    created_by: str | None = None

    purpose: JobPurpose = JobPurpose.GENERAL_ENQUIRY
    description: str | None = None

    status: JobStatus = JobStatus.CREATED
    sections: dict[Category, DataSectionStatus] = Field(default_factory=_pending_sections)
    completeness_percent: float = 0.0
    gaps: list[DataGap] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: datetime | None = None
    completed_at: datetime | None = None
    last_updated: datetime | None = None

    @property
    def has_critical_gap(self) -> bool:
        return any(g.severity == GapSeverity.CRITICAL for g in self.gaps)


class CreateJobRequest(BaseModel):
    """Input for creating a job.

    The location is identified by the first of ``location_id``, ``address``,
    ``title_reference`` or ``latitude``/``longitude`` that is supplied.
    """

    location_id: str | None = None
    address: str | None = None
    title_reference: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    title: str = ""
    customer_name: str = ""
    customer_reference: str | None = None
    customer_email: str | None = None
    customer_company: str | None = None
    created_by: str | None = None
    purpose: JobPurpose = JobPurpose.GENERAL_ENQUIRY
    description: str | None = None
    start_immediately: bool = False


class JobSortField(StrEnum):
    CREATED = "created"
    REFERENCE = "reference"
    CUSTOMER = "customer"
    STATUS = "status"
    COMPLETENESS = "completeness"


class JobListFilter(BaseModel):
    """Filtering, sorting and paging for job lists."""

    status: JobStatus | None = None
    purpose: JobPurpose | None = None
    customer_name: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    sort_by: JobSortField = JobSortField.CREATED
    descending: bool = True
    skip: int = Field(default=0, ge=0)
    take: int = Field(default=50, ge=1, le=500)
