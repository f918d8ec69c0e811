"""Core type definitions shared across all siteeval modules."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field


class Category(StrEnum):
    """Cached data categories held on every Location."""

    ZONING = "zoning"
    HAZARDS = "hazards"
    GEOTECH = "geotech"
    INFRASTRUCTURE = "infrastructure"
    CLIMATE = "climate"
    LAND = "land"


ALL_CATEGORIES: tuple[Category, ...] = tuple(Category)

_CATEGORY_ALIASES: dict[str, Category] = {
    "hazard": Category.HAZARDS,
    "geotechnical": Category.GEOTECH,
    "title": Category.LAND,
}


def parse_category(value: str | Category) -> Category:
    """Normalise a category name, accepting common aliases case-insensitively."""
    if isinstance(value, Category):
        return value
    key = value.strip().lower()
    if key in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[key]
    try:
        return Category(key)
    except ValueError:
        valid = ", ".join(c.value for c in Category)
        raise ValueError(f"Unknown data category {value!r}. Valid: {valid}") from None


class GapSeverity(StrEnum):
    """Severity of a recorded data gap."""

    CRITICAL = "critical"
    WARNING = "warning"


class CompletenessStatus(StrEnum):
    """Classification of a single category's data."""

    MISSING = "missing"
    PARTIAL = "partial"
    COMPLETE = "complete"


class DataSource(BaseModel):
    """Provenance of a data payload."""

    name: str
    url: str | None = None
    data_date: datetime | None = None
    retrieved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str | None = None


class DataGap(BaseModel):
    """A missing or partial data point that may need manual action."""

    section: str
    field: str
    reason: str
    severity: GapSeverity = GapSeverity.WARNING
    suggested_action: str | None = None


class HealthStatus(BaseModel):
    """Health check response for a provider."""

    service: str
    healthy: bool
    details: dict[str, str] = Field(default_factory=dict)
