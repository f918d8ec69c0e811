"""Completeness scoring of a Location's cached sections.

Each category is Missing (nothing cached), Partial (cached but its key
evidence field is empty) or Complete. The percentage counts a Partial
section as half a Complete one, so adding data never lowers the score.
"""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, Field

from siteeval.core.types import ALL_CATEGORIES, Category, CompletenessStatus
from siteeval.locations.models import Location

PARTIAL_WEIGHT = 0.5


def _zone_code(zoning: Any) -> bool:
    return bool(zoning.zone_code)


def _flood_zone(hazards: Any) -> bool:
    return hazards.flooding is not None and bool(hazards.flooding.zone)


def _boreholes(geotech: Any) -> bool:
    return len(geotech.boreholes) > 0


def _water(infrastructure: Any) -> bool:
    return infrastructure.water is not None


def _wind_zone(climate: Any) -> bool:
    return bool(climate.wind_zone)


def _title_reference(land: Any) -> bool:
    return bool(land.title_reference)


KEY_EVIDENCE: dict[Category, tuple[str, Callable[[Any], bool]]] = {
    Category.ZONING: ("zone_code", _zone_code),
    Category.HAZARDS: ("flooding.zone", _flood_zone),
    Category.GEOTECH: ("boreholes", _boreholes),
    Category.INFRASTRUCTURE: ("water", _water),
    Category.CLIMATE: ("wind_zone", _wind_zone),
    Category.LAND: ("title_reference", _title_reference),
}


class SectionCompleteness(BaseModel):
    status: CompletenessStatus
    evidence_field: str


class CompletenessReport(BaseModel):
    sections: dict[Category, SectionCompleteness] = Field(default_factory=dict)
    complete_count: int = 0
    partial_count: int = 0
    missing_count: int = 0
    percent: float = 0.0

    def status_of(self, category: Category) -> CompletenessStatus:
        return self.sections[category].status


def classify(category: Category, payload: Any) -> CompletenessStatus:
    """Classify one cached payload against its key evidence field."""
    if payload is None:
        return CompletenessStatus.MISSING
    _, has_evidence = KEY_EVIDENCE[category]
    if has_evidence(payload):
        return CompletenessStatus.COMPLETE
    return CompletenessStatus.PARTIAL


def score_location(location: Location) -> CompletenessReport:
    report = CompletenessReport()
    for category in ALL_CATEGORIES:
        status = classify(category, location.cached(category))
        report.sections[category] = SectionCompleteness(
            status=status, evidence_field=KEY_EVIDENCE[category][0]
        )
        if status == CompletenessStatus.COMPLETE:
            report.complete_count += 1
        elif status == CompletenessStatus.PARTIAL:
            report.partial_count += 1
        else:
            report.missing_count += 1

    weighted = report.complete_count + PARTIAL_WEIGHT * report.partial_count
    report.percent = round(weighted / len(ALL_CATEGORIES) * 100, 1)
    return report
