"""Per-category cache staleness."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

from siteeval.core.types import ALL_CATEGORIES, Category, parse_category
from siteeval.locations.models import Location

DEFAULT_MAX_AGE_HOURS = 24.0


def is_stale(
    location: Location,
    category: Category | str,
    max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
    now: datetime | None = None,
) -> bool:
    """True if the category was never fetched or is older than ``max_age_hours``."""
    cached_at = location.cached_at(parse_category(category))
    if cached_at is None:
        return True
    now = now or datetime.now(timezone.utc)
    return now - cached_at > timedelta(hours=max_age_hours)


def categories_to_refresh(
    location: Location,
    categories: Iterable[Category | str] | None = None,
    max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
    now: datetime | None = None,
) -> list[Category]:
    """Categories a refresh should fetch.

    An explicit list is always refetched in full, regardless of cache age.
    With no list, every stale or absent category is selected.
    """
    if categories is not None:
        selected: list[Category] = []
        for value in categories:
            category = parse_category(value)
            if category not in selected:
                selected.append(category)
        return selected

    now = now or datetime.now(timezone.utc)
    return [c for c in ALL_CATEGORIES if is_stale(location, c, max_age_hours, now)]
