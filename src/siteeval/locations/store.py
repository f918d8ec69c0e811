"""In-memory store for canonical locations."""

from __future__ import annotations

from typing import Callable

from siteeval.locations.models import Location


class LocationStore:
    """In-memory dict store for locations, suitable for single-process use."""

    def __init__(self) -> None:
        self._locations: dict[str, Location] = {}

    def get_by_id(self, location_id: str) -> Location | None:
        return self._locations.get(location_id)

    def find(self, predicate: Callable[[Location], bool]) -> list[Location]:
        return [loc for loc in self._locations.values() if predicate(loc)]

    def insert(self, location: Location) -> None:
        if location.id in self._locations:
            raise ValueError(f"Location {location.id} already exists")
        self._locations[location.id] = location

    def update(self, location: Location) -> None:
        if location.id not in self._locations:
            raise KeyError(f"Location {location.id} not found")
        self._locations[location.id] = location

    def list_all(self) -> list[Location]:
        return list(self._locations.values())

    @property
    def location_count(self) -> int:
        return len(self._locations)
