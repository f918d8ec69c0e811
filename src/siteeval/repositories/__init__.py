"""Repository layer for locations and evaluation jobs.

Provides protocol interfaces and a resolve() helper that transparently
handles both sync (in-memory) and async (database-backed) store returns.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, TypeVar

T = TypeVar("T")


async def resolve(value: T | Awaitable[T]) -> T:
    """Await a value if it is awaitable, otherwise return it directly.

    This allows services to call store methods uniformly:
        location = await resolve(store.get_by_id(location_id))

    In-memory stores return plain values; database repositories return
    coroutines.
    """
    if inspect.isawaitable(value):
        return await value  # type: ignore[return-value]
    return value  # type: ignore[return-value]
