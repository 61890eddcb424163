from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class CacheState(str, Enum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


@dataclass
class CacheSlot(Generic[T]):
    """In-memory single-value cache with TTL.

    One slot holds a whole dataset (e.g. "all hawker centres"): the upstream
    feeds cannot be filtered by location, so there is nothing to key on.

    A STALE slot still keeps its value so callers can fall back to it when
    a refresh fails.
    """
    ttl_seconds: float
    value: Optional[T] = None
    fetched_at: Optional[float] = None

    def state(self, now: float) -> CacheState:
        if self.value is None or self.fetched_at is None:
            return CacheState.EMPTY
        if (now - self.fetched_at) < self.ttl_seconds:
            return CacheState.FRESH
        return CacheState.STALE

    def age(self, now: float) -> Optional[float]:
        if self.fetched_at is None:
            return None
        return now - self.fetched_at

    def store(self, value: T, now: float) -> None:
        self.value = value
        self.fetched_at = now

    def clear(self) -> None:
        self.value = None
        self.fetched_at = None
