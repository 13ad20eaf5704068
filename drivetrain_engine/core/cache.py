"""Optional memoisation of setup-level calculations.

The calculators stay pure; :func:`cached` wraps one in a lookup keyed by
:func:`setup_fingerprint`.  Entries are written once, expire after a TTL
and are evicted once the cache grows past ``max_size``: expired entries
first, then the entries with the fewest hits, least recently used first.
"""

from __future__ import annotations

import copy
import functools
import hashlib
import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from drivetrain_engine.core.setup import DrivetrainSetup

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_SIZE: int = 100
DEFAULT_TTL_SECONDS: float = 600.0


def setup_fingerprint(setup: DrivetrainSetup) -> str:
    """Stable SHA-256 key for everything that influences a setup's results.

    Covers the component IDs, wheel setup, crank length, bike type and
    frame geometry overrides.  Keys are serialised as sorted JSON so the
    digest does not depend on insertion order.
    """
    wheel = setup.wheel_setup
    payload = {
        "components": setup.component_ids,
        "bike_type": setup.bike_type,
        "wheel_setup": (
            {
                "tire_size": wheel.tire_size,
                "rim_width": wheel.rim_width,
                "pressure": wheel.pressure,
            }
            if wheel is not None
            else None
        ),
        "crank_length": setup.crank_length,
        "bottom_bracket": setup.bottom_bracket,
        "hub_spacing": setup.hub_spacing,
        "chain_stay_length": setup.chain_stay_length,
    }
    encoded = json.dumps(payload, sort_keys=True).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


@dataclass
class CacheEntry:
    value: Any
    created_at: float
    last_access: float
    hits: int = 0


class GearTableCache:
    """Bounded TTL cache for setup-level results.

    Attributes:
        max_size: Maximum number of live entries.
        ttl_seconds: Lifetime of an entry.
        clock: Monotonic time source, injectable for tests.
        hits: Lookups served from the cache.
        misses: Lookups that had to compute.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be > 0.")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0.")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and not self._expired(entry, self.clock())

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at >= self.ttl_seconds

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """Return the cached value for *key*, computing and storing it if absent.

        Args:
            key: Cache key, usually a :func:`setup_fingerprint`.
            compute: Zero-argument callable producing the value.

        Returns:
            The cached or freshly computed value.
        """
        now = self.clock()
        entry = self._entries.get(key)
        if entry is not None and not self._expired(entry, now):
            entry.hits += 1
            entry.last_access = now
            self._entries.move_to_end(key)
            self.hits += 1
            logger.debug("Cache hit for %s (%d hits)", key[:12], entry.hits)
            return entry.value

        self.misses += 1
        value = compute()
        self._entries[key] = CacheEntry(value=value, created_at=now, last_access=now)
        self._entries.move_to_end(key)
        if len(self._entries) > self.max_size:
            self._evict(now, keep=key)
        return value

    def _evict(self, now: float, keep: str) -> None:
        expired = [k for k, e in self._entries.items() if self._expired(e, now)]
        for key in expired:
            del self._entries[key]

        evicted = 0
        while len(self._entries) > self.max_size:
            # Iteration order is least recently used first; min keeps the first tie.
            victim = min(
                (k for k in self._entries if k != keep),
                key=lambda k: self._entries[k].hits,
            )
            del self._entries[victim]
            evicted += 1

        if expired or evicted:
            logger.info(
                "Evicted %d expired and %d cold cache entries", len(expired), evicted
            )

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict[str, float]:
        """Size, hit and miss counts, and hit rate."""
        lookups = self.hits + self.misses
        return {
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / lookups if lookups else 0.0,
        }


def cached(
    calculator: Callable[[DrivetrainSetup], T], cache: GearTableCache
) -> Callable[[DrivetrainSetup], T]:
    """Wrap a pure ``(setup) -> result`` calculator with *cache*.

    Every call returns a shallow copy of the stored result, so callers may
    sort or clear what they receive without touching the cache.

    Example::

        gears_for = cached(lambda s: calculate_all_gears(s, resolver), cache)
    """

    @functools.wraps(calculator)
    def wrapper(setup: DrivetrainSetup) -> T:
        stored = cache.get_or_compute(
            setup_fingerprint(setup), lambda: calculator(setup)
        )
        return copy.copy(stored)

    return wrapper
