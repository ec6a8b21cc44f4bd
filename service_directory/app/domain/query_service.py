"""
Query service coordinating the cache and the upstream directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple

from shared.errors import InvalidArgument
from shared.logging import get_logger

from ..adapters.universities_client import UniversitiesClient
from ..caching.cache_store import CacheStore
from .normalizer import extract_distinct_countries, transform

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_CACHE_TTL_SECONDS = 15 * 60
MAX_COUNTRY_LENGTH = 100
COUNTRIES_CACHE_KEY = "countries-list"


@dataclass(frozen=True)
class LookupResult:
    """Payload of a lookup and whether it was served from the cache."""

    data: Tuple[Any, ...]
    from_cache: bool


def validate_country(country: Any) -> str:
    """Return ``country`` unchanged or raise ``InvalidArgument``."""
    if country is None or country == "":
        raise InvalidArgument("Country parameter is required")
    if not isinstance(country, str) or len(country) > MAX_COUNTRY_LENGTH:
        raise InvalidArgument("Invalid country parameter", details={"max_length": MAX_COUNTRY_LENGTH})
    return country


def universities_cache_key(country: str, name: Optional[str] = None) -> str:
    """Cache key for a university search; case-insensitive on both inputs."""
    return f"{country.lower()}-{(name or '').lower()}"


class DirectoryQueryService:
    """Serves directory lookups from the cache, refreshing from upstream on miss.

    An entry is fresh while ``now - recorded_at < ttl``. Stale entries are
    kept until a refresh succeeds, and upstream failures propagate to the
    caller without touching the cache. Concurrent misses on one key each
    call upstream; the last write wins.
    """

    def __init__(
        self,
        client: UniversitiesClient,
        cache: CacheStore,
        *,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.clock = clock or cache.clock
        self.metrics = metrics
        self.logger = get_logger("directory.query_service")

    async def lookup_universities(self, country: Any, name: Optional[str] = None) -> LookupResult:
        """Universities in ``country``, optionally filtered by name substring."""
        validate_country(country)
        key = universities_cache_key(country, name)

        cached = self._fresh_payload(key, "universities")
        if cached is not None:
            return LookupResult(data=cached, from_cache=True)

        raw_records = await self.client.fetch_universities(country, name)
        records = [transform(raw) for raw in raw_records]
        entry = self._store(key, records)
        return LookupResult(data=entry.payload, from_cache=False)

    async def lookup_countries(self) -> LookupResult:
        """Distinct country names known to the directory, sorted ascending."""
        cached = self._fresh_payload(COUNTRIES_CACHE_KEY, "countries")
        if cached is not None:
            return LookupResult(data=cached, from_cache=True)

        raw_records = await self.client.fetch_all_for_country_list()
        entry = self._store(COUNTRIES_CACHE_KEY, extract_distinct_countries(raw_records))
        return LookupResult(data=entry.payload, from_cache=False)

    def is_fresh(self, recorded_at: float) -> bool:
        return self.clock() - recorded_at < self.ttl_seconds

    def _fresh_payload(self, key: str, cache_type: str) -> Optional[Tuple[Any, ...]]:
        entry = self.cache.get(key)
        hit = entry is not None and self.is_fresh(entry.recorded_at)
        if self.metrics:
            self.metrics.record_cache_access(cache_type, hit)

        if hit:
            self.logger.debug("Cache hit", key=key)
            return entry.payload
        if entry is not None:
            self.logger.info("Cache entry stale, refreshing", key=key, age_seconds=round(entry.age(self.clock()), 3))
        else:
            self.logger.debug("Cache miss", key=key)
        return None

    def _store(self, key: str, payload):
        entry = self.cache.set(key, payload)
        if self.metrics:
            self.metrics.set_gauge("cache_entries", len(self.cache))
        self.logger.info("Cache refreshed", key=key, items=len(entry.payload))
        return entry
