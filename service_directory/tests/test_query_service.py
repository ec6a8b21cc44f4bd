"""
Unit tests for the directory query service.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from service_directory.app.caching.cache_store import CacheStore
from service_directory.app.domain.normalizer import UniversityRecord
from service_directory.app.domain.query_service import (
    COUNTRIES_CACHE_KEY,
    DirectoryQueryService,
    universities_cache_key,
    validate_country,
)
from shared.errors import InvalidArgument, UpstreamHTTPError, UpstreamTimeout
from shared.metrics import MetricsCollector
from shared.test_helpers import FakeClock, TestDataFactory


TTL = 15 * 60


class TestDirectoryQueryService:
    """Test cases for DirectoryQueryService."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return CacheStore(clock=clock)

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.fetch_universities = AsyncMock(return_value=[TestDataFactory.create_university()])
        client.fetch_all_for_country_list = AsyncMock(
            return_value=[{"country": "USA"}, {"country": "Japan"}, {"country": "usa"}, {"country": "Japan"}]
        )
        return client

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("directory")

    @pytest.fixture
    def service(self, client, cache, metrics):
        return DirectoryQueryService(client, cache, ttl_seconds=TTL, metrics=metrics)

    @pytest.mark.asyncio
    async def test_miss_fetches_normalizes_and_caches(self, service, client, cache):
        result = await service.lookup_universities("China")

        assert result.from_cache is False
        assert result.data == (
            UniversityRecord(
                name="Tsinghua University",
                country="China",
                country_code="CN",
                domains=("tsinghua.edu.cn",),
                web_pages=("https://www.tsinghua.edu.cn/",),
                state_province=None,
            ),
        )
        client.fetch_universities.assert_awaited_once_with("China", None)
        assert cache.get("china-").payload == result.data

    @pytest.mark.asyncio
    async def test_second_call_within_ttl_is_served_from_cache(self, service, client, clock):
        first = await service.lookup_universities("China", "Tsing")
        clock.advance(TTL - 1)
        second = await service.lookup_universities("China", "Tsing")

        assert second.from_cache is True
        assert second.data == first.data
        client.fetch_universities.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_country_is_case_insensitive_for_cache(self, service, client):
        await service.lookup_universities("Japan")
        result = await service.lookup_universities("japan")

        assert result.from_cache is True
        client.fetch_universities.assert_awaited_once_with("Japan", None)

    @pytest.mark.asyncio
    async def test_empty_name_shares_key_with_no_name(self, service, client):
        await service.lookup_universities("China", "")
        result = await service.lookup_universities("China")

        assert result.from_cache is True
        assert client.fetch_universities.await_count == 1

    @pytest.mark.asyncio
    async def test_different_names_use_different_keys(self, service, client, cache):
        await service.lookup_universities("China", "Tsing")
        await service.lookup_universities("China", "Peking")

        assert client.fetch_universities.await_count == 2
        assert "china-tsing" in cache
        assert "china-peking" in cache

    @pytest.mark.asyncio
    async def test_expired_entry_triggers_refresh(self, service, client, clock, cache):
        await service.lookup_universities("China")
        clock.advance(TTL)

        result = await service.lookup_universities("China")

        assert result.from_cache is False
        assert client.fetch_universities.await_count == 2
        assert cache.get("china-").recorded_at == clock.now

    @pytest.mark.asyncio
    async def test_timeout_keeps_stale_entry_untouched(self, service, client, clock, cache):
        await service.lookup_universities("China")
        original = cache.get("china-")
        clock.advance(TTL + 60)
        client.fetch_universities.side_effect = UpstreamTimeout()

        with pytest.raises(UpstreamTimeout):
            await service.lookup_universities("China")

        assert cache.get("china-") is original
        assert not service.is_fresh(original.recorded_at)

    @pytest.mark.asyncio
    async def test_failed_refresh_does_not_serve_stale_data(self, service, client, clock):
        await service.lookup_universities("China")
        clock.advance(TTL)
        client.fetch_universities.side_effect = UpstreamHTTPError(502, "Invalid data received from API")

        with pytest.raises(UpstreamHTTPError):
            await service.lookup_universities("China")

    @pytest.mark.asyncio
    async def test_invalid_body_does_not_write_cache(self, service, client, cache):
        client.fetch_universities.side_effect = UpstreamHTTPError(502, "Invalid data received from API")

        with pytest.raises(UpstreamHTTPError) as exc_info:
            await service.lookup_universities("China")

        assert exc_info.value.status_code == 502
        assert len(cache) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("country", [None, "", 42, ["China", "Japan"], "x" * 101])
    async def test_invalid_country_never_reaches_upstream(self, service, client, country):
        with pytest.raises(InvalidArgument):
            await service.lookup_universities(country)

        client.fetch_universities.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_country_at_length_limit_is_accepted(self, service, client):
        await service.lookup_universities("x" * 100)

        client.fetch_universities.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lookup_countries_sorted_distinct(self, service, client, cache):
        result = await service.lookup_countries()

        assert result.from_cache is False
        assert list(result.data) == ["Japan", "USA", "usa"]
        assert cache.get(COUNTRIES_CACHE_KEY).payload == ("Japan", "USA", "usa")

    @pytest.mark.asyncio
    async def test_lookup_countries_cached_then_expires(self, service, client, clock):
        await service.lookup_countries()
        cached = await service.lookup_countries()
        clock.advance(TTL + 1)
        refreshed = await service.lookup_countries()

        assert cached.from_cache is True
        assert refreshed.from_cache is False
        assert client.fetch_all_for_country_list.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_cold_misses_both_call_upstream(self, service, client, cache):
        async def _slow_fetch(country, name):
            await asyncio.sleep(0.01)
            return [TestDataFactory.create_university(country=country)]

        client.fetch_universities.side_effect = _slow_fetch

        first, second = await asyncio.gather(
            service.lookup_universities("China"),
            service.lookup_universities("CHINA"),
        )

        assert client.fetch_universities.await_count == 2
        assert first.from_cache is False and second.from_cache is False
        assert cache.get("china-").payload in (first.data, second.data)
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_records_cache_metrics(self, service, metrics):
        await service.lookup_universities("China")
        await service.lookup_universities("China")

        registry = metrics.registry
        assert registry.get_sample_value("cache_misses_total", {"cache_type": "universities"}) == 1.0
        assert registry.get_sample_value("cache_hits_total", {"cache_type": "universities"}) == 1.0
        assert registry.get_sample_value("cache_entries") == 1.0


def test_universities_cache_key():
    assert universities_cache_key("Japan") == "japan-"
    assert universities_cache_key("Japan", "") == "japan-"
    assert universities_cache_key("United States", "MIT") == "united states-mit"


def test_validate_country_messages():
    with pytest.raises(InvalidArgument, match="Country parameter is required"):
        validate_country(None)
    with pytest.raises(InvalidArgument, match="Invalid country parameter"):
        validate_country("x" * 101)
    assert validate_country("Chile") == "Chile"
