"""
Unit tests for batched enrichment.

Tests cover:
- Output alignment with input keys
- Independent per-key failures
- Bounded concurrency within a batch
- Pacing between batches only
- Second-pass tree classification
"""
import asyncio
import pytest

from native_trees.infrastructure.external_api_client import (
    ExternalAPIError,
    UpstreamUnavailableError,
)
from native_trees.services.application.enrichment_fetcher import EnrichmentFetcher
from conftest import FakeDetailSource, make_detail


class ConcurrencyTrackingSource:
    """Detail source that records how many lookups are in flight at once."""

    def __init__(self):
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_species_details(self, taxon_key: str):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.001)
        self.in_flight -= 1
        return make_detail(taxon_key, "Quercus alba", "White Oak")


class FlakySource(FakeDetailSource):
    """Raises a configured error for selected keys."""

    def __init__(self, details, errors):
        super().__init__(details)
        self.errors = errors

    async def get_species_details(self, taxon_key: str):
        if taxon_key in self.errors:
            raise self.errors[taxon_key]
        return await super().get_species_details(taxon_key)


# ============================================================
# Result Alignment Tests
# ============================================================

class TestEnrich:
    """Tests for the raw enrichment call."""

    @pytest.mark.asyncio
    async def test_one_result_per_key_in_order(self, classifier):
        source = FakeDetailSource({
            str(k): make_detail(str(k), "Quercus alba", "White Oak") for k in range(1, 8)
        })
        fetcher = EnrichmentFetcher(source, classifier, batch_size=3, batch_delay_seconds=0)

        results = await fetcher.enrich([str(k) for k in range(1, 8)])

        assert [r.external_id for r in results] == [str(k) for k in range(1, 8)]

    @pytest.mark.asyncio
    async def test_failures_are_independent(self, classifier):
        details = {k: make_detail(k, "Acer rubrum", "Red Maple") for k in ("1", "2", "3", "4", "5")}
        source = FlakySource(details, {
            "2": UpstreamUnavailableError("timeout"),
            "4": ExternalAPIError("bad request", status_code=400),
            "5": ValueError("missing scientificName"),
        })
        fetcher = EnrichmentFetcher(source, classifier, batch_size=3, batch_delay_seconds=0)

        results = await fetcher.enrich(["1", "2", "3", "4", "5", "404"])

        assert [r.external_id if r else None for r in results] == ["1", None, "3", None, None, None]

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_calls(self, classifier):
        source = FakeDetailSource({})
        fetcher = EnrichmentFetcher(source, classifier, batch_size=3, batch_delay_seconds=0)

        assert await fetcher.enrich([]) == []
        assert source.requested == []


# ============================================================
# Batching Tests
# ============================================================

class TestBatching:
    """Tests for concurrency bounds and pacing."""

    @pytest.mark.asyncio
    async def test_concurrency_bounded_by_batch_size(self, classifier):
        source = ConcurrencyTrackingSource()
        fetcher = EnrichmentFetcher(source, classifier, batch_size=3, batch_delay_seconds=0)

        await fetcher.enrich([str(k) for k in range(10)])

        assert source.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_delay_only_between_batches(self, classifier, monkeypatch):
        real_sleep = asyncio.sleep
        pauses = []

        async def recording_sleep(delay, *args, **kwargs):
            if delay == 0.15:
                pauses.append(delay)
            await real_sleep(0)

        monkeypatch.setattr(asyncio, "sleep", recording_sleep)
        source = FakeDetailSource({str(k): make_detail(str(k), "Acer rubrum") for k in range(7)})
        fetcher = EnrichmentFetcher(source, classifier, batch_size=3, batch_delay_seconds=0.15)

        await fetcher.enrich([str(k) for k in range(7)])

        # 7 keys in batches of 3 -> 3 batches -> 2 pauses
        assert pauses == [0.15, 0.15]

    @pytest.mark.asyncio
    async def test_single_batch_has_no_pause(self, classifier, monkeypatch):
        real_sleep = asyncio.sleep
        pauses = []

        async def recording_sleep(delay, *args, **kwargs):
            pauses.append(delay)
            await real_sleep(0)

        monkeypatch.setattr(asyncio, "sleep", recording_sleep)
        source = FakeDetailSource({str(k): make_detail(str(k), "Acer rubrum") for k in range(3)})
        fetcher = EnrichmentFetcher(source, classifier, batch_size=5, batch_delay_seconds=0.15)

        await fetcher.enrich(["0", "1", "2"])

        assert pauses == []

    def test_defaults_from_settings(self, classifier):
        fetcher = EnrichmentFetcher(FakeDetailSource({}), classifier)

        assert 3 <= fetcher.batch_size <= 5
        assert 0.1 <= fetcher.batch_delay_seconds <= 0.2


# ============================================================
# Second-Pass Classification Tests
# ============================================================

class TestEnrichTrees:
    """Tests for re-classification on enriched data."""

    @pytest.mark.asyncio
    async def test_drops_failures_and_non_trees(self, classifier):
        source = FakeDetailSource({
            "1": make_detail("1", "Quercus alba", "White Oak", "Fagaceae"),
            "2": make_detail("2", "Rubus allegheniensis", "Common Blackberry", "Rosaceae"),
            "3": make_detail("3", "Prunus virginiana", "Chokecherry", "Rosaceae"),
            "4": make_detail("4", "Acer rubrum", "Red Maple", "Sapindaceae"),
        })
        fetcher = EnrichmentFetcher(source, classifier, batch_size=3, batch_delay_seconds=0)

        trees = await fetcher.enrich_trees(["4", "1", "2", "3", "missing"])

        assert [d.external_id for d in trees] == ["4", "1", "3"]

    @pytest.mark.asyncio
    async def test_eastern_common_names_survive(self, classifier):
        source = FakeDetailSource({
            "5": make_detail("5", "Pinus strobus", "Eastern White Pine", "Pinaceae"),
            "6": make_detail("6", "Cercis canadensis", "Eastern Redbud", "Fabaceae"),
        })
        fetcher = EnrichmentFetcher(source, classifier, batch_size=3, batch_delay_seconds=0)

        trees = await fetcher.enrich_trees(["5", "6"])

        assert [d.external_id for d in trees] == ["5", "6"]
