"""
Application service: Orchestration layer for native tree searches.
"""
import logging
from typing import List, Optional, Protocol

from native_trees.config import settings
from native_trees.domain.models import GeoPoint, OccurrenceRecord, SearchResult, SpeciesRecord
from native_trees.infrastructure.species_store import SpeciesStore
from native_trees.services.application.enrichment_fetcher import EnrichmentFetcher
from native_trees.services.application.species_resolver import SpeciesResolver
from native_trees.services.domain.location_validator import LocationValidator
from native_trees.services.domain.native_status import NativeStatusEvaluator
from native_trees.services.domain.occurrence_aggregator import OccurrenceAggregator
from native_trees.services.domain.ranking import select_top_taxa

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    async def geocode(self, city: str, state: str) -> Optional[GeoPoint]: ...


class OccurrenceSource(Protocol):
    async def search_occurrences(self, point: GeoPoint) -> List[OccurrenceRecord]: ...


class TreeSearchService:
    """
    Application service for native tree searches.

    Orchestrates data fetching and business logic execution.
    Follows the application layer pattern - no business logic here,
    only coordination between infrastructure and domain layers.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        occurrence_source: OccurrenceSource,
        store: SpeciesStore,
        aggregator: OccurrenceAggregator,
        evaluator: NativeStatusEvaluator,
        fetcher: EnrichmentFetcher,
        resolver: SpeciesResolver,
        validator: LocationValidator,
        selection_limit: Optional[int] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            geocoder: Resolves city/state to coordinates
            occurrence_source: Fetches raw occurrences around a point
            store: Species cache
            aggregator: Folds occurrences into tree taxa
            evaluator: Native-status filter
            fetcher: Batched detail enrichment
            resolver: Dedups enriched taxa into species records
            validator: City name well-formedness check
            selection_limit: Maximum taxa sent to enrichment
        """
        self.geocoder = geocoder
        self.occurrence_source = occurrence_source
        self.store = store
        self.aggregator = aggregator
        self.evaluator = evaluator
        self.fetcher = fetcher
        self.resolver = resolver
        self.validator = validator
        self.selection_limit = selection_limit or settings.selection_limit

    async def search_native_trees(self, city: str, state: str) -> SearchResult:
        """
        Find native tree species for a location.

        This method orchestrates:
        1. City name well-formedness check
        2. Location cache lookup
        3. Geocoding and occurrence fetch
        4. Aggregation, native-status filtering and ranking
        5. Batched enrichment with a second tree check
        6. Dedup against previously resolved species and persistence

        Args:
            city: City name
            state: Two-letter state code

        Returns:
            SearchResult; empty when nothing survives any stage

        Raises:
            ExternalAPIError: If the geocoder or occurrence source is unavailable
        """
        city, state = city.strip(), state.strip()

        if not self.validator.is_valid_city(city):
            return SearchResult.for_location(city, state, [])

        cached = await self.store.find_by_location(city, state)
        if cached:
            logger.info(f"Cache hit for {city}, {state}: {len(cached)} species")
            return SearchResult.for_location(city, state, cached)

        species = await self._run_pipeline(city, state)
        logger.info(f"Found {len(species)} native tree species for {city}, {state}")
        return SearchResult.for_location(city, state, species)

    async def _run_pipeline(self, city: str, state: str) -> List[SpeciesRecord]:
        point = await self.geocoder.geocode(city, state)
        if point is None:
            return []

        occurrences = await self.occurrence_source.search_occurrences(point)
        if not occurrences:
            logger.info(f"No occurrences found for {city}, {state}")
            return []

        aggregates = self.aggregator.aggregate(occurrences)
        native = [a for a in aggregates.values() if self.evaluator.is_native(a)]
        logger.info(f"{len(native)}/{len(aggregates)} tree taxa pass native-status evaluation")
        if not native:
            return []

        selected = select_top_taxa(native, self.selection_limit)
        details = await self.fetcher.enrich_trees(selected)

        species = []
        for detail in details:
            species.append(await self.resolver.resolve(city, state, detail))
        return species
