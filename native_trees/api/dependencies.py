"""
Dependency injection for FastAPI.
"""
from typing import Annotated
from fastapi import Depends

from native_trees.config import settings
from native_trees.infrastructure.gbif_client import GBIFClient, get_gbif_client
from native_trees.infrastructure.geocoding_client import GeocodingClient, get_geocoding_client
from native_trees.infrastructure.species_store import SpeciesStore, get_species_store
from native_trees.services.application.enrichment_fetcher import EnrichmentFetcher
from native_trees.services.application.species_resolver import SpeciesResolver
from native_trees.services.application.tree_search_service import TreeSearchService
from native_trees.services.domain.location_validator import LocationValidator
from native_trees.services.domain.native_status import STRICT_MODE, NativeStatusEvaluator
from native_trees.services.domain.occurrence_aggregator import OccurrenceAggregator
from native_trees.services.domain.taxon_classifier import TaxonClassifier


def get_tree_search_service(
    gbif_client: Annotated[GBIFClient, Depends(get_gbif_client)],
    geocoder: Annotated[GeocodingClient, Depends(get_geocoding_client)],
    store: Annotated[SpeciesStore, Depends(get_species_store)],
) -> TreeSearchService:
    """
    Dependency factory for TreeSearchService.

    Args:
        gbif_client: Occurrence and detail source (injected)
        geocoder: City/state geocoder (injected)
        store: Species store (injected)

    Returns:
        TreeSearchService instance
    """
    classifier = TaxonClassifier()
    evaluator = NativeStatusEvaluator()
    return TreeSearchService(
        geocoder=geocoder,
        occurrence_source=gbif_client,
        store=store,
        aggregator=OccurrenceAggregator(
            classifier=classifier,
            native_only=evaluator.config.mode == STRICT_MODE,
        ),
        evaluator=evaluator,
        fetcher=EnrichmentFetcher(detail_source=gbif_client, classifier=classifier),
        resolver=SpeciesResolver(store=store),
        validator=LocationValidator(),
        selection_limit=settings.selection_limit,
    )


# Type aliases for cleaner route signatures
TreeSearchServiceDep = Annotated[TreeSearchService, Depends(get_tree_search_service)]
