"""
Application service: batched, paced enrichment of selected taxa.
"""
import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

from native_trees.config import settings
from native_trees.domain.models import DetailRecord
from native_trees.infrastructure.external_api_client import (
    DetailNotFoundError,
    ExternalAPIError,
)
from native_trees.services.domain.taxon_classifier import TaxonClassifier

logger = logging.getLogger(__name__)


class DetailSource(Protocol):
    async def get_species_details(self, taxon_key: str) -> DetailRecord: ...


class EnrichmentFetcher:
    """
    Fetches detail records in fixed-size concurrent batches.

    Lookups within a batch run concurrently; a fixed pause separates
    consecutive batches. Each lookup fails on its own without affecting
    its neighbours.
    """

    def __init__(
        self,
        detail_source: DetailSource,
        classifier: Optional[TaxonClassifier] = None,
        batch_size: Optional[int] = None,
        batch_delay_seconds: Optional[float] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            detail_source: Client providing ``get_species_details``
            classifier: Classifier for the second-pass tree check
            batch_size: Lookups per batch (defaults to settings)
            batch_delay_seconds: Pause between batches (defaults to settings)
        """
        self.detail_source = detail_source
        self.classifier = classifier or TaxonClassifier()
        self.batch_size = batch_size or settings.enrichment_batch_size
        self.batch_delay_seconds = (
            batch_delay_seconds
            if batch_delay_seconds is not None
            else settings.enrichment_batch_delay_ms / 1000.0
        )
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    async def enrich(self, taxon_keys: Sequence[str]) -> List[Optional[DetailRecord]]:
        """
        Look up detail for each key.

        Args:
            taxon_keys: Keys in rank order

        Returns:
            One entry per key, in input order; None where the lookup failed
        """
        results: List[Optional[DetailRecord]] = []
        for start in range(0, len(taxon_keys), self.batch_size):
            if start > 0 and self.batch_delay_seconds > 0:
                await asyncio.sleep(self.batch_delay_seconds)
            batch = taxon_keys[start:start + self.batch_size]
            results.extend(await asyncio.gather(*(self._fetch_one(key) for key in batch)))

        failed = sum(1 for r in results if r is None)
        logger.info(f"Enriched {len(results) - failed}/{len(results)} taxa")
        return results

    async def enrich_trees(self, taxon_keys: Sequence[str]) -> List[DetailRecord]:
        """
        Enrich keys and keep only successful lookups that still classify as trees.

        Returns:
            Detail records in input order
        """
        details = await self.enrich(taxon_keys)
        trees = []
        for detail in details:
            if detail is None:
                continue
            if not self.classifier.is_likely_tree(
                detail.scientific_name, detail.family, detail.vernacular_name
            ):
                logger.info(
                    f"Dropping {detail.scientific_name} ({detail.vernacular_name}): "
                    f"not a tree on enriched data"
                )
                continue
            trees.append(detail)
        return trees

    async def _fetch_one(self, taxon_key: str) -> Optional[DetailRecord]:
        try:
            return await self.detail_source.get_species_details(taxon_key)
        except DetailNotFoundError:
            logger.warning(f"No detail found for taxon {taxon_key}")
        except ExternalAPIError as e:
            logger.warning(f"Detail lookup failed for taxon {taxon_key}: {e}")
        except ValueError as e:
            # Pydantic validation: a required field was missing from the response
            logger.warning(f"Incomplete detail for taxon {taxon_key}: {e}")
        return None
