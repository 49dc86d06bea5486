"""
Domain service: fold raw occurrences into per-taxon aggregates.
"""
import logging
from functools import lru_cache
from typing import Dict, Iterable, Optional

from native_trees.domain.models import EstablishmentMeans, OccurrenceRecord, TaxonAggregate
from native_trees.services.domain.taxon_classifier import TaxonClassifier

logger = logging.getLogger(__name__)


def _pick(current: Optional[str], candidate: Optional[str]) -> Optional[str]:
    """Order-independent choice between two optional labels."""
    if current is None:
        return candidate
    if candidate is None:
        return current
    return min(current, candidate)


class OccurrenceAggregator:
    """
    Streaming fold of occurrences into ``TaxonAggregate`` objects.

    Each occurrence is classified on its own metadata and non-trees are
    discarded as they stream past. Accumulation is commutative: counts are
    sums and descriptive labels are merged with ``min``, so the result does
    not depend on input order.
    """

    def __init__(
        self,
        classifier: Optional[TaxonClassifier] = None,
        native_only: bool = False,
    ):
        """
        Initialize the aggregator.

        Args:
            classifier: Tree classifier used for early pruning
            native_only: Drop every occurrence not labelled NATIVE (strict mode)
        """
        self.classifier = classifier or TaxonClassifier()
        self.native_only = native_only

    def aggregate(self, occurrences: Iterable[OccurrenceRecord]) -> Dict[str, TaxonAggregate]:
        """
        Collapse occurrences into aggregates keyed by taxon key.

        Args:
            occurrences: Raw occurrence records

        Returns:
            Mapping of taxon key to TaxonAggregate
        """
        # Occurrence lists repeat the same taxon metadata many times over.
        is_tree = lru_cache(maxsize=None)(self.classifier.is_likely_tree)
        aggregates: Dict[str, TaxonAggregate] = {}
        seen = skipped = 0

        for occ in occurrences:
            seen += 1
            if not occ.taxon_key or not occ.scientific_name:
                skipped += 1
                continue
            if self.native_only and occ.establishment_means is not EstablishmentMeans.NATIVE:
                skipped += 1
                continue
            if not is_tree(occ.scientific_name, occ.family, occ.vernacular_name):
                skipped += 1
                continue

            aggregate = aggregates.get(occ.taxon_key)
            if aggregate is None:
                aggregate = TaxonAggregate(
                    taxon_key=occ.taxon_key,
                    scientific_name=occ.scientific_name,
                    family=occ.family,
                    vernacular_name=occ.vernacular_name,
                )
                aggregates[occ.taxon_key] = aggregate
            else:
                aggregate.scientific_name = _pick(aggregate.scientific_name, occ.scientific_name)
                aggregate.family = _pick(aggregate.family, occ.family)
                aggregate.vernacular_name = _pick(aggregate.vernacular_name, occ.vernacular_name)

            aggregate.add(occ.establishment_means)

        logger.info(
            f"Aggregated {seen} occurrences into {len(aggregates)} tree taxa "
            f"({skipped} skipped)"
        )
        return aggregates
