"""
Domain service: rank surviving taxa by strength of evidence.
"""
from typing import Iterable, List

from native_trees.domain.models import TaxonAggregate


def _taxon_key_order(key: str):
    # Numeric keys sort numerically, ahead of any non-numeric ones.
    return (0, int(key), "") if key.isdigit() else (1, 0, key)


def select_top_taxa(aggregates: Iterable[TaxonAggregate], limit: int) -> List[str]:
    """
    Order taxa by occurrence count and keep the strongest.

    Ties are broken by taxon key ascending so the ranking is reproducible.

    Args:
        aggregates: Aggregates that passed native-status evaluation
        limit: Maximum number of taxon keys to return

    Returns:
        Taxon keys, strongest evidence first
    """
    if limit <= 0:
        return []
    ranked = sorted(
        aggregates,
        key=lambda a: (-a.total_occurrence_count, _taxon_key_order(a.taxon_key)),
    )
    return [a.taxon_key for a in ranked[:limit]]
