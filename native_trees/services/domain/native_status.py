"""
Domain service: native-status evaluation over an establishment-means histogram.

Most occurrences carry no establishment-means label at all and land in the
UNKNOWN bucket. A taxon is therefore included when either a strict majority
of its occurrences are labelled native, or fewer than a fifth are explicitly
labelled introduced, invasive or naturalised. Known invasive ornamentals
whose labels are unreliable are caught up front by a blocklist.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from native_trees.config import settings
from native_trees.domain.models import (
    INTRODUCED_CATEGORIES,
    EstablishmentMeans,
    TaxonAggregate,
)
from native_trees.domain.rules import TaxonRules, canonical_name, get_taxon_rules

logger = logging.getLogger(__name__)

MAJORITY_MODE = "majority"
STRICT_MODE = "strict"


@dataclass
class NativeStatusConfig:
    """Configuration for native-status evaluation."""

    mode: str = MAJORITY_MODE
    """'majority' votes across all occurrences; 'strict' expects a native-only aggregate"""

    native_percent_threshold: float = 0.5
    """Native share that must be strictly exceeded"""

    introduced_percent_threshold: float = 0.2
    """Introduced share that must not be reached"""

    @classmethod
    def from_settings(cls) -> "NativeStatusConfig":
        return cls(
            mode=settings.native_status_mode,
            native_percent_threshold=settings.native_percent_threshold,
            introduced_percent_threshold=settings.introduced_percent_threshold,
        )


class NativeStatusEvaluator:
    """Decides whether an aggregated taxon is likely native to the searched location."""

    def __init__(
        self,
        config: Optional[NativeStatusConfig] = None,
        rules: Optional[TaxonRules] = None,
    ):
        self.config = config or NativeStatusConfig.from_settings()
        self.rules = rules or get_taxon_rules()
        if self.config.mode not in (MAJORITY_MODE, STRICT_MODE):
            raise ValueError(f"Unknown native status mode: {self.config.mode}")

    def is_blocklisted(self, name: str) -> bool:
        return name.lower() in self.rules.invasive_blocklist

    def is_native(self, aggregate: TaxonAggregate, name: Optional[str] = None) -> bool:
        """
        Evaluate native status for one aggregate.

        Args:
            aggregate: Aggregated occurrences for a taxon
            name: Canonical name; derived from the aggregate when omitted

        Returns:
            True if the taxon should be kept as native
        """
        name = name or canonical_name(aggregate.scientific_name)
        if self.is_blocklisted(name):
            logger.debug(f"{name} is on the invasive blocklist")
            return False

        total = aggregate.total_occurrence_count
        if total <= 0:
            return False

        native_count = aggregate.count(EstablishmentMeans.NATIVE)

        if self.config.mode == STRICT_MODE:
            return native_count > 0

        introduced_count = aggregate.count(*INTRODUCED_CATEGORIES)
        native_percent = native_count / total
        introduced_percent = introduced_count / total

        return (
            native_percent > self.config.native_percent_threshold
            or introduced_percent < self.config.introduced_percent_threshold
        )
