"""
Domain service: decide whether a taxon is likely a tree.

Rules are evaluated in order and the first match wins:
1. Vernacular name contains an exclusion keyword and no exception keyword -> not a tree
2. Family is a known tree family -> tree
3. Vernacular name contains a tree keyword -> tree
4. Genus is a known tree genus -> tree
5. Otherwise -> not a tree

Exclusion keywords only count at the start or end of a word, so compounds
like "Blackberry" and "Switchgrass" are caught while "Eastern" does not
match "aster".
"""
import logging
import re
from typing import Iterable, Optional, Pattern

from native_trees.domain.rules import TaxonRules, get_taxon_rules

logger = logging.getLogger(__name__)


def _word_edge_pattern(keywords: Iterable[str]) -> Optional[Pattern[str]]:
    alternatives = "|".join(re.escape(kw) for kw in sorted(keywords, key=len, reverse=True))
    if not alternatives:
        return None
    return re.compile(rf"\b(?:{alternatives})|(?:{alternatives})\b")


class TaxonClassifier:
    """
    Keyword, family and genus based tree classifier.

    Pure and deterministic for a given rule set. Applied once on occurrence
    metadata and again on enriched detail, since vernacular names differ
    between sources.
    """

    def __init__(self, rules: Optional[TaxonRules] = None):
        self.rules = rules or get_taxon_rules()
        self._exclusion_re = _word_edge_pattern(self.rules.exclusion_keywords)

    def is_likely_tree(
        self,
        scientific_name: str,
        family: Optional[str] = None,
        vernacular_name: Optional[str] = None,
    ) -> bool:
        """
        Classify a taxon as a likely tree.

        Args:
            scientific_name: Full scientific name (authority suffix allowed)
            family: Taxonomic family, if known
            vernacular_name: Common name, if known

        Returns:
            True if the taxon is likely a tree
        """
        vernacular = (vernacular_name or "").lower()

        if vernacular and self._is_excluded(vernacular):
            return False

        if family and family.strip().lower() in self.rules.tree_families:
            return True

        if vernacular and any(kw in vernacular for kw in self.rules.tree_keywords):
            return True

        tokens = (scientific_name or "").split()
        if tokens and tokens[0].lower() in self.rules.tree_genera:
            return True

        return False

    def _is_excluded(self, vernacular: str) -> bool:
        if self._exclusion_re is None or not self._exclusion_re.search(vernacular):
            return False
        return not any(kw in vernacular for kw in self.rules.exception_keywords)
