"""
Domain service: reject city names that cannot be a real place.

A rejected city short-circuits the search to an empty result; it is not
an error.
"""
import logging
from typing import Optional

from native_trees.domain.rules import TaxonRules, get_taxon_rules

logger = logging.getLogger(__name__)


class LocationValidator:
    """Well-formedness check for city names, driven by the rule file patterns."""

    def __init__(self, rules: Optional[TaxonRules] = None):
        self.rules = rules or get_taxon_rules()

    def is_valid_city(self, city: str) -> bool:
        if not city or not city.strip():
            return False
        for pattern in self.rules.invalid_city_patterns:
            if pattern.search(city):
                logger.info(f"Rejecting city name {city!r} (matched {pattern.pattern!r})")
                return False
        return True
