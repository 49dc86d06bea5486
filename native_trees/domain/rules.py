"""
Versioned rule tables for taxon classification and native-status overrides.

False positives and negatives are corrected by editing
``data/taxon_rules.json``, not the algorithms that consume it. The file is
read once per process into an immutable ``TaxonRules``.
"""
import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Pattern

from native_trees.config import settings

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "data" / "taxon_rules.json"


@dataclass(frozen=True)
class TaxonRules:
    """Lookup structures for the classifier, evaluator and location validator."""

    version: str
    exclusion_keywords: frozenset[str]
    exception_keywords: frozenset[str]
    tree_families: frozenset[str]
    tree_keywords: frozenset[str]
    tree_genera: frozenset[str]
    invasive_blocklist: frozenset[str]
    invalid_city_patterns: tuple[Pattern[str], ...]

    @classmethod
    def from_dict(cls, data: dict) -> "TaxonRules":
        """
        Build rules from a parsed rule file.

        Keywords, families, genera and blocklisted names are lower-cased so
        that matching is case-insensitive.
        """
        def lowered(key: str) -> frozenset[str]:
            return frozenset(item.strip().lower() for item in data.get(key, []))

        return cls(
            version=str(data.get("version", "unversioned")),
            exclusion_keywords=lowered("exclusion_keywords"),
            exception_keywords=lowered("exception_keywords"),
            tree_families=lowered("tree_families"),
            tree_keywords=lowered("tree_keywords"),
            tree_genera=lowered("tree_genera"),
            invasive_blocklist=lowered("invasive_blocklist"),
            invalid_city_patterns=tuple(
                re.compile(pattern, re.IGNORECASE)
                for pattern in data.get("invalid_city_patterns", [])
            ),
        )


def load_taxon_rules(path: Optional[Path] = None) -> TaxonRules:
    """
    Load rules from a JSON file.

    Args:
        path: Rule file location; defaults to the bundled rule file

    Returns:
        TaxonRules instance
    """
    rules_path = Path(path) if path else DEFAULT_RULES_PATH
    with rules_path.open(encoding="utf-8") as fh:
        rules = TaxonRules.from_dict(json.load(fh))
    logger.info(f"Loaded taxon rules v{rules.version} from {rules_path}")
    return rules


@lru_cache(maxsize=1)
def get_taxon_rules() -> TaxonRules:
    """Process-wide rules, honouring the ``taxon_rules_path`` setting."""
    return load_taxon_rules(settings.taxon_rules_path)


def canonical_name(scientific_name: str) -> str:
    """Genus and species epithet, dropping authority and infraspecific parts."""
    return " ".join(scientific_name.split()[:2])
