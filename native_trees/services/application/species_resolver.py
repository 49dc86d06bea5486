"""
Application service: turn enriched detail into location-scoped species records.
"""
import logging
from typing import Optional

from native_trees.config import settings
from native_trees.domain.models import DetailRecord, SpeciesRecord
from native_trees.infrastructure.species_store import SpeciesStore
from native_trees.utils.text_helpers import truncate_description

logger = logging.getLogger(__name__)

GENERIC_HABITAT_TEMPLATE = (
    "Native to the {state} region. This species is naturally adapted to local "
    "climate conditions and provides important ecosystem services."
)


class SpeciesResolver:
    """
    Deduplicates enriched taxa against the species store by external id.

    A taxon already resolved anywhere is cloned into the new location
    without rebuilding its descriptive fields; otherwise a fresh record is
    derived from the detail.
    """

    def __init__(self, store: SpeciesStore, description_max_length: Optional[int] = None):
        self.store = store
        self.description_max_length = (
            description_max_length or settings.habitat_description_max_length
        )

    async def resolve(self, city: str, state: str, detail: DetailRecord) -> SpeciesRecord:
        """
        Resolve one enriched taxon for a location.

        Args:
            city: City of the search
            state: Two-letter state code
            detail: Enriched taxon detail

        Returns:
            SpeciesRecord scoped to (city, state)
        """
        here = await self.store.find_by_external_id(detail.external_id, city=city, state=state)
        if here is not None:
            return here

        existing = await self.store.find_by_external_id(detail.external_id)
        if existing is not None:
            logger.debug(f"Cloning {existing.scientific_name} from {existing.city}, {existing.state}")
            return await self.store.insert(
                common_name=existing.common_name,
                scientific_name=existing.scientific_name,
                image_url=existing.image_url,
                habitat_description=existing.habitat_description,
                max_height=existing.max_height,
                max_age=existing.max_age,
                external_id=existing.external_id,
                city=city,
                state=state,
            )

        return await self.store.insert(
            common_name=detail.vernacular_name or detail.scientific_name,
            scientific_name=detail.scientific_name,
            image_url=detail.image_url,
            habitat_description=self.habitat_description(state, detail),
            external_id=detail.external_id,
            city=city,
            state=state,
        )

    def habitat_description(self, state: str, detail: DetailRecord) -> str:
        text = detail.description or GENERIC_HABITAT_TEMPLATE.format(state=state)
        return truncate_description(text, self.description_max_length)
