"""
Infrastructure layer: persistent store for resolved species records.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from native_trees.domain.models import SpeciesRecord
from native_trees.infrastructure.database import Database, TreeSpecies, get_database

logger = logging.getLogger(__name__)


class SpeciesStore:
    """
    Species cache keyed by location and by external taxon identifier.

    Records are insert-only: nothing here updates or deletes a row.
    """

    def __init__(self, database: Database):
        self.database = database

    async def find_by_location(self, city: str, state: str) -> List[SpeciesRecord]:
        """
        Records cached for a location, in the order they were resolved.

        City and state match case-insensitively.
        """
        stmt = (
            select(TreeSpecies)
            .where(func.lower(TreeSpecies.city) == city.lower())
            .where(func.lower(TreeSpecies.state) == state.lower())
            .order_by(TreeSpecies.row_id)
        )
        async with self.database.session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [SpeciesRecord.model_validate(row) for row in rows]

    async def find_by_external_id(
        self,
        external_id: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
    ) -> Optional[SpeciesRecord]:
        """
        First record with the given external id, optionally restricted to a location.

        Args:
            external_id: Canonical source taxon key
            city: Restrict to this city (case-insensitive)
            state: Restrict to this state (case-insensitive)

        Returns:
            SpeciesRecord, or None
        """
        stmt = select(TreeSpecies).where(TreeSpecies.external_id == external_id)
        if city is not None:
            stmt = stmt.where(func.lower(TreeSpecies.city) == city.lower())
        if state is not None:
            stmt = stmt.where(func.lower(TreeSpecies.state) == state.lower())
        stmt = stmt.order_by(TreeSpecies.row_id).limit(1)

        async with self.database.session() as session:
            row = (await session.execute(stmt)).scalars().first()
        return SpeciesRecord.model_validate(row) if row else None

    async def insert(
        self,
        *,
        common_name: str,
        scientific_name: str,
        habitat_description: str,
        city: str,
        state: str,
        external_id: Optional[str] = None,
        image_url: Optional[str] = None,
        max_height: Optional[int] = None,
        max_age: Optional[int] = None,
    ) -> SpeciesRecord:
        """
        Persist a new record; the store assigns its identity.

        If a concurrent search already stored this taxon for the same
        location, that record is returned instead.

        Returns:
            The stored SpeciesRecord
        """
        row = TreeSpecies(
            external_id=external_id,
            common_name=common_name,
            scientific_name=scientific_name,
            image_url=image_url,
            habitat_description=habitat_description,
            max_height=max_height,
            max_age=max_age,
            city=city,
            state=state,
        )
        try:
            async with self.database.session() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except IntegrityError:
            # A concurrent search stored this taxon for the location first
            existing = None
            if external_id is not None:
                existing = await self.find_by_external_id(external_id, city=city, state=state)
            if existing is None:
                raise
            logger.info(f"{scientific_name} ({external_id}) already stored for {city}, {state}")
            return existing

        logger.debug(f"Stored {scientific_name} ({external_id}) for {city}, {state}")
        return SpeciesRecord.model_validate(row)


def get_species_store() -> SpeciesStore:
    """
    Dependency factory for SpeciesStore.

    Returns:
        SpeciesStore bound to the application database
    """
    return SpeciesStore(get_database())
