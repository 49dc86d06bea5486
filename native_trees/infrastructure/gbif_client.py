"""
Infrastructure layer: GBIF occurrence and species detail client.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from native_trees.config import settings
from native_trees.domain.models import DetailRecord, GeoPoint, OccurrenceRecord
from native_trees.infrastructure.api_constants import APIConstants, GBIFEndpoints
from native_trees.infrastructure.external_api_client import (
    ExternalAPIClient,
    ExternalAPIError,
)
from native_trees.utils.geo_projection import search_area_wkt
from native_trees.utils.text_helpers import strip_markup

logger = logging.getLogger(__name__)


# Pydantic models for API responses
class OccurrenceData(BaseModel):
    """Subset of a GBIF occurrence record used by the pipeline."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    key: Optional[int] = None
    taxon_key: Optional[int] = Field(default=None, alias="taxonKey")
    species_key: Optional[int] = Field(default=None, alias="speciesKey")
    scientific_name: Optional[str] = Field(default=None, alias="scientificName")
    species: Optional[str] = None
    family: Optional[str] = None
    vernacular_name: Optional[str] = Field(default=None, alias="vernacularName")
    establishment_means: Any = Field(default=None, alias="establishmentMeans")

    def to_record(self) -> OccurrenceRecord:
        """Aggregate at species level when GBIF resolved one."""
        if self.species_key is not None:
            taxon_key, name = self.species_key, self.species or self.scientific_name
        else:
            taxon_key, name = self.taxon_key, self.scientific_name
        return OccurrenceRecord(
            taxon_key=taxon_key,
            scientific_name=name,
            family=self.family,
            vernacular_name=self.vernacular_name,
            establishment_means=self.establishment_means,
        )


class OccurrenceSearchResponse(BaseModel):
    """Response from the occurrence search endpoint."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    offset: int = 0
    limit: int = 0
    count: Optional[int] = None
    end_of_records: bool = Field(default=True, alias="endOfRecords")
    results: List[OccurrenceData] = Field(default_factory=list)


class SpeciesData(BaseModel):
    """Response from the species-by-key endpoint."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    key: int
    scientific_name: str = Field(alias="scientificName")
    canonical_name: Optional[str] = Field(default=None, alias="canonicalName")
    vernacular_name: Optional[str] = Field(default=None, alias="vernacularName")
    family: Optional[str] = None
    rank: Optional[str] = None


class _LanguageTagged(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    language: Optional[str] = None

    def is_english(self) -> bool:
        return (self.language or "").lower() in APIConstants.ENGLISH_CODES


class MediaItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    identifier: Optional[str] = None


class MediaResponse(BaseModel):
    """Response from the species media endpoint."""
    model_config = ConfigDict(extra="ignore")

    results: List[MediaItem] = Field(default_factory=list)


class DescriptionItem(_LanguageTagged):
    description: Optional[str] = None


class DescriptionsResponse(BaseModel):
    """Response from the species descriptions endpoint."""
    model_config = ConfigDict(extra="ignore")

    results: List[DescriptionItem] = Field(default_factory=list)


class VernacularNameItem(_LanguageTagged):
    vernacular_name: Optional[str] = Field(default=None, alias="vernacularName")


class VernacularNamesResponse(BaseModel):
    """Response from the species vernacular names endpoint."""
    model_config = ConfigDict(extra="ignore")

    results: List[VernacularNameItem] = Field(default_factory=list)


class GBIFClient(ExternalAPIClient):
    """
    Client for the GBIF REST API.

    Serves as both the occurrence source and the species detail source.
    """

    def __init__(self):
        """Initialize the client with configuration."""
        super().__init__(base_url=settings.gbif_api_base_url)

    async def search_occurrences(self, point: GeoPoint) -> List[OccurrenceRecord]:
        """
        Fetch plant occurrences around a point, paging until exhausted or capped.

        Args:
            point: Geocoded centre of the search

        Returns:
            List of OccurrenceRecord instances

        Raises:
            ExternalAPIError: If any page fails
        """
        page_size = min(settings.occurrence_page_size, APIConstants.MAX_OCCURRENCE_PAGE_SIZE)
        params: Dict[str, Any] = {
            "kingdomKey": APIConstants.PLANTAE_KINGDOM_KEY,
            "country": settings.occurrence_country,
            "geometry": search_area_wkt(point, settings.occurrence_search_radius_km),
            "hasCoordinate": "true",
            "occurrenceStatus": "PRESENT",
            "limit": page_size,
        }

        records: List[OccurrenceRecord] = []
        offset = 0
        while offset < settings.occurrence_max_records:
            data = await self._make_request(
                "GET",
                GBIFEndpoints.OCCURRENCE_SEARCH,
                params={**params, "offset": offset},
            )
            try:
                page = OccurrenceSearchResponse.model_validate(data)
            except ValidationError as e:
                raise ExternalAPIError(f"Malformed occurrence page at offset {offset}") from e
            records.extend(occ.to_record() for occ in page.results)

            if page.end_of_records or not page.results:
                break
            offset += page_size

        logger.info(f"Fetched {len(records)} occurrences around ({point.lat:.4f}, {point.lon:.4f})")
        return records[:settings.occurrence_max_records]

    async def get_species_details(self, taxon_key: str) -> DetailRecord:
        """
        Fetch descriptive detail for a taxon.

        The species record is required; image, description and fallback
        vernacular name are best effort.

        Args:
            taxon_key: GBIF backbone taxon key

        Returns:
            DetailRecord instance

        Raises:
            DetailNotFoundError: If the taxon does not exist
            ExternalAPIError: If the species lookup fails
        """
        data = await self._make_request("GET", GBIFEndpoints.species(taxon_key))
        try:
            species = SpeciesData.model_validate(data)
        except ValidationError as e:
            raise ExternalAPIError(f"Malformed species record for taxon {taxon_key}") from e

        image_url, description = await asyncio.gather(
            self._optional(self._get_image_url(taxon_key)),
            self._optional(self._get_description(taxon_key)),
        )
        vernacular_name = species.vernacular_name
        if not vernacular_name:
            vernacular_name = await self._optional(self._get_vernacular_name(taxon_key))

        return DetailRecord(
            external_id=str(species.key),
            scientific_name=species.scientific_name,
            canonical_name=species.canonical_name,
            vernacular_name=vernacular_name,
            family=species.family,
            image_url=image_url,
            description=description,
        )

    async def _optional(self, coro):
        """Run a best-effort lookup; upstream errors and malformed bodies count as missing data."""
        try:
            return await coro
        except (ExternalAPIError, ValidationError) as e:
            logger.debug(f"Optional species lookup failed: {e}")
            return None

    async def _get_image_url(self, taxon_key: str) -> Optional[str]:
        data = await self._make_request("GET", GBIFEndpoints.species_media(taxon_key))
        for item in MediaResponse.model_validate(data).results:
            if item.type == APIConstants.STILL_IMAGE and item.identifier:
                return item.identifier
        return None

    async def _get_description(self, taxon_key: str) -> Optional[str]:
        data = await self._make_request("GET", GBIFEndpoints.species_descriptions(taxon_key))
        fallback = None
        for item in DescriptionsResponse.model_validate(data).results:
            text = strip_markup(item.description or "")
            if not text:
                continue
            if item.is_english():
                return text
            fallback = fallback or text
        return fallback

    async def _get_vernacular_name(self, taxon_key: str) -> Optional[str]:
        data = await self._make_request("GET", GBIFEndpoints.species_vernacular_names(taxon_key))
        for item in VernacularNamesResponse.model_validate(data).results:
            if item.is_english() and item.vernacular_name:
                return item.vernacular_name
        return None


# Singleton instance
_gbif_client: Optional[GBIFClient] = None


def get_gbif_client() -> GBIFClient:
    """
    Get or create the singleton GBIF client instance.

    Returns:
        GBIFClient instance
    """
    global _gbif_client
    if _gbif_client is None:
        _gbif_client = GBIFClient()
    return _gbif_client
