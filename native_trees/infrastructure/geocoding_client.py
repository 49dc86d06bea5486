"""
Infrastructure layer: city/state geocoding via OpenStreetMap Nominatim.
"""
import logging
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from native_trees.config import settings
from native_trees.domain.models import GeoPoint
from native_trees.infrastructure.api_constants import GeocoderEndpoints
from native_trees.infrastructure.external_api_client import (
    DetailNotFoundError,
    ExternalAPIError,
    ExternalAPIClient,
)

logger = logging.getLogger(__name__)


class GeocodeResult(BaseModel):
    """Single Nominatim search hit (coordinates arrive as strings)."""
    model_config = ConfigDict(extra="ignore")

    lat: float
    lon: float
    display_name: Optional[str] = None


_GEOCODE_RESULTS = TypeAdapter(List[GeocodeResult])


class GeocodingClient(ExternalAPIClient):
    """Resolves a US city/state pair to coordinates."""

    def __init__(self):
        """Initialize the client with configuration."""
        super().__init__(
            base_url=settings.geocoder_base_url,
            headers={"User-Agent": settings.geocoder_user_agent},
        )

    async def geocode(self, city: str, state: str) -> Optional[GeoPoint]:
        """
        Geocode a city within a US state.

        Args:
            city: City name
            state: Two-letter state code

        Returns:
            GeoPoint, or None if the location is unknown

        Raises:
            UpstreamUnavailableError: If the geocoder cannot be reached
            ExternalAPIError: If the geocoder response is malformed
        """
        try:
            data = await self._make_request(
                "GET",
                GeocoderEndpoints.SEARCH,
                params={
                    "city": city,
                    "state": state,
                    "country": "USA",
                    "format": "jsonv2",
                    "limit": 1,
                },
            )
        except DetailNotFoundError:
            return None

        try:
            results = _GEOCODE_RESULTS.validate_python(data or [])
        except ValidationError as e:
            raise ExternalAPIError(f"Malformed geocoder response for {city}, {state}") from e
        if not results:
            logger.info(f"No geocoding match for {city}, {state}")
            return None

        hit = results[0]
        logger.debug(f"Geocoded {city}, {state} to {hit.display_name}")
        return GeoPoint(lat=hit.lat, lon=hit.lon)


# Singleton instance
_geocoding_client: Optional[GeocodingClient] = None


def get_geocoding_client() -> GeocodingClient:
    """
    Get or create the singleton geocoding client instance.

    Returns:
        GeocodingClient instance
    """
    global _geocoding_client
    if _geocoding_client is None:
        _geocoding_client = GeocodingClient()
    return _geocoding_client
