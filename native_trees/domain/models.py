"""
Domain models for occurrence, taxon and species data.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, databases, etc.).
"""
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class EstablishmentMeans(str, Enum):
    """Whether an observed organism is believed native at the observation location."""
    NATIVE = "NATIVE"
    INTRODUCED = "INTRODUCED"
    INVASIVE = "INVASIVE"
    NATURALISED = "NATURALISED"
    MANAGED = "MANAGED"
    UNCERTAIN = "UNCERTAIN"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "EstablishmentMeans":
        """
        Normalise a raw establishment-means label.

        Accepts enum members, plain strings in any case, and vocabulary
        objects of the form ``{"concept": "..."}``. Anything absent or
        unrecognised falls into UNKNOWN.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            value = value.get("concept")
        if not value:
            return cls.UNKNOWN
        label = str(value).strip().upper().replace(" ", "_")
        if label == "NATURALIZED":
            label = "NATURALISED"
        try:
            return cls(label)
        except ValueError:
            return cls.UNKNOWN


INTRODUCED_CATEGORIES = (
    EstablishmentMeans.INTRODUCED,
    EstablishmentMeans.INVASIVE,
    EstablishmentMeans.NATURALISED,
)


class OccurrenceRecord(BaseModel):
    """One observation of a taxon at a place."""
    model_config = ConfigDict(frozen=True)

    taxon_key: Optional[str] = None
    scientific_name: Optional[str] = None
    family: Optional[str] = None
    vernacular_name: Optional[str] = None
    establishment_means: EstablishmentMeans = EstablishmentMeans.UNKNOWN

    @field_validator("taxon_key", mode="before")
    @classmethod
    def _key_to_str(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("establishment_means", mode="before")
    @classmethod
    def _parse_means(cls, value: Any) -> EstablishmentMeans:
        return EstablishmentMeans.parse(value)


class TaxonAggregate(BaseModel):
    """
    Per-taxon accumulation of occurrences from a single search.

    Invariant: the histogram counts always sum to ``total_occurrence_count``.
    """
    taxon_key: str
    scientific_name: str
    family: Optional[str] = None
    vernacular_name: Optional[str] = None
    total_occurrence_count: int = Field(default=0, ge=0)
    establishment_histogram: Dict[EstablishmentMeans, int] = Field(default_factory=dict)

    def add(self, means: EstablishmentMeans) -> None:
        """Count one more occurrence in the given establishment bucket."""
        self.total_occurrence_count += 1
        self.establishment_histogram[means] = self.establishment_histogram.get(means, 0) + 1

    def count(self, *categories: EstablishmentMeans) -> int:
        """Total occurrences across the given establishment buckets."""
        return sum(self.establishment_histogram.get(c, 0) for c in categories)

    @model_validator(mode="after")
    def _histogram_matches_total(self) -> "TaxonAggregate":
        if sum(self.establishment_histogram.values()) != self.total_occurrence_count:
            raise ValueError("establishment histogram must sum to total_occurrence_count")
        return self


class DetailRecord(BaseModel):
    """Descriptive detail for a taxon obtained from the detail source."""
    external_id: str
    scientific_name: str
    canonical_name: Optional[str] = None
    vernacular_name: Optional[str] = None
    family: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None


class SpeciesRecord(BaseModel):
    """A species confirmed present at a location; never mutated once created."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    external_id: Optional[str] = None
    common_name: str
    scientific_name: str
    image_url: Optional[str] = None
    habitat_description: str
    max_height: Optional[int] = Field(default=None, description="Height in feet")
    max_age: Optional[int] = Field(default=None, description="Age in years")
    city: str
    state: str


class GeoPoint(BaseModel):
    """Geocoded coordinates of a location."""
    lat: float
    lon: float


class SearchResult(BaseModel):
    """Outcome of a native tree search for one location."""
    species: List[SpeciesRecord] = Field(default_factory=list)
    location: str
    count: int = 0

    @classmethod
    def for_location(cls, city: str, state: str, species: List[SpeciesRecord]) -> "SearchResult":
        return cls(species=species, location=f"{city}, {state}", count=len(species))
