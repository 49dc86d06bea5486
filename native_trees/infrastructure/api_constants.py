"""
API endpoint constants and configuration.

This module contains all external API endpoint paths and related constants.
Centralizing these values makes it easy to swap out endpoints or update API versions.
"""

# GBIF API Endpoints
class GBIFEndpoints:
    """GBIF REST API endpoint paths (relative to the v1 base URL)."""

    # Occurrence endpoints
    OCCURRENCE_SEARCH = "/occurrence/search"

    # Species endpoints
    SPECIES_BY_KEY = "/species/{taxon_key}"
    SPECIES_MEDIA = "/species/{taxon_key}/media"
    SPECIES_DESCRIPTIONS = "/species/{taxon_key}/descriptions"
    SPECIES_VERNACULAR_NAMES = "/species/{taxon_key}/vernacularNames"

    @classmethod
    def species(cls, taxon_key: str) -> str:
        return cls.SPECIES_BY_KEY.format(taxon_key=taxon_key)

    @classmethod
    def species_media(cls, taxon_key: str) -> str:
        return cls.SPECIES_MEDIA.format(taxon_key=taxon_key)

    @classmethod
    def species_descriptions(cls, taxon_key: str) -> str:
        return cls.SPECIES_DESCRIPTIONS.format(taxon_key=taxon_key)

    @classmethod
    def species_vernacular_names(cls, taxon_key: str) -> str:
        return cls.SPECIES_VERNACULAR_NAMES.format(taxon_key=taxon_key)


# Nominatim Endpoints
class GeocoderEndpoints:
    """OpenStreetMap Nominatim endpoint paths."""

    SEARCH = "/search"


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"

    # GBIF backbone kingdom key for Plantae
    PLANTAE_KINGDOM_KEY = 6

    # GBIF caps occurrence page size at 300
    MAX_OCCURRENCE_PAGE_SIZE = 300

    # Media type of usable species images
    STILL_IMAGE = "StillImage"

    # Preferred languages for descriptions and vernacular names
    ENGLISH_CODES = ("eng", "en", "english")
