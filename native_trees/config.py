"""
Application configuration using Pydantic settings.
"""
from typing import Literal, Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # External API Configuration
    gbif_api_base_url: str = Field(
        default="https://api.gbif.org/v1",
        description="Base URL for the GBIF REST API (occurrences and species detail)"
    )
    geocoder_base_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Base URL for the Nominatim geocoder"
    )
    geocoder_user_agent: str = Field(
        default="native-tree-finder/1.0",
        description="User-Agent sent to the geocoder (required by Nominatim usage policy)"
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for outbound HTTP calls"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for API calls"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=4,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Occurrence Search
    occurrence_search_radius_km: float = Field(
        default=25.0,
        description="Half-width of the bounding box searched around the geocoded city"
    )
    occurrence_page_size: int = Field(
        default=300,
        description="Occurrences requested per page (GBIF caps this at 300)"
    )
    occurrence_max_records: int = Field(
        default=900,
        description="Upper bound on occurrences fetched per search"
    )
    occurrence_country: str = Field(
        default="US",
        description="ISO country code used to scope occurrence searches"
    )

    # Pipeline Parameters
    selection_limit: int = Field(
        default=15,
        description="Maximum number of ranked taxa sent to enrichment"
    )
    enrichment_batch_size: int = Field(
        default=5,
        ge=3,
        le=5,
        description="Detail lookups issued concurrently per batch"
    )
    enrichment_batch_delay_ms: int = Field(
        default=150,
        ge=100,
        le=200,
        description="Pause between enrichment batches in milliseconds"
    )
    habitat_description_max_length: int = Field(
        default=300,
        description="Stored habitat descriptions are truncated to this many characters"
    )
    native_status_mode: Literal["majority", "strict"] = Field(
        default="majority",
        description="'majority' votes across all occurrences; 'strict' keeps only NATIVE-labelled ones"
    )
    native_percent_threshold: float = Field(
        default=0.5,
        description="Native share that must be strictly exceeded to include a taxon"
    )
    introduced_percent_threshold: float = Field(
        default=0.2,
        description="Introduced share below which a taxon is given the benefit of the doubt"
    )
    taxon_rules_path: Optional[str] = Field(
        default=None,
        description="Override path for the classification rule file"
    )

    # Persistence
    database_url: str = Field(
        default="sqlite+aiosqlite:///./native_trees.db",
        description="SQLAlchemy async database URL for the species cache"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Native Tree Finder",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
