"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Rule set, classifier and evaluator instances
- Occurrence and detail record factories
- A temporary species store
- Mock geocoder, occurrence source and detail source
- FastAPI test client
"""
import os

# Retries must not sleep in tests; set before settings are first imported.
os.environ.setdefault("RETRY_MIN_WAIT", "0")
os.environ.setdefault("RETRY_MAX_WAIT", "0")

import pytest
from typing import AsyncGenerator, Dict, Optional
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from native_trees.main import app
from native_trees.domain.models import (
    DetailRecord,
    EstablishmentMeans,
    GeoPoint,
    OccurrenceRecord,
    TaxonAggregate,
)
from native_trees.domain.rules import TaxonRules, load_taxon_rules
from native_trees.infrastructure.database import Database
from native_trees.infrastructure.external_api_client import DetailNotFoundError
from native_trees.infrastructure.species_store import SpeciesStore
from native_trees.services.domain.native_status import NativeStatusConfig, NativeStatusEvaluator
from native_trees.services.domain.taxon_classifier import TaxonClassifier


# ============================================================
# Rule and Domain Service Fixtures
# ============================================================

@pytest.fixture(scope="session")
def rules() -> TaxonRules:
    """The bundled rule file."""
    return load_taxon_rules()


@pytest.fixture
def classifier(rules) -> TaxonClassifier:
    return TaxonClassifier(rules=rules)


@pytest.fixture
def evaluator(rules) -> NativeStatusEvaluator:
    return NativeStatusEvaluator(config=NativeStatusConfig(), rules=rules)


# ============================================================
# Record Factories
# ============================================================

def make_occurrence(
    taxon_key: Optional[str],
    scientific_name: Optional[str],
    means: str = "UNKNOWN",
    family: Optional[str] = None,
    vernacular_name: Optional[str] = None,
) -> OccurrenceRecord:
    return OccurrenceRecord(
        taxon_key=taxon_key,
        scientific_name=scientific_name,
        family=family,
        vernacular_name=vernacular_name,
        establishment_means=means,
    )


def make_aggregate(
    native: int = 0,
    introduced: int = 0,
    invasive: int = 0,
    naturalised: int = 0,
    total: int = 10,
    scientific_name: str = "Quercus alba",
    taxon_key: str = "2878688",
) -> TaxonAggregate:
    """Aggregate whose remaining occurrences are UNKNOWN."""
    histogram: Dict[EstablishmentMeans, int] = {}
    for means, count in (
        (EstablishmentMeans.NATIVE, native),
        (EstablishmentMeans.INTRODUCED, introduced),
        (EstablishmentMeans.INVASIVE, invasive),
        (EstablishmentMeans.NATURALISED, naturalised),
        (EstablishmentMeans.UNKNOWN, total - native - introduced - invasive - naturalised),
    ):
        if count:
            histogram[means] = count
    return TaxonAggregate(
        taxon_key=taxon_key,
        scientific_name=scientific_name,
        total_occurrence_count=total,
        establishment_histogram=histogram,
    )


def make_detail(
    external_id: str,
    scientific_name: str,
    vernacular_name: Optional[str] = None,
    family: Optional[str] = None,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
) -> DetailRecord:
    return DetailRecord(
        external_id=external_id,
        scientific_name=scientific_name,
        canonical_name=" ".join(scientific_name.split()[:2]),
        vernacular_name=vernacular_name,
        family=family,
        description=description,
        image_url=image_url,
    )


class FakeDetailSource:
    """In-memory detail source; unknown keys raise DetailNotFoundError."""

    def __init__(self, details: Dict[str, DetailRecord]):
        self.details = details
        self.requested: list[str] = []

    async def get_species_details(self, taxon_key: str) -> DetailRecord:
        self.requested.append(taxon_key)
        if taxon_key not in self.details:
            raise DetailNotFoundError(f"No species {taxon_key}")
        return self.details[taxon_key]


# ============================================================
# Store Fixtures
# ============================================================

@pytest.fixture
async def species_store(tmp_path) -> AsyncGenerator[SpeciesStore, None]:
    """Species store backed by a temporary SQLite file."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'species.db'}")
    await database.initialize()
    yield SpeciesStore(database)
    await database.dispose()


# ============================================================
# Mock Collaborator Fixtures
# ============================================================

@pytest.fixture
def austin() -> GeoPoint:
    return GeoPoint(lat=30.2672, lon=-97.7431)


@pytest.fixture
def mock_geocoder(austin):
    """Geocoder that resolves every location to Austin, TX."""
    geocoder = AsyncMock()
    geocoder.geocode.return_value = austin
    return geocoder


@pytest.fixture
def mock_occurrence_source():
    """Occurrence source returning no occurrences until configured."""
    source = AsyncMock()
    source.search_occurrences.return_value = []
    return source


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)


@pytest.fixture
async def async_test_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for FastAPI."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
