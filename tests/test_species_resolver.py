"""
Tests for the species resolver and species store.

Tests cover:
- Fresh record creation and habitat text derivation
- Description truncation
- Cross-location cloning by external id
- No duplicates per (external id, location)
- Case-insensitive location lookups
"""
import pytest

from native_trees.services.application.species_resolver import SpeciesResolver
from conftest import make_detail


@pytest.fixture
def resolver(species_store) -> SpeciesResolver:
    return SpeciesResolver(store=species_store, description_max_length=300)


# ============================================================
# Fresh Record Tests
# ============================================================

class TestFreshRecords:
    """Tests for taxa not seen before."""

    @pytest.mark.asyncio
    async def test_creates_record_from_detail(self, resolver):
        detail = make_detail(
            "2878688", "Quercus virginiana", "Southern Live Oak", "Fagaceae",
            description="Evergreen oak of the southeastern coastal plain.",
            image_url="https://example.org/oak.jpg",
        )

        record = await resolver.resolve("Austin", "TX", detail)

        assert record.id
        assert record.external_id == "2878688"
        assert record.common_name == "Southern Live Oak"
        assert record.scientific_name == "Quercus virginiana"
        assert record.image_url == "https://example.org/oak.jpg"
        assert record.habitat_description == "Evergreen oak of the southeastern coastal plain."
        assert (record.city, record.state) == ("Austin", "TX")
        assert record.max_height is None and record.max_age is None

    @pytest.mark.asyncio
    async def test_common_name_falls_back_to_scientific_name(self, resolver):
        record = await resolver.resolve("Austin", "TX", make_detail("1", "Ulmus crassifolia"))
        assert record.common_name == "Ulmus crassifolia"

    @pytest.mark.asyncio
    async def test_generic_habitat_mentions_state(self, resolver):
        record = await resolver.resolve("Austin", "TX", make_detail("1", "Ulmus crassifolia"))

        assert record.habitat_description.startswith("Native to the TX region.")
        assert not record.habitat_description.endswith("...")

    @pytest.mark.asyncio
    async def test_long_description_truncated(self, resolver):
        detail = make_detail("1", "Acer rubrum", "Red Maple", description="a" * 400)

        record = await resolver.resolve("Austin", "TX", detail)

        assert len(record.habitat_description) == 303
        assert record.habitat_description.endswith("...")

    @pytest.mark.asyncio
    async def test_short_description_kept(self, resolver):
        detail = make_detail("1", "Acer rubrum", "Red Maple", description="b" * 200)

        record = await resolver.resolve("Austin", "TX", detail)

        assert record.habitat_description == "b" * 200


# ============================================================
# Dedup Tests
# ============================================================

class TestDedup:
    """Tests for reuse of previously resolved species."""

    @pytest.mark.asyncio
    async def test_clone_into_new_location(self, resolver, species_store):
        original = await resolver.resolve(
            "Austin", "TX",
            make_detail("42", "Carya illinoinensis", "Pecan", description="Large river-bottom hickory."),
        )
        # A different source description must not replace the stored text
        clone = await resolver.resolve(
            "Dallas", "TX",
            make_detail("42", "Carya illinoinensis", "Pecan Tree", description="Something else."),
        )

        assert clone.id != original.id
        assert (clone.city, clone.state) == ("Dallas", "TX")
        assert clone.external_id == original.external_id
        assert clone.common_name == original.common_name
        assert clone.scientific_name == original.scientific_name
        assert clone.habitat_description == original.habitat_description
        assert clone.image_url == original.image_url

    @pytest.mark.asyncio
    async def test_same_location_reuses_record(self, resolver, species_store):
        detail = make_detail("7", "Acer rubrum", "Red Maple")

        first = await resolver.resolve("Austin", "TX", detail)
        second = await resolver.resolve("austin", "tx", detail)

        assert second.id == first.id
        assert len(await species_store.find_by_location("Austin", "TX")) == 1


# ============================================================
# Store Tests
# ============================================================

class TestSpeciesStore:
    """Tests for store lookups."""

    @pytest.mark.asyncio
    async def test_find_by_location_preserves_insert_order(self, species_store):
        for key, name in (("3", "Acer rubrum"), ("1", "Quercus alba"), ("2", "Pinus taeda")):
            await species_store.insert(
                common_name=name, scientific_name=name, habitat_description="-",
                city="Austin", state="TX", external_id=key,
            )

        records = await species_store.find_by_location("AUSTIN", "tx")

        assert [r.external_id for r in records] == ["3", "1", "2"]

    @pytest.mark.asyncio
    async def test_find_by_external_id_any_location(self, species_store):
        await species_store.insert(
            common_name="Pecan", scientific_name="Carya illinoinensis", habitat_description="-",
            city="Waco", state="TX", external_id="42",
        )

        found = await species_store.find_by_external_id("42")

        assert found is not None and found.city == "Waco"
        assert await species_store.find_by_external_id("42", city="Austin", state="TX") is None
        assert await species_store.find_by_external_id("999") is None

    @pytest.mark.asyncio
    async def test_empty_location(self, species_store):
        assert await species_store.find_by_location("Nowhere", "ZZ") == []

    @pytest.mark.asyncio
    async def test_duplicate_insert_returns_existing_record(self, species_store):
        first = await species_store.insert(
            common_name="Pecan", scientific_name="Carya illinoinensis", habitat_description="-",
            city="Austin", state="TX", external_id="42",
        )

        second = await species_store.insert(
            common_name="Pecan", scientific_name="Carya illinoinensis", habitat_description="-",
            city="Austin", state="TX", external_id="42",
        )

        assert second.id == first.id
        assert len(await species_store.find_by_location("Austin", "TX")) == 1
