"""Tests for entity resolution within an import batch."""

import pytest

from rulebook.domain.entities import EntityKind, MappingMode, ReferenceEntity
from rulebook.domain.entity_resolver import EntityResolver, find_by_name, resolve_entity
from rulebook.domain.errors import MappingInconsistency


def test_find_by_name_is_case_and_whitespace_insensitive(registries):
    categories = registries[EntityKind.CATEGORY]
    assert find_by_name(categories, "  dining ").id == "cat_dining"
    assert find_by_name(categories, "Travel") is None
    assert find_by_name(categories, "   ") is None


class TestResolveEntity:
    """Tests for resolve_entity."""

    def test_match_existing(self, registries, id_factory):
        batch = {}
        resolution = resolve_entity(
            EntityKind.CATEGORY, "DINING", "match", registries[EntityKind.CATEGORY], batch, id_factory
        )
        assert resolution.entity_id == "cat_dining"
        assert resolution.created is None
        assert resolution.inconsistency is None
        assert batch == {}

    def test_match_miss_falls_back_to_create(self, registries, id_factory):
        batch = {}
        resolution = resolve_entity(
            EntityKind.CATEGORY, " Travel ", MappingMode.MATCH, registries[EntityKind.CATEGORY], batch, id_factory
        )
        assert resolution.entity_id == "new_1"
        assert resolution.created == ReferenceEntity(id="new_1", name="Travel", kind=EntityKind.CATEGORY)
        assert isinstance(resolution.inconsistency, MappingInconsistency)
        assert resolution.inconsistency.name == "Travel"
        assert batch == {"travel": "new_1"}

    def test_create_keeps_trimmed_original_case(self, registries, id_factory):
        batch = {}
        resolution = resolve_entity(
            EntityKind.COUNTERPARTY, "  Costco Wholesale ", "create", [], batch, id_factory
        )
        assert resolution.created.name == "Costco Wholesale"
        assert batch == {"costco wholesale": "new_1"}

    def test_create_reuses_batch_entry(self, id_factory):
        batch = {"costco": "existing_new"}
        resolution = resolve_entity(EntityKind.COUNTERPARTY, "COSTCO", "create", [], batch, id_factory)
        assert resolution.entity_id == "existing_new"
        assert resolution.created is None

    def test_blank_name_resolves_to_nothing(self, id_factory):
        batch = {}
        resolution = resolve_entity(EntityKind.LOCATION, "  ", "create", [], batch, id_factory)
        assert resolution.entity_id is None
        assert batch == {}

    def test_invalid_status(self, id_factory):
        with pytest.raises(ValueError):
            resolve_entity(EntityKind.LOCATION, "Home", "guess", [], {}, id_factory)


class TestEntityResolver:
    """Tests for the batch-scoped EntityResolver."""

    def test_costco_variants_create_one_entity(self, registries, id_factory):
        resolver = EntityResolver(registries, id_factory)
        names = ["Costco", "costco", "  COSTCO  ", "Costco ", "cOsTcO"]

        ids = {resolver.resolve(EntityKind.COUNTERPARTY, name, "create") for name in names}

        assert ids == {"new_1"}
        pending = resolver.pending_creations()
        assert list(pending) == [EntityKind.COUNTERPARTY]
        assert [e.name for e in pending[EntityKind.COUNTERPARTY]] == ["Costco"]

    def test_kinds_are_deduplicated_separately(self, registries, id_factory):
        resolver = EntityResolver(registries, id_factory)
        category_id = resolver.resolve(EntityKind.CATEGORY, "Costco", "create")
        counterparty_id = resolver.resolve(EntityKind.COUNTERPARTY, "Costco", "create")
        assert category_id != counterparty_id

    def test_match_miss_then_create_share_id(self, registries, id_factory):
        resolver = EntityResolver(registries, id_factory)
        first = resolver.resolve(EntityKind.LOCATION, "Seattle", "match")
        second = resolver.resolve(EntityKind.LOCATION, "seattle", "create")

        assert first == second
        assert len(resolver.inconsistencies) == 1
        assert len(resolver.pending_creations()[EntityKind.LOCATION]) == 1

    def test_new_resolver_starts_with_empty_batch(self, registries, id_factory):
        EntityResolver(registries, id_factory).resolve(EntityKind.COUNTERPARTY, "Costco", "create")
        resolver = EntityResolver(registries, id_factory)
        assert resolver.pending_creations() == {}
        assert resolver.resolve(EntityKind.COUNTERPARTY, "Costco", "create") == "new_2"
