"""Tests for EntityService."""

import pytest

from rulebook.domain.entities import EntityKind
from rulebook.domain.errors import ConflictError, NotFoundError, ValidationError


def test_create_and_list(entity_service):
    entity_id = entity_service.create_entity(EntityKind.COUNTERPARTY, "  Costco ")

    entities = entity_service.list_entities(EntityKind.COUNTERPARTY)
    assert [(e.id, e.name) for e in entities] == [(entity_id, "Costco")]


def test_create_duplicate_name_is_case_insensitive(entity_service):
    entity_service.create_entity(EntityKind.LOCATION, "Seattle")
    with pytest.raises(ConflictError):
        entity_service.create_entity(EntityKind.LOCATION, "SEATTLE")


def test_same_name_allowed_across_kinds(entity_service):
    entity_service.create_entity(EntityKind.CATEGORY, "Costco")
    entity_service.create_entity(EntityKind.COUNTERPARTY, "Costco")

    assert entity_service.get_entity_by_name(EntityKind.CATEGORY, "costco") is not None
    assert entity_service.get_entity_by_name(EntityKind.COUNTERPARTY, "costco") is not None


def test_create_blank_name(entity_service):
    with pytest.raises(ValidationError):
        entity_service.create_entity(EntityKind.CATEGORY, "   ")


def test_create_with_missing_parent(entity_service):
    with pytest.raises(NotFoundError):
        entity_service.create_entity(EntityKind.CATEGORY, "Coffee", parent_name="Nope")


def test_entity_tree(entity_service, sample_entities):
    tree = entity_service.get_entity_tree(EntityKind.CATEGORY)

    roots = {node["name"]: node for node in tree}
    assert set(roots) == {"Dining", "Groceries"}
    assert [child["name"] for child in roots["Dining"]["children"]] == ["Coffee Shops"]
    assert roots["Groceries"]["children"] == []


def test_format_entity_path(entity_service, sample_entities):
    path = entity_service.format_entity_path(EntityKind.CATEGORY, sample_entities["Coffee Shops"])
    assert path == "Dining > Coffee Shops"
    assert entity_service.format_entity_path(EntityKind.CATEGORY, "missing") == ""
    assert entity_service.format_entity_path(EntityKind.CATEGORY, None) == ""


def test_load_registries_has_every_kind(entity_service, sample_entities):
    registries = entity_service.load_registries()

    assert set(registries) == set(EntityKind)
    assert len(registries[EntityKind.CATEGORY]) == 3
    assert registries[EntityKind.LOCATION] == []


class TestTransactionTypes:
    """Transaction type management."""

    def test_create_and_list(self, entity_service):
        entity_service.create_transaction_type("Income")
        entity_service.create_transaction_type("Expense")

        assert [t.name for t in entity_service.list_transaction_types()] == ["Expense", "Income"]

    def test_duplicate(self, entity_service):
        entity_service.create_transaction_type("Expense")
        with pytest.raises(ConflictError):
            entity_service.create_transaction_type(" expense ")

    def test_blank(self, entity_service):
        with pytest.raises(ValidationError):
            entity_service.create_transaction_type("")
