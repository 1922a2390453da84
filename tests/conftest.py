"""Shared pytest fixtures for rulebook tests."""

import tempfile
import os
from itertools import count
from pathlib import Path
import pytest

from rulebook.database.factories import create_sqlite_database
from rulebook.domain.entities import (
    EntityKind,
    ReconciliationRule,
    ReferenceEntity,
    RuleCondition,
)
from rulebook.domain.entity_service import EntityService
from rulebook.domain.rule_service import RuleService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def rule_service(temp_db):
    """Create a RuleService with a temporary database."""
    return RuleService(temp_db)


@pytest.fixture
def entity_service(temp_db):
    """Create an EntityService with a temporary database."""
    return EntityService(temp_db)


@pytest.fixture
def id_factory():
    """Deterministic id generator: new_1, new_2, ..."""
    counter = count(1)
    return lambda: f"new_{next(counter)}"


@pytest.fixture
def registries():
    """Entity registries with a few existing categories and counterparties."""
    return {
        EntityKind.CATEGORY: [
            ReferenceEntity(id="cat_dining", name="Dining", kind=EntityKind.CATEGORY),
            ReferenceEntity(id="cat_groceries", name="Groceries", kind=EntityKind.CATEGORY),
        ],
        EntityKind.COUNTERPARTY: [
            ReferenceEntity(id="cp_starbucks", name="Starbucks", kind=EntityKind.COUNTERPARTY),
        ],
        EntityKind.LOCATION: [],
    }


@pytest.fixture
def coffee_rule():
    """Existing rule categorizing Starbucks purchases as Dining."""
    return ReconciliationRule(
        id="r1",
        name="Coffee",
        set_category_id="cat_dining",
        conditions=(
            RuleCondition.from_value(
                id="c1", field="description", operator="contains", value="STARBUCKS"
            ),
        ),
    )


@pytest.fixture
def sample_entities(entity_service):
    """Create a small entity set in the database; returns name -> id."""
    ids = {}
    ids["Dining"] = entity_service.create_entity(EntityKind.CATEGORY, "Dining")
    ids["Coffee Shops"] = entity_service.create_entity(
        EntityKind.CATEGORY, "Coffee Shops", parent_name="Dining"
    )
    ids["Groceries"] = entity_service.create_entity(EntityKind.CATEGORY, "Groceries")
    ids["Starbucks"] = entity_service.create_entity(EntityKind.COUNTERPARTY, "Starbucks")
    ids["Expense"] = entity_service.create_transaction_type("Expense")
    return ids


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
