"""Tests for individual CLI commands."""

import json

import pytest
from rulebook.cli.main import cli


def invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "import" in result.output


class TestEntityCommands:
    """entity and type command groups."""

    def test_create_child_and_list(self, cli_runner, temp_db, sample_entities):
        result = invoke(cli_runner, temp_db, "entity", "create", "category", "Bakeries", "--parent", "dining")
        assert result.exit_code == 0
        assert "Created category 'Bakeries' under 'dining'" in result.output

        result = invoke(cli_runner, temp_db, "entity", "list", "category")
        assert "  Bakeries" in result.output
        assert "  Coffee Shops" in result.output

    def test_create_duplicate(self, cli_runner, temp_db, sample_entities):
        result = invoke(cli_runner, temp_db, "entity", "create", "counterparty", "STARBUCKS")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_list_empty(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "entity", "list", "location")
        assert "No location entities found." in result.output

    def test_unknown_kind(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "entity", "list", "planet")
        assert result.exit_code != 0

    def test_types(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "type", "add", "Expense")
        assert result.exit_code == 0

        result = invoke(cli_runner, temp_db, "type", "list")
        assert "Expense" in result.output


class TestRuleCommands:
    """rule command group."""

    def test_add_and_list(self, cli_runner, temp_db, sample_entities):
        result = invoke(
            cli_runner, temp_db, "rule", "add", "Coffee",
            "--value", "STARBUCKS || PEETS", "--category", "Coffee Shops", "--priority", "3",
        )
        assert result.exit_code == 0, result.output

        result = invoke(cli_runner, temp_db, "rule", "list")
        assert "Coffee" in result.output
        assert "description contains 'STARBUCKS || PEETS'" in result.output

        result = invoke(cli_runner, temp_db, "rule", "show", "Coffee")
        assert "Sets category: Dining > Coffee Shops" in result.output

    def test_add_skip_rule(self, cli_runner, temp_db):
        invoke(cli_runner, temp_db, "rule", "add", "Transfers", "--value", "XFER", "--skip-import")

        result = invoke(cli_runner, temp_db, "rule", "show", "transfers")
        assert "Sets skip import" in result.output

    def test_add_unknown_category(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "rule", "add", "Coffee", "--value", "X", "--category", "Nope")
        assert result.exit_code == 1
        assert "Category 'Nope' not found" in result.output

    def test_add_bad_regex(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "rule", "add", "Broken", "--operator", "regex_match", "--value", "(")
        assert result.exit_code == 1
        assert "Invalid regex" in result.output

    def test_show_missing(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "rule", "show", "nope")
        assert result.exit_code == 1

    def test_preview(self, cli_runner, temp_db, sample_entities, fixtures_dir):
        invoke(cli_runner, temp_db, "rule", "add", "Coffee", "--value", "STARBUCKS", "--category", "Dining")

        result = invoke(cli_runner, temp_db, "rule", "preview", "Coffee", str(fixtures_dir / "records.csv"))
        assert result.exit_code == 0, result.output
        assert "1 record(s) would change:" in result.output
        assert "STARBUCKS #1234 SEATTLE" in result.output


class TestMatchCommands:
    """match and apply commands."""

    def test_match_by_amount(self, cli_runner, temp_db):
        invoke(cli_runner, temp_db, "rule", "add", "Big", "--field", "amount", "--operator", "less_than", "--value", "-1000")

        result = invoke(cli_runner, temp_db, "match", "RENT", "--amount", "-1500")
        assert result.exit_code == 0
        assert "matched 'Big'" in result.output

    def test_no_match_exits_nonzero(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "match", "ANYTHING")
        assert result.exit_code == 1
        assert "no matching rule" in result.output

    def test_bad_amount(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "match", "X", "--amount", "lots")
        assert result.exit_code == 1


class TestImportCommand:
    """import command error handling."""

    def test_collision_warning(self, cli_runner, temp_db, sample_entities, tmp_path):
        invoke(cli_runner, temp_db, "rule", "add", "Coffee", "--value", "STARBUCKS", "--category", "Dining")
        drafts_file = tmp_path / "drafts.json"
        drafts_file.write_text(
            json.dumps(
                [
                    {
                        "id": "d1",
                        "name": "coffee",
                        "conditions": [{"field": "description", "operator": "contains", "value": "BEANS"}],
                        "suggestedCategoryName": "Groceries",
                    },
                    {"id": "d2", "name": "   ", "conditions": []},
                ]
            )
        )

        result = invoke(cli_runner, temp_db, "import", str(drafts_file))
        assert result.exit_code == 0, result.output
        assert "[COLLISION] coffee" in result.output
        assert "both rules will be kept" in result.output
        assert "Rejected: Draft d2 has an empty name" in result.output
        assert "New: 0, Merged: 0, Collisions: 1, Rejected: 1" in result.output

    def test_malformed_file(self, cli_runner, temp_db, tmp_path):
        drafts_file = tmp_path / "drafts.json"
        drafts_file.write_text("[{")

        result = invoke(cli_runner, temp_db, "import", str(drafts_file))
        assert result.exit_code == 1
        assert "not valid JSON" in result.output
