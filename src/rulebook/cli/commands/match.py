"""Commands that run the rule selector against records."""

import click
from rulebook.cli.error_handling import handle_domain_error
from rulebook.domain.entities import TransactionRecord
from rulebook.domain.errors import DomainError
from rulebook.domain.rule_service import RuleService
from rulebook.domain.selector import SelectionOutcome, SelectionResult
from rulebook.utils.parsers import parse_amount
from rulebook.utils.record_loader import load_records


def describe_selection(selection: SelectionResult) -> str:
    """One-line summary of a selection result."""
    if selection.outcome == SelectionOutcome.NONE:
        return "no matching rule"
    if selection.outcome == SelectionOutcome.SUPPRESSED:
        return f"suppressed by '{selection.rule.name}'"
    return f"matched '{selection.rule.name}'"


@click.command("match")
@click.argument("description")
@click.option("--amount", default="0", help="Record amount")
@click.option("--account", "account_id", help="Account ID")
@click.option("--counterparty", "counterparty_id", help="Counterparty ID")
@click.option("--location", "location_id", help="Location ID")
@click.option("--user", "user_id", help="User ID")
@click.option("--tag", "tags", multiple=True, help="Tag ID (repeatable)")
@click.pass_context
def match_record(ctx, description, amount, account_id, counterparty_id, location_id, user_id, tags):
    """Show which rule governs a single record."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        record = TransactionRecord(
            description=description,
            amount=parse_amount(amount),
            account_id=account_id,
            counterparty_id=counterparty_id,
            location_id=location_id,
            user_id=user_id,
            tag_ids=tuple(tags),
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    selection = service.select_for_record(record)
    for error in selection.invalid_rules:
        click.echo(f"Warning: {error}", err=True)

    click.echo(describe_selection(selection))
    if selection.outcome == SelectionOutcome.NONE:
        ctx.exit(1)


@click.command("apply")
@click.argument("csv_file", type=click.Path(exists=True))
@click.pass_context
def apply_rules(ctx, csv_file: str):
    """Run the rules over every record in CSV_FILE and report the outcome."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        loaded = load_records(csv_file)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    results = service.categorize_records(loaded["records"])
    counts = {outcome: 0 for outcome in SelectionOutcome}
    reported = set()
    for record, selection in results:
        counts[selection.outcome] += 1
        click.echo(f"  {record.description} ({record.amount}): {describe_selection(selection)}")
        for error in selection.invalid_rules:
            if error.rule_id not in reported:
                reported.add(error.rule_id)
                click.echo(f"Warning: {error}", err=True)

    for error in loaded["errors"]:
        click.echo(f"  {error}", err=True)

    click.echo(
        f"\nMatched: {counts[SelectionOutcome.MATCHED]}, "
        f"Suppressed: {counts[SelectionOutcome.SUPPRESSED]}, "
        f"Unmatched: {counts[SelectionOutcome.NONE]}"
    )


def register_commands(cli):
    """Register match and apply commands with main CLI."""
    cli.add_command(match_record)
    cli.add_command(apply_rules)
