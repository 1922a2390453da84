"""Rule management commands."""

import click
from rulebook.cli.error_handling import handle_domain_error
from rulebook.domain.conditions import FIELDS, OPERATORS
from rulebook.domain.entities import EntityKind, ReconciliationRule
from rulebook.domain.entity_service import EntityService
from rulebook.domain.errors import DomainError
from rulebook.domain.rule_service import RuleService
from rulebook.utils.record_loader import load_records


def format_conditions(rule: ReconciliationRule) -> str:
    """Render a rule's condition chain on one line."""
    parts = []
    for index, condition in enumerate(rule.conditions):
        parts.append(f"{condition.field} {condition.operator} '{condition.value}'")
        if index < len(rule.conditions) - 1:
            parts.append(condition.chain.value)
    return " ".join(parts) or "(no conditions)"


def describe_assignments(rule: ReconciliationRule, entity_service: EntityService) -> list[str]:
    """Human-readable list of what a rule assigns."""
    if rule.skip_import:
        return ["skip import"]
    lines = []
    for kind in EntityKind:
        target = rule.target_id(kind)
        if target:
            name = entity_service.format_entity_path(kind, target) or target
            lines.append(f"{kind.value}: {name}")
    if rule.set_transaction_type_id:
        lines.append(f"type: {rule.set_transaction_type_id}")
    if rule.set_user_id:
        lines.append(f"user: {rule.set_user_id}")
    if rule.set_description:
        lines.append(f"description: {rule.set_description}")
    if rule.assign_tag_ids:
        lines.append(f"tags: {', '.join(rule.assign_tag_ids)}")
    return lines


@click.group()
def rule_group():
    """Manage reconciliation rules."""
    pass


@rule_group.command("list")
@click.pass_context
def list_rules(ctx):
    """List all rules, highest priority first."""
    db = ctx.obj["db"]
    service = RuleService(db)

    rules = service.list_rules()
    if not rules:
        click.echo("No rules found.")
        return

    click.echo(f"\n{'Priority':>8}  {'Name':<30}  Conditions")
    click.echo("-" * 80)
    for rule in rules:
        skip = " [skip]" if rule.skip_import else ""
        click.echo(f"{rule.priority:>8}  {rule.name:<30}  {format_conditions(rule)}{skip}")


@rule_group.command("show")
@click.argument("rule_ref")
@click.pass_context
def show_rule(ctx, rule_ref: str):
    """Show a rule by ID or name."""
    db = ctx.obj["db"]
    service = RuleService(db)
    entity_service = EntityService(db)

    rule = service.get_rule(rule_ref)
    if rule is None:
        click.echo(f"Error: Rule '{rule_ref}' not found", err=True)
        ctx.exit(1)

    click.echo(f"Rule: {rule.name} (ID: {rule.id})")
    click.echo(f"  Priority: {rule.priority}")
    click.echo(f"  Conditions: {format_conditions(rule)}")
    for line in describe_assignments(rule, entity_service):
        click.echo(f"  Sets {line}")


@rule_group.command("add")
@click.argument("name")
@click.option("--field", type=click.Choice(FIELDS), default="description", show_default=True)
@click.option("--operator", type=click.Choice(OPERATORS), default="contains", show_default=True)
@click.option("--value", required=True, help="Value to match; separate alternatives with ' || '")
@click.option("--priority", type=int, default=0, show_default=True)
@click.option("--skip-import", is_flag=True, help="Drop matching records on import")
@click.option("--category", help="Category name to assign")
@click.option("--counterparty", help="Counterparty name to assign")
@click.option("--location", help="Location name to assign")
@click.option("--set-description", help="Replacement description")
@click.option("--tag", "tags", multiple=True, help="Tag ID to add (repeatable)")
@click.pass_context
def add_rule(
    ctx,
    name: str,
    field: str,
    operator: str,
    value: str,
    priority: int,
    skip_import: bool,
    category: str | None,
    counterparty: str | None,
    location: str | None,
    set_description: str | None,
    tags: tuple[str, ...],
):
    """Create a single-condition rule.

    Examples:
        rulebook rule add Coffee --value "STARBUCKS || PEETS" --category Dining
        rulebook rule add Transfers --value "XFER" --skip-import --priority 10
    """
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        rule_id = service.create_rule(
            name=name,
            field=field,
            operator=operator,
            value=value,
            priority=priority,
            skip_import=skip_import,
            category=category,
            counterparty=counterparty,
            location=location,
            set_description=set_description,
            tag_ids=tags,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Created rule '{name}' (ID: {rule_id})")


@rule_group.command("preview")
@click.argument("rule_ref")
@click.argument("csv_file", type=click.Path(exists=True))
@click.pass_context
def preview_rule(ctx, rule_ref: str, csv_file: str):
    """Show which records in CSV_FILE a rule would change."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        loaded = load_records(csv_file)
        pairs = service.preview_rule(rule_ref, loaded["records"])
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    for error in loaded["errors"]:
        click.echo(f"  {error}", err=True)

    if not pairs:
        click.echo("No records would change.")
        return

    click.echo(f"{len(pairs)} record(s) would change:")
    for original, updated in pairs:
        click.echo(f"  {original.description} ({original.amount})")
        for attr in ("category_id", "counterparty_id", "location_id", "user_id", "type_id", "description"):
            before, after = getattr(original, attr), getattr(updated, attr)
            if before != after:
                click.echo(f"    {attr}: {before or '-'} -> {after}")
        if updated.tag_ids != original.tag_ids:
            click.echo(f"    tags: {', '.join(updated.tag_ids)}")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
