"""Reference entity and transaction type commands."""

import click
from rulebook.cli.error_handling import handle_domain_error
from rulebook.domain.entities import EntityKind
from rulebook.domain.entity_service import EntityService
from rulebook.domain.errors import DomainError

KIND_CHOICE = click.Choice([kind.value for kind in EntityKind], case_sensitive=False)


def print_entity_tree(entities: list[dict], indent: int = 0) -> None:
    """Recursively print entity tree."""
    for entity in entities:
        prefix = "  " * indent
        click.echo(f"{prefix}{entity['name']} (ID: {entity['id']})")
        if entity.get("children"):
            print_entity_tree(entity["children"], indent + 1)


@click.group()
def entity_group():
    """Manage categories, counterparties and locations."""
    pass


@entity_group.command("list")
@click.argument("kind", type=KIND_CHOICE)
@click.pass_context
def list_entities(ctx, kind: str):
    """List entities of KIND in tree format."""
    db = ctx.obj["db"]
    service = EntityService(db)
    entity_kind = EntityKind(kind.lower())

    tree = service.get_entity_tree(entity_kind)
    if not tree:
        click.echo(f"No {entity_kind.value} entities found.")
        return

    click.echo(f"\n{entity_kind.value.capitalize()} entities:")
    print_entity_tree(tree)


@entity_group.command("create")
@click.argument("kind", type=KIND_CHOICE)
@click.argument("name")
@click.option("--parent", help="Name of the parent entity of the same kind")
@click.pass_context
def create_entity(ctx, kind: str, name: str, parent: str | None):
    """Create an entity of KIND named NAME."""
    db = ctx.obj["db"]
    service = EntityService(db)
    entity_kind = EntityKind(kind.lower())

    try:
        entity_id = service.create_entity(entity_kind, name, parent_name=parent)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    parent_str = f" under '{parent}'" if parent else ""
    click.echo(f"Created {entity_kind.value} '{name}'{parent_str} (ID: {entity_id})")


@click.group()
def type_group():
    """Manage transaction types."""
    pass


@type_group.command("list")
@click.pass_context
def list_types(ctx):
    """List transaction types."""
    db = ctx.obj["db"]
    types = EntityService(db).list_transaction_types()
    if not types:
        click.echo("No transaction types found.")
        return
    for transaction_type in types:
        click.echo(f"{transaction_type.name} (ID: {transaction_type.id})")


@type_group.command("add")
@click.argument("name")
@click.pass_context
def add_type(ctx, name: str):
    """Create a transaction type."""
    db = ctx.obj["db"]
    try:
        type_id = EntityService(db).create_transaction_type(name)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created transaction type '{name}' (ID: {type_id})")


def register_commands(cli):
    """Register entity and type commands with main CLI."""
    cli.add_command(entity_group, name="entity")
    cli.add_command(type_group, name="type")
