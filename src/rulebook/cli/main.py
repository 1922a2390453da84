"""Main CLI entry point."""

import logging

import click
from rulebook.database.factories import DB_PATH_ENVVAR, create_sqlite_database

# Import and register all commands at module level
from rulebook.cli.commands import (
    entity,
    import_cmd,
    match,
    rule,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENVVAR} environment variable)",
    envvar=DB_PATH_ENVVAR,
)
@click.option("-v", "--verbose", is_flag=True, help="Log reconciliation details")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Rulebook - transaction rules and rule import reconciliation.

    Keep categorization rules, test them against transaction records, and
    import suggested rules without duplicating rules, categories,
    counterparties or locations.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
rule.register_commands(cli)
entity.register_commands(cli)
import_cmd.register_commands(cli)
match.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
