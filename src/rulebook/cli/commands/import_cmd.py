"""Rule import command."""

import click
from rulebook.cli.error_handling import handle_domain_error
from rulebook.domain.errors import DomainError
from rulebook.domain.reconciler import CommitPlan, DraftOutcome
from rulebook.domain.rule_service import RuleService
from rulebook.utils.draft_loader import load_drafts

OUTCOME_LABELS = {
    DraftOutcome.NEW: "new",
    DraftOutcome.MERGE: "merge",
    DraftOutcome.COLLISION: "COLLISION",
}


def print_plan(plan: CommitPlan) -> None:
    """Print the per-draft audit trail of an import."""
    for classification in plan.classifications:
        label = OUTCOME_LABELS[classification.outcome]
        line = f"  [{label}] {classification.draft.name.strip()} -> rule {classification.preview.id}"
        if classification.outcome == DraftOutcome.MERGE:
            line += f" (values: {classification.preview.conditions[0].value})"
        click.echo(line)
        if classification.outcome == DraftOutcome.COLLISION:
            click.echo(
                f"    Warning: rule '{classification.existing_rule.name}' already exists "
                "with a different category; both rules will be kept"
            )

    for rejected in plan.rejected:
        click.echo(f"  Rejected: {rejected.error}", err=True)
    for inconsistency in plan.inconsistencies:
        click.echo(f"  Warning: {inconsistency}", err=True)

    for kind, entities in plan.entities_to_create.items():
        names = ", ".join(entity.name for entity in entities)
        click.echo(f"  New {kind.value} entities: {names}")


@click.command("import")
@click.argument("drafts_file", type=click.Path(exists=True))
@click.option("--dry-run", is_flag=True, help="Show the plan without saving anything")
@click.option(
    "--dedupe-merged",
    is_flag=True,
    help="Drop repeated match values when merging into an existing rule",
)
@click.pass_context
def import_rules(ctx, drafts_file: str, dry_run: bool, dedupe_merged: bool):
    """Import suggested rules from a JSON drafts file."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        drafts = load_drafts(drafts_file)
        plan = service.import_drafts(drafts, dry_run=dry_run, dedupe_alternatives=dedupe_merged)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport plan:" if dry_run else "\nImport complete:")
    print_plan(plan)
    click.echo(
        f"  New: {plan.count(DraftOutcome.NEW)}, "
        f"Merged: {plan.count(DraftOutcome.MERGE)}, "
        f"Collisions: {plan.count(DraftOutcome.COLLISION)}, "
        f"Rejected: {len(plan.rejected)}"
    )
    if dry_run:
        click.echo("Dry run: nothing was saved.")


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_rules)
