"""Export command."""

from pathlib import Path

import click

from beans.cli.commands.entry import build_entry_filter, filter_options
from beans.cli.error_handling import handle_domain_error
from beans.domain.errors import DomainError
from beans.domain.export import entries_to_csv, entries_to_json


@click.command("export")
@filter_options
@click.option("--format", "output_format", type=click.Choice(["json", "csv"]), default="csv", show_default=True, help="Output format")
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), help="Write to this file instead of stdout")
@click.pass_context
def export_entries(ctx, output_format: str, output: str | None, **kwargs) -> None:
    """Export entries as JSON or CSV.

    Examples:
        beans export --format csv --this-year -o 2024.csv
        beans export --format json --tag groceries
    """
    ledger = ctx.obj["ledger"]
    entry_filter = build_entry_filter(ctx, kwargs)

    try:
        entries = ledger.list_entries(entry_filter)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if output_format == "json":
        content = entries_to_json(entries)
    else:
        content = entries_to_csv(entries)

    if output is None:
        click.echo(content, nl=False)
        return

    Path(output).write_text(content, encoding="utf-8")
    click.echo(f"Exported {len(entries)} entries to {output}")


def register_commands(cli):
    """Register export command with main CLI."""
    cli.add_command(export_entries)
