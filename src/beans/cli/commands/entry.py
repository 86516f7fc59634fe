"""Entry management commands."""

from uuid import UUID

import click

from beans.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from beans.cli.error_handling import handle_domain_error
from beans.domain.builder import LedgerEntryBuilder
from beans.domain.entities import EntryFilter, EntryType, LedgerEntry
from beans.domain.errors import DomainError
from beans.utils.amount_parser import parse_amount
from beans.utils.date_parser import parse_datetime

ENTRY_TYPES = click.Choice(["income", "expense"], case_sensitive=False)


def _parse_amount_option(ctx, amount: str):
    try:
        return parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def _parse_date_option(ctx, value: str):
    try:
        return parse_datetime(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def format_entry_row(entry: LedgerEntry) -> str:
    tags = ", ".join(tag.name for tag in entry.sorted_tags)
    amount = entry.currency.format_amount(entry.amount)
    if entry.entry_type == EntryType.EXPENSE:
        amount = f"-{amount}"
    return (
        f"{str(entry.id):<36}  {entry.date:%Y-%m-%d}  {entry.name[:24]:<24} "
        f"{amount:>18}  {tags}"
    )


@click.command("add")
@click.option("--name", required=True, help="Entry name (e.g., 'Salary', 'Rent')")
@click.option("--amount", required=True, help="Amount, never negative (e.g., 1200.00)")
@click.option("--currency", required=True, help="ISO 4217 currency code (e.g., USD)")
@click.option("--type", "entry_type", required=True, type=ENTRY_TYPES, help="Entry type")
@click.option("--date", help="Entry date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--description", help="Optional description")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.pass_context
def add_entry(ctx, name, amount, currency, entry_type, date, description, tags) -> None:
    """Add an income or expense entry.

    Examples:
        beans add --name Salary --amount 5000 --currency USD --type income --tag salary
        beans add --name Rent --amount 1200 --currency USD --type expense --date 2024-01-05
    """
    ledger = ctx.obj["ledger"]

    builder = (
        LedgerEntryBuilder()
        .name(name)
        .amount(_parse_amount_option(ctx, amount))
        .currency(currency)
        .entry_type(entry_type)
        .description(description)
        .tags(tags)
    )
    if date is not None:
        builder.date(_parse_date_option(ctx, date))

    try:
        entry = builder.build()
        ledger.add_entry(entry)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Added entry {entry.id}: {entry.summary()}")


@click.command("edit")
@click.argument("entry_id", type=click.UUID)
@click.option("--name", help="Entry name")
@click.option("--amount", help="Amount, never negative")
@click.option("--currency", help="ISO 4217 currency code")
@click.option("--type", "entry_type", type=ENTRY_TYPES, help="Entry type")
@click.option("--date", help="Entry date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--description", help="Description, or empty string to clear")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable); replaces existing tags")
@click.option("--clear-tags", is_flag=True, help="Remove all tags")
@click.pass_context
def edit_entry(
    ctx,
    entry_id: UUID,
    name,
    amount,
    currency,
    entry_type,
    date,
    description,
    tags,
    clear_tags: bool,
) -> None:
    """Update an entry.

    Updates only the fields that are provided.

    Examples:
        beans edit 5f0c... --amount 1250.00
        beans edit 5f0c... --tag housing --tag monthly
    """
    ledger = ctx.obj["ledger"]

    if tags and clear_tags:
        click.echo("Error: --tag cannot be combined with --clear-tags", err=True)
        ctx.exit(1)

    try:
        builder = ledger.get_entry(entry_id).to_builder()
    except DomainError as e:
        handle_domain_error(ctx, e)

    if name is not None:
        builder.name(name)
    if amount is not None:
        builder.amount(_parse_amount_option(ctx, amount))
    if currency is not None:
        builder.currency(currency)
    if entry_type is not None:
        builder.entry_type(entry_type)
    if date is not None:
        builder.date(_parse_date_option(ctx, date))
    if description is not None:
        builder.description(description)
    if tags or clear_tags:
        builder.tags(tags)

    try:
        entry = ledger.update_entry(builder.build())
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated entry {entry.id}: {entry.summary()}")


@click.command("delete")
@click.argument("entry_id", type=click.UUID)
@click.pass_context
def delete_entry(ctx, entry_id: UUID) -> None:
    """Delete an entry.

    Examples:
        beans delete 5f0c...
    """
    ledger = ctx.obj["ledger"]
    try:
        entry = ledger.get_entry(entry_id)
        ledger.delete_entry(entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deleted entry {entry.id}: {entry.summary()}")


def build_entry_filter(ctx, kwargs: dict) -> EntryFilter:
    """Build an EntryFilter from the shared list/export options."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=kwargs.pop("start_date"),
        end_date=kwargs.pop("end_date"),
        period_flags=period_flags_from(kwargs),
    )
    try:
        return EntryFilter(
            start=start,
            end=end,
            entry_type=kwargs.get("entry_type"),
            currency=kwargs.get("currency"),
            tags=kwargs.get("tags") or (),
            limit=kwargs.get("limit"),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


def filter_options(command):
    """Attach the entry filter options shared by list and export."""
    command = click.option("--tag", "tags", multiple=True, help="Only entries carrying this tag (repeatable, all must match)")(command)
    command = click.option("--currency", help="Only entries in this currency")(command)
    command = click.option("--type", "entry_type", type=ENTRY_TYPES, help="Only income or only expenses")(command)
    return period_options(command)


@click.command("list")
@filter_options
@click.option("--limit", type=click.IntRange(min=0), help="Show at most this many entries")
@click.pass_context
def list_entries(ctx, **kwargs) -> None:
    """View entries with optional filters.

    Tag filters are combined: an entry is shown only if it carries every
    tag given.
    """
    ledger = ctx.obj["ledger"]
    entry_filter = build_entry_filter(ctx, kwargs)

    try:
        entries = ledger.list_entries(entry_filter)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not entries:
        click.echo("No entries found.")
        return

    click.echo(f"\nFound {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}:")
    click.echo("-" * 100)
    click.echo(f"{'ID':<36}  {'Date':<10}  {'Name':<24} {'Amount':>18}  Tags")
    click.echo("-" * 100)
    for entry in entries:
        click.echo(format_entry_row(entry))


@click.command("tags")
@click.pass_context
def list_tags(ctx) -> None:
    """List tags in use."""
    ledger = ctx.obj["ledger"]
    try:
        tags = ledger.list_tags()
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not tags:
        click.echo("No tags found.")
        return
    for tag in tags:
        click.echo(tag.name)


def register_commands(cli):
    """Register entry commands with main CLI."""
    cli.add_command(add_entry)
    cli.add_command(edit_entry)
    cli.add_command(delete_entry)
    cli.add_command(list_entries)
    cli.add_command(list_tags)
