"""Summary and report commands."""

import asyncio

import click

from beans.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from beans.cli.error_handling import handle_domain_error
from beans.domain.entities import Granularity, PeriodSummary
from beans.domain.errors import DomainError
from beans.domain.export import (
    income_expense_report_to_csv,
    income_expense_report_to_json,
    tagged_report_to_csv,
    tagged_report_to_json,
)
from beans.domain.reports import ReportGenerator
from beans.rates.converter import CurrencyConverter
from beans.utils.date_parser import get_date_range

GRANULARITIES = click.Choice([member.value for member in Granularity], case_sensitive=False)
OUTPUT_FORMATS = click.Choice(["text", "json", "csv"], case_sensitive=False)


def resolve_report_range(ctx, kwargs: dict):
    """Resolve the report range, defaulting to the current month."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=kwargs.pop("start_date"),
        end_date=kwargs.pop("end_date"),
        period_flags=period_flags_from(kwargs),
        default_range=get_date_range("this-month"),
    )
    if start is None or end is None:
        click.echo("Error: Reports need both --start and --end (or a period option).", err=True)
        ctx.exit(1)
    return start, end


def run_report(ctx, target_currency: str | None, build):
    """Run ``build(generator)`` to completion, with a converter if needed."""

    async def runner():
        if target_currency is None:
            return await build(ReportGenerator(ctx.obj["ledger"]))
        async with CurrencyConverter() as converter:
            return await build(ReportGenerator(ctx.obj["ledger"], converter))

    try:
        return asyncio.run(runner())
    except DomainError as e:
        handle_domain_error(ctx, e)


def _money(value, currency: str | None) -> str:
    suffix = f" {currency}" if currency else ""
    return f"{value:,.2f}{suffix}"


def _echo_summary(summary: PeriodSummary) -> None:
    click.echo(f"{'Income':<20} {_money(summary.income, summary.currency):>24}")
    click.echo(f"{'Expenses':<20} {_money(summary.expenses, summary.currency):>24}")
    click.echo("-" * 45)
    click.echo(f"{'Net':<20} {_money(summary.net, summary.currency):>24}")


@click.command("summary")
@period_options
@click.option("--type", "entry_type", type=click.Choice(["income", "expense"], case_sensitive=False), help="Only income or only expenses")
@click.option("--tag", "tags", multiple=True, help="Only entries carrying this tag (repeatable, all must match)")
@click.option("--to", "target_currency", help="Convert all amounts into this currency")
@click.pass_context
def summary(ctx, entry_type, tags, target_currency, **kwargs):
    """Show income, expenses and net for a period (default: this month).

    Entries in different currencies can only be summed with --to.
    """
    start, end = resolve_report_range(ctx, kwargs)
    result = run_report(
        ctx,
        target_currency,
        lambda generator: generator.period_summary(
            start, end, entry_type=entry_type, tags=tags, target_currency=target_currency
        ),
    )

    click.echo(f"\nSummary {start:%Y-%m-%d} to {end:%Y-%m-%d} (exclusive):")
    click.echo("-" * 45)
    _echo_summary(result)


@click.command("report")
@period_options
@click.option("--granularity", type=GRANULARITIES, default="monthly", show_default=True, help="Bucket width")
@click.option("--format", "output_format", type=OUTPUT_FORMATS, default="text", show_default=True, help="Output format")
@click.option("--tag", "tags", multiple=True, help="Only entries carrying this tag (repeatable, all must match)")
@click.option("--to", "target_currency", help="Convert all amounts into this currency")
@click.pass_context
def income_expense_report(ctx, granularity, output_format, tags, target_currency, **kwargs):
    """Show income and expenses per day, week, month, quarter or year."""
    start, end = resolve_report_range(ctx, kwargs)
    report = run_report(
        ctx,
        target_currency,
        lambda generator: generator.income_expense_report(
            start, end, granularity, target_currency=target_currency, tags=tags
        ),
    )

    if output_format == "json":
        click.echo(income_expense_report_to_json(report))
        return
    if output_format == "csv":
        click.echo(income_expense_report_to_csv(report), nl=False)
        return

    click.echo(f"\n{report.granularity.value.capitalize()} report:")
    click.echo("-" * 80)
    click.echo(f"{'Period':<12} {'Income':>22} {'Expenses':>22} {'Net':>22}")
    click.echo("-" * 80)
    for bucket in report.buckets:
        click.echo(
            f"{bucket.period_start:%Y-%m-%d}   "
            f"{_money(bucket.income_total, report.currency):>22} "
            f"{_money(bucket.expense_total, report.currency):>22} "
            f"{_money(bucket.net, report.currency):>22}"
        )
    click.echo("-" * 80)
    click.echo(
        f"{'TOTAL':<12} {_money(report.summary.income, report.currency):>22} "
        f"{_money(report.summary.expenses, report.currency):>22} "
        f"{_money(report.summary.net, report.currency):>22}"
    )


@click.command("tag-report")
@period_options
@click.option("--to", "target_currency", help="Convert all amounts into this currency")
@click.option("--format", "output_format", type=OUTPUT_FORMATS, default="text", show_default=True, help="Output format")
@click.pass_context
def tag_report(ctx, target_currency, output_format, **kwargs):
    """Show income and expenses per tag.

    An entry with several tags is counted under each of them.
    """
    start, end = resolve_report_range(ctx, kwargs)
    report = run_report(
        ctx,
        target_currency,
        lambda generator: generator.tagged_report(start, end, target_currency=target_currency),
    )

    if output_format == "json":
        click.echo(tagged_report_to_json(report))
        return
    if output_format == "csv":
        click.echo(tagged_report_to_csv(report), nl=False)
        return

    if not report.net_by_tag:
        click.echo("No entries found.")
        return

    click.echo("\nTag Report:")
    click.echo("-" * 80)
    click.echo(f"{'Tag':<20} {'Income':>18} {'Expenses':>18} {'Net':>18}")
    click.echo("-" * 80)
    for tag, net in report.net_by_tag.items():
        click.echo(
            f"{tag:<20} {_money(report.income_by_tag[tag], report.currency):>18} "
            f"{_money(report.expenses_by_tag[tag], report.currency):>18} "
            f"{_money(net, report.currency):>18}"
        )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(summary)
    cli.add_command(income_expense_report)
    cli.add_command(tag_report)
