"""CLI helpers for date range resolution."""

from datetime import datetime, timedelta

import click

from beans.utils.date_parser import get_date_range, parse_date, to_utc_datetime

PERIOD_OPTIONS = ("this-month", "this-year", "this-week", "last-month", "last-year", "last-week")


def period_options(command):
    """Attach --start/--end and the named period flags to a command."""
    options = [
        click.option("--start", "start_date", help="Start date (YYYY-MM-DD or relative like 'last month')"),
        click.option("--end", "end_date", help="End date, inclusive (YYYY-MM-DD or relative like 'today')"),
    ]
    for period in PERIOD_OPTIONS:
        label = period.replace("-", " ")
        options.append(click.option(f"--{period}", is_flag=True, help=f"Limit to {label}"))
    for option in reversed(options):
        command = option(command)
    return command


def period_flags_from(kwargs: dict) -> dict[str, bool]:
    """Pop the period flags set by ``period_options`` out of ``kwargs``."""
    return {period: kwargs.pop(period.replace("-", "_"), False) for period in PERIOD_OPTIONS}


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[datetime, datetime] | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Resolve a half-open UTC range from period flags or explicit dates.

    ``--end`` names the last day included, so the returned end is the
    midnight after it.
    """
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        click.echo(
            "Error: Only one period option (--this-month, --this-year, --this-week, --last-month, --last-year, --last-week) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start or --end.",
            err=True,
        )
        ctx.exit(1)

    start = None
    end = None

    if period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                start, end = get_date_range(period)
                break
    else:
        if start_date:
            try:
                start = to_utc_datetime(parse_date(start_date))
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)

        if end_date:
            try:
                end = to_utc_datetime(parse_date(end_date)) + timedelta(days=1)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

        if start is None and end is None and default_range is not None:
            start, end = default_range

    return start, end
