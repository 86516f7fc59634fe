"""CLI error handling helpers."""

import click

from beans.domain.errors import ConversionError, DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, ConversionError) and error.transient:
        click.echo("The rate source may be temporarily unavailable; try again later.", err=True)
    ctx.exit(1)
