"""Main CLI entry point."""

import click

from beans import config
from beans.cli.error_handling import handle_domain_error
from beans.domain.errors import DomainError
from beans.domain.ledger import LedgerManager

# Import and register all commands at module level
from beans.cli.commands import entry, export, report


@click.group()
@click.option(
    "--ledger",
    "ledger_path",
    type=click.Path(dir_okay=False),
    help="Path to the .bean ledger file (overrides BEANS_LEDGER_PATH environment variable)",
    envvar="BEANS_LEDGER_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Log level (overrides BEANS_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, ledger_path: str | None, log_level: str | None):
    """Beans - personal multi-currency ledger.

    Record income and expenses in any currency, tag them, and build
    summaries and reports converted to a single currency.
    """
    ctx.ensure_object(dict)
    config.configure_logging(log_level)

    # Open the ledger only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            ledger = LedgerManager.open(ledger_path or config.LEDGER_PATH)
        except DomainError as e:
            handle_domain_error(ctx, e)
        ctx.obj["ledger"] = ledger
        ctx.call_on_close(ledger.close)


# Register all commands
entry.register_commands(cli)
report.register_commands(cli)
export.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
