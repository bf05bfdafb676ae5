"""Main CLI entry point."""

import logging

import click
from parishledger.database.factories import create_sqlite_database

# Import and register all commands at module level
from parishledger.cli.commands import (
    member,
    import_cmd,
    envelope,
    contribution,
    report,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides PARISHLEDGER_DB_PATH environment variable)",
    envvar="PARISHLEDGER_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="PARISHLEDGER_LOG_LEVEL",
    help="Logging level",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Parishledger - Parish contribution reconciliation.

    Import bank statements, match transfers to members by their bank
    reference, and record weekly cash envelope collections.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None and "db" not in ctx.obj:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
member.register_commands(cli)
import_cmd.register_commands(cli)
envelope.register_commands(cli)
contribution.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
