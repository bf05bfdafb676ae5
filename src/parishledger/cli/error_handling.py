"""CLI error handling helpers."""

import click

from parishledger.domain.errors import BatchRejectedError, DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if isinstance(error, BatchRejectedError):
        click.echo(f"Error: Batch rejected ({len(error.rejections)} problems):", err=True)
        for rejection in error.rejections:
            if rejection.register_number is None:
                click.echo(f"  {rejection.reason}", err=True)
            else:
                click.echo(f"  #{rejection.register_number} ({rejection.amount}): {rejection.reason}", err=True)
        ctx.exit(1)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
