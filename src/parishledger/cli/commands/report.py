"""Reporting commands."""

from datetime import date

import click
from parishledger.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from parishledger.cli.error_handling import handle_domain_error
from parishledger.domain.contribution import ContributionLedger
from parishledger.domain.errors import DomainError
from parishledger.utils.amount_parser import format_money


@click.group()
def report_group():
    """Contribution reports."""
    pass


@report_group.command("totals")
@period_options
@click.pass_context
def totals(ctx, start_date, end_date, this_month, this_year, last_month, last_year):
    """Show contribution totals by type for a period (default: this year)."""
    db = ctx.obj["db"]
    ledger = ContributionLedger(db)

    today = date.today()
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(this_month, this_year, last_month, last_year),
        default_range=(today.replace(month=1, day=1), today),
    )

    by_type = ledger.totals_by_type(start_date=start, end_date=end)
    total = ledger.total_for_period(start_date=start, end_date=end)

    start_str = f"{start:%d/%m/%Y}" if start else "beginning"
    end_str = f"{end:%d/%m/%Y}" if end else "today"
    click.echo(f"\nContributions {start_str} to {end_str}")
    click.echo("-" * 40)
    for contribution_type, amount in by_type.items():
        click.echo(f"{contribution_type.value:<20} {format_money(amount):>15}")
    click.echo("-" * 40)
    click.echo(f"{'Total':<20} {format_money(total):>15}")


@report_group.command("statement")
@click.argument("member_id", type=int)
@click.option("--year", type=int, help="Calendar year (default: current year)")
@click.pass_context
def statement(ctx, member_id: int, year: int | None):
    """Show a member's annual contribution statement."""
    db = ctx.obj["db"]
    ledger = ContributionLedger(db)

    year = year or date.today().year
    try:
        result = ledger.member_statement(member_id, year)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nContribution statement {year}: {result.member_name}")
    click.echo("-" * 60)
    for c in sorted(result.contributions, key=lambda c: (c.date, c.id)):
        click.echo(f"{c.date:%d/%m/%Y}  {c.contribution_type.value:8s}  {format_money(c.amount):>10}  {c.transaction_ref}")
    click.echo("-" * 60)
    for contribution_type, amount in result.totals_by_type.items():
        click.echo(f"{contribution_type.value:<20} {format_money(amount):>10}")
    click.echo(f"{'Total':<20} {format_money(result.total):>10}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
