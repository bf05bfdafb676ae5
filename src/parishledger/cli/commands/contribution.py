"""Contribution commands."""

import click
from parishledger.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from parishledger.cli.error_handling import handle_domain_error
from parishledger.domain.contribution import ContributionLedger
from parishledger.domain.errors import DomainError
from parishledger.utils.amount_parser import format_money, parse_amount
from parishledger.utils.date_parser import parse_date


@click.group()
def contribution_group():
    """Add, link and review contributions."""
    pass


@contribution_group.command("add")
@click.argument("member_id", type=int)
@click.argument("amount")
@click.option("--date", "date_str", default="today", help="Contribution date (default: today)")
@click.option("--description", help="Description")
@click.option("--corrects", "corrects_id", type=int, help="ID of the contribution this one corrects")
@click.option("--created-by", envvar="PARISHLEDGER_USER", default="system", help="User recorded on the contribution")
@click.pass_context
def add_contribution(
    ctx,
    member_id: int,
    amount: str,
    date_str: str,
    description: str | None,
    corrects_id: int | None,
    created_by: str,
):
    """Record a one-off cash contribution.

    Use --corrects to record a correction to an envelope line; submitted
    batches themselves are never changed.

    Examples:
        parishledger contribution add 3 50.00 --description "Harvest appeal"
        parishledger contribution add 3 15.00 --corrects 42 --description "Envelope 101 was £15"
    """
    db = ctx.obj["db"]
    ledger = ContributionLedger(db)

    try:
        value = parse_amount(amount)
        when = parse_date(date_str)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        contribution_id = ledger.add_one_off_contribution(
            member_id=member_id,
            amount=value,
            date=when,
            description=description,
            created_by=created_by,
            corrects_contribution_id=corrects_id,
        )
        click.echo(f"Added contribution {contribution_id}: £{value:,.2f} for member {member_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@contribution_group.command("link")
@click.argument("transaction_id", type=int)
@click.argument("member_id", type=int)
@click.option("--linked-by", envvar="PARISHLEDGER_USER", default="system", help="User recorded on the contribution")
@click.pass_context
def link_transaction(ctx, transaction_id: int, member_id: int, linked_by: str):
    """Attribute an unmatched bank transaction to a member."""
    db = ctx.obj["db"]
    ledger = ContributionLedger(db)

    try:
        contribution_id = ledger.link_transaction(transaction_id, member_id, linked_by=linked_by)
        click.echo(f"Linked transaction {transaction_id} to member {member_id} (contribution {contribution_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@contribution_group.command("history")
@click.argument("member_id", type=int)
@period_options
@click.pass_context
def history(ctx, member_id: int, start_date, end_date, this_month, this_year, last_month, last_year):
    """Show a member's contributions."""
    db = ctx.obj["db"]
    ledger = ContributionLedger(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(this_month, this_year, last_month, last_year),
    )
    try:
        contributions = ledger.member_history(member_id, start_date=start, end_date=end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not contributions:
        click.echo("No contributions found.")
        return

    click.echo(f"\nContributions for member {member_id}:")
    click.echo("-" * 78)
    for c in contributions:
        note = f" (corrects {c.corrects_contribution_id})" if c.corrects_contribution_id else ""
        click.echo(
            f"ID: {c.id:5d} | {c.date:%d/%m/%Y} | {c.contribution_type.value:8s} | "
            f"{format_money(c.amount):>9} | {c.transaction_ref}{note}"
        )


@contribution_group.command("delete")
@click.argument("contribution_id", type=int)
@click.option("--deleted-by", envvar="PARISHLEDGER_USER", default="system", help="User recorded on the deletion")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_contribution(ctx, contribution_id: int, deleted_by: str, yes: bool):
    """Delete a contribution.

    Envelope batch lines cannot be deleted; add a correction instead.
    """
    db = ctx.obj["db"]
    ledger = ContributionLedger(db)

    try:
        contribution = ledger.get_contribution(contribution_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(
        f"Delete contribution {contribution_id} (£{contribution.amount:,.2f} on {contribution.date:%d/%m/%Y})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        ledger.delete_contribution(contribution_id, deleted_by=deleted_by)
        click.echo(f"Deleted contribution {contribution_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@contribution_group.command("delete-transaction")
@click.argument("transaction_id", type=int)
@click.option("--deleted-by", envvar="PARISHLEDGER_USER", default="system", help="User recorded on the deletion")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, deleted_by: str):
    """Delete an imported bank transaction that has no contribution."""
    db = ctx.obj["db"]
    ledger = ContributionLedger(db)

    try:
        ledger.delete_bank_transaction(transaction_id, deleted_by=deleted_by)
        click.echo(f"Deleted bank transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register contribution commands with main CLI."""
    cli.add_command(contribution_group, name="contribution")
