"""Envelope batch commands."""

import click
from parishledger.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from parishledger.cli.error_handling import handle_domain_error
from parishledger.domain.entities import EnvelopeEntry
from parishledger.domain.envelope_batch import EnvelopeBatchLedger
from parishledger.domain.errors import DomainError
from parishledger.utils.amount_parser import format_money, parse_amount
from parishledger.utils.date_parser import parse_date


def parse_entry(text: str) -> EnvelopeEntry:
    """Parse a NUMBER=AMOUNT envelope entry.

    Raises:
        ValueError: If the entry is malformed
    """
    number, sep, amount = text.partition("=")
    if not sep:
        raise ValueError(f"Envelope entry '{text}' must be NUMBER=AMOUNT")
    try:
        register_number = int(number.strip())
    except ValueError:
        raise ValueError(f"Invalid register number in '{text}'")
    return EnvelopeEntry(register_number=register_number, amount=parse_amount(amount))


def _parse_collection_date(ctx, value: str):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid collection date: {e}", err=True)
        ctx.exit(1)


@click.group()
def envelope_group():
    """Record weekly envelope collections."""
    pass


@envelope_group.command("validate")
@click.argument("register_number", type=int)
@click.option("--date", "collection_date", default="today", help="Collection date; the register year is taken from it")
@click.pass_context
def validate_number(ctx, register_number: int, collection_date: str):
    """Look up a register number before keying an envelope."""
    db = ctx.obj["db"]
    ledger = EnvelopeBatchLedger(db)

    when = _parse_collection_date(ctx, collection_date)
    result = ledger.validate_register_number(register_number, when.year)
    if result.valid:
        click.echo(f"#{register_number}: {result.member_name} (member {result.member_id})")
        return
    if result.member_name:
        click.echo(f"#{register_number}: {result.member_name} - {result.error}", err=True)
    else:
        click.echo(f"#{register_number}: {result.error}", err=True)
    ctx.exit(1)


@envelope_group.command("submit")
@click.argument("collection_date")
@click.argument("entries", nargs=-1, required=True, metavar="NUMBER=AMOUNT...")
@click.option("--submitted-by", envvar="PARISHLEDGER_USER", default="system", help="User recorded on the batch")
@click.option("--any-day", is_flag=True, help="Allow a collection date that is not a Sunday")
@click.pass_context
def submit_batch(ctx, collection_date: str, entries: tuple[str, ...], submitted_by: str, any_day: bool):
    """Submit a batch of envelopes for a collection date.

    The batch is committed only if every envelope is valid.

    Examples:
        parishledger envelope submit 08/06/2025 101=20.00 102=15.50
    """
    db = ctx.obj["db"]
    ledger = EnvelopeBatchLedger(db, sunday_only=not any_day)

    when = _parse_collection_date(ctx, collection_date)
    try:
        parsed = [parse_entry(text) for text in entries]
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        result = ledger.submit_batch(when, parsed, submitted_by=submitted_by)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Submitted batch {result.batch_id} for {result.batch_date:%d/%m/%Y}: "
        f"{result.envelope_count} envelopes, total £{result.total_amount:,.2f}"
    )


@envelope_group.command("list")
@period_options
@click.pass_context
def list_batches(ctx, start_date, end_date, this_month, this_year, last_month, last_year):
    """List submitted envelope batches, newest first."""
    db = ctx.obj["db"]
    ledger = EnvelopeBatchLedger(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(this_month, this_year, last_month, last_year),
    )
    batches = ledger.list_batches(start_date=start, end_date=end)
    if not batches:
        click.echo("No envelope batches found.")
        return

    click.echo("\nEnvelope batches:")
    click.echo("-" * 60)
    for batch in batches:
        click.echo(
            f"ID: {batch.id:4d} | {batch.batch_date:%d/%m/%Y} | "
            f"{batch.envelope_count:3d} envelopes | {format_money(batch.total_amount):>10}"
        )


@envelope_group.command("show")
@click.argument("batch_id", type=int)
@click.pass_context
def show_batch(ctx, batch_id: int):
    """Show a batch and its envelopes."""
    db = ctx.obj["db"]
    ledger = EnvelopeBatchLedger(db)

    try:
        details = ledger.get_batch(batch_id)
        consistent = ledger.verify_batch(batch_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    batch = details.batch
    click.echo(f"\nBatch {batch.id} - {batch.batch_date:%A %d/%m/%Y} ({batch.status.value})")
    click.echo(f"Submitted by {batch.created_by}")
    click.echo("-" * 60)
    for line in details.lines:
        click.echo(f"  #{line.register_number:<5d} {line.member_name:30s} {format_money(line.amount):>10}")
    click.echo("-" * 60)
    click.echo(f"  {batch.envelope_count} envelopes, total £{batch.total_amount:,.2f}")
    if not consistent:
        click.echo("Warning: batch total does not match its envelopes", err=True)


def register_commands(cli):
    """Register envelope commands with main CLI."""
    cli.add_command(envelope_group, name="envelope")
