"""Member register commands."""

from datetime import date

import click
from parishledger.cli.error_handling import handle_domain_error
from parishledger.domain.errors import DomainError
from parishledger.domain.member import MemberService


@click.group()
def member_group():
    """Manage members, bank references and register numbers."""
    pass


@member_group.command("add")
@click.argument("first_name")
@click.argument("last_name")
@click.option("--reference", "bank_reference", help="Bank reference code the member uses on transfers")
@click.option("--inactive", is_flag=True, help="Create the member as inactive")
@click.pass_context
def add_member(ctx, first_name: str, last_name: str, bank_reference: str | None, inactive: bool):
    """Add a member to the register.

    Examples:
        parishledger member add John Smith --reference JS1234
    """
    db = ctx.obj["db"]
    service = MemberService(db)

    try:
        member_id = service.create_member(
            first_name=first_name,
            last_name=last_name,
            bank_reference=bank_reference,
            active=not inactive,
        )
        click.echo(f"Created member '{first_name} {last_name}' (ID: {member_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@member_group.command("list")
@click.option("--active-only", is_flag=True, help="Only list active members")
@click.option("--year", type=int, help="Show register numbers for this year (default: current year)")
@click.pass_context
def list_members(ctx, active_only: bool, year: int | None):
    """List members."""
    db = ctx.obj["db"]
    service = MemberService(db)

    year = year or date.today().year
    members = service.list_members(active_only=active_only)
    if not members:
        click.echo("No members found.")
        return

    numbers = {entry.member_id: entry.register_number for entry in service.list_register(year)}

    click.echo(f"\nMembers (register numbers for {year}):")
    click.echo("-" * 78)
    for m in members:
        number = str(numbers.get(m.id, "-"))
        status = "" if m.active else " (inactive)"
        click.echo(
            f"ID: {m.id:4d} | {m.full_name:30s} | No. {number:>5s} | Ref: {m.bank_reference or '-'}{status}"
        )


@member_group.command("set-reference")
@click.argument("member_id", type=int)
@click.argument("bank_reference", required=False)
@click.option("--clear", is_flag=True, help="Remove the member's bank reference")
@click.pass_context
def set_reference(ctx, member_id: int, bank_reference: str | None, clear: bool):
    """Set or clear a member's bank reference code.

    Examples:
        parishledger member set-reference 3 JS1234
        parishledger member set-reference 3 --clear
    """
    db = ctx.obj["db"]
    service = MemberService(db)

    if clear and bank_reference:
        click.echo("Error: Cannot combine BANK_REFERENCE with --clear", err=True)
        ctx.exit(1)
    if not clear and not bank_reference:
        click.echo("Error: BANK_REFERENCE is required unless --clear is given", err=True)
        ctx.exit(1)

    try:
        service.set_bank_reference(member_id, None if clear else bank_reference)
        if clear:
            click.echo(f"Cleared bank reference for member {member_id}")
        else:
            click.echo(f"Set bank reference for member {member_id} to '{bank_reference}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@member_group.command("assign-number")
@click.argument("member_id", type=int)
@click.argument("register_number", type=int)
@click.option("--year", type=int, help="Register year (default: current year)")
@click.pass_context
def assign_number(ctx, member_id: int, register_number: int, year: int | None):
    """Assign a register (envelope) number to a member for a year."""
    db = ctx.obj["db"]
    service = MemberService(db)

    year = year or date.today().year
    try:
        service.assign_register_number(member_id, register_number, year)
        click.echo(f"Assigned register number {register_number} for {year} to member {member_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@member_group.command("deactivate")
@click.argument("member_id", type=int)
@click.pass_context
def deactivate_member(ctx, member_id: int):
    """Mark a member inactive; their register numbers stop validating."""
    _set_active(ctx, member_id, False)


@member_group.command("activate")
@click.argument("member_id", type=int)
@click.pass_context
def activate_member(ctx, member_id: int):
    """Mark a member active again."""
    _set_active(ctx, member_id, True)


def _set_active(ctx, member_id: int, active: bool):
    db = ctx.obj["db"]
    service = MemberService(db)

    try:
        service.set_active(member_id, active)
        click.echo(f"Member {member_id} is now {'active' if active else 'inactive'}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register member commands with main CLI."""
    cli.add_command(member_group, name="member")
