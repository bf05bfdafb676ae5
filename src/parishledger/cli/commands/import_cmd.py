"""Bank statement import commands."""

import click
from parishledger.cli.error_handling import handle_domain_error
from parishledger.domain.entities import ImportSummary
from parishledger.domain.errors import DomainError
from parishledger.domain.statement_import import DEFAULT_SOURCE, BankStatementImporter


def _echo_summary(summary: ImportSummary) -> None:
    click.echo(f"  Rows processed: {summary.total_processed}")
    click.echo(f"  New transactions: {summary.new_transactions}")
    click.echo(f"  Duplicates skipped: {summary.duplicates_skipped}")
    click.echo(f"  Ignored (no money in): {summary.ignored_no_money_in}")
    click.echo(f"  Matched: {summary.matched_transactions}")
    click.echo(f"  Unmatched: {summary.unmatched_transactions}")
    click.echo(f"  Total matched amount: £{summary.total_amount_processed:,.2f}")

    if summary.unmatched_references:
        click.echo("\nUnmatched references:")
        for reference in summary.unmatched_references:
            click.echo(f"  {reference}")

    if summary.ambiguous_references:
        click.echo("\nAmbiguous references (match more than one member):")
        for item in summary.ambiguous_references:
            candidates = ", ".join(str(c) for c in item["candidate_member_ids"])
            click.echo(f"  Transaction {item['transaction_id']}: '{item['reference']}' -> members {candidates}")

    if summary.possible_duplicates:
        click.echo("\nSkipped as duplicates without a reference (please check):")
        for item in summary.possible_duplicates:
            click.echo(f"  Row {item['row_num']}: {item['date']} {item['description']} £{item['amount']}")

    if summary.errors:
        click.echo(f"  Errors: {len(summary.errors)}")
        for error in summary.errors:
            click.echo(f"    {error}", err=True)


@click.command("import")
@click.argument("statement_csv", type=click.Path(exists=True))
@click.option("--uploaded-by", envvar="PARISHLEDGER_USER", default="system", help="User recorded as uploader")
@click.option("--source", default=DEFAULT_SOURCE, show_default=True, help="Statement source (bank)")
@click.pass_context
def import_statement(ctx, statement_csv: str, uploaded_by: str, source: str):
    """Import credits from a bank statement CSV file."""
    db = ctx.obj["db"]
    importer = BankStatementImporter(db, source=source)

    try:
        summary = importer.import_file(statement_csv, uploaded_by=uploaded_by)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nImport complete ({summary.status.value}):")
    _echo_summary(summary)


@click.command("reprocess")
@click.option("--processed-by", envvar="PARISHLEDGER_USER", default="system", help="User recorded on new contributions")
@click.option("--source", default=DEFAULT_SOURCE, show_default=True, help="Statement source (bank)")
@click.pass_context
def reprocess(ctx, processed_by: str, source: str):
    """Match unprocessed bank transactions again.

    Run this after setting up members' bank references.
    """
    db = ctx.obj["db"]
    importer = BankStatementImporter(db, source=source)

    try:
        summary = importer.reprocess_unmatched(processed_by=processed_by)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nReprocessing complete:")
    click.echo(f"  Transactions checked: {summary.total_processed}")
    click.echo(f"  Matched: {summary.matched_transactions}")
    click.echo(f"  Still unmatched: {summary.unmatched_transactions}")
    click.echo(f"  Total matched amount: £{summary.total_amount_processed:,.2f}")


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_statement)
    cli.add_command(reprocess)
