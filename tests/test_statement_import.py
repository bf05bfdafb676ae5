"""Tests for bank statement import and reconciliation."""

from datetime import date
from decimal import Decimal

import pytest

from parishledger.domain.contribution import ContributionLedger
from parishledger.domain.duplicate_detector import DuplicateDetector
from parishledger.domain.entities import ContributionType, ImportStatus, StatementRow
from parishledger.domain.errors import StatementFormatError
from parishledger.domain.member import MemberService
from parishledger.domain.statement_import import BankStatementImporter


def _row(reference, amount, description=None, day=8, row_num=None):
    return StatementRow(
        date=date(2025, 6, day),
        description=description,
        reference=reference,
        money_in=None if amount is None else Decimal(amount),
        row_num=row_num,
    )


def test_matched_row_creates_contribution(temp_db, importer, sample_members):
    """A credit whose reference matches a member becomes a Transfer contribution."""
    summary = importer.import_rows([_row("JS1234", "50.00", "J SMITH REF JS1234")], uploaded_by="treasurer")

    assert summary.new_transactions == 1
    assert summary.matched_transactions == 1
    assert summary.unmatched_transactions == 0
    assert summary.total_amount_processed == Decimal("50.00")
    assert summary.status == ImportStatus.SUCCESS

    contributions = temp_db.list_contributions(member_id=sample_members["john"])
    assert len(contributions) == 1
    contribution = contributions[0]
    assert contribution.amount == Decimal("50.00")
    assert contribution.contribution_type == ContributionType.TRANSFER
    assert contribution.transaction_ref == "JS1234"
    assert contribution.created_by == "treasurer"

    txn = temp_db.get_bank_transaction(contribution.bank_transaction_id)
    assert txn.processed
    assert txn.reference == "JS1234"


def test_unmatched_row_is_stored_unprocessed(temp_db, importer, sample_members):
    summary = importer.import_rows([_row("XY9999", "10.00")], uploaded_by="treasurer")

    assert summary.new_transactions == 1
    assert summary.unmatched_transactions == 1
    assert summary.unmatched_references == ["XY9999"]
    assert summary.status == ImportStatus.SUCCESS_WITH_UNMATCHED

    unprocessed = temp_db.list_bank_transactions(processed=False)
    assert len(unprocessed) == 1
    assert temp_db.list_contributions() == []


def test_empty_reference_reported_as_marker(importer, sample_members):
    summary = importer.import_rows([_row("", "40.00", "CASH DEPOSIT")], uploaded_by="treasurer")

    assert summary.unmatched_references == ["[EMPTY]"]


def test_rows_without_money_in_are_ignored(temp_db, importer, sample_members):
    summary = importer.import_rows(
        [_row("JS1234", None), _row("JS1234", "0.00"), _row("JS1234", "-5.00")],
        uploaded_by="treasurer",
    )

    assert summary.total_processed == 3
    assert summary.ignored_no_money_in == 3
    assert summary.new_transactions == 0
    assert temp_db.list_bank_transactions() == []


def test_reimport_is_idempotent(temp_db, importer, sample_members, fixtures_dir):
    """Importing the same statement twice creates nothing the second time."""
    csv_file = str(fixtures_dir / "hsbc_statement.csv")

    first = importer.import_file(csv_file, uploaded_by="treasurer")
    second = importer.import_file(csv_file, uploaded_by="treasurer")

    assert first.total_processed == 5
    assert first.new_transactions == 4
    assert first.ignored_no_money_in == 1
    assert first.matched_transactions == 2
    assert first.unmatched_transactions == 2
    assert first.total_amount_processed == Decimal("75.00")

    assert second.new_transactions == 0
    assert second.duplicates_skipped == 4
    assert second.ignored_no_money_in == 1
    assert second.matched_transactions == 0

    assert len(temp_db.list_bank_transactions()) == 4
    assert len(temp_db.list_contributions()) == 2


def test_reimport_flags_weak_duplicates(importer, sample_members, fixtures_dir):
    csv_file = str(fixtures_dir / "hsbc_statement.csv")
    importer.import_file(csv_file, uploaded_by="treasurer")

    second = importer.import_file(csv_file, uploaded_by="treasurer")

    assert second.unmatched_transactions == 0
    assert second.status == ImportStatus.SUCCESS_WITH_WARNINGS
    assert len(second.possible_duplicates) == 1
    assert second.possible_duplicates[0]["description"] == "CASH DEPOSIT"
    assert second.possible_duplicates[0]["amount"] == "40.00"


def test_duplicate_within_one_file(temp_db, importer, sample_members):
    rows = [_row("JS1234", "50.00"), _row("JS1234", "50.00")]

    summary = importer.import_rows(rows, uploaded_by="treasurer")

    assert summary.new_transactions == 1
    assert summary.duplicates_skipped == 1
    assert len(temp_db.list_contributions()) == 1


def test_same_reference_different_amount_is_new(importer, sample_members):
    rows = [_row("JS1234", "50.00"), _row("JS1234", "20.00")]

    summary = importer.import_rows(rows, uploaded_by="treasurer")

    assert summary.new_transactions == 2
    assert summary.matched_transactions == 2
    assert summary.total_amount_processed == Decimal("70.00")


def test_ambiguous_reference_is_left_unmatched(temp_db, member_service):
    a = member_service.create_member("Ann", "Smith", bank_reference="SMITH")
    b = member_service.create_member("Bob", "Jones", bank_reference="JONES")
    importer = BankStatementImporter(temp_db)

    summary = importer.import_rows([_row("SMITH JONES GIFT", "30.00")], uploaded_by="treasurer")

    assert summary.unmatched_transactions == 1
    assert len(summary.ambiguous_references) == 1
    assert summary.ambiguous_references[0]["candidate_member_ids"] == sorted([a, b])
    assert temp_db.list_contributions() == []


def test_import_file_reports_row_errors(tmp_path, importer, sample_members):
    csv_path = tmp_path / "statement.csv"
    csv_path.write_text(
        "Date,Description,Money In\n"
        "not a date,J SMITH REF JS1234,10.00\n"
        "08/06/2025,J SMITH REF JS1234,10.00\n",
        encoding="utf-8",
    )

    summary = importer.import_file(str(csv_path), uploaded_by="treasurer")

    assert summary.total_processed == 2
    assert summary.new_transactions == 1
    assert len(summary.errors) == 1
    assert summary.errors[0].startswith("Row 2:")


def test_import_file_structural_error(fixtures_dir, importer):
    with pytest.raises(StatementFormatError):
        importer.import_file(str(fixtures_dir / "missing_columns.csv"), uploaded_by="treasurer")


def test_reprocess_after_reference_set(temp_db, importer, sample_members):
    """Transactions imported before a member set up their reference are matched later."""
    importer.import_rows([_row("PB4321", "15.00")], uploaded_by="treasurer")
    MemberService(temp_db).set_bank_reference(sample_members["peter"], "PB4321")

    summary = importer.reprocess_unmatched(processed_by="treasurer")

    assert summary.total_processed == 1
    assert summary.matched_transactions == 1
    assert summary.total_amount_processed == Decimal("15.00")
    assert temp_db.list_bank_transactions(processed=False) == []
    contributions = temp_db.list_contributions(member_id=sample_members["peter"])
    assert [c.amount for c in contributions] == [Decimal("15.00")]


def test_reprocess_leaves_unknown_references(temp_db, importer, sample_members):
    importer.import_rows([_row("XY9999", "10.00")], uploaded_by="treasurer")

    summary = importer.reprocess_unmatched(processed_by="treasurer")

    assert summary.unmatched_transactions == 1
    assert summary.matched_transactions == 0
    assert len(temp_db.list_bank_transactions(processed=False)) == 1


def test_source_scopes_duplicates(temp_db, sample_members):
    rows = [_row("JS1234", "50.00")]
    BankStatementImporter(temp_db, source="HSBC").import_rows(rows, uploaded_by="treasurer")

    summary = BankStatementImporter(temp_db, source="Barclays").import_rows(rows, uploaded_by="treasurer")

    assert summary.new_transactions == 1


def test_row_stored_by_concurrent_import_counts_as_duplicate(
    temp_db, second_db, importer, sample_members, monkeypatch
):
    """The unique fingerprint index rejects a row another import stored after our check."""
    row = _row("JS1234", "50.00")
    original_check = DuplicateDetector.check
    raced = []

    def check_then_race(self, *args, **kwargs):
        result = original_check(self, *args, **kwargs)
        if not raced:
            raced.append(True)
            BankStatementImporter(second_db).import_rows([row], uploaded_by="steward")
        return result

    monkeypatch.setattr(DuplicateDetector, "check", check_then_race)

    summary = importer.import_rows([row], uploaded_by="treasurer")

    assert summary.new_transactions == 0
    assert summary.duplicates_skipped == 1
    assert summary.matched_transactions == 0
    assert len(temp_db.list_bank_transactions()) == 1
    contributions = temp_db.list_contributions()
    assert len(contributions) == 1
    assert contributions[0].created_by == "steward"


def test_reprocess_continues_past_transaction_linked_meanwhile(
    temp_db, second_db, importer, member_service, monkeypatch
):
    importer.import_rows([_row("AB1111", "10.00"), _row("CD2222", "20.00")], uploaded_by="treasurer")
    ann = member_service.create_member("Ann", "Brook", bank_reference="AB1111")
    carl = member_service.create_member("Carl", "Dean", bank_reference="CD2222")
    first, second = temp_db.list_bank_transactions(processed=False)

    list_unprocessed = temp_db.list_bank_transactions

    def list_then_link(*args, **kwargs):
        transactions = list_unprocessed(*args, **kwargs)
        ContributionLedger(second_db).link_transaction(first.id, ann, linked_by="steward")
        return transactions

    monkeypatch.setattr(temp_db, "list_bank_transactions", list_then_link)
    # Only the storage constraint sees the link made by the other connection
    monkeypatch.setattr(temp_db, "contribution_exists_for_transaction", lambda _txn_id: False)

    summary = importer.reprocess_unmatched(processed_by="treasurer")
    monkeypatch.undo()

    assert summary.total_processed == 2
    assert summary.matched_transactions == 1
    assert summary.total_amount_processed == Decimal("20.00")
    assert temp_db.get_bank_transaction(second.id).processed
    assert temp_db.list_bank_transactions(processed=False) == []

    ann_lines = temp_db.list_contributions(member_id=ann)
    assert [(c.bank_transaction_id, c.created_by) for c in ann_lines] == [(first.id, "steward")]
    carl_lines = temp_db.list_contributions(member_id=carl)
    assert [c.bank_transaction_id for c in carl_lines] == [second.id]
