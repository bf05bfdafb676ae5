"""Bank statement import domain service."""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Optional, Union

from parishledger.database.base import Database
from parishledger.domain.duplicate_detector import DuplicateDetector
from parishledger.domain.entities import (
    Ambiguous,
    BankTransaction,
    ContributionType,
    ImportSummary,
    Matched,
    MatchResult,
    StatementRow,
)
from parishledger.domain.errors import ConflictError
from parishledger.domain.reference_matcher import ReferenceMatcher, display_reference
from parishledger.domain.statement_parser import StatementParser

log = logging.getLogger(__name__)

DEFAULT_SOURCE = "HSBC"


class BankStatementImporter:
    """Import bank statement credits and reconcile them to members.

    Every row is handled on its own: a row is either ignored (no money in),
    skipped as a duplicate, or stored as a bank transaction together with
    its contribution when the reference matches a member. Each stored row is
    committed as one unit, so an interrupted import keeps the rows already
    done and can simply be run again.
    """

    def __init__(self, db: Database, source: str = DEFAULT_SOURCE, parser: Optional[StatementParser] = None):
        """Initialize importer.

        Args:
            db: Database instance
            source: Statement source used to scope duplicate detection
            parser: Statement parser for file imports
        """
        self.db = db
        self.source = source
        self.parser = parser or StatementParser()

    def import_file(self, csv_file_path: str, uploaded_by: str) -> ImportSummary:
        """Parse a statement file and import its rows.

        Row-level parse problems are reported in ``summary.errors``.

        Raises:
            FileNotFoundError: If the file doesn't exist
            StatementFormatError: If the file is not a usable statement
        """
        parsed = self.parser.parse_file(csv_file_path)
        summary = self.import_rows(parsed.rows, uploaded_by=uploaded_by)
        summary.total_processed += len(parsed.errors)
        summary.errors = parsed.errors + summary.errors
        return summary

    def import_rows(self, rows: Iterable[StatementRow], uploaded_by: str) -> ImportSummary:
        """Import already-parsed statement rows in order.

        Business-level outcomes (duplicates, unmatched references) are
        counted in the summary and never raised.

        Args:
            rows: Parsed statement rows
            uploaded_by: User recorded in the audit fields

        Returns:
            ImportSummary for the run
        """
        summary = ImportSummary()
        detector = DuplicateDetector(self.db, self.source)
        matcher = ReferenceMatcher.from_database(self.db)
        log.info(
            "Importing %s statement for %s (%d member reference codes)",
            self.source, uploaded_by, len(matcher),
        )

        for row in rows:
            summary.total_processed += 1
            self._import_row(row, uploaded_by, detector, matcher, summary)

        log.info(
            "Import complete: %d new, %d duplicates, %d ignored, %d matched, %d unmatched, total %s",
            summary.new_transactions,
            summary.duplicates_skipped,
            summary.ignored_no_money_in,
            summary.matched_transactions,
            summary.unmatched_transactions,
            summary.total_amount_processed,
        )
        return summary

    def reprocess_unmatched(self, processed_by: str) -> ImportSummary:
        """Run reference matching again for unprocessed transactions.

        Useful after members' bank reference codes have been set up. Only
        the matching counters of the summary are filled in.
        """
        summary = ImportSummary()
        matcher = ReferenceMatcher.from_database(self.db)

        for txn in self.db.list_bank_transactions(processed=False, source=self.source):
            summary.total_processed += 1
            if self.db.contribution_exists_for_transaction(txn.id):
                log.warning("Transaction %d already has a contribution, skipping", txn.id)
                continue
            result = matcher.match(txn.reference)
            try:
                with self.db.unit_of_work():
                    self._post_contribution(txn.id, txn, result, processed_by)
            except ConflictError:
                # Linked by hand after the listing was read
                log.warning("Transaction %d was linked meanwhile, skipping", txn.id)
                continue
            self._count_match(txn.id, txn.money_in, result, summary)

        log.info(
            "Reprocessing complete: %d matched, %d unmatched",
            summary.matched_transactions, summary.unmatched_transactions,
        )
        return summary

    def _import_row(
        self,
        row: StatementRow,
        uploaded_by: str,
        detector: DuplicateDetector,
        matcher: ReferenceMatcher,
        summary: ImportSummary,
    ) -> None:
        if row.money_in is None or row.money_in <= 0:
            summary.ignored_no_money_in += 1
            return

        check = detector.check(row.date, row.description, row.reference, row.money_in)
        if check.is_duplicate:
            self._record_duplicate(row, check.weak, summary)
            return

        reference = (row.reference or "").strip()
        row = replace(row, reference=reference)
        result = matcher.match(reference)
        try:
            with self.db.unit_of_work():
                txn_id = self.db.create_bank_transaction(
                    source=self.source,
                    date=row.date,
                    money_in=row.money_in,
                    fingerprint=check.fingerprint,
                    created_by=uploaded_by,
                    description=row.description,
                    reference=reference,
                )
                self._post_contribution(txn_id, row, result, uploaded_by)
        except ConflictError:
            # Another import stored the same fingerprint first
            log.warning("Row %s rejected by storage as a duplicate", row.row_num)
            self._record_duplicate(row, check.weak, summary)
            return

        detector.remember(check.fingerprint)
        summary.new_transactions += 1
        self._count_match(txn_id, row.money_in, result, summary)

    def _post_contribution(
        self,
        txn_id: int,
        txn: Union[StatementRow, BankTransaction],
        result: MatchResult,
        user: str,
    ) -> None:
        """Create the contribution for a matched transaction and mark it processed."""
        if not isinstance(result, Matched):
            return
        self.db.create_contribution(
            member_id=result.member_id,
            amount=txn.money_in,
            date=txn.date,
            transaction_ref=txn.reference,
            contribution_type=ContributionType.TRANSFER,
            created_by=user,
            description=txn.description,
            bank_transaction_id=txn_id,
        )
        self.db.mark_bank_transaction_processed(txn_id, modified_by=user)

    def _count_match(self, txn_id: int, amount: Decimal, result: MatchResult, summary: ImportSummary) -> None:
        if isinstance(result, Matched):
            summary.matched_transactions += 1
            summary.total_amount_processed += amount
            log.debug("Matched transaction %d to member %d for %s", txn_id, result.member_id, amount)
            return

        summary.unmatched_transactions += 1
        summary.unmatched_references.append(display_reference(result.raw_reference))
        if isinstance(result, Ambiguous):
            summary.ambiguous_references.append(
                {
                    "transaction_id": txn_id,
                    "reference": result.raw_reference,
                    "candidate_member_ids": list(result.candidate_ids),
                }
            )
        log.debug("No match for transaction %d reference '%s'", txn_id, result.raw_reference)

    def _record_duplicate(self, row: StatementRow, weak: bool, summary: ImportSummary) -> None:
        summary.duplicates_skipped += 1
        if weak:
            summary.possible_duplicates.append(
                {
                    "row_num": row.row_num,
                    "date": row.date.isoformat(),
                    "description": row.description,
                    "amount": str(row.money_in),
                }
            )
