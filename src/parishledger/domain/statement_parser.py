"""Bank statement CSV parsing."""

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, TextIO

from parishledger.domain.entities import StatementRow
from parishledger.domain.errors import StatementFormatError
from parishledger.utils.amount_parser import parse_optional_amount
from parishledger.utils.date_parser import parse_date

log = logging.getLogger(__name__)

DATE_COLUMNS = ("date", "transaction date")
DESCRIPTION_COLUMNS = ("description", "transaction description")
CREDIT_COLUMNS = ("money in", "credit amount", "credit")
REFERENCE_COLUMNS = ("reference", "payment reference")

REFERENCE_MARKER = " REF "
TRAILING_TOKENS = (" VIA ", " ONLINE BANKING", " MOBILE APP", " ON ", " AT ")
MAX_REFERENCE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


def extract_reference(description: Optional[str]) -> str:
    """Pull the payer's reference out of a statement description.

    HSBC writes transfers as e.g. ``"J SMITH REF JS1234 VIA MOBILE APP"``;
    the reference is the text after `` REF `` up to the first trailing
    token the bank appends.

    Returns:
        The reference, or an empty string if the description has none
    """
    if not description or not description.strip():
        return ""

    index = description.upper().find(REFERENCE_MARKER)
    if index < 0:
        return ""

    after_ref = description[index + len(REFERENCE_MARKER):].strip()
    upper_after = after_ref.upper()
    for token in TRAILING_TOKENS:
        token_index = upper_after.find(token)
        if token_index > 0:
            after_ref = after_ref[:token_index].strip()
            break

    return after_ref[:MAX_REFERENCE_LENGTH]


@dataclass
class ParsedStatement:
    """Rows parsed from a statement plus row-level problems."""

    rows: list[StatementRow] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    total_rows: int = 0


class StatementParser:
    """Parse a bank's CSV transaction export.

    Columns are found by header name, case-insensitively. A statement must
    have date, description and credit ("Money In") columns; a reference
    column is optional and, when absent, the reference is extracted from the
    description. Debit-only rows are returned with ``money_in`` of None so
    the importer can count them.
    """

    def parse_file(self, csv_file_path: str) -> ParsedStatement:
        """Parse a statement file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            StatementFormatError: If the file is not a usable statement
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"Statement file not found: {csv_file_path}")

        try:
            with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
                return self.parse(f)
        except UnicodeDecodeError as e:
            raise StatementFormatError(f"Statement file is not valid UTF-8 text: {e}") from e

    def parse(self, stream: TextIO) -> ParsedStatement:
        """Parse a statement from an open text stream."""
        sample = stream.read(4096)
        stream.seek(0)
        if not sample.strip():
            raise StatementFormatError("Statement file is empty")

        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
        except csv.Error:
            dialect = csv.excel

        reader = csv.DictReader(stream, dialect=dialect)
        if reader.fieldnames is None:
            raise StatementFormatError("Statement file has no header row")

        columns = {name.strip().lower(): name for name in reader.fieldnames if name}
        date_col = self._find_column(columns, DATE_COLUMNS)
        description_col = self._find_column(columns, DESCRIPTION_COLUMNS)
        credit_col = self._find_column(columns, CREDIT_COLUMNS)
        reference_col = self._find_column(columns, REFERENCE_COLUMNS)

        missing = []
        if date_col is None:
            missing.append("Date")
        if description_col is None:
            missing.append("Description")
        if credit_col is None:
            missing.append("Money In")
        if missing:
            raise StatementFormatError(f"Statement missing required columns: {', '.join(missing)}")

        result = ParsedStatement()
        for row_num, row in enumerate(reader, start=2):  # Header is row 1
            result.total_rows += 1
            parsed = self._parse_row(row_num, row, date_col, description_col, credit_col, reference_col, result.errors)
            if parsed is not None:
                result.rows.append(parsed)

        log.debug("Parsed %d statement rows (%d errors)", len(result.rows), len(result.errors))
        return result

    def parse_lines(self, lines: Iterable[str]) -> ParsedStatement:
        """Parse a statement given as lines of text."""
        return self.parse(io.StringIO("\n".join(line.rstrip("\r\n") for line in lines)))

    def _find_column(self, columns: dict[str, str], candidates: tuple[str, ...]) -> Optional[str]:
        for candidate in candidates:
            if candidate in columns:
                return columns[candidate]
        return None

    def _parse_row(
        self,
        row_num: int,
        row: dict,
        date_col: str,
        description_col: str,
        credit_col: str,
        reference_col: Optional[str],
        errors: list[str],
    ) -> Optional[StatementRow]:
        date_str = (row.get(date_col) or "").strip()
        if not date_str:
            errors.append(f"Row {row_num}: Missing date")
            return None

        try:
            txn_date = parse_date(date_str)
        except ValueError as e:
            errors.append(f"Row {row_num}: {e}")
            return None

        try:
            money_in = parse_optional_amount(row.get(credit_col))
        except ValueError as e:
            errors.append(f"Row {row_num}: {e}")
            return None

        description = (row.get(description_col) or "").strip() or None
        if description is not None:
            description = description[:MAX_DESCRIPTION_LENGTH]

        if reference_col is not None:
            reference = (row.get(reference_col) or "").strip()[:MAX_REFERENCE_LENGTH]
        else:
            reference = extract_reference(description)

        return StatementRow(
            date=txn_date,
            description=description,
            reference=reference,
            money_in=money_in,
            row_num=row_num,
        )
