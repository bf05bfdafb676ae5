"""Duplicate detection for imported bank transactions."""

from datetime import date
from decimal import Decimal
from typing import Optional

from parishledger.database.base import Database
from parishledger.domain.entities import DuplicateCheck, DuplicateStatus

CENTS = Decimal("0.01")


def _clean(text: Optional[str]) -> str:
    return " ".join((text or "").split()).upper()


def fingerprint(
    txn_date: date,
    description: Optional[str],
    reference: Optional[str],
    amount: Decimal,
) -> tuple[str, bool]:
    """Build the duplicate fingerprint for a transaction.

    The reference identifies a transfer; descriptions repeat across
    unrelated payments on the same day, so the description is only used
    when there is no reference. That fallback is "weak".

    Returns:
        Tuple of (fingerprint, weak)
    """
    amount_key = Decimal(amount).quantize(CENTS)
    ref = _clean(reference)
    if ref:
        return f"{txn_date.isoformat()}|ref:{ref}|{amount_key}", False
    return f"{txn_date.isoformat()}|desc:{_clean(description)[:500]}|{amount_key}", True


class DuplicateDetector:
    """Decide whether a statement row was already imported.

    Loads the fingerprints of every non-deleted transaction for one
    statement source once, then tracks rows imported during the run so
    repeats within the same file are caught as well.
    """

    def __init__(self, db: Database, source: str):
        """Initialize detector.

        Args:
            db: Database instance
            source: Statement source the fingerprints are scoped to
        """
        self.source = source
        self._seen: set[str] = db.list_fingerprints(source)

    def check(
        self,
        txn_date: date,
        description: Optional[str],
        reference: Optional[str],
        amount: Decimal,
    ) -> DuplicateCheck:
        """Check one row."""
        key, weak = fingerprint(txn_date, description, reference, amount)
        status = DuplicateStatus.DUPLICATE if key in self._seen else DuplicateStatus.NEW
        return DuplicateCheck(status=status, fingerprint=key, weak=weak)

    def remember(self, key: str) -> None:
        """Record a fingerprint imported during this run."""
        self._seen.add(key)
