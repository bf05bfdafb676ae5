"""Envelope contribution batch domain service."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from parishledger.database.base import Database
from parishledger.domain.entities import (
    BatchDetails,
    BatchLine,
    BatchResult,
    ContributionType,
    EntryRejection,
    EnvelopeBatch,
    EnvelopeEntry,
    RegisterValidation,
)
from parishledger.domain.errors import (
    BatchRejectedError,
    ConflictError,
    NotFoundError,
    batch_not_found,
    duplicate_batch_date,
)

log = logging.getLogger(__name__)

NOT_FOUND_FOR_YEAR = "Register number not found for {year}"
MEMBER_INACTIVE = "Member is not active"


def envelope_reference(batch_id: int, register_number: int) -> str:
    """Transaction reference for an envelope line item."""
    return f"ENV-{batch_id}-{register_number}"


def entry_amount(value) -> Optional[Decimal]:
    """Amount of an envelope entry as a Decimal, or None if it is not a number.

    Floats go through their shortest repr so that 20.10 stays 20.10.
    """
    try:
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    return amount if amount.is_finite() else None


class EnvelopeBatchLedger:
    """Record cash envelope collections as immutable dated batches.

    A submission for a collection date either commits completely, header and
    every line item in one unit of work, or not at all. Once committed a
    batch is never changed; corrections go through a separate manual
    contribution that references the original line.
    """

    def __init__(self, db: Database, sunday_only: bool = True):
        """Initialize ledger.

        Args:
            db: Database instance
            sunday_only: Only accept collection dates that fall on a Sunday
        """
        self.db = db
        self.sunday_only = sunday_only

    def validate_register_number(self, register_number: int, year: int) -> RegisterValidation:
        """Resolve a register number for a year, as done during data entry."""
        entry = self.db.get_register_entry(register_number, year)
        if entry is None:
            return RegisterValidation(
                register_number=register_number,
                year=year,
                valid=False,
                error=NOT_FOUND_FOR_YEAR.format(year=year),
            )

        member = self.db.get_member(entry.member_id)
        if member is None:
            return RegisterValidation(
                register_number=register_number,
                year=year,
                valid=False,
                error=NOT_FOUND_FOR_YEAR.format(year=year),
            )

        if not member.active:
            return RegisterValidation(
                register_number=register_number,
                year=year,
                valid=False,
                member_id=member.id,
                member_name=member.full_name,
                active=False,
                error=MEMBER_INACTIVE,
            )

        return RegisterValidation(
            register_number=register_number,
            year=year,
            valid=True,
            member_id=member.id,
            member_name=member.full_name,
            active=True,
        )

    def submit_batch(
        self,
        collection_date: date,
        entries: Iterable[EnvelopeEntry],
        submitted_by: str,
    ) -> BatchResult:
        """Validate and commit a batch of envelopes for one collection date.

        Every problem is collected before anything is written. Any invalid
        entry rejects the whole submission.

        Args:
            collection_date: Date the envelopes were collected
            entries: Envelopes in entry order
            submitted_by: User recorded in the audit fields

        Returns:
            BatchResult for the committed batch

        Raises:
            BatchRejectedError: If any precondition fails, listing all of them
        """
        entries = list(entries)
        log.info("Submitting envelope batch for %s with %d envelopes", collection_date, len(entries))

        rejections, resolved = self._validate(collection_date, entries)
        if rejections:
            log.info("Envelope batch for %s rejected: %d problems", collection_date, len(rejections))
            raise BatchRejectedError(rejections)

        try:
            with self.db.unit_of_work():
                result = self._commit(collection_date, resolved, submitted_by)
        except ConflictError:
            # Lost a race with another submission for the same date
            raise BatchRejectedError(
                [EntryRejection(None, None, duplicate_batch_date(collection_date))]
            )

        log.info(
            "Committed batch %d for %s: %d envelopes, total %s",
            result.batch_id, result.batch_date, result.envelope_count, result.total_amount,
        )
        return result

    def get_batch(self, batch_id: int) -> BatchDetails:
        """Get a batch header with its line items.

        Raises:
            NotFoundError: If the batch doesn't exist
        """
        batch = self.db.get_envelope_batch(batch_id)
        if batch is None:
            raise NotFoundError(batch_not_found(batch_id))

        lines = []
        contributions = sorted(self.db.list_contributions(envelope_batch_id=batch_id), key=lambda c: c.id)
        for contribution in contributions:
            member = self.db.get_member(contribution.member_id)
            lines.append(
                BatchLine(
                    contribution_id=contribution.id,
                    register_number=contribution.register_number,
                    member_id=contribution.member_id,
                    member_name=member.full_name if member else "Unknown",
                    amount=contribution.amount,
                )
            )
        return BatchDetails(batch=batch, lines=tuple(lines))

    def list_batches(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[EnvelopeBatch]:
        """List batches, newest first."""
        return self.db.list_envelope_batches(start_date=start_date, end_date=end_date)

    def verify_batch(self, batch_id: int) -> bool:
        """Check a batch header against the sum and count of its line items."""
        details = self.get_batch(batch_id)
        total = sum((line.amount for line in details.lines), Decimal("0.00"))
        return (
            total == details.batch.total_amount
            and len(details.lines) == details.batch.envelope_count
        )

    def _validate(
        self,
        collection_date: date,
        entries: list[EnvelopeEntry],
    ) -> tuple[list[EntryRejection], list[tuple[EnvelopeEntry, RegisterValidation]]]:
        rejections: list[EntryRejection] = []
        resolved: list[tuple[EnvelopeEntry, RegisterValidation]] = []

        if self.sunday_only and collection_date.weekday() != 6:
            rejections.append(EntryRejection(None, None, "Collection date must be a Sunday"))

        if self.db.envelope_batch_exists(collection_date):
            rejections.append(EntryRejection(None, None, duplicate_batch_date(collection_date)))

        if not entries:
            rejections.append(EntryRejection(None, None, "A batch needs at least one envelope"))

        year = collection_date.year
        for entry in entries:
            amount = entry_amount(entry.amount)
            if amount is None:
                rejections.append(
                    EntryRejection(entry.register_number, None, f"Amount '{entry.amount}' is not a number")
                )
                continue
            if amount <= 0:
                rejections.append(
                    EntryRejection(entry.register_number, amount, "Amount must be greater than zero")
                )
                continue
            if amount != amount.quantize(Decimal("0.01")):
                rejections.append(
                    EntryRejection(entry.register_number, amount, "Amount must be in whole pence")
                )
                continue

            validation = self.validate_register_number(entry.register_number, year)
            if not validation.valid:
                rejections.append(EntryRejection(entry.register_number, amount, validation.error))
                continue
            resolved.append((replace(entry, amount=amount), validation))

        return rejections, resolved

    def _commit(
        self,
        collection_date: date,
        resolved: list[tuple[EnvelopeEntry, RegisterValidation]],
        submitted_by: str,
    ) -> BatchResult:
        # Checked again inside the unit of work; the unique batch_date
        # constraint is the final guard.
        if self.db.envelope_batch_exists(collection_date):
            raise ConflictError(duplicate_batch_date(collection_date))

        total = sum((Decimal(entry.amount) for entry, _ in resolved), Decimal("0.00"))
        batch_id = self.db.create_envelope_batch(
            batch_date=collection_date,
            total_amount=total,
            envelope_count=len(resolved),
            created_by=submitted_by,
        )

        lines = []
        for entry, validation in resolved:
            contribution_id = self.db.create_contribution(
                member_id=validation.member_id,
                amount=Decimal(entry.amount),
                date=collection_date,
                transaction_ref=envelope_reference(batch_id, entry.register_number),
                contribution_type=ContributionType.CASH,
                created_by=submitted_by,
                description=f"Envelope contribution - {collection_date:%d/%m/%Y}",
                envelope_batch_id=batch_id,
                register_number=entry.register_number,
            )
            lines.append(
                BatchLine(
                    contribution_id=contribution_id,
                    register_number=entry.register_number,
                    member_id=validation.member_id,
                    member_name=validation.member_name,
                    amount=Decimal(entry.amount),
                )
            )

        return BatchResult(
            batch_id=batch_id,
            batch_date=collection_date,
            total_amount=total,
            envelope_count=len(lines),
            lines=tuple(lines),
        )
