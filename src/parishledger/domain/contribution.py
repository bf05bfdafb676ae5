"""Contribution ledger domain service."""

import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Optional

from parishledger.database.base import Database
from parishledger.domain.entities import Contribution, ContributionType, MemberStatement
from parishledger.domain.errors import (
    ConflictError,
    DependencyError,
    ImmutableRecordError,
    NotFoundError,
    ValidationError,
    bank_transaction_not_found,
    contribution_not_found,
    member_not_found,
    transaction_already_linked,
)
from parishledger.utils.date_parser import year_bounds

log = logging.getLogger(__name__)


def manual_reference(now: Optional[datetime] = None) -> str:
    """Transaction reference for a manually entered contribution."""
    now = now or datetime.now(UTC)
    return f"MANUAL-{now:%Y%m%d%H%M%S%f}"


class ContributionLedger:
    """Queries and manual corrections over posted contributions."""

    def __init__(self, db: Database):
        """Initialize contribution ledger.

        Args:
            db: Database instance
        """
        self.db = db

    def contribution_exists_for_transaction(self, bank_transaction_id: int) -> bool:
        """Check if a live contribution already references a bank transaction."""
        return self.db.contribution_exists_for_transaction(bank_transaction_id)

    def get_contribution(self, contribution_id: int) -> Contribution:
        """Get a live contribution.

        Raises:
            NotFoundError: If the contribution doesn't exist or was deleted
        """
        contribution = self.db.get_contribution(contribution_id)
        if contribution is None or contribution.deleted:
            raise NotFoundError(contribution_not_found(contribution_id))
        return contribution

    def total_for_period(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Decimal:
        """Total of all contributions dated within the period (inclusive)."""
        return self.db.sum_contributions(start_date=start_date, end_date=end_date)

    def totals_by_type(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[ContributionType, Decimal]:
        """Totals per contribution type; every type is present, zero if unused."""
        return self.db.sum_contributions_by_type(start_date=start_date, end_date=end_date)

    def member_history(
        self,
        member_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Contribution]:
        """List a member's contributions, newest first.

        Raises:
            NotFoundError: If the member doesn't exist
        """
        self._require_member(member_id)
        return self.db.list_contributions(member_id=member_id, start_date=start_date, end_date=end_date)

    def member_statement(self, member_id: int, year: int) -> MemberStatement:
        """Build a member's contribution statement for a calendar year.

        Args:
            member_id: Member ID
            year: Calendar year

        Returns:
            MemberStatement with the year's total, per-type totals and lines

        Raises:
            NotFoundError: If the member doesn't exist
        """
        member = self._require_member(member_id)
        start, end = year_bounds(year)
        contributions = self.db.list_contributions(member_id=member_id, start_date=start, end_date=end)
        return MemberStatement(
            member_id=member.id,
            member_name=member.full_name,
            year=year,
            total=self.db.sum_contributions(start_date=start, end_date=end, member_id=member_id),
            totals_by_type=self.db.sum_contributions_by_type(start_date=start, end_date=end, member_id=member_id),
            contributions=tuple(contributions),
        )

    def add_one_off_contribution(
        self,
        member_id: int,
        amount: Decimal,
        date: date,
        description: Optional[str],
        created_by: str,
        corrects_contribution_id: Optional[int] = None,
    ) -> int:
        """Record a cash contribution entered by hand.

        This is also how a committed envelope line is corrected: the new
        contribution references the line it corrects and the line itself is
        left untouched.

        Args:
            member_id: Member ID
            amount: Contribution amount
            date: Contribution date
            description: Optional description
            created_by: User recorded in the audit fields
            corrects_contribution_id: Optional contribution this one corrects

        Returns:
            Contribution ID

        Raises:
            ValidationError: If the amount is invalid
            NotFoundError: If the member or corrected contribution doesn't exist
        """
        self._require_member(member_id)
        amount = Decimal(amount)
        if corrects_contribution_id is None:
            if amount <= 0:
                raise ValidationError("Amount must be greater than zero")
        else:
            if amount < 0:
                raise ValidationError("Correction amount cannot be negative")
            self.get_contribution(corrects_contribution_id)

        contribution_id = self.db.create_contribution(
            member_id=member_id,
            amount=amount,
            date=date,
            transaction_ref=manual_reference(),
            contribution_type=ContributionType.CASH,
            created_by=created_by,
            description=description,
            manual=True,
            corrects_contribution_id=corrects_contribution_id,
        )
        log.info("Added manual contribution %d for member %d: %s", contribution_id, member_id, amount)
        return contribution_id

    def link_transaction(self, bank_transaction_id: int, member_id: int, linked_by: str) -> int:
        """Attribute an unmatched bank transaction to a member by hand.

        Returns:
            Contribution ID

        Raises:
            NotFoundError: If the transaction or member doesn't exist
            ConflictError: If the transaction already has a contribution
        """
        txn = self.db.get_bank_transaction(bank_transaction_id)
        if txn is None or txn.deleted:
            raise NotFoundError(bank_transaction_not_found(bank_transaction_id))
        self._require_member(member_id)
        if self.db.contribution_exists_for_transaction(bank_transaction_id):
            raise ConflictError(transaction_already_linked(bank_transaction_id))

        with self.db.unit_of_work():
            contribution_id = self.db.create_contribution(
                member_id=member_id,
                amount=txn.money_in,
                date=txn.date,
                transaction_ref=txn.reference or manual_reference(),
                contribution_type=ContributionType.TRANSFER,
                created_by=linked_by,
                description=txn.description,
                bank_transaction_id=txn.id,
                manual=True,
            )
            if not txn.processed:
                self.db.mark_bank_transaction_processed(txn.id, modified_by=linked_by)

        log.info("Linked bank transaction %d to member %d", bank_transaction_id, member_id)
        return contribution_id

    def delete_contribution(self, contribution_id: int, deleted_by: str) -> None:
        """Soft delete a contribution.

        Raises:
            NotFoundError: If the contribution doesn't exist or was deleted
            ImmutableRecordError: If it is an envelope batch line item
        """
        contribution = self.get_contribution(contribution_id)
        if contribution.envelope_batch_id is not None:
            raise ImmutableRecordError(
                f"Contribution {contribution_id} belongs to envelope batch "
                f"{contribution.envelope_batch_id} and cannot be changed; "
                "add a correcting contribution instead"
            )
        self.db.soft_delete_contribution(contribution_id, modified_by=deleted_by)
        log.info("Deleted contribution %d", contribution_id)

    def delete_bank_transaction(self, transaction_id: int, deleted_by: str) -> None:
        """Soft delete a bank transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist or was deleted
            DependencyError: If a live contribution references it
        """
        txn = self.db.get_bank_transaction(transaction_id)
        if txn is None or txn.deleted:
            raise NotFoundError(bank_transaction_not_found(transaction_id))
        if self.db.contribution_exists_for_transaction(transaction_id):
            raise DependencyError(
                f"Bank transaction {transaction_id} has a contribution; delete the contribution first"
            )
        self.db.soft_delete_bank_transaction(transaction_id, modified_by=deleted_by)
        log.info("Deleted bank transaction %d", transaction_id)

    def _require_member(self, member_id: int):
        member = self.db.get_member(member_id)
        if member is None:
            raise NotFoundError(member_not_found(member_id))
        return member
