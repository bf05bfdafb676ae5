"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from parishledger.domain.entities import (
    Member,
    RegisterEntry,
    BankTransaction,
    Contribution,
    ContributionType,
    EnvelopeBatch,
)


class Database(ABC):
    """Abstract database interface for parishledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group writes into one atomic unit.

        Writes made inside the block are committed together when the
        outermost block exits normally and rolled back if it raises.
        Nested blocks join the enclosing unit.
        """
        pass

    # Member register operations
    @abstractmethod
    def create_member(
        self,
        first_name: str,
        last_name: str,
        active: bool = True,
        bank_reference: Optional[str] = None,
    ) -> int:
        """Create a member. Returns member ID."""
        pass

    @abstractmethod
    def get_member(self, member_id: int) -> Optional[Member]:
        """Get member by ID."""
        pass

    @abstractmethod
    def list_members(self, active_only: bool = False) -> list[Member]:
        """List members ordered by name."""
        pass

    @abstractmethod
    def list_members_with_bank_reference(self) -> list[Member]:
        """List members that have a non-empty bank reference code."""
        pass

    @abstractmethod
    def update_member_bank_reference(self, member_id: int, bank_reference: Optional[str]) -> None:
        """Set or clear a member's bank reference code."""
        pass

    @abstractmethod
    def update_member_active(self, member_id: int, active: bool) -> None:
        """Mark a member active or inactive."""
        pass

    @abstractmethod
    def create_register_entry(self, member_id: int, register_number: int, year: int) -> int:
        """Assign a register number for a year. Returns entry ID."""
        pass

    @abstractmethod
    def get_register_entry(self, register_number: int, year: int) -> Optional[RegisterEntry]:
        """Get register entry by number and year."""
        pass

    @abstractmethod
    def list_register_entries(self, year: int) -> list[RegisterEntry]:
        """List register entries for a year ordered by number."""
        pass

    # Bank transaction operations
    @abstractmethod
    def create_bank_transaction(
        self,
        source: str,
        date: date,
        money_in: Decimal,
        fingerprint: str,
        created_by: str,
        description: Optional[str] = None,
        reference: str = "",
    ) -> int:
        """Create a bank transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_bank_transaction(self, transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        pass

    @abstractmethod
    def list_fingerprints(self, source: str) -> set[str]:
        """Fingerprints of all non-deleted transactions for a statement source."""
        pass

    @abstractmethod
    def list_bank_transactions(
        self,
        processed: Optional[bool] = None,
        source: Optional[str] = None,
        include_deleted: bool = False,
    ) -> list[BankTransaction]:
        """List bank transactions in import order.

        Args:
            processed: If given, only transactions with this processed flag
            source: Optional statement source filter
            include_deleted: If True, soft-deleted rows are included
        """
        pass

    @abstractmethod
    def mark_bank_transaction_processed(self, transaction_id: int, modified_by: str) -> None:
        """Set the processed flag on a bank transaction."""
        pass

    @abstractmethod
    def soft_delete_bank_transaction(self, transaction_id: int, modified_by: str) -> None:
        """Set the deleted flag on a bank transaction."""
        pass

    # Contribution operations
    @abstractmethod
    def create_contribution(
        self,
        member_id: int,
        amount: Decimal,
        date: date,
        transaction_ref: str,
        contribution_type: ContributionType,
        created_by: str,
        description: Optional[str] = None,
        bank_transaction_id: Optional[int] = None,
        envelope_batch_id: Optional[int] = None,
        register_number: Optional[int] = None,
        manual: bool = False,
        corrects_contribution_id: Optional[int] = None,
    ) -> int:
        """Create a contribution. Returns contribution ID."""
        pass

    @abstractmethod
    def get_contribution(self, contribution_id: int) -> Optional[Contribution]:
        """Get contribution by ID, including soft-deleted ones."""
        pass

    @abstractmethod
    def contribution_exists_for_transaction(self, bank_transaction_id: int) -> bool:
        """Check if a non-deleted contribution references a bank transaction."""
        pass

    @abstractmethod
    def list_contributions(
        self,
        member_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        envelope_batch_id: Optional[int] = None,
        contribution_type: Optional[ContributionType] = None,
    ) -> list[Contribution]:
        """List non-deleted contributions with optional filters."""
        pass

    @abstractmethod
    def soft_delete_contribution(self, contribution_id: int, modified_by: str) -> None:
        """Set the deleted flag on a contribution."""
        pass

    @abstractmethod
    def sum_contributions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        member_id: Optional[int] = None,
    ) -> Decimal:
        """Sum of non-deleted contribution amounts."""
        pass

    @abstractmethod
    def sum_contributions_by_type(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        member_id: Optional[int] = None,
    ) -> dict[ContributionType, Decimal]:
        """Sum of non-deleted contribution amounts per contribution type."""
        pass

    # Envelope batch operations
    @abstractmethod
    def create_envelope_batch(
        self,
        batch_date: date,
        total_amount: Decimal,
        envelope_count: int,
        created_by: str,
    ) -> int:
        """Create an envelope batch header. Returns batch ID."""
        pass

    @abstractmethod
    def get_envelope_batch(self, batch_id: int) -> Optional[EnvelopeBatch]:
        """Get envelope batch by ID."""
        pass

    @abstractmethod
    def envelope_batch_exists(self, batch_date: date) -> bool:
        """Check if a batch exists for a collection date."""
        pass

    @abstractmethod
    def list_envelope_batches(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[EnvelopeBatch]:
        """List envelope batches, newest first."""
        pass
