"""Member register domain service."""

from typing import Optional

from parishledger.database.base import Database
from parishledger.domain.entities import Member, RegisterEntry
from parishledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    member_not_found,
    duplicate_bank_reference,
    duplicate_register_number,
)


def normalize_bank_reference(reference: Optional[str]) -> str:
    """Normalise a bank reference for comparison (trimmed, case-folded)."""
    if reference is None:
        return ""
    return " ".join(reference.split()).casefold()


class MemberService:
    """Service for the member register.

    The member directory belongs to the wider parish administration system;
    this service covers only what reconciliation needs: bank reference codes
    and per-year register numbers.
    """

    def __init__(self, db: Database):
        """Initialize member service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_member(
        self,
        first_name: str,
        last_name: str,
        bank_reference: Optional[str] = None,
        active: bool = True,
    ) -> int:
        """Create a member.

        Args:
            first_name: First name
            last_name: Last name
            bank_reference: Optional bank reference code
            active: Whether the member is currently active

        Returns:
            Member ID

        Raises:
            ValidationError: If a name is blank
            ConflictError: If the bank reference is already assigned
        """
        if not first_name.strip() or not last_name.strip():
            raise ValidationError("Member first and last name are required")

        reference = self._clean_reference(bank_reference)
        if reference is not None:
            self._ensure_reference_free(reference, member_id=None)

        return self.db.create_member(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            active=active,
            bank_reference=reference,
        )

    def get_member(self, member_id: int) -> Optional[Member]:
        """Get member by ID."""
        return self.db.get_member(member_id)

    def require_member(self, member_id: int) -> Member:
        """Get member by ID or raise NotFoundError."""
        member = self.db.get_member(member_id)
        if member is None:
            raise NotFoundError(member_not_found(member_id))
        return member

    def list_members(self, active_only: bool = False) -> list[Member]:
        """List members ordered by name."""
        return self.db.list_members(active_only=active_only)

    def set_bank_reference(self, member_id: int, bank_reference: Optional[str]) -> None:
        """Set or clear a member's bank reference code.

        Codes are unique across members, compared case-insensitively.

        Raises:
            NotFoundError: If the member doesn't exist
            ConflictError: If another member already has the code
        """
        self.require_member(member_id)
        reference = self._clean_reference(bank_reference)
        if reference is not None:
            self._ensure_reference_free(reference, member_id=member_id)
        self.db.update_member_bank_reference(member_id, reference)

    def set_active(self, member_id: int, active: bool) -> None:
        """Mark a member active or inactive."""
        self.require_member(member_id)
        self.db.update_member_active(member_id, active)

    def assign_register_number(self, member_id: int, register_number: int, year: int) -> int:
        """Assign a register number to a member for a year.

        Returns:
            Register entry ID

        Raises:
            ValidationError: If the number is not a positive integer
            ConflictError: If the number is already taken that year
        """
        self.require_member(member_id)
        if register_number <= 0:
            raise ValidationError("Register number must be a positive integer")
        if self.db.get_register_entry(register_number, year) is not None:
            raise ConflictError(duplicate_register_number(register_number, year))
        return self.db.create_register_entry(member_id, register_number, year)

    def resolve_register_number(self, register_number: int, year: int) -> Optional[RegisterEntry]:
        """Look up the register entry for a number in a year."""
        return self.db.get_register_entry(register_number, year)

    def list_register(self, year: int) -> list[RegisterEntry]:
        """List the register for a year."""
        return self.db.list_register_entries(year)

    def _clean_reference(self, bank_reference: Optional[str]) -> Optional[str]:
        if bank_reference is None:
            return None
        reference = " ".join(bank_reference.split())
        if len(reference) > 100:
            raise ValidationError("Bank reference must be at most 100 characters")
        return reference or None

    def _ensure_reference_free(self, reference: str, member_id: Optional[int]) -> None:
        wanted = normalize_bank_reference(reference)
        for other in self.db.list_members_with_bank_reference():
            if other.id != member_id and normalize_bank_reference(other.bank_reference) == wanted:
                raise ConflictError(duplicate_bank_reference(reference))
