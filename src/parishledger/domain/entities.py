"""Domain model entities for parishledger.

These are pure data classes representing business concepts, independent of
database schema. Services and the CLI only ever see these, never ORM rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class ContributionType(str, Enum):
    """How a contribution reached the parish."""

    CASH = "Cash"
    TRANSFER = "Transfer"


class BatchStatus(str, Enum):
    """Envelope batch status. Batches are never edited once submitted."""

    SUBMITTED = "Submitted"


class ImportStatus(str, Enum):
    """Overall outcome of a statement import."""

    SUCCESS = "success"
    SUCCESS_WITH_UNMATCHED = "success_with_unmatched"
    SUCCESS_WITH_WARNINGS = "success_with_warnings"


@dataclass(frozen=True)
class Member:
    """Member of the parish register (external collaborator)."""

    id: int
    first_name: str
    last_name: str
    active: bool
    bank_reference: Optional[str]
    created_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class RegisterEntry:
    """A member's register number for one year."""

    id: int
    member_id: int
    register_number: int
    year: int


@dataclass(frozen=True)
class BankTransaction:
    """One credit row imported from a bank statement."""

    id: int
    source: str
    date: date
    description: Optional[str]
    reference: str
    money_in: Decimal
    fingerprint: str
    processed: bool
    deleted: bool
    created_by: str
    created_at: datetime
    modified_by: Optional[str] = None
    modified_at: Optional[datetime] = None


@dataclass(frozen=True)
class Contribution:
    """A posted contribution attributable to exactly one member."""

    id: int
    member_id: int
    amount: Decimal
    date: date
    transaction_ref: str
    description: Optional[str]
    contribution_type: ContributionType
    manual: bool
    deleted: bool
    created_by: str
    created_at: datetime
    bank_transaction_id: Optional[int] = None
    envelope_batch_id: Optional[int] = None
    register_number: Optional[int] = None
    corrects_contribution_id: Optional[int] = None


@dataclass(frozen=True)
class EnvelopeBatch:
    """Header of an immutable batch of envelope contributions."""

    id: int
    batch_date: date
    total_amount: Decimal
    envelope_count: int
    status: BatchStatus
    created_by: str
    created_at: datetime


# Duplicate detection


class DuplicateStatus(str, Enum):
    NEW = "new"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class DuplicateCheck:
    """Result of checking one statement row against imported transactions.

    ``weak`` is True when the fingerprint had to fall back to the
    description because the row carried no reference.
    """

    status: DuplicateStatus
    fingerprint: str
    weak: bool

    @property
    def is_duplicate(self) -> bool:
        return self.status == DuplicateStatus.DUPLICATE


# Reference matching


@dataclass(frozen=True)
class Matched:
    member_id: int


@dataclass(frozen=True)
class Unmatched:
    raw_reference: str


@dataclass(frozen=True)
class Ambiguous:
    raw_reference: str
    candidate_ids: tuple[int, ...]


MatchResult = Union[Matched, Unmatched, Ambiguous]


# Statement import


@dataclass(frozen=True)
class StatementRow:
    """A parsed statement row, before any import decision."""

    date: date
    description: Optional[str]
    reference: Optional[str]
    money_in: Optional[Decimal]
    row_num: Optional[int] = None


@dataclass
class ImportSummary:
    """Counts and follow-up lists produced by a statement import."""

    total_processed: int = 0
    new_transactions: int = 0
    duplicates_skipped: int = 0
    ignored_no_money_in: int = 0
    matched_transactions: int = 0
    unmatched_transactions: int = 0
    total_amount_processed: Decimal = Decimal("0.00")
    unmatched_references: list[str] = field(default_factory=list)
    ambiguous_references: list[dict] = field(default_factory=list)
    possible_duplicates: list[dict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def status(self) -> ImportStatus:
        if self.unmatched_transactions > 0:
            return ImportStatus.SUCCESS_WITH_UNMATCHED
        if self.possible_duplicates or self.errors:
            return ImportStatus.SUCCESS_WITH_WARNINGS
        return ImportStatus.SUCCESS


# Envelope batches


@dataclass(frozen=True)
class EnvelopeEntry:
    """One envelope as keyed in by staff."""

    register_number: int
    amount: Decimal


@dataclass(frozen=True)
class EntryRejection:
    """Why an envelope entry (or the whole submission) was refused.

    ``register_number`` is None for rejections that concern the batch as a
    whole, such as a collection date that already has a batch.
    """

    register_number: Optional[int]
    amount: Optional[Decimal]
    reason: str


@dataclass(frozen=True)
class RegisterValidation:
    """Outcome of resolving a register number for a year."""

    register_number: int
    year: int
    valid: bool
    member_id: Optional[int] = None
    member_name: Optional[str] = None
    active: Optional[bool] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchLine:
    """A committed envelope line item."""

    contribution_id: int
    register_number: int
    member_id: int
    member_name: str
    amount: Decimal


@dataclass(frozen=True)
class BatchResult:
    """Returned by a successful batch commit."""

    batch_id: int
    batch_date: date
    total_amount: Decimal
    envelope_count: int
    lines: tuple[BatchLine, ...] = ()


@dataclass(frozen=True)
class BatchDetails:
    """Batch header together with its line items."""

    batch: EnvelopeBatch
    lines: tuple[BatchLine, ...]


# Reporting


@dataclass(frozen=True)
class MemberStatement:
    """A member's contributions for one calendar year."""

    member_id: int
    member_name: str
    year: int
    total: Decimal
    totals_by_type: dict
    contributions: tuple[Contribution, ...]
