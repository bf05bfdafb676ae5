"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class ImmutableRecordError(ConflictError):
    """Attempt to change a record that is read-only once committed."""


class StatementFormatError(ValidationError):
    """The statement file itself is unusable; nothing is imported."""


class BatchRejectedError(ValidationError):
    """An envelope batch submission was refused as a whole.

    ``rejections`` lists every reason found, not just the first.
    """

    def __init__(self, rejections):
        self.rejections = list(rejections)
        super().__init__(batch_rejected(self.rejections))


def member_not_found(member_id: int) -> str:
    """Return message for missing member."""
    return f"Member {member_id} not found"


def bank_transaction_not_found(transaction_id: int) -> str:
    """Return message for missing bank transaction."""
    return f"Bank transaction {transaction_id} not found"


def contribution_not_found(contribution_id: int) -> str:
    """Return message for missing contribution."""
    return f"Contribution {contribution_id} not found"


def batch_not_found(batch_id: int) -> str:
    """Return message for missing envelope batch."""
    return f"Envelope batch {batch_id} not found"


def duplicate_batch_date(batch_date) -> str:
    """Return message when a collection date already has a batch."""
    return f"Contributions for {batch_date:%A, %d %B %Y} have already been submitted"


def duplicate_bank_reference(reference: str) -> str:
    """Return message when a bank reference code is already assigned."""
    return f"Bank reference '{reference}' is already assigned to another member"


def duplicate_register_number(register_number: int, year: int) -> str:
    """Return message when a register number is taken for a year."""
    return f"Register number {register_number} is already assigned for {year}"


def transaction_already_linked(transaction_id: int) -> str:
    """Return message when a bank transaction already has a contribution."""
    return f"Bank transaction {transaction_id} already has a contribution"


def batch_rejected(rejections) -> str:
    """Return message listing every rejected envelope entry."""
    parts = []
    for rejection in rejections:
        if rejection.register_number is None:
            parts.append(rejection.reason)
        else:
            parts.append(f"#{rejection.register_number}: {rejection.reason}")
    count = len(rejections)
    return f"Batch rejected ({count} problem{'s' if count != 1 else ''}): " + "; ".join(parts)
