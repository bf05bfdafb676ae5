"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain entities stay stable
when the database schema changes.
"""

from decimal import Decimal

from parishledger.domain import entities as domain
from parishledger.database.models import (
    Member as ORMMember,
    RegisterEntry as ORMRegisterEntry,
    BankTransaction as ORMBankTransaction,
    Contribution as ORMContribution,
    EnvelopeBatch as ORMEnvelopeBatch,
)


def _money(value) -> Decimal:
    """Normalise a stored amount to a two-place Decimal."""
    return Decimal(value).quantize(Decimal("0.01"))


def member_to_domain(orm_member: ORMMember) -> domain.Member:
    """Convert SQLAlchemy Member model to domain Member entity."""
    return domain.Member(
        id=orm_member.id,
        first_name=orm_member.first_name,
        last_name=orm_member.last_name,
        active=orm_member.active,
        bank_reference=orm_member.bank_reference,
        created_at=orm_member.created_at,
    )


def register_entry_to_domain(orm_entry: ORMRegisterEntry) -> domain.RegisterEntry:
    """Convert SQLAlchemy RegisterEntry model to domain RegisterEntry entity."""
    return domain.RegisterEntry(
        id=orm_entry.id,
        member_id=orm_entry.member_id,
        register_number=orm_entry.register_number,
        year=orm_entry.year,
    )


def bank_transaction_to_domain(orm_txn: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain BankTransaction entity."""
    return domain.BankTransaction(
        id=orm_txn.id,
        source=orm_txn.source,
        date=orm_txn.date,
        description=orm_txn.description,
        reference=orm_txn.reference or "",
        money_in=_money(orm_txn.money_in),
        fingerprint=orm_txn.fingerprint,
        processed=orm_txn.processed,
        deleted=orm_txn.deleted,
        created_by=orm_txn.created_by,
        created_at=orm_txn.created_at,
        modified_by=orm_txn.modified_by,
        modified_at=orm_txn.modified_at,
    )


def contribution_to_domain(orm_contribution: ORMContribution) -> domain.Contribution:
    """Convert SQLAlchemy Contribution model to domain Contribution entity."""
    return domain.Contribution(
        id=orm_contribution.id,
        member_id=orm_contribution.member_id,
        amount=_money(orm_contribution.amount),
        date=orm_contribution.date,
        transaction_ref=orm_contribution.transaction_ref,
        description=orm_contribution.description,
        contribution_type=domain.ContributionType(orm_contribution.contribution_type),
        manual=orm_contribution.manual,
        deleted=orm_contribution.deleted,
        created_by=orm_contribution.created_by,
        created_at=orm_contribution.created_at,
        bank_transaction_id=orm_contribution.bank_transaction_id,
        envelope_batch_id=orm_contribution.envelope_batch_id,
        register_number=orm_contribution.register_number,
        corrects_contribution_id=orm_contribution.corrects_contribution_id,
    )


def envelope_batch_to_domain(orm_batch: ORMEnvelopeBatch) -> domain.EnvelopeBatch:
    """Convert SQLAlchemy EnvelopeBatch model to domain EnvelopeBatch entity."""
    return domain.EnvelopeBatch(
        id=orm_batch.id,
        batch_date=orm_batch.batch_date,
        total_amount=_money(orm_batch.total_amount),
        envelope_count=orm_batch.envelope_count,
        status=domain.BatchStatus(orm_batch.status),
        created_by=orm_batch.created_by,
        created_at=orm_batch.created_at,
    )
