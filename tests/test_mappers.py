"""Tests for database mappers."""

from datetime import datetime, date, UTC
from decimal import Decimal

from parishledger.database.models import (
    Member as ORMMember,
    RegisterEntry as ORMRegisterEntry,
    BankTransaction as ORMBankTransaction,
    Contribution as ORMContribution,
    EnvelopeBatch as ORMEnvelopeBatch,
)
from parishledger.database.mappers import (
    member_to_domain,
    register_entry_to_domain,
    bank_transaction_to_domain,
    contribution_to_domain,
    envelope_batch_to_domain,
)
from parishledger.domain.entities import (
    BatchStatus,
    Contribution,
    ContributionType,
    Member,
)


class TestMemberMappers:
    """Tests for Member and RegisterEntry mappers."""

    def test_member_to_domain(self):
        """Test converting ORM Member to domain Member."""
        orm_member = ORMMember(
            id=1,
            first_name="John",
            last_name="Smith",
            active=True,
            bank_reference="JS1234",
            created_at=datetime.now(UTC),
        )
        member = member_to_domain(orm_member)

        assert isinstance(member, Member)
        assert member.id == 1
        assert member.full_name == "John Smith"
        assert member.bank_reference == "JS1234"
        assert member.created_at == orm_member.created_at

    def test_register_entry_to_domain(self):
        orm_entry = ORMRegisterEntry(id=3, member_id=1, register_number=101, year=2025)
        entry = register_entry_to_domain(orm_entry)

        assert (entry.member_id, entry.register_number, entry.year) == (1, 101, 2025)


class TestBankTransactionMapper:
    """Tests for BankTransaction mapper."""

    def test_bank_transaction_to_domain(self):
        """Test converting ORM BankTransaction to domain, normalising money."""
        orm_txn = ORMBankTransaction(
            id=7,
            source="HSBC",
            date=date(2025, 6, 8),
            description="J SMITH REF JS1234",
            reference=None,
            money_in=Decimal("50"),
            fingerprint="2025-06-08|ref:JS1234|50.00",
            processed=False,
            deleted=False,
            created_by="treasurer",
            created_at=datetime.now(UTC),
        )
        txn = bank_transaction_to_domain(orm_txn)

        assert txn.money_in == Decimal("50.00")
        assert str(txn.money_in) == "50.00"
        assert txn.reference == ""
        assert txn.modified_by is None


class TestContributionMappers:
    """Tests for Contribution and EnvelopeBatch mappers."""

    def test_contribution_to_domain(self):
        """Test converting ORM Contribution to domain Contribution."""
        orm_contribution = ORMContribution(
            id=5,
            member_id=1,
            amount=Decimal("20.5"),
            date=date(2025, 6, 8),
            transaction_ref="ENV-2-101",
            description=None,
            contribution_type="Cash",
            envelope_batch_id=2,
            register_number=101,
            manual=False,
            deleted=False,
            created_by="steward",
            created_at=datetime.now(UTC),
        )
        contribution = contribution_to_domain(orm_contribution)

        assert isinstance(contribution, Contribution)
        assert contribution.amount == Decimal("20.50")
        assert contribution.contribution_type == ContributionType.CASH
        assert contribution.envelope_batch_id == 2
        assert contribution.register_number == 101
        assert contribution.bank_transaction_id is None
        assert contribution.corrects_contribution_id is None

    def test_envelope_batch_to_domain(self):
        orm_batch = ORMEnvelopeBatch(
            id=2,
            batch_date=date(2025, 6, 8),
            total_amount=Decimal("35.5"),
            envelope_count=2,
            status="Submitted",
            created_by="steward",
            created_at=datetime.now(UTC),
        )
        batch = envelope_batch_to_domain(orm_batch)

        assert batch.total_amount == Decimal("35.50")
        assert batch.status == BatchStatus.SUBMITTED
