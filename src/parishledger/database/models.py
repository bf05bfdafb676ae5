"""SQLAlchemy models for the parishledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    CheckConstraint,
    Index,
    create_engine,
    text,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Member(Base):
    """Member of the parish register."""

    __tablename__ = "members"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    bank_reference = Column(String(100), nullable=True, unique=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    register_entries = relationship("RegisterEntry", back_populates="member")
    contributions = relationship("Contribution", back_populates="member")


class RegisterEntry(Base):
    """Register number assigned to a member for one year."""

    __tablename__ = "register_entries"

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    register_number = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("year", "register_number", name="uq_register_year_number"),
    )

    # Relationships
    member = relationship("Member", back_populates="register_entries")


class BankTransaction(Base):
    """Credit transaction imported from a bank statement."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    source = Column(String(50), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String(500), nullable=True)
    reference = Column(String(100), nullable=False, default="")
    money_in = Column(Numeric(10, 2), nullable=False)
    fingerprint = Column(String(700), nullable=False)
    processed = Column(Boolean, default=False, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    modified_by = Column(String(100), nullable=True)
    modified_at = Column(DateTime, nullable=True)

    # A live fingerprint may exist once per statement source; soft-deleted
    # rows may be re-imported.
    __table_args__ = (
        Index(
            "uq_bank_transaction_fingerprint",
            "source",
            "fingerprint",
            unique=True,
            sqlite_where=text("deleted = 0"),
            postgresql_where=text("deleted = false"),
        ),
        Index("ix_bank_transactions_processed", "processed"),
        Index("ix_bank_transactions_reference", "reference"),
    )

    # Relationships
    contributions = relationship("Contribution", back_populates="bank_transaction")


class EnvelopeBatch(Base):
    """Envelope contributions collected on a single date."""

    __tablename__ = "envelope_batches"

    id = Column(Integer, primary_key=True)
    batch_date = Column(Date, nullable=False, unique=True)
    total_amount = Column(Numeric(18, 2), nullable=False)
    envelope_count = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="Submitted")
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_envelope_batch_total_amount"),
        CheckConstraint("envelope_count > 0", name="ck_envelope_batch_envelope_count"),
    )

    # Relationships
    contributions = relationship(
        "Contribution", back_populates="envelope_batch", order_by="Contribution.id"
    )


class Contribution(Base):
    """Contribution posted against a member."""

    __tablename__ = "contributions"

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    date = Column(Date, nullable=False)
    transaction_ref = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    contribution_type = Column(String(20), nullable=False)
    bank_transaction_id = Column(Integer, ForeignKey("bank_transactions.id"), nullable=True)
    envelope_batch_id = Column(Integer, ForeignKey("envelope_batches.id"), nullable=True)
    register_number = Column(Integer, nullable=True)
    # Audit link to the contribution being corrected; not a foreign key.
    corrects_contribution_id = Column(Integer, nullable=True)
    manual = Column(Boolean, default=False, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    modified_by = Column(String(100), nullable=True)
    modified_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_contribution_amount"),
        CheckConstraint(
            "bank_transaction_id IS NULL OR envelope_batch_id IS NULL",
            name="ck_contribution_single_origin",
        ),
        Index(
            "uq_contribution_bank_transaction",
            "bank_transaction_id",
            unique=True,
            sqlite_where=text("bank_transaction_id IS NOT NULL AND deleted = 0"),
            postgresql_where=text("bank_transaction_id IS NOT NULL AND deleted = false"),
        ),
        Index("ix_contributions_member_date", "member_id", "date"),
    )

    # Relationships
    member = relationship("Member", back_populates="contributions")
    bank_transaction = relationship("BankTransaction", back_populates="contributions")
    envelope_batch = relationship("EnvelopeBatch", back_populates="contributions")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
