"""Shared pytest fixtures for parishledger tests."""

import tempfile
import os
from pathlib import Path
import pytest

from parishledger.database.factories import create_sqlite_database
from parishledger.domain.contribution import ContributionLedger
from parishledger.domain.envelope_batch import EnvelopeBatchLedger
from parishledger.domain.member import MemberService
from parishledger.domain.statement_import import BankStatementImporter


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def second_db(temp_db):
    """Open a second connection to the temporary database, as another operator would."""
    db = create_sqlite_database(database_path=temp_db.database_path)
    db.connect()

    yield db

    db.disconnect()


@pytest.fixture
def member_service(temp_db):
    """Create a MemberService with a temporary database."""
    return MemberService(temp_db)


@pytest.fixture
def importer(temp_db):
    """Create a BankStatementImporter with a temporary database."""
    return BankStatementImporter(temp_db)


@pytest.fixture
def envelope_ledger(temp_db):
    """Create an EnvelopeBatchLedger with a temporary database."""
    return EnvelopeBatchLedger(temp_db)


@pytest.fixture
def contribution_ledger(temp_db):
    """Create a ContributionLedger with a temporary database."""
    return ContributionLedger(temp_db)


@pytest.fixture
def sample_members(member_service):
    """Create sample members with bank references and 2025 register numbers.

    Returns a dict of name -> member ID:
        john:  ref JS1234, register 101
        mary:  ref MJ5678, register 102
        peter: inactive, no ref, register 103
    """
    john = member_service.create_member("John", "Smith", bank_reference="JS1234")
    mary = member_service.create_member("Mary", "Jones", bank_reference="MJ5678")
    peter = member_service.create_member("Peter", "Brown", active=False)

    member_service.assign_register_number(john, 101, 2025)
    member_service.assign_register_number(mary, 102, 2025)
    member_service.assign_register_number(peter, 103, 2025)

    return {"john": john, "mary": mary, "peter": peter}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
