"""Tests for the member register service."""

import pytest

from parishledger.domain.errors import ConflictError, NotFoundError, ValidationError
from parishledger.domain.member import normalize_bank_reference


def test_create_and_get_member(member_service):
    member_id = member_service.create_member("John", "Smith", bank_reference="  JS1234 ")

    member = member_service.get_member(member_id)
    assert member.full_name == "John Smith"
    assert member.bank_reference == "JS1234"
    assert member.active


def test_create_member_requires_names(member_service):
    with pytest.raises(ValidationError):
        member_service.create_member("", "Smith")


def test_bank_reference_is_unique_ignoring_case(member_service, sample_members):
    with pytest.raises(ConflictError):
        member_service.create_member("Jane", "Smith", bank_reference="js1234")


def test_set_bank_reference(member_service, sample_members):
    member_service.set_bank_reference(sample_members["peter"], "PB4321")
    assert member_service.get_member(sample_members["peter"]).bank_reference == "PB4321"

    member_service.set_bank_reference(sample_members["peter"], None)
    assert member_service.get_member(sample_members["peter"]).bank_reference is None


def test_set_own_reference_again(member_service, sample_members):
    member_service.set_bank_reference(sample_members["john"], "JS1234")


def test_set_reference_taken(member_service, sample_members):
    with pytest.raises(ConflictError):
        member_service.set_bank_reference(sample_members["mary"], "JS1234")


def test_set_reference_unknown_member(member_service):
    with pytest.raises(NotFoundError):
        member_service.set_bank_reference(42, "AB12")


def test_register_number_unique_per_year(member_service, sample_members):
    with pytest.raises(ConflictError):
        member_service.assign_register_number(sample_members["mary"], 101, 2025)

    # The same number may be reused in another year
    member_service.assign_register_number(sample_members["mary"], 101, 2026)
    assert member_service.resolve_register_number(101, 2026).member_id == sample_members["mary"]
    assert member_service.resolve_register_number(101, 2025).member_id == sample_members["john"]


def test_register_number_must_be_positive(member_service, sample_members):
    with pytest.raises(ValidationError):
        member_service.assign_register_number(sample_members["john"], 0, 2026)


def test_list_register(member_service, sample_members):
    numbers = [entry.register_number for entry in member_service.list_register(2025)]
    assert numbers == [101, 102, 103]


def test_list_active_members(member_service, sample_members):
    names = [m.full_name for m in member_service.list_members(active_only=True)]
    assert names == ["Mary Jones", "John Smith"]


def test_normalize_bank_reference():
    assert normalize_bank_reference("  Js  1234 ") == "js 1234"
    assert normalize_bank_reference(None) == ""


def test_deactivate_and_reactivate(member_service, envelope_ledger, sample_members):
    john = sample_members["john"]

    member_service.set_active(john, False)
    assert not member_service.get_member(john).active
    assert envelope_ledger.validate_register_number(101, 2025).error == "Member is not active"

    member_service.set_active(john, True)
    assert member_service.get_member(john).active
    assert envelope_ledger.validate_register_number(101, 2025).valid


def test_set_active_unknown_member(member_service):
    with pytest.raises(NotFoundError):
        member_service.set_active(42, False)
