"""
Tests for ContactService.

Covers:
- Creation and duplicate (ico, modifier) keys
- Role and range constraints
- Partial updates and key immutability
- Supplier / customer listings
"""

import pytest

from inventory_kernel.exceptions import (
    ConstraintViolationError,
    DuplicateKeyError,
    InvalidFieldError,
    NoFieldsToUpdateError,
    RecordNotFoundError,
)
from inventory_kernel.services.contact_service import ContactInfo


class TestContactCreate:

    def test_create_supplier(self, contact_service):
        contact = contact_service.create(
            "12345678", "Acme s.r.o.", is_supplier=True, city="Brno"
        )

        assert isinstance(contact, ContactInfo)
        assert contact.ico == "12345678"
        assert contact.modifier == 1
        assert contact.is_supplier is True
        assert contact.is_customer is False
        assert contact.city == "Brno"
        assert contact.price_group == 1

    def test_same_ico_with_different_modifier(self, contact_service):
        contact_service.create("12345678", "Acme HQ", is_supplier=True)
        branch = contact_service.create(
            "12345678", "Acme Branch", modifier=2, is_customer=True
        )

        assert branch.modifier == 2
        assert len(contact_service.get_all()) == 2

    def test_duplicate_key_rejected(self, contact_service):
        contact_service.create("12345678", "Acme", is_supplier=True)

        with pytest.raises(DuplicateKeyError) as exc_info:
            contact_service.create("12345678", "Acme again", is_supplier=True)

        assert exc_info.value.code == "DUPLICATE_KEY"
        assert exc_info.value.key == ("12345678", 1)

    def test_contact_without_role_rejected(self, contact_service):
        with pytest.raises(ConstraintViolationError):
            contact_service.create("87654321", "Nobody")

        assert contact_service.get_one("87654321", 1) is None

    def test_price_group_out_of_range_rejected(self, contact_service):
        with pytest.raises(ConstraintViolationError):
            contact_service.create("87654321", "Cust", is_customer=True, price_group=5)

    def test_session_usable_after_rejected_insert(self, contact_service):
        with pytest.raises(ConstraintViolationError):
            contact_service.create("87654321", "Nobody")

        contact = contact_service.create("87654321", "Somebody", is_customer=True)
        assert contact.company_name == "Somebody"


class TestContactUpdate:

    @pytest.fixture
    def supplier(self, contact_service):
        return contact_service.create("12345678", "Acme", is_supplier=True)

    def test_update_fields(self, contact_service, supplier):
        updated = contact_service.update(
            "12345678", 1, {"company_name": "Acme Group", "is_customer": True}
        )

        assert updated.company_name == "Acme Group"
        assert updated.is_customer is True
        assert updated.is_supplier is True

    def test_key_fields_are_stripped(self, contact_service, supplier):
        updated = contact_service.update(
            "12345678", 1, {"ico": "99999999", "modifier": 7, "city": "Praha"}
        )

        assert updated.ico == "12345678"
        assert updated.modifier == 1
        assert updated.city == "Praha"

    def test_only_key_fields_is_no_update(self, contact_service, supplier):
        with pytest.raises(NoFieldsToUpdateError):
            contact_service.update("12345678", 1, {"ico": "1", "created_at": None})

    def test_unknown_field_rejected(self, contact_service, supplier):
        with pytest.raises(InvalidFieldError) as exc_info:
            contact_service.update("12345678", 1, {"zzz": 1, "aaa": 2, "city": "X"})

        assert exc_info.value.fields == ["aaa", "zzz"]
        assert contact_service.get_one("12345678", 1).city is None

    def test_update_missing_contact(self, contact_service):
        with pytest.raises(RecordNotFoundError):
            contact_service.update("00000000", 1, {"city": "Praha"})

    def test_update_cannot_remove_both_roles(self, contact_service, supplier):
        with pytest.raises(ConstraintViolationError):
            contact_service.update("12345678", 1, {"is_supplier": False})

        assert contact_service.get_one("12345678", 1).is_supplier is True


class TestContactQueries:

    def test_role_listings(self, contact_service):
        contact_service.create("1", "Supplier only", is_supplier=True)
        contact_service.create("2", "Customer only", is_customer=True)
        contact_service.create("3", "Both", is_supplier=True, is_customer=True)

        assert [c.ico for c in contact_service.list_suppliers()] == ["1", "3"]
        assert [c.ico for c in contact_service.list_customers()] == ["2", "3"]

    def test_delete(self, contact_service):
        contact_service.create("1", "Gone soon", is_supplier=True)

        contact_service.delete("1", 1)

        assert contact_service.get_one("1", 1) is None

    def test_delete_missing(self, contact_service):
        with pytest.raises(RecordNotFoundError):
            contact_service.delete("1", 1)
