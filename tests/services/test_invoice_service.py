"""Tests for InvoiceService."""

from datetime import date, datetime, timezone

import pytest

from inventory_kernel.exceptions import (
    ConstraintViolationError,
    DuplicateKeyError,
    InvalidFieldError,
    RecordNotFoundError,
)
from inventory_kernel.models.invoice import Invoice, InvoiceType


class TestInvoiceCreate:

    def test_create_with_counterparty_snapshot(self, invoice_service):
        invoice = invoice_service.create(
            "NF",
            "2024001",
            InvoiceType.PURCHASE_INVOICE,
            date(2024, 3, 1),
            ico="12345678",
            company_name="Acme s.r.o.",
            date_due="2024-03-15",
        )

        assert invoice.type is InvoiceType.PURCHASE_INVOICE
        assert invoice.ref == "NF/2024001"
        assert invoice.company_name == "Acme s.r.o."
        assert invoice.date_due == date(2024, 3, 15)

    def test_same_number_different_prefix(self, invoice_service):
        invoice_service.create("NF", "1", 2, "2024-03-01")
        invoice_service.create("PF", "1", 4, "2024-03-01")

        assert [i.ref for i in invoice_service.get_all()] == ["NF/1", "PF/1"]

    def test_duplicate(self, invoice_service):
        invoice_service.create("NF", "1", 2, "2024-03-01")

        with pytest.raises(DuplicateKeyError):
            invoice_service.create("NF", "1", 1, "2024-04-01")

    def test_unknown_type_rejected(self, invoice_service):
        with pytest.raises(ConstraintViolationError):
            invoice_service.create("X", "1", 9, "2024-03-01")

    def test_timestamps_come_from_clock(self, invoice_service, session, clock):
        invoice_service.create("NF", "1", 2, "2024-03-01")

        row = session.query(Invoice).one()
        assert row.created_at.replace(tzinfo=timezone.utc) == clock.now()


class TestInvoiceUpdate:

    @pytest.fixture
    def invoice(self, make_invoice):
        return make_invoice()

    def test_update_dates_and_note(self, invoice_service, invoice):
        updated = invoice_service.update(
            "NF", "INV-001", {"date_tax": "2024-03-02", "note": "paid"}
        )

        assert updated.date_tax == date(2024, 3, 2)
        assert updated.note == "paid"

    def test_update_sets_updated_at(self, invoice_service, invoice, session, clock):
        clock.set_time(datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc))

        invoice_service.update("NF", "INV-001", {"note": "late"})

        row = session.query(Invoice).one()
        assert row.updated_at.replace(tzinfo=timezone.utc) == clock.now()
        assert row.created_at < row.updated_at.replace(tzinfo=row.created_at.tzinfo)

    def test_key_fields_stripped(self, invoice_service, invoice):
        updated = invoice_service.update(
            "NF", "INV-001", {"prefix": "PF", "number": "9", "note": "x"}
        )

        assert updated.ref == "NF/INV-001"

    def test_unknown_field(self, invoice_service, invoice):
        with pytest.raises(InvalidFieldError):
            invoice_service.update("NF", "INV-001", {"total": "100"})

    def test_missing_invoice(self, invoice_service):
        with pytest.raises(RecordNotFoundError):
            invoice_service.update("NF", "404", {"note": "x"})

    def test_delete_header(self, invoice_service, invoice):
        invoice_service.delete("NF", "INV-001")

        assert invoice_service.exists("NF", "INV-001") is False
