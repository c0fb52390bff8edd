"""Tests for reset-point classification of new movements."""

from decimal import Decimal

import pytest

from inventory_kernel.models.invoice import InvoiceType
from inventory_kernel.services.reset_point_classifier import ResetPointClassifier

EAN = "8590000000001"


@pytest.fixture
def classifier(costing_selector):
    return ResetPointClassifier(costing_selector)


@pytest.fixture
def record(make_invoice, movement_service, test_item):
    """Create an invoice of the given type with one line for the test item."""

    def _record(number, type, amount, **kwargs):
        prefix = "NF" if InvoiceType(type).is_purchase else "PF"
        make_invoice(prefix, number, type=type)
        return movement_service.create(prefix, number, EAN, amount, "10.00", **kwargs)

    return _record


class TestClassifier:

    def test_no_stock_is_never_a_reset(self, classifier, test_item):
        assert classifier.is_reset_point(EAN, Decimal("-5")) is False

    def test_partial_depletion(self, classifier, record):
        record("1", InvoiceType.PURCHASE_INVOICE, "10")

        assert classifier.is_reset_point(EAN, Decimal("-9")) is False

    def test_exact_depletion(self, classifier, record):
        record("1", InvoiceType.PURCHASE_INVOICE, "10")

        assert classifier.is_reset_point(EAN, Decimal("-10")) is True

    def test_overdraw(self, classifier, record):
        record("1", InvoiceType.PURCHASE_INVOICE, "10")

        assert classifier.is_reset_point(EAN, Decimal("-12.5")) is True

    def test_increase_is_not_a_reset(self, classifier, record):
        record("1", InvoiceType.PURCHASE_INVOICE, "10")

        assert classifier.is_reset_point(EAN, Decimal("3")) is False


class TestMovementFlagging:

    def test_purchase_not_flagged(self, record):
        movement = record("1", InvoiceType.PURCHASE_INVOICE, "10")

        assert movement.reset_point is False

    def test_sale_that_empties_stock_is_flagged(self, record):
        record("1", InvoiceType.PURCHASE_INVOICE, "10")
        partial = record("S-1", InvoiceType.SALE_INVOICE, "4")
        emptying = record("S-2", InvoiceType.SALE_CASH, "6")

        assert partial.reset_point is False
        assert emptying.reset_point is True

    def test_sale_from_negative_stock_not_flagged(self, record):
        record("S-1", InvoiceType.SALE_INVOICE, "2")
        second = record("S-2", InvoiceType.SALE_INVOICE, "2")

        assert second.reset_point is False

    def test_negative_correction_flagged(self, record):
        record("1", InvoiceType.PURCHASE_CASH, "3")
        correction = record("K-1", InvoiceType.STOCK_CORRECTION, "-3")

        assert correction.reset_point is True

    def test_explicit_flag_wins(self, record):
        record("1", InvoiceType.PURCHASE_INVOICE, "10")
        movement = record("S-1", InvoiceType.SALE_INVOICE, "10", reset_point=False)

        assert movement.reset_point is False

    def test_flag_does_not_change_costing(self, record, costing_selector):
        record("1", InvoiceType.PURCHASE_INVOICE, "10")
        record("S-1", InvoiceType.SALE_INVOICE, "10")
        record("2", InvoiceType.PURCHASE_CASH, "10")

        assert costing_selector.stock_amount(EAN) == Decimal("10")
        assert costing_selector.average_buy_price(EAN) == Decimal("10.00")

    def test_detection_is_logged(self, record, captured_logs):
        record("1", InvoiceType.PURCHASE_INVOICE, "1")
        record("S-1", InvoiceType.SALE_INVOICE, "1")

        assert any(r["message"] == "reset_point_detected" for r in captured_logs())
