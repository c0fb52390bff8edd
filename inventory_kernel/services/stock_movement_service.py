"""
StockMovementService -- the stock movement ledger.

Responsibility:
    Records, reads, edits and removes ledger lines.  A movement ties one
    quantity and one unit price of an item to an invoice; its effect on
    stock follows from the invoice type (see ``domain.stock_effect``).

Architecture position:
    Kernel > Services.  Reads invoice and item rows directly for the
    reference checks and consults the ``ResetPointClassifier`` before
    inserting.

Invariants enforced:
    - A movement is only created when its invoice and item exist and the
      invoice has no movement for that item yet.  Every check runs before
      the insert, so nothing is persisted when one fails.
    - ``amount`` and ``price_per_unit`` are stored exactly as submitted once
      they parse as finite decimals.
    - The identity (invoice_prefix, invoice_number, item_ean) never changes
      after creation.

Failure modes:
    - InvoiceNotFoundError / ItemNotFoundError: dangling reference.
    - DuplicateMovementError: second movement for the same invoice and item.
    - InvalidQuantityError: amount or price is not a finite decimal.
    - RecordNotFoundError, InvalidFieldError, NoFieldsToUpdateError on
      update/delete.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy import and_, delete, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.partial_update import UpdatePolicy
from inventory_kernel.domain.stock_effect import parse_decimal, signed_effect
from inventory_kernel.exceptions import (
    DuplicateMovementError,
    InvoiceNotFoundError,
    ItemNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.invoice import Invoice
from inventory_kernel.models.item import Item
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.selectors.costing_selector import CostingSelector
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.reset_point_classifier import ResetPointClassifier

logger = get_logger("services.stock_movement")

DECIMAL_FIELDS = ("amount", "price_per_unit")

MOVEMENT_POLICY = UpdatePolicy(
    entity="StockMovement",
    key_fields=("invoice_prefix", "invoice_number", "item_ean"),
    allowed_fields=frozenset({"amount", "price_per_unit", "reset_point"}),
)


@dataclass(frozen=True)
class StockMovementInfo:
    """Immutable DTO for one ledger line.  Amount and price keep their text."""

    invoice_prefix: str
    invoice_number: str
    item_ean: str
    amount: str
    price_per_unit: str
    vat_rate: int
    reset_point: bool

    @property
    def invoice_ref(self) -> str:
        return f"{self.invoice_prefix}/{self.invoice_number}"


def _as_text(field: str, value: Decimal | str | int) -> str:
    """Validate a submitted decimal and return the text to store."""
    parse_decimal(field, value)
    return value if isinstance(value, str) else str(value)


class StockMovementService(BaseService[StockMovement]):
    """Ledger of stock movements keyed by (invoice_prefix, invoice_number, item_ean)."""

    model = StockMovement
    policy = MOVEMENT_POLICY

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        classifier: ResetPointClassifier | None = None,
    ):
        super().__init__(session, clock)
        self.classifier = classifier or ResetPointClassifier(CostingSelector(session))

    def _to_dto(self, movement: StockMovement) -> StockMovementInfo:
        return StockMovementInfo(
            invoice_prefix=movement.invoice_prefix,
            invoice_number=movement.invoice_number,
            item_ean=movement.item_ean,
            amount=movement.amount,
            price_per_unit=movement.price_per_unit,
            vat_rate=movement.vat_rate,
            reset_point=bool(movement.reset_point),
        )

    def _find(
        self, invoice_prefix: str, invoice_number: str, item_ean: str
    ) -> StockMovement | None:
        stmt = select(StockMovement).where(
            self._key_predicate((invoice_prefix, invoice_number, item_ean))
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _invoice_predicate(self, invoice_prefix: str, invoice_number: str):
        return and_(
            StockMovement.invoice_prefix == invoice_prefix,
            StockMovement.invoice_number == invoice_number,
        )

    def get_one(
        self, invoice_prefix: str, invoice_number: str, item_ean: str
    ) -> StockMovementInfo | None:
        """Find a movement, returning None if not found."""
        movement = self._find(invoice_prefix, invoice_number, item_ean)
        return self._to_dto(movement) if movement else None

    def get_all(self) -> list[StockMovementInfo]:
        """Every movement in insertion order."""
        stmt = select(StockMovement).order_by(StockMovement.id)
        return [self._to_dto(m) for m in self.session.execute(stmt).scalars()]

    def get_by_invoice(
        self, invoice_prefix: str, invoice_number: str
    ) -> list[StockMovementInfo]:
        """Lines of one invoice in insertion order."""
        stmt = (
            select(StockMovement)
            .where(self._invoice_predicate(invoice_prefix, invoice_number))
            .order_by(StockMovement.id)
        )
        return [self._to_dto(m) for m in self.session.execute(stmt).scalars()]

    def get_by_item(self, item_ean: str) -> list[StockMovementInfo]:
        """History of one item in insertion order."""
        stmt = (
            select(StockMovement)
            .where(StockMovement.item_ean == item_ean)
            .order_by(StockMovement.id)
        )
        return [self._to_dto(m) for m in self.session.execute(stmt).scalars()]

    def create(
        self,
        invoice_prefix: str,
        invoice_number: str,
        item_ean: str,
        amount: Decimal | str | int,
        price_per_unit: Decimal | str | int,
        vat_rate: int | None = None,
        reset_point: bool | None = None,
    ) -> StockMovementInfo:
        """
        Record one movement.

        Args:
            vat_rate: VAT code of the line.  Defaults to the item's code.
            reset_point: Explicit flag.  When None, the reset-point
                classifier decides from the current stock and the
                movement's signed effect.

        Raises:
            InvoiceNotFoundError: if the invoice does not exist.
            ItemNotFoundError: if the item does not exist.
            DuplicateMovementError: if the invoice already lists the item.
            InvalidQuantityError: if amount or price is not a decimal.
        """
        invoice_type = self.session.execute(
            select(Invoice.type).where(
                Invoice.prefix == invoice_prefix, Invoice.number == invoice_number
            )
        ).scalar_one_or_none()
        if invoice_type is None:
            raise InvoiceNotFoundError(invoice_prefix, invoice_number)

        item_vat_rate = self.session.execute(
            select(Item.vat_rate).where(Item.ean == item_ean)
        ).scalar_one_or_none()
        if item_vat_rate is None:
            raise ItemNotFoundError(item_ean)

        if self._find(invoice_prefix, invoice_number, item_ean) is not None:
            raise DuplicateMovementError(invoice_prefix, invoice_number, item_ean)

        amount_text = _as_text("amount", amount)
        price_text = _as_text("price_per_unit", price_per_unit)

        if reset_point is None:
            delta = signed_effect(invoice_type, parse_decimal("amount", amount_text))
            reset_point = self.classifier.is_reset_point(item_ean, delta)

        movement = StockMovement(
            invoice_prefix=invoice_prefix,
            invoice_number=invoice_number,
            item_ean=item_ean,
            amount=amount_text,
            price_per_unit=price_text,
            vat_rate=item_vat_rate if vat_rate is None else int(vat_rate),
            reset_point=bool(reset_point),
        )
        self._insert(movement, (invoice_prefix, invoice_number, item_ean))
        logger.info(
            "stock_movement_created",
            extra={
                "invoice_ref": f"{invoice_prefix}/{invoice_number}",
                "ean": item_ean,
                "amount": amount_text,
                "price_per_unit": price_text,
                "reset_point": movement.reset_point,
            },
        )
        return self._to_dto(movement)

    def update(
        self,
        invoice_prefix: str,
        invoice_number: str,
        item_ean: str,
        updates: Mapping[str, Any],
    ) -> StockMovementInfo:
        """
        Apply a partial update to amount, price_per_unit or reset_point.

        The reset-point flag is not re-evaluated when the amount changes.

        Raises:
            InvalidFieldError, NoFieldsToUpdateError, RecordNotFoundError,
            InvalidQuantityError.
        """
        coerced = dict(updates)
        for name in DECIMAL_FIELDS:
            if name in coerced:
                coerced[name] = _as_text(name, coerced[name])
        if "reset_point" in coerced:
            coerced["reset_point"] = bool(coerced["reset_point"])

        key = (invoice_prefix, invoice_number, item_ean)
        mutation = self._apply_update(key, coerced)
        logger.info(
            "stock_movement_updated",
            extra={
                "invoice_ref": f"{invoice_prefix}/{invoice_number}",
                "ean": item_ean,
                "fields": list(mutation.fields),
            },
        )
        return self._to_dto(self._find(*key))

    def delete(self, invoice_prefix: str, invoice_number: str, item_ean: str) -> None:
        """
        Remove one movement.

        Raises:
            RecordNotFoundError: if the movement does not exist.
        """
        self._delete_by_key((invoice_prefix, invoice_number, item_ean))
        logger.info(
            "stock_movement_deleted",
            extra={"invoice_ref": f"{invoice_prefix}/{invoice_number}", "ean": item_ean},
        )

    def delete_by_invoice(self, invoice_prefix: str, invoice_number: str) -> int:
        """Remove every line of an invoice.  Returns the number of rows removed."""
        stmt = (
            delete(StockMovement)
            .where(self._invoice_predicate(invoice_prefix, invoice_number))
            .execution_options(synchronize_session="evaluate")
        )
        removed = self.session.execute(stmt).rowcount
        logger.info(
            "stock_movements_deleted_for_invoice",
            extra={"invoice_ref": f"{invoice_prefix}/{invoice_number}", "count": removed},
        )
        return removed
