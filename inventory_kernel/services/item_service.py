"""
Service layer for Item operations.

Keyed CRUD over stock-keeping units.  Purchase prices are not part of the
item record: they are read from the costing selector.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy import func, select

from inventory_kernel.domain.partial_update import UpdatePolicy
from inventory_kernel.domain.stock_effect import parse_decimal
from inventory_kernel.exceptions import DuplicateKeyError, ItemReferencedError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.item import Item, VatRate
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.services.base import BaseService

logger = get_logger("services.item")

SALE_PRICE_FIELDS = (
    "sale_price_group1",
    "sale_price_group2",
    "sale_price_group3",
    "sale_price_group4",
)

ITEM_POLICY = UpdatePolicy(
    entity="Item",
    key_fields=("ean",),
    allowed_fields=frozenset({
        "category",
        "name",
        "note",
        "vat_rate",
        "unit_of_measure",
        *SALE_PRICE_FIELDS,
    }),
)


@dataclass(frozen=True)
class ItemInfo:
    """Immutable DTO for item data."""

    ean: str
    name: str
    category: str | None
    note: str | None
    vat_rate: int
    unit_of_measure: str
    sale_price_group1: Decimal
    sale_price_group2: Decimal
    sale_price_group3: Decimal
    sale_price_group4: Decimal

    def sale_price(self, price_group: int) -> Decimal:
        """Sale price for a contact's price group (1..4)."""
        if price_group not in (1, 2, 3, 4):
            raise ValueError(f"price_group must be 1..4, got {price_group}")
        return getattr(self, f"sale_price_group{price_group}")


class ItemService(BaseService[Item]):
    """Store for items keyed by EAN."""

    model = Item
    policy = ITEM_POLICY

    def _to_dto(self, item: Item) -> ItemInfo:
        return ItemInfo(
            ean=item.ean,
            name=item.name,
            category=item.category,
            note=item.note,
            vat_rate=item.vat_rate,
            unit_of_measure=item.unit_of_measure,
            sale_price_group1=Decimal(item.sale_price_group1),
            sale_price_group2=Decimal(item.sale_price_group2),
            sale_price_group3=Decimal(item.sale_price_group3),
            sale_price_group4=Decimal(item.sale_price_group4),
        )

    def _find(self, ean: str) -> Item | None:
        stmt = select(Item).where(Item.ean == ean)
        return self.session.execute(stmt).scalar_one_or_none()

    def exists(self, ean: str) -> bool:
        return self._find(ean) is not None

    def get_one(self, ean: str) -> ItemInfo | None:
        """Find an item, returning None if not found."""
        item = self._find(ean)
        return self._to_dto(item) if item else None

    def get_all(self) -> list[ItemInfo]:
        """All items in insertion order."""
        items = self.session.execute(select(Item).order_by(Item.id)).scalars()
        return [self._to_dto(i) for i in items]

    def list_categories(self) -> list[str]:
        """Distinct non-empty categories, sorted."""
        stmt = (
            select(Item.category)
            .where(Item.category.is_not(None), Item.category != "")
            .distinct()
            .order_by(Item.category)
        )
        return list(self.session.execute(stmt).scalars())

    def create(
        self,
        ean: str,
        name: str,
        category: str | None = None,
        note: str | None = None,
        vat_rate: int = VatRate.REDUCED,
        unit_of_measure: str = "ks",
        sale_price_group1: Decimal | str | int = Decimal("0"),
        sale_price_group2: Decimal | str | int = Decimal("0"),
        sale_price_group3: Decimal | str | int = Decimal("0"),
        sale_price_group4: Decimal | str | int = Decimal("0"),
    ) -> ItemInfo:
        """
        Create a new item.

        Raises:
            DuplicateKeyError: if the EAN already exists.
            InvalidQuantityError: if a sale price is not a decimal.
            ConstraintViolationError: if vat_rate is not 0/1/2 or a sale
                price is negative.
        """
        key = (ean,)
        if self._find(ean) is not None:
            raise DuplicateKeyError(self.policy.entity, key)

        item = Item(
            ean=ean,
            name=name,
            category=category,
            note=note,
            vat_rate=int(vat_rate),
            unit_of_measure=unit_of_measure,
            sale_price_group1=parse_decimal("sale_price_group1", sale_price_group1),
            sale_price_group2=parse_decimal("sale_price_group2", sale_price_group2),
            sale_price_group3=parse_decimal("sale_price_group3", sale_price_group3),
            sale_price_group4=parse_decimal("sale_price_group4", sale_price_group4),
        )
        self._insert(item, key)
        logger.info("item_created", extra={"ean": ean})
        return self._to_dto(item)

    def update(self, ean: str, updates: Mapping[str, Any]) -> ItemInfo:
        """
        Apply a partial update.  ``ean`` cannot change, and purchase prices
        are not writable.

        Raises:
            InvalidFieldError, NoFieldsToUpdateError, RecordNotFoundError,
            InvalidQuantityError, ConstraintViolationError.
        """
        coerced = dict(updates)
        for name in SALE_PRICE_FIELDS:
            if name in coerced:
                coerced[name] = parse_decimal(name, coerced[name])
        mutation = self._apply_update((ean,), coerced)
        logger.info("item_updated", extra={"ean": ean, "fields": list(mutation.fields)})
        return self._to_dto(self._find(ean))

    def delete(self, ean: str) -> None:
        """
        Delete an item that no stock movement references.

        Raises:
            ItemReferencedError: if movements still reference the item.
            RecordNotFoundError: if the item does not exist.
        """
        count = self.session.execute(
            select(func.count()).select_from(StockMovement).where(
                StockMovement.item_ean == ean
            )
        ).scalar_one()
        if count:
            raise ItemReferencedError(ean, count)
        self._delete_by_key((ean,))
        logger.info("item_deleted", extra={"ean": ean})
