"""
Module: inventory_kernel.models.item
Responsibility: ORM persistence for stock-keeping units.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - ean is unique (uq_items_ean).
    - vat_rate is a VAT code 0, 1 or 2 (CHECK).
    - Sale prices are non-negative (CHECK).

Non-goals:
    - Purchase prices are NOT stored here.  The average and last purchase
      prices are derived from stock movements on every read
      (selectors/costing_selector.py).
"""

from decimal import Decimal
from enum import IntEnum

from sqlalchemy import CheckConstraint, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class VatRate(IntEnum):
    """VAT codes.  Percentages come from KernelConfig.vat_rates."""

    ZERO = 0
    REDUCED = 1
    STANDARD = 2


class Item(TrackedBase):
    """A stock-keeping unit identified by its EAN."""

    __tablename__ = "items"

    __table_args__ = (
        UniqueConstraint("ean", name="uq_items_ean"),
        CheckConstraint("vat_rate IN (0, 1, 2)", name="vat_rate_code"),
        CheckConstraint(
            "sale_price_group1 >= 0 AND sale_price_group2 >= 0 "
            "AND sale_price_group3 >= 0 AND sale_price_group4 >= 0",
            name="sale_prices_non_negative",
        ),
    )

    ean: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    vat_rate: Mapped[int] = mapped_column(
        Integer, nullable=False, default=VatRate.REDUCED
    )
    unit_of_measure: Mapped[str] = mapped_column(
        String(10), nullable=False, default="ks"
    )

    # Sale price per customer price group
    sale_price_group1: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    sale_price_group2: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    sale_price_group3: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    sale_price_group4: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    def __repr__(self) -> str:
        return f"<Item {self.ean}: {self.name}>"
