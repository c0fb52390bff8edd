"""
Module: inventory_kernel.models.stock_movement
Responsibility: ORM persistence for ledger entries: one quantity and unit
    price for one item on one invoice.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (invoice_prefix, invoice_number, item_ean) is unique: at most one
      movement per item per invoice.
    - (invoice_prefix, invoice_number) references invoices(prefix, number)
      with ON DELETE CASCADE.
    - item_ean references items(ean) with ON DELETE RESTRICT.
    - amount and price_per_unit hold the decimal strings exactly as
      submitted ("10", "10.500", "-3").  They are parsed only when
      aggregated.

Failure modes:
    - IntegrityError on duplicate key or dangling reference.  The ledger
      service checks both before inserting so callers see typed errors.
"""

from sqlalchemy import (
    Boolean,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class StockMovement(TrackedBase):
    """One ledger line."""

    __tablename__ = "stock_movements"

    __table_args__ = (
        UniqueConstraint(
            "invoice_prefix",
            "invoice_number",
            "item_ean",
            name="uq_stock_movements_invoice_item",
        ),
        ForeignKeyConstraint(
            ["invoice_prefix", "invoice_number"],
            ["invoices.prefix", "invoices.number"],
            ondelete="CASCADE",
            name="fk_stock_movements_invoice",
        ),
        Index("idx_stock_movements_item", "item_ean"),
        Index("idx_stock_movements_invoice", "invoice_prefix", "invoice_number"),
    )

    invoice_prefix: Mapped[str] = mapped_column(String(20), nullable=False)
    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    item_ean: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("items.ean", ondelete="RESTRICT", name="fk_stock_movements_item"),
        nullable=False,
    )

    amount: Mapped[str] = mapped_column(String(50), nullable=False)
    price_per_unit: Mapped[str] = mapped_column(String(50), nullable=False)
    vat_rate: Mapped[int] = mapped_column(Integer, nullable=False)
    reset_point: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<StockMovement {self.invoice_prefix}/{self.invoice_number} "
            f"{self.item_ean} {self.amount} @ {self.price_per_unit}>"
        )
