"""
Module: inventory_kernel.models.invoice
Responsibility: ORM persistence for invoice headers.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (prefix, number) is unique (uq_invoices_prefix_number) and is the
      target of the stock movement foreign key.
    - type is 1..5 (CHECK).  The type decides how the invoice's movements
      affect stock (see domain/stock_effect.py).
    - payment_method is 0, 1 or NULL (CHECK).

Notes:
    The counterparty fields are a snapshot taken when the invoice is
    created.  They are not a foreign key to contacts.
"""

from datetime import date
from enum import IntEnum

from sqlalchemy import CheckConstraint, Date, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class InvoiceType(IntEnum):
    """Invoice classification."""

    PURCHASE_CASH = 1
    PURCHASE_INVOICE = 2
    SALE_CASH = 3
    SALE_INVOICE = 4
    STOCK_CORRECTION = 5

    @property
    def is_purchase(self) -> bool:
        return self in (InvoiceType.PURCHASE_CASH, InvoiceType.PURCHASE_INVOICE)

    @property
    def is_sale(self) -> bool:
        return self in (InvoiceType.SALE_CASH, InvoiceType.SALE_INVOICE)

    @property
    def is_correction(self) -> bool:
        return self is InvoiceType.STOCK_CORRECTION


PURCHASE_TYPES = (InvoiceType.PURCHASE_CASH, InvoiceType.PURCHASE_INVOICE)


class PaymentMethod(IntEnum):
    CASH = 0
    BANK_TRANSFER = 1


class Invoice(TrackedBase):
    """Transaction header owning a set of stock movements."""

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("prefix", "number", name="uq_invoices_prefix_number"),
        CheckConstraint("type BETWEEN 1 AND 5", name="type_range"),
        CheckConstraint(
            "payment_method IN (0, 1) OR payment_method IS NULL",
            name="payment_method_code",
        ),
    )

    prefix: Mapped[str] = mapped_column(String(20), nullable=False)
    number: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[int] = mapped_column(Integer, nullable=False)

    payment_method: Mapped[int | None] = mapped_column(Integer, nullable=True)
    date_issue: Mapped[date] = mapped_column(Date, nullable=False)
    date_tax: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_due: Mapped[date | None] = mapped_column(Date, nullable=True)
    variable_symbol: Mapped[str | None] = mapped_column(String(20), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Counterparty snapshot
    ico: Mapped[str | None] = mapped_column(String(20), nullable=True)
    modifier: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dic: Mapped[str | None] = mapped_column(String(20), nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bank_account: Mapped[str | None] = mapped_column(String(50), nullable=True)
    street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Invoice {self.prefix}/{self.number} type={self.type}>"
