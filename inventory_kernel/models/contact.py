"""
Module: inventory_kernel.models.contact
Responsibility: ORM persistence for trading partners (suppliers and
    customers).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (ico, modifier) is unique (uq_contacts_ico_modifier).  ``modifier``
      disambiguates several branches of the same business id.
    - modifier is within 1..100 and price_group within 1..4 (CHECK).
    - A contact is a supplier, a customer, or both (CHECK).

Failure modes:
    - IntegrityError on duplicate key or CHECK violation; the service layer
      translates these into DuplicateKeyError / ConstraintViolationError.

Notes:
    Invoices copy the contact's identity and address at creation time
    instead of referencing this table, so deleting a contact never touches
    invoices or stock movements.
"""

from sqlalchemy import Boolean, CheckConstraint, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class Contact(TrackedBase):
    """A supplier and/or customer."""

    __tablename__ = "contacts"

    __table_args__ = (
        UniqueConstraint("ico", "modifier", name="uq_contacts_ico_modifier"),
        CheckConstraint("modifier BETWEEN 1 AND 100", name="modifier_range"),
        CheckConstraint("price_group BETWEEN 1 AND 4", name="price_group_range"),
        CheckConstraint(
            "is_supplier = 1 OR is_customer = 1", name="has_role"
        ),
    )

    ico: Mapped[str] = mapped_column(String(20), nullable=False)
    modifier: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    dic: Mapped[str | None] = mapped_column(String(20), nullable=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    representative_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    is_supplier: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_customer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    price_group: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bank_account: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Contact {self.ico}/{self.modifier}: {self.company_name}>"
