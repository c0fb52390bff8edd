"""
Service layer for Contact operations.

Keyed CRUD over trading partners.  Returns ContactInfo DTOs instead of ORM
entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy import select

from inventory_kernel.domain.partial_update import UpdatePolicy
from inventory_kernel.exceptions import DuplicateKeyError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.contact import Contact
from inventory_kernel.services.base import BaseService

logger = get_logger("services.contact")

CONTACT_POLICY = UpdatePolicy(
    entity="Contact",
    key_fields=("ico", "modifier"),
    allowed_fields=frozenset({
        "dic",
        "company_name",
        "representative_name",
        "street",
        "city",
        "postal_code",
        "is_supplier",
        "is_customer",
        "price_group",
        "phone",
        "email",
        "website",
        "bank_account",
    }),
)


@dataclass(frozen=True)
class ContactInfo:
    """Immutable DTO for contact data."""

    ico: str
    modifier: int
    company_name: str
    dic: str | None
    representative_name: str | None
    street: str | None
    city: str | None
    postal_code: str | None
    is_supplier: bool
    is_customer: bool
    price_group: int
    phone: str | None
    email: str | None
    website: str | None
    bank_account: str | None


class ContactService(BaseService[Contact]):
    """
    Store for contacts keyed by (ico, modifier).

    Key fields are immutable; everything in CONTACT_POLICY may be updated.
    """

    model = Contact
    policy = CONTACT_POLICY

    def _to_dto(self, contact: Contact) -> ContactInfo:
        return ContactInfo(
            ico=contact.ico,
            modifier=contact.modifier,
            company_name=contact.company_name,
            dic=contact.dic,
            representative_name=contact.representative_name,
            street=contact.street,
            city=contact.city,
            postal_code=contact.postal_code,
            is_supplier=bool(contact.is_supplier),
            is_customer=bool(contact.is_customer),
            price_group=contact.price_group,
            phone=contact.phone,
            email=contact.email,
            website=contact.website,
            bank_account=contact.bank_account,
        )

    def _find(self, ico: str, modifier: int) -> Contact | None:
        stmt = select(Contact).where(self._key_predicate((ico, modifier)))
        return self.session.execute(stmt).scalar_one_or_none()

    def get_one(self, ico: str, modifier: int) -> ContactInfo | None:
        """Find a contact, returning None if not found."""
        contact = self._find(ico, modifier)
        return self._to_dto(contact) if contact else None

    def get_all(self) -> list[ContactInfo]:
        """All contacts in insertion order."""
        contacts = self.session.execute(select(Contact).order_by(Contact.id)).scalars()
        return [self._to_dto(c) for c in contacts]

    def list_suppliers(self) -> list[ContactInfo]:
        stmt = select(Contact).where(Contact.is_supplier.is_(True)).order_by(Contact.id)
        return [self._to_dto(c) for c in self.session.execute(stmt).scalars()]

    def list_customers(self) -> list[ContactInfo]:
        stmt = select(Contact).where(Contact.is_customer.is_(True)).order_by(Contact.id)
        return [self._to_dto(c) for c in self.session.execute(stmt).scalars()]

    def create(
        self,
        ico: str,
        company_name: str,
        modifier: int = 1,
        is_supplier: bool = False,
        is_customer: bool = False,
        price_group: int = 1,
        dic: str | None = None,
        representative_name: str | None = None,
        street: str | None = None,
        city: str | None = None,
        postal_code: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        website: str | None = None,
        bank_account: str | None = None,
    ) -> ContactInfo:
        """
        Create a new contact.

        Raises:
            DuplicateKeyError: if (ico, modifier) already exists.
            ConstraintViolationError: if neither role flag is set, or
                modifier / price_group is out of range.
        """
        key = (ico, modifier)
        if self._find(ico, modifier) is not None:
            raise DuplicateKeyError(self.policy.entity, key)

        contact = Contact(
            ico=ico,
            modifier=modifier,
            company_name=company_name,
            dic=dic,
            representative_name=representative_name,
            street=street,
            city=city,
            postal_code=postal_code,
            is_supplier=is_supplier,
            is_customer=is_customer,
            price_group=price_group,
            phone=phone,
            email=email,
            website=website,
            bank_account=bank_account,
        )
        self._insert(contact, key)
        logger.info("contact_created", extra={"ico": ico, "modifier": modifier})
        return self._to_dto(contact)

    def update(
        self, ico: str, modifier: int, updates: Mapping[str, Any]
    ) -> ContactInfo:
        """
        Apply a partial update.  ``ico`` and ``modifier`` cannot change.

        Raises:
            InvalidFieldError, NoFieldsToUpdateError, RecordNotFoundError,
            ConstraintViolationError.
        """
        mutation = self._apply_update((ico, modifier), updates)
        logger.info(
            "contact_updated",
            extra={"ico": ico, "modifier": modifier, "fields": list(mutation.fields)},
        )
        return self._to_dto(self._find(ico, modifier))

    def delete(self, ico: str, modifier: int) -> None:
        """
        Delete a contact.  Invoices keep their own snapshot of it.

        Raises:
            RecordNotFoundError: if the contact does not exist.
        """
        self._delete_by_key((ico, modifier))
        logger.info("contact_deleted", extra={"ico": ico, "modifier": modifier})
