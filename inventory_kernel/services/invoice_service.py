"""
Service layer for Invoice operations.

Keyed CRUD over invoice headers.  Deleting an invoice together with its
stock movements is the job of InvoiceCascadeCoordinator; ``delete`` here
removes the header row only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping

from sqlalchemy import select

from inventory_kernel.domain.partial_update import UpdatePolicy
from inventory_kernel.exceptions import DuplicateKeyError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.invoice import Invoice, InvoiceType
from inventory_kernel.services.base import BaseService

logger = get_logger("services.invoice")

DATE_FIELDS = ("date_issue", "date_tax", "date_due")

INVOICE_POLICY = UpdatePolicy(
    entity="Invoice",
    key_fields=("prefix", "number"),
    allowed_fields=frozenset({
        "type",
        "payment_method",
        "date_issue",
        "date_tax",
        "date_due",
        "variable_symbol",
        "note",
        "ico",
        "modifier",
        "dic",
        "company_name",
        "bank_account",
        "street",
        "city",
        "postal_code",
        "phone",
        "email",
    }),
)


def _as_date(value: date | str | None) -> date | None:
    """Accept ISO strings from callers that do not build date objects."""
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


@dataclass(frozen=True)
class InvoiceInfo:
    """Immutable DTO for invoice header data."""

    prefix: str
    number: str
    type: InvoiceType
    date_issue: date
    payment_method: int | None
    date_tax: date | None
    date_due: date | None
    variable_symbol: str | None
    note: str | None
    ico: str | None
    modifier: int | None
    dic: str | None
    company_name: str | None
    bank_account: str | None
    street: str | None
    city: str | None
    postal_code: str | None
    phone: str | None
    email: str | None

    @property
    def ref(self) -> str:
        return f"{self.prefix}/{self.number}"


class InvoiceService(BaseService[Invoice]):
    """Store for invoice headers keyed by (prefix, number)."""

    model = Invoice
    policy = INVOICE_POLICY

    def _to_dto(self, invoice: Invoice) -> InvoiceInfo:
        return InvoiceInfo(
            prefix=invoice.prefix,
            number=invoice.number,
            type=InvoiceType(invoice.type),
            date_issue=invoice.date_issue,
            payment_method=invoice.payment_method,
            date_tax=invoice.date_tax,
            date_due=invoice.date_due,
            variable_symbol=invoice.variable_symbol,
            note=invoice.note,
            ico=invoice.ico,
            modifier=invoice.modifier,
            dic=invoice.dic,
            company_name=invoice.company_name,
            bank_account=invoice.bank_account,
            street=invoice.street,
            city=invoice.city,
            postal_code=invoice.postal_code,
            phone=invoice.phone,
            email=invoice.email,
        )

    def _find(self, prefix: str, number: str) -> Invoice | None:
        stmt = select(Invoice).where(
            Invoice.prefix == prefix, Invoice.number == number
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def exists(self, prefix: str, number: str) -> bool:
        return self._find(prefix, number) is not None

    def get_one(self, prefix: str, number: str) -> InvoiceInfo | None:
        """Find an invoice, returning None if not found."""
        invoice = self._find(prefix, number)
        return self._to_dto(invoice) if invoice else None

    def get_all(self) -> list[InvoiceInfo]:
        """All invoices in insertion order."""
        invoices = self.session.execute(select(Invoice).order_by(Invoice.id)).scalars()
        return [self._to_dto(i) for i in invoices]

    def create(
        self,
        prefix: str,
        number: str,
        type: int,
        date_issue: date | str,
        payment_method: int | None = None,
        date_tax: date | str | None = None,
        date_due: date | str | None = None,
        variable_symbol: str | None = None,
        note: str | None = None,
        ico: str | None = None,
        modifier: int | None = None,
        dic: str | None = None,
        company_name: str | None = None,
        bank_account: str | None = None,
        street: str | None = None,
        city: str | None = None,
        postal_code: str | None = None,
        phone: str | None = None,
        email: str | None = None,
    ) -> InvoiceInfo:
        """
        Create an invoice header.

        The counterparty fields are stored as given; they are a snapshot of
        the contact at the time of issue.

        Raises:
            DuplicateKeyError: if (prefix, number) already exists.
            ConstraintViolationError: if type or payment_method is invalid.
        """
        key = (prefix, number)
        if self._find(prefix, number) is not None:
            raise DuplicateKeyError(self.policy.entity, key)

        invoice = Invoice(
            prefix=prefix,
            number=number,
            type=int(type),
            date_issue=_as_date(date_issue),
            payment_method=payment_method,
            date_tax=_as_date(date_tax),
            date_due=_as_date(date_due),
            variable_symbol=variable_symbol,
            note=note,
            ico=ico,
            modifier=modifier,
            dic=dic,
            company_name=company_name,
            bank_account=bank_account,
            street=street,
            city=city,
            postal_code=postal_code,
            phone=phone,
            email=email,
        )
        self._insert(invoice, key)
        logger.info(
            "invoice_created",
            extra={"invoice_ref": f"{prefix}/{number}", "invoice_type": int(type)},
        )
        return self._to_dto(invoice)

    def update(
        self, prefix: str, number: str, updates: Mapping[str, Any]
    ) -> InvoiceInfo:
        """
        Apply a partial update.  ``prefix`` and ``number`` cannot change.

        Changing ``type`` changes how every movement of the invoice counts
        towards stock and cost; nothing is recomputed because nothing is
        stored.

        Raises:
            InvalidFieldError, NoFieldsToUpdateError, RecordNotFoundError,
            ConstraintViolationError.
        """
        coerced = dict(updates)
        for name in DATE_FIELDS:
            if name in coerced:
                coerced[name] = _as_date(coerced[name])
        mutation = self._apply_update((prefix, number), coerced)
        logger.info(
            "invoice_updated",
            extra={"invoice_ref": f"{prefix}/{number}", "fields": list(mutation.fields)},
        )
        return self._to_dto(self._find(prefix, number))

    def delete(self, prefix: str, number: str) -> None:
        """
        Delete the invoice header row.

        Raises:
            RecordNotFoundError: if the invoice does not exist.
        """
        self._delete_by_key((prefix, number))
        logger.info("invoice_deleted", extra={"invoice_ref": f"{prefix}/{number}"})
