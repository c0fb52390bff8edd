"""
InvoiceCascadeCoordinator -- remove an invoice together with its movements.

The schema also cascades at the database level; deleting the movements
explicitly first gives an exact count and does not depend on the
connection having foreign keys enabled.  Both deletes run inside one
savepoint: either both happen or neither does.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.exceptions import RecordNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.invoice_service import InvoiceService
from inventory_kernel.services.stock_movement_service import StockMovementService

logger = get_logger("services.cascade")


@dataclass(frozen=True)
class CascadeResult:
    prefix: str
    number: str
    movements_deleted: int


class InvoiceCascadeCoordinator:
    """Deletes an invoice and every stock movement that references it."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        invoices: InvoiceService | None = None,
        movements: StockMovementService | None = None,
    ):
        self.session = session
        self.invoices = invoices or InvoiceService(session, clock)
        self.movements = movements or StockMovementService(session, clock)

    def delete_invoice(self, prefix: str, number: str) -> CascadeResult:
        """
        Raises:
            RecordNotFoundError: if the invoice does not exist.  Nothing is
                deleted in that case.
        """
        if not self.invoices.exists(prefix, number):
            raise RecordNotFoundError("Invoice", (prefix, number))

        with self.session.begin_nested():
            removed = self.movements.delete_by_invoice(prefix, number)
            self.invoices.delete(prefix, number)

        logger.info(
            "invoice_cascade_deleted",
            extra={"invoice_ref": f"{prefix}/{number}", "movements_deleted": removed},
        )
        return CascadeResult(prefix=prefix, number=number, movements_deleted=removed)
