"""ORM models.  Importing this package registers every table on Base.metadata."""

from inventory_kernel.models.contact import Contact
from inventory_kernel.models.invoice import (
    PURCHASE_TYPES,
    Invoice,
    InvoiceType,
    PaymentMethod,
)
from inventory_kernel.models.item import Item, VatRate
from inventory_kernel.models.stock_movement import StockMovement

__all__ = [
    "Contact",
    "Invoice",
    "InvoiceType",
    "Item",
    "PaymentMethod",
    "PURCHASE_TYPES",
    "StockMovement",
    "VatRate",
]
