"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.cascade_coordinator import (
    CascadeResult,
    InvoiceCascadeCoordinator,
)
from inventory_kernel.services.contact_service import ContactInfo, ContactService
from inventory_kernel.services.invoice_service import InvoiceInfo, InvoiceService
from inventory_kernel.services.item_service import ItemInfo, ItemService
from inventory_kernel.services.reset_point_classifier import ResetPointClassifier
from inventory_kernel.services.stock_movement_service import (
    StockMovementInfo,
    StockMovementService,
)

__all__ = [
    "CascadeResult",
    "ContactInfo",
    "ContactService",
    "InvoiceCascadeCoordinator",
    "InvoiceInfo",
    "InvoiceService",
    "ItemInfo",
    "ItemService",
    "ResetPointClassifier",
    "StockMovementInfo",
    "StockMovementService",
]
