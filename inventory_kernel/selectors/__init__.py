"""Read-only selectors."""

from inventory_kernel.selectors.costing_selector import (
    CostingSelector,
    InvoiceLineTotal,
    InvoiceTotals,
    ItemCosting,
)

__all__ = ["CostingSelector", "InvoiceLineTotal", "InvoiceTotals", "ItemCosting"]
