"""
Inventory Kernel - stock ledger and costing engine

A single-user inventory subledger with:
- Contact, item and invoice stores with whitelisted partial updates
- A stock movement ledger tied to invoice lines
- Weighted-average and last purchase costing, always derived from the ledger
- Reset-point tagging for movements that deplete stock
- Atomic invoice cascade deletes
"""

__version__ = "0.1.0"
