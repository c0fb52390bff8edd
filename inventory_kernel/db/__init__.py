"""Database infrastructure: declarative base and the store handle."""

from inventory_kernel.db.base import Base, TrackedBase
from inventory_kernel.db.engine import Store

__all__ = ["Base", "TrackedBase", "Store"]
