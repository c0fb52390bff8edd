"""
inventory_kernel.ledger -- request/response facade over the kernel.

Responsibility:
    One call, one transaction.  Every public method opens a
    ``Store.session_scope()``, builds the services it needs on that
    session, runs the operation and commits.  Any exception rolls the
    whole call back and propagates unchanged, so a caller (desktop UI,
    IPC bridge, script) sees typed ``InventoryKernelError`` subclasses and
    never a half-applied write.

Architecture position:
    Outermost kernel layer.  Wires services and selectors together; owns
    no business rules of its own.

Usage:
    from inventory_kernel.ledger import InventoryLedger

    ledger = InventoryLedger.from_config()
    ledger.create_item(ean="8590000000001", name="Screw M4")
    ledger.create_invoice(prefix="NH", number="2024001", type=1,
                          date_issue="2024-03-01")
    ledger.create_movement("NH", "2024001", "8590000000001", "100", "1.20")
    ledger.item_costing("8590000000001")
"""

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Any, Generator, Mapping

from sqlalchemy.orm import Session

from inventory_kernel.config import KernelConfig, load_config
from inventory_kernel.db.engine import Store
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import LogContext, configure_logging, get_logger
from inventory_kernel.selectors.costing_selector import (
    CostingSelector,
    InvoiceTotals,
    ItemCosting,
)
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

logger = get_logger("ledger")


class InventoryLedger:
    """
    Facade exposing every kernel operation as a self-contained call.

    Contract:
        Receives a Store and optional KernelConfig / Clock.  Does not own
        the Store: the caller disposes it (``close()`` is a shortcut).

    Guarantees:
        - Each method commits on success and rolls back on failure.
        - Returned values are frozen DTOs or Decimals, safe to use after
          the call's session has closed.
    """

    def __init__(
        self,
        store: Store,
        config: KernelConfig | None = None,
        clock: Clock | None = None,
    ):
        self.store = store
        self.config = config or KernelConfig()
        self.clock = clock or SystemClock()

    @classmethod
    def from_config(
        cls,
        config: KernelConfig | None = None,
        path: str | Path | None = None,
        clock: Clock | None = None,
    ) -> InventoryLedger:
        """
        Build a ready-to-use ledger: configure logging, open the store and
        create any missing tables.
        """
        if config is None:
            config = load_config(path)
        configure_logging(level=config.log_level_number)
        store = Store.from_config(config)
        store.create_tables()
        return cls(store, config, clock)

    def close(self) -> None:
        self.store.dispose()

    @contextmanager
    def _call(self, operation: str, **context: str | None) -> Generator[Session, None, None]:
        with LogContext.bind(operation=operation, **context):
            with self.store.session_scope() as session:
                yield session

    def _selector(self, session: Session) -> CostingSelector:
        return CostingSelector(session, self.config)

    def _movements(self, session: Session) -> StockMovementService:
        classifier = ResetPointClassifier(self._selector(session))
        return StockMovementService(session, self.clock, classifier)

    # -- Contacts ------------------------------------------------------------

    def create_contact(self, ico: str, company_name: str, **fields: Any) -> ContactInfo:
        with self._call("create_contact") as session:
            return ContactService(session, self.clock).create(ico, company_name, **fields)

    def get_contact(self, ico: str, modifier: int = 1) -> ContactInfo | None:
        with self._call("get_contact") as session:
            return ContactService(session, self.clock).get_one(ico, modifier)

    def list_contacts(self) -> list[ContactInfo]:
        with self._call("list_contacts") as session:
            return ContactService(session, self.clock).get_all()

    def update_contact(
        self, ico: str, modifier: int, updates: Mapping[str, Any]
    ) -> ContactInfo:
        with self._call("update_contact") as session:
            return ContactService(session, self.clock).update(ico, modifier, updates)

    def delete_contact(self, ico: str, modifier: int = 1) -> None:
        with self._call("delete_contact") as session:
            ContactService(session, self.clock).delete(ico, modifier)

    # -- Items ---------------------------------------------------------------

    def create_item(self, ean: str, name: str, **fields: Any) -> ItemInfo:
        with self._call("create_item", item_ean=ean) as session:
            return ItemService(session, self.clock).create(ean, name, **fields)

    def get_item(self, ean: str) -> ItemInfo | None:
        with self._call("get_item", item_ean=ean) as session:
            return ItemService(session, self.clock).get_one(ean)

    def list_items(self) -> list[ItemInfo]:
        with self._call("list_items") as session:
            return ItemService(session, self.clock).get_all()

    def list_item_categories(self) -> list[str]:
        with self._call("list_item_categories") as session:
            return ItemService(session, self.clock).list_categories()

    def update_item(self, ean: str, updates: Mapping[str, Any]) -> ItemInfo:
        with self._call("update_item", item_ean=ean) as session:
            return ItemService(session, self.clock).update(ean, updates)

    def delete_item(self, ean: str) -> None:
        with self._call("delete_item", item_ean=ean) as session:
            ItemService(session, self.clock).delete(ean)

    # -- Invoices ------------------------------------------------------------

    def create_invoice(
        self, prefix: str, number: str, type: int, date_issue: Any, **fields: Any
    ) -> InvoiceInfo:
        with self._call("create_invoice", invoice_ref=f"{prefix}/{number}") as session:
            return InvoiceService(session, self.clock).create(
                prefix, number, type, date_issue, **fields
            )

    def get_invoice(self, prefix: str, number: str) -> InvoiceInfo | None:
        with self._call("get_invoice", invoice_ref=f"{prefix}/{number}") as session:
            return InvoiceService(session, self.clock).get_one(prefix, number)

    def list_invoices(self) -> list[InvoiceInfo]:
        with self._call("list_invoices") as session:
            return InvoiceService(session, self.clock).get_all()

    def update_invoice(
        self, prefix: str, number: str, updates: Mapping[str, Any]
    ) -> InvoiceInfo:
        with self._call("update_invoice", invoice_ref=f"{prefix}/{number}") as session:
            return InvoiceService(session, self.clock).update(prefix, number, updates)

    def delete_invoice(self, prefix: str, number: str) -> CascadeResult:
        """Delete an invoice and all of its stock movements."""
        with self._call("delete_invoice", invoice_ref=f"{prefix}/{number}") as session:
            coordinator = InvoiceCascadeCoordinator(
                session,
                self.clock,
                invoices=InvoiceService(session, self.clock),
                movements=self._movements(session),
            )
            return coordinator.delete_invoice(prefix, number)

    # -- Stock movements -----------------------------------------------------

    def create_movement(
        self,
        invoice_prefix: str,
        invoice_number: str,
        item_ean: str,
        amount: Decimal | str | int,
        price_per_unit: Decimal | str | int,
        vat_rate: int | None = None,
        reset_point: bool | None = None,
    ) -> StockMovementInfo:
        with self._call(
            "create_movement",
            invoice_ref=f"{invoice_prefix}/{invoice_number}",
            item_ean=item_ean,
        ) as session:
            return self._movements(session).create(
                invoice_prefix,
                invoice_number,
                item_ean,
                amount,
                price_per_unit,
                vat_rate=vat_rate,
                reset_point=reset_point,
            )

    def get_movement(
        self, invoice_prefix: str, invoice_number: str, item_ean: str
    ) -> StockMovementInfo | None:
        with self._call("get_movement") as session:
            return self._movements(session).get_one(invoice_prefix, invoice_number, item_ean)

    def list_movements(self) -> list[StockMovementInfo]:
        with self._call("list_movements") as session:
            return self._movements(session).get_all()

    def movements_for_invoice(
        self, invoice_prefix: str, invoice_number: str
    ) -> list[StockMovementInfo]:
        with self._call("movements_for_invoice") as session:
            return self._movements(session).get_by_invoice(invoice_prefix, invoice_number)

    def movements_for_item(self, item_ean: str) -> list[StockMovementInfo]:
        with self._call("movements_for_item", item_ean=item_ean) as session:
            return self._movements(session).get_by_item(item_ean)

    def update_movement(
        self,
        invoice_prefix: str,
        invoice_number: str,
        item_ean: str,
        updates: Mapping[str, Any],
    ) -> StockMovementInfo:
        with self._call(
            "update_movement",
            invoice_ref=f"{invoice_prefix}/{invoice_number}",
            item_ean=item_ean,
        ) as session:
            return self._movements(session).update(
                invoice_prefix, invoice_number, item_ean, updates
            )

    def delete_movement(
        self, invoice_prefix: str, invoice_number: str, item_ean: str
    ) -> None:
        with self._call(
            "delete_movement",
            invoice_ref=f"{invoice_prefix}/{invoice_number}",
            item_ean=item_ean,
        ) as session:
            self._movements(session).delete(invoice_prefix, invoice_number, item_ean)

    # -- Costing -------------------------------------------------------------

    def stock_amount(self, item_ean: str) -> Decimal:
        with self._call("stock_amount", item_ean=item_ean) as session:
            return self._selector(session).stock_amount(item_ean)

    def average_buy_price(self, item_ean: str) -> Decimal:
        with self._call("average_buy_price", item_ean=item_ean) as session:
            return self._selector(session).average_buy_price(item_ean)

    def last_buy_price(self, item_ean: str) -> Decimal:
        with self._call("last_buy_price", item_ean=item_ean) as session:
            return self._selector(session).last_buy_price(item_ean)

    def item_costing(self, item_ean: str) -> ItemCosting:
        with self._call("item_costing", item_ean=item_ean) as session:
            return self._selector(session).item_costing(item_ean)

    def inventory_overview(self) -> list[ItemCosting]:
        with self._call("inventory_overview") as session:
            return self._selector(session).inventory_overview()

    def invoice_totals(self, prefix: str, number: str) -> InvoiceTotals:
        with self._call("invoice_totals", invoice_ref=f"{prefix}/{number}") as session:
            return self._selector(session).invoice_totals(prefix, number)
