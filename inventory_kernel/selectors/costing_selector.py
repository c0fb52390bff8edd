"""
Module: inventory_kernel.selectors.costing_selector
Responsibility: Read-only inventory figures derived from the stock movement
    ledger: quantity on hand, weighted-average purchase price, last purchase
    price, per-item valuation and per-invoice totals.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - No caching and no stored balances.  Every call re-reads the movements,
      so results always reflect the latest ledger state.
    - Decimal arithmetic over the stored strings (never SQL REAL casts).
    - "No data" is zero, never an error: an item without movements has stock
      0, average price 0 and last price 0.
    - Only purchase invoices (types 1 and 2) feed the cost basis.  Sales and
      corrections are excluded from both the average and the last price.

Non-goals:
    - Averaging restricted to movements after the latest reset point.  The
      reset_point flag is captured on every movement but not consumed here.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from inventory_kernel.config import KernelConfig
from inventory_kernel.domain.stock_effect import (
    ZERO,
    parse_decimal,
    quantize,
    signed_effect,
    weighted_average,
)
from inventory_kernel.models.invoice import PURCHASE_TYPES, Invoice
from inventory_kernel.models.item import Item
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ItemCosting:
    """Valuation snapshot of one item."""

    ean: str
    stock_amount: Decimal
    avg_purchase_price: Decimal
    last_purchase_price: Decimal

    @property
    def stock_value(self) -> Decimal:
        """Stock on hand valued at the average purchase price."""
        return quantize(self.stock_amount * self.avg_purchase_price)


@dataclass(frozen=True)
class InvoiceLineTotal:
    """Net, VAT and gross amounts of one movement line."""

    item_ean: str
    amount: Decimal
    price_per_unit: Decimal
    vat_rate: int
    net: Decimal
    vat: Decimal

    @property
    def gross(self) -> Decimal:
        return self.net + self.vat


@dataclass(frozen=True)
class InvoiceTotals:
    """Totals of one invoice, computed from its movements."""

    prefix: str
    number: str
    lines: tuple[InvoiceLineTotal, ...]

    @property
    def net(self) -> Decimal:
        return sum((line.net for line in self.lines), ZERO)

    @property
    def vat(self) -> Decimal:
        return sum((line.vat for line in self.lines), ZERO)

    @property
    def gross(self) -> Decimal:
        return self.net + self.vat


@dataclass(frozen=True)
class _CostLine:
    item_ean: str
    amount: Decimal
    price: Decimal
    invoice_type: int
    date_issue: date
    seq: int


class CostingSelector(BaseSelector[StockMovement]):
    """
    Costing aggregator over the stock movement ledger.

    Contract:
        All methods are pure reads.  Prices are rounded half-up to
        ``config.price_scale`` digits; quantities are returned unrounded.
    """

    def __init__(self, session: Session, config: KernelConfig | None = None):
        super().__init__(session)
        self.config = config or KernelConfig()

    def _cost_lines(self, item_ean: str | None = None) -> list[_CostLine]:
        """Movements joined with their invoice type, in insertion order."""
        stmt = (
            select(
                StockMovement.item_ean,
                StockMovement.amount,
                StockMovement.price_per_unit,
                StockMovement.id,
                Invoice.type,
                Invoice.date_issue,
            )
            .join(
                Invoice,
                and_(
                    StockMovement.invoice_prefix == Invoice.prefix,
                    StockMovement.invoice_number == Invoice.number,
                ),
            )
            .order_by(StockMovement.id)
        )
        if item_ean is not None:
            stmt = stmt.where(StockMovement.item_ean == item_ean)

        return [
            _CostLine(
                item_ean=ean,
                amount=parse_decimal("amount", amount),
                price=parse_decimal("price_per_unit", price),
                invoice_type=invoice_type,
                date_issue=date_issue,
                seq=seq,
            )
            for ean, amount, price, seq, invoice_type, date_issue in self.session.execute(stmt)
        ]

    def _stock_amount(self, lines: list[_CostLine]) -> Decimal:
        return sum(
            (signed_effect(line.invoice_type, line.amount) for line in lines),
            ZERO,
        )

    def _average_buy_price(self, lines: list[_CostLine]) -> Decimal:
        return weighted_average(
            ((line.amount, line.price) for line in lines if line.invoice_type in PURCHASE_TYPES),
            self.config.price_scale,
        )

    def _last_buy_price(self, lines: list[_CostLine]) -> Decimal:
        purchases = [line for line in lines if line.invoice_type in PURCHASE_TYPES]
        if not purchases:
            return quantize(ZERO, self.config.price_scale)
        latest = max(purchases, key=lambda line: (line.date_issue, line.seq))
        return quantize(latest.price, self.config.price_scale)

    def stock_amount(self, item_ean: str) -> Decimal:
        """Quantity on hand: signed sum of all movement effects (0 if none)."""
        return self._stock_amount(self._cost_lines(item_ean))

    def average_buy_price(self, item_ean: str) -> Decimal:
        """
        Quantity-weighted average unit price over purchase movements.

        ``sum(amount * price) / sum(amount)``, rounded; 0 if there are no
        purchase movements.
        """
        return self._average_buy_price(self._cost_lines(item_ean))

    def last_buy_price(self, item_ean: str) -> Decimal:
        """
        Unit price of the most recent purchase movement (0 if none).

        Recency is the invoice issue date, then insertion order.
        """
        return self._last_buy_price(self._cost_lines(item_ean))

    def item_costing(self, item_ean: str) -> ItemCosting:
        """Stock, average price and last price of one item from a single read."""
        lines = self._cost_lines(item_ean)
        return ItemCosting(
            ean=item_ean,
            stock_amount=self._stock_amount(lines),
            avg_purchase_price=self._average_buy_price(lines),
            last_purchase_price=self._last_buy_price(lines),
        )

    def inventory_overview(self) -> list[ItemCosting]:
        """ItemCosting for every item, in item insertion order."""
        by_item: dict[str, list[_CostLine]] = {}
        for line in self._cost_lines():
            by_item.setdefault(line.item_ean, []).append(line)

        eans = self.session.execute(select(Item.ean).order_by(Item.id)).scalars()
        overview = []
        for ean in eans:
            lines = by_item.get(ean, [])
            overview.append(
                ItemCosting(
                    ean=ean,
                    stock_amount=self._stock_amount(lines),
                    avg_purchase_price=self._average_buy_price(lines),
                    last_purchase_price=self._last_buy_price(lines),
                )
            )
        return overview

    def invoice_totals(self, prefix: str, number: str) -> InvoiceTotals:
        """
        Net, VAT and gross per movement line and for the whole invoice.

        An invoice without movements (or an unknown invoice) totals zero.

        Raises:
            ConfigurationError: if a line's VAT code has no configured rate.
        """
        stmt = (
            select(StockMovement)
            .where(
                StockMovement.invoice_prefix == prefix,
                StockMovement.invoice_number == number,
            )
            .order_by(StockMovement.id)
        )
        scale = self.config.price_scale
        lines = []
        for movement in self.session.execute(stmt).scalars():
            amount = parse_decimal("amount", movement.amount)
            price = parse_decimal("price_per_unit", movement.price_per_unit)
            net = quantize(amount * price, scale)
            pct = self.config.vat_percentage(movement.vat_rate)
            lines.append(
                InvoiceLineTotal(
                    item_ean=movement.item_ean,
                    amount=amount,
                    price_per_unit=price,
                    vat_rate=movement.vat_rate,
                    net=net,
                    vat=quantize(net * pct / Decimal("100"), scale),
                )
            )
        return InvoiceTotals(prefix=prefix, number=number, lines=tuple(lines))
