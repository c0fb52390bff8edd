"""
Stock effect and costing rules (``inventory_kernel.domain.stock_effect``).

Responsibility
--------------
Pure functions shared by the ledger service and the costing selector:

- parsing the decimal strings stored on movements,
- the sign convention that turns a stored amount into its effect on stock,
- the reset-point rule,
- the quantity-weighted average and its rounding.

Sign convention
---------------
Amounts are stored as entered.  Their effect on stock comes from the parent
invoice type:

    purchase (1, 2)    +amount
    sale (3, 4)        -amount
    correction (5)      amount as stored (may be negative)

Architecture position
---------------------
Kernel > Domain -- pure.  Decimal only, never float.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from inventory_kernel.exceptions import InvalidQuantityError
from inventory_kernel.models.invoice import InvoiceType

ZERO = Decimal("0")


def parse_decimal(field: str, value: object) -> Decimal:
    """
    Parse a stored or submitted decimal string.

    Raises:
        InvalidQuantityError: if ``value`` is not a finite decimal.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidQuantityError(field, value)
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidQuantityError(field, value) from None
    if not parsed.is_finite():
        raise InvalidQuantityError(field, value)
    return parsed


def signed_effect(invoice_type: int, amount: Decimal) -> Decimal:
    """Effect of a stored ``amount`` on stock for the given invoice type."""
    kind = InvoiceType(invoice_type)
    if kind.is_purchase:
        return amount
    if kind.is_sale:
        return -amount
    return amount


def crosses_depletion(current_stock: Decimal, signed_delta: Decimal) -> bool:
    """
    Reset-point rule.

    True exactly when stock is currently positive and applying the movement
    leaves it at zero or below.
    """
    return current_stock > ZERO and current_stock + signed_delta <= ZERO


def quantize(value: Decimal, scale: int = 2) -> Decimal:
    """Round half-up to ``scale`` fractional digits."""
    return value.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)


def weighted_average(
    lines: Iterable[tuple[Decimal, Decimal]],
    scale: int = 2,
) -> Decimal:
    """
    Quantity-weighted average unit price.

    ``sum(amount * price) / sum(amount)`` rounded to ``scale`` digits.
    Returns zero when there are no lines or the quantities sum to zero.
    """
    total_qty = ZERO
    total_cost = ZERO
    for amount, price in lines:
        total_qty += amount
        total_cost += amount * price
    if total_qty == ZERO:
        return quantize(ZERO, scale)
    return quantize(total_cost / total_qty, scale)
