"""Decides whether a new movement marks a stock depletion point."""

from decimal import Decimal

from inventory_kernel.domain.stock_effect import crosses_depletion
from inventory_kernel.logging_config import get_logger
from inventory_kernel.selectors.costing_selector import CostingSelector

logger = get_logger("services.reset_point")


class ResetPointClassifier:
    """
    Flags the movement that takes an item's stock from positive to zero or
    below.

    The current stock is read from the costing selector, so the classifier
    must be consulted before the movement itself is flushed.
    """

    def __init__(self, selector: CostingSelector):
        self._selector = selector

    def is_reset_point(self, item_ean: str, signed_delta: Decimal) -> bool:
        current = self._selector.stock_amount(item_ean)
        flagged = crosses_depletion(current, signed_delta)
        if flagged:
            logger.debug(
                "reset_point_detected",
                extra={
                    "ean": item_ean,
                    "current_stock": current,
                    "signed_delta": signed_delta,
                },
            )
        return flagged
