"""Stock reservation across the lines of an order.

Each operation loads one product, changes one stock record and saves it
back. There is no cross-product transaction: ``reserve_all`` compensates
by releasing what it already reserved when a later line fails.
"""

from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockLine:
    product_id: str
    quantity: int
    variant_sku: str | None = None


class StockLedger:
    def __init__(self, repository):
        self.repository = repository

    def _apply(self, operation, line):
        product = self.repository.get(line.product_id)
        getattr(product, operation)(line.quantity, variant_sku=line.variant_sku)
        self.repository.add(product)
        return product

    def reserve(self, line):
        return self._apply("reserve", line)

    def sell(self, line):
        return self._apply("sell", line)

    def release(self, line):
        return self._apply("release", line)

    def restock(self, line):
        return self._apply("restock", line)

    def reserve_all(self, lines):
        """Reserve every line or none of them."""
        reserved = []
        try:
            for line in lines:
                self.reserve(line)
                reserved.append(line)
        except Exception:
            logger.warning(
                "Stock reservation failed, releasing reserved lines",
                reserved_lines=len(reserved),
                total_lines=len(lines),
            )
            for line in reversed(reserved):
                self.release(line)
            raise

    def release_all(self, lines):
        for line in lines:
            self.release(line)

    def sell_all(self, lines):
        for line in lines:
            self.sell(line)

    def restock_all(self, lines):
        for line in lines:
            self.restock(line)
