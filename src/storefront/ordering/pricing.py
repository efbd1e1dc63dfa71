"""Cart and order totals.

All arithmetic is done in Decimal. Every output component is rounded once,
half-up to cents, and the grand total is built from the rounded components:

    grand_total = subtotal + shipping + tax - discount

where ``shipping`` is already net of any shipping discount. The subtotal
discount is capped at the subtotal, so the grand total is never negative.
Tax is charged on the subtotal before discounts.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from storefront.config import PricingPolicy

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount if amount is not None else 0))


def to_money(amount) -> Decimal:
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    unit_price: Decimal
    quantity: int

    @property
    def amount(self) -> Decimal:
        return to_decimal(self.unit_price) * self.quantity


@dataclass(frozen=True)
class LineAllocation:
    line_total: Decimal
    discount: Decimal
    tax: Decimal


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    shipping_discount: Decimal
    tax: Decimal
    grand_total: Decimal
    lines: tuple[LineAllocation, ...] = ()

    def as_dict(self) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "discount": float(self.discount),
            "shipping": float(self.shipping),
            "shipping_discount": float(self.shipping_discount),
            "tax": float(self.tax),
            "grand_total": float(self.grand_total),
        }


def shipping_for(subtotal, policy: PricingPolicy) -> Decimal:
    """Flat shipping fee, waived at or above the free-shipping threshold."""
    if to_decimal(subtotal) >= policy.free_shipping_threshold:
        return ZERO
    return policy.flat_shipping_fee


def _allocate(total: Decimal, weights: list[Decimal]) -> list[Decimal]:
    """Split a rounded ``total`` across lines in proportion to ``weights``.

    Each share is rounded to cents; the last line absorbs the remainder so
    the shares always sum to ``total``.
    """
    if not weights:
        return []
    whole = sum(weights)
    shares = []
    for weight in weights[:-1]:
        shares.append(to_money(total * weight / whole) if whole else ZERO)
    shares.append(total - sum(shares))
    return shares


def calculate_totals(lines, policy: PricingPolicy, discount=ZERO, shipping_discount=ZERO) -> OrderTotals:
    """Compute subtotal, shipping, tax, discount and grand total for ``lines``."""
    amounts = [line.amount for line in lines]
    exact_subtotal = sum(amounts, ZERO)

    subtotal = to_money(exact_subtotal)
    discount = min(to_money(discount), subtotal)
    gross_shipping = to_money(shipping_for(exact_subtotal, policy)) if amounts else ZERO
    shipping_discount = min(to_money(shipping_discount), gross_shipping)
    shipping = gross_shipping - shipping_discount
    tax = to_money(exact_subtotal * policy.tax_rate)
    grand_total = max(ZERO, subtotal + shipping + tax - discount)

    allocations = tuple(
        LineAllocation(line_total=line_total, discount=line_discount, tax=line_tax)
        for line_total, line_discount, line_tax in zip(
            _allocate(subtotal, amounts),
            _allocate(discount, amounts),
            _allocate(tax, amounts),
            strict=True,
        )
    )

    return OrderTotals(
        subtotal=subtotal,
        discount=discount,
        shipping=shipping,
        shipping_discount=shipping_discount,
        tax=tax,
        grand_total=grand_total,
        lines=allocations,
    )
