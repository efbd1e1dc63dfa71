"""Storefront domain: catalogue, checkout, payments, and reviews.

A single Protean domain hosts every aggregate of the storefront backend.
Each sub-package groups one area (catalogue, inventory, coupons, ordering,
payments, reviews, identity, wishlist, notifications) the way separate
bounded contexts would be grouped, while still sharing one unit of work so
that checkout can touch products, coupons, carts, and orders synchronously.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
