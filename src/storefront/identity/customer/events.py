"""Domain events for the Customer aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Customer")
class CustomerRegistered:
    __version__ = 1

    customer_id: Identifier(required=True)
    email: String(required=True)
    registered_at: DateTime(required=True)


@storefront.event(part_of="Customer")
class LoyaltyPointsAwarded:
    __version__ = 1

    customer_id: Identifier(required=True)
    points: Integer(required=True)
    balance: Integer(required=True)
    order_id: Identifier()


@storefront.event(part_of="Customer")
class LoyaltyPointsRedeemed:
    __version__ = 1

    customer_id: Identifier(required=True)
    points: Integer(required=True)
    balance: Integer(required=True)


@storefront.event(part_of="Customer")
class LoyaltyTierChanged:
    """A customer's loyalty tier moved after a points change."""

    __version__ = 1

    customer_id: Identifier(required=True)
    previous_tier: String(required=True)
    new_tier: String(required=True)
