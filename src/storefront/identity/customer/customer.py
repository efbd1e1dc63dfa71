"""Customer aggregate root with loyalty balance and history."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.identity.customer.events import (
    CustomerRegistered,
    LoyaltyPointsAwarded,
    LoyaltyPointsRedeemed,
    LoyaltyTierChanged,
)


class LoyaltyTier(Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"


# Minimum points balance for each tier, highest first
_TIER_THRESHOLDS = [
    (10000, LoyaltyTier.DIAMOND),
    (5000, LoyaltyTier.PLATINUM),
    (2000, LoyaltyTier.GOLD),
    (500, LoyaltyTier.SILVER),
    (0, LoyaltyTier.BRONZE),
]


def tier_for(points):
    return next(tier for threshold, tier in _TIER_THRESHOLDS if points >= threshold)


@storefront.entity(part_of="Customer")
class LoyaltyEntry:
    points: Integer(required=True)  # negative for redemptions
    reason: String(max_length=255)
    order_id: Identifier()
    recorded_at: DateTime()


@storefront.aggregate
class Customer:
    email: String(required=True, max_length=254)
    first_name: String(required=True, max_length=100)
    last_name: String(max_length=100)
    loyalty_points: Integer(default=0, min_value=0)
    loyalty_tier: String(choices=LoyaltyTier, default=LoyaltyTier.BRONZE.value)
    loyalty_history: HasMany(LoyaltyEntry)
    registered_at: DateTime()

    @invariant.post
    def email_must_look_valid(self):
        if self.email and ("@" not in self.email or self.email.startswith("@") or self.email.endswith("@")):
            raise ValidationError({"email": ["Invalid email address"]})

    @classmethod
    def register(cls, email, first_name, last_name=None, customer_id=None):
        now = datetime.now(UTC)
        extra = {"id": customer_id} if customer_id else {}
        customer = cls(
            email=email.strip().lower(),
            first_name=first_name,
            last_name=last_name,
            registered_at=now,
            **extra,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                email=customer.email,
                registered_at=now,
            )
        )
        return customer

    def _record(self, points, reason, order_id=None):
        self.add_loyalty_history(
            LoyaltyEntry(points=points, reason=reason, order_id=order_id, recorded_at=datetime.now(UTC))
        )

        previous_tier = self.loyalty_tier
        new_tier = tier_for(self.loyalty_points).value
        if new_tier != previous_tier:
            self.loyalty_tier = new_tier
            self.raise_(
                LoyaltyTierChanged(
                    customer_id=str(self.id),
                    previous_tier=previous_tier,
                    new_tier=new_tier,
                )
            )

    def award_points(self, points, reason="Order purchase", order_id=None):
        if points < 0:
            raise ValidationError({"points": ["Points to award cannot be negative"]})
        if points == 0:
            return

        self.loyalty_points = (self.loyalty_points or 0) + points
        self.raise_(
            LoyaltyPointsAwarded(
                customer_id=str(self.id),
                points=points,
                balance=self.loyalty_points,
                order_id=order_id,
            )
        )
        self._record(points, reason, order_id)

    def redeem_points(self, points, reason="Redemption"):
        if points <= 0:
            raise ValidationError({"points": ["Points to redeem must be positive"]})
        if points > (self.loyalty_points or 0):
            raise ValidationError({"points": [f"Only {self.loyalty_points} points available"]})

        self.loyalty_points -= points
        self.raise_(
            LoyaltyPointsRedeemed(
                customer_id=str(self.id),
                points=points,
                balance=self.loyalty_points,
            )
        )
        self._record(-points, reason)
