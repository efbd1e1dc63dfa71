"""Customer registration and loyalty: commands, handler and profile view."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.identity.customer.customer import Customer


@storefront.command(part_of="Customer")
class RegisterCustomer:
    customer_id: Identifier()  # id issued by the upstream identity provider
    email: String(required=True, max_length=254)
    first_name: String(required=True, max_length=100)
    last_name: String(max_length=100)


@storefront.command(part_of="Customer")
class RedeemLoyaltyPoints:
    customer_id: Identifier(required=True)
    points: Integer(required=True, min_value=1)
    reason: String(max_length=255)


@storefront.command_handler(part_of=Customer)
class CustomerHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        repo = current_domain.repository_for(Customer)
        email = command.email.strip().lower()
        if repo._dao.query.filter(email=email).all().items:
            raise ValidationError({"email": [f"Customer with email {email} already exists"]})

        customer = Customer.register(
            email=email,
            first_name=command.first_name,
            last_name=command.last_name,
            customer_id=command.customer_id,
        )
        repo.add(customer)
        return str(customer.id)

    @handle(RedeemLoyaltyPoints)
    def redeem_points(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.redeem_points(command.points, reason=command.reason or "Redemption")
        repo.add(customer)
        return customer.loyalty_points


def customer_profile(customer_id):
    customer = current_domain.repository_for(Customer).get(customer_id)
    history = sorted(customer.loyalty_history, key=lambda e: e.recorded_at, reverse=True)
    return {
        "id": str(customer.id),
        "email": customer.email,
        "first_name": customer.first_name,
        "last_name": customer.last_name,
        "loyalty": {
            "points": customer.loyalty_points,
            "tier": customer.loyalty_tier,
            "history": [
                {
                    "points": entry.points,
                    "reason": entry.reason,
                    "order_id": str(entry.order_id) if entry.order_id else None,
                    "recorded_at": entry.recorded_at.isoformat() if entry.recorded_at else None,
                }
                for entry in history
            ],
        },
    }
