"""Sale pricing: commands and handler."""

from protean import handle
from protean.fields import DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.domain import storefront


@storefront.command(part_of="Product")
class SetProductSale:
    product_id: Identifier(required=True)
    sale_type: String(required=True, max_length=10)
    sale_value: Float(required=True, min_value=0.0)
    starts_at: DateTime()
    ends_at: DateTime()


@storefront.command(part_of="Product")
class ClearProductSale:
    product_id: Identifier(required=True)


@storefront.command_handler(part_of=Product)
class ProductPricingHandler:
    @handle(SetProductSale)
    def set_sale(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.schedule_sale(
            sale_type=command.sale_type,
            value=command.sale_value,
            starts_at=command.starts_at,
            ends_at=command.ends_at,
        )
        repo.add(product)

    @handle(ClearProductSale)
    def clear_sale(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.clear_sale()
        repo.add(product)
