"""Product status and stock receiving: commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.domain import storefront


@storefront.command(part_of="Product")
class ChangeProductStatus:
    product_id: Identifier(required=True)
    status: String(required=True, max_length=20)


@storefront.command(part_of="Product")
class ReceiveStock:
    product_id: Identifier(required=True)
    variant_sku: String(max_length=50)
    quantity: Integer(required=True, min_value=1)


@storefront.command_handler(part_of=Product)
class ProductLifecycleHandler:
    @handle(ChangeProductStatus)
    def change_status(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.change_status(command.status)
        repo.add(product)

    @handle(ReceiveStock)
    def receive_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.receive_stock(command.quantity, variant_sku=command.variant_sku)
        repo.add(product)
        return product.available_stock(command.variant_sku)
