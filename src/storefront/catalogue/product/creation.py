"""Product creation and variants: commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import InventoryType, Product, slugify
from storefront.domain import storefront


@storefront.command(part_of="Product")
class CreateProduct:
    sku: String(required=True, max_length=50)
    name: String(required=True, max_length=200)
    slug: String(max_length=200)
    description: Text()
    category: String(max_length=100)
    base_price: Float(required=True, min_value=0.0)
    currency: String(max_length=3, default="USD")
    inventory_type: String(max_length=10, default=InventoryType.FINITE.value)
    quantity: Integer(default=0, min_value=0)
    low_stock_threshold: Integer(default=5, min_value=0)
    allow_backorders: Boolean(default=False)
    activate: Boolean(default=False)


@storefront.command(part_of="Product")
class AddVariant:
    product_id: Identifier(required=True)
    variant_sku: String(required=True, max_length=50)
    name: String(max_length=200)
    attributes: Text()
    price_adjustment: Float(default=0.0)
    quantity: Integer(default=0, min_value=0)
    allow_backorders: Boolean()


@storefront.command_handler(part_of=Product)
class CreateProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        repo = current_domain.repository_for(Product)
        slug = command.slug or slugify(command.name)

        if repo._dao.query.filter(sku=command.sku).all().items:
            raise ValidationError({"sku": [f"Product with SKU {command.sku} already exists"]})
        if repo._dao.query.filter(slug=slug).all().items:
            raise ValidationError({"slug": [f"Product with slug {slug} already exists"]})

        product = Product.create(
            sku=command.sku,
            name=command.name,
            slug=slug,
            description=command.description,
            category=command.category,
            base_price=command.base_price,
            currency=command.currency or "USD",
            inventory_type=command.inventory_type or InventoryType.FINITE.value,
            quantity=command.quantity or 0,
            low_stock_threshold=command.low_stock_threshold if command.low_stock_threshold is not None else 5,
            allow_backorders=bool(command.allow_backorders),
        )
        if command.activate:
            product.change_status("active")

        repo.add(product)
        return str(product.id)

    @handle(AddVariant)
    def add_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)

        attributes = None
        if command.attributes:
            try:
                attributes = json.loads(command.attributes)
            except (json.JSONDecodeError, TypeError):
                raise ValidationError({"attributes": ["Attributes must be valid JSON"]}) from None

        product.add_variant(
            sku=command.variant_sku,
            name=command.name,
            price_adjustment=command.price_adjustment or 0.0,
            quantity=command.quantity or 0,
            attributes=attributes,
            allow_backorders=command.allow_backorders,
        )
        repo.add(product)
