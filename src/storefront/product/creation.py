"""AddProduct: put a new product in the catalog."""

import json

from protean import handle
from protean.fields import Boolean, Float, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.product.product import Product, ProductStatus


@storefront.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0)
    track_quantity = Boolean(default=True)
    description = Text()
    sku = String(max_length=100)
    compare_price = Float(min_value=0.0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    variants = Text()  # JSON array of {name, size, color, sku, price, stock}


@storefront.command_handler(part_of=Product)
class AddProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.add(
            name=command.name,
            price=command.price,
            stock=command.stock,
            track_quantity=command.track_quantity,
            description=command.description,
            sku=command.sku,
            compare_price=command.compare_price,
            status=command.status,
            variants=json.loads(command.variants) if command.variants else None,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)
