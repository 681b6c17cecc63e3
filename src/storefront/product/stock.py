"""RestockProduct: add units to a product's stock."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.product.product import Product

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command_handler(part_of=Product)
class RestockProductHandler:
    @handle(RestockProduct)
    def restock_product(self, command):
        repo = current_domain.repository_for(Product)
        stock = repo.increment_stock(command.product_id, command.quantity)
        logger.info("product_restocked", product_id=str(command.product_id), stock=stock)
        return stock
