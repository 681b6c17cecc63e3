"""Product repository: the catalog-store port used by orders and reviews.

Stock changes never go through load-modify-save. Each one is a
compare-and-swap: read the committed stock, then claim the row only while
it still holds that same stock value. A missed claim means another writer
got there first, so the read is retried.

These writes go through a DAO detached from the active unit of work, so
they are committed the moment they succeed and concurrent commands see them
immediately. Callers that need to take a write back do so explicitly.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.query import Q

from storefront.domain import storefront
from storefront.product.product import Product, stock_status
from storefront.shared.errors import ConcurrentUpdateConflict, ProductNotFound

logger = structlog.get_logger(__name__)

_MAX_CAS_ATTEMPTS = 5


@storefront.repository(part_of=Product)
class ProductRepository:
    def find_by_id(self, product_id) -> Product:
        """Load a product, raising ProductNotFound when it does not exist."""
        try:
            return self._dao.get(str(product_id))
        except ObjectNotFoundError:
            raise ProductNotFound(product_id) from None

    def _committed(self):
        """A DAO that reads and writes committed rows, outside any unit of work."""
        return self._provider.get_dao(Product, self._database_model).outside_uow()

    def _guarded_update(self, criteria, **values) -> bool:
        # `_claim` re-checks `criteria` inside the write; the memory provider
        # holds its store lock across the read and the write.
        return bool(self._committed()._claim(criteria, values, limit=1))

    def _load(self, product_id) -> Product:
        try:
            return self._committed().get(str(product_id))
        except ObjectNotFoundError:
            raise ProductNotFound(product_id) from None

    def _swap_stock(self, product, new_stock) -> bool:
        return self._guarded_update(
            Q(id=str(product.id), stock=product.stock),
            stock=new_stock,
            status=stock_status(product.track_quantity, new_stock, product.status),
            updated_at=datetime.now(UTC),
        )

    def conditional_decrement_stock(self, product_id, quantity) -> bool:
        """Take ``quantity`` units if, and only if, that many are on hand.

        Products that do not track quantity always succeed and keep their
        stock untouched. Raises ConcurrentUpdateConflict when every attempt
        lost its race, which says nothing about the stock on hand.
        """
        for attempt in range(1, _MAX_CAS_ATTEMPTS + 1):
            product = self._load(product_id)
            if not product.track_quantity:
                return True
            if product.stock < quantity:
                return False
            if self._swap_stock(product, product.stock - quantity):
                return True
            logger.info("stock_decrement_conflict", product_id=str(product_id), attempt=attempt)

        logger.warning("stock_decrement_gave_up", product_id=str(product_id), quantity=quantity)
        raise ConcurrentUpdateConflict("product", product_id)

    def stock_level(self, product_id) -> int:
        """Read committed stock straight from storage."""
        return self._load(product_id).stock

    def increment_stock(self, product_id, quantity) -> int:
        """Add units back to stock and return the new level."""
        for attempt in range(1, _MAX_CAS_ATTEMPTS + 1):
            product = self._load(product_id)
            new_stock = product.stock + quantity
            if self._swap_stock(product, new_stock):
                return new_stock
            logger.info("stock_increment_conflict", product_id=str(product_id), attempt=attempt)

        logger.warning("stock_increment_gave_up", product_id=str(product_id), quantity=quantity)
        raise ConcurrentUpdateConflict("product", product_id)

    def update_rating(self, product_id, rating, review_count):
        """Write the derived rating fields without touching anything else."""
        if not self._guarded_update(Q(id=str(product_id)), rating=rating, review_count=review_count):
            raise ProductNotFound(product_id)
