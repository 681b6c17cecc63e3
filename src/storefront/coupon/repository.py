"""Coupon repository with a conditional usage counter.

Like product stock, the counter is changed by compare-and-swap against
committed state, outside the caller's unit of work.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.query import Q

from storefront.coupon.coupon import Coupon, normalize_code
from storefront.domain import storefront
from storefront.shared.errors import ConcurrentUpdateConflict

logger = structlog.get_logger(__name__)

_MAX_CAS_ATTEMPTS = 5


@storefront.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code) -> Coupon | None:
        return self._dao.query.filter(code=normalize_code(code)).all().first

    def _committed(self):
        return self._provider.get_dao(Coupon, self._database_model).outside_uow()

    def _load(self, coupon_id) -> Coupon | None:
        try:
            return self._committed().get(str(coupon_id))
        except ObjectNotFoundError:
            return None

    def _swap_usage(self, coupon, used_count) -> bool:
        claimed = self._committed()._claim(
            Q(id=str(coupon.id), used_count=coupon.used_count),
            {"used_count": used_count},
            limit=1,
        )
        return bool(claimed)

    def conditional_increment_usage(self, coupon_id) -> bool:
        """Count one redemption unless that would pass the usage limit."""
        for attempt in range(1, _MAX_CAS_ATTEMPTS + 1):
            coupon = self._load(coupon_id)
            if coupon is None or coupon.is_exhausted:
                return False
            if self._swap_usage(coupon, coupon.used_count + 1):
                return True
            logger.info("coupon_usage_conflict", coupon_id=str(coupon_id), attempt=attempt)

        logger.warning("coupon_usage_gave_up", coupon_id=str(coupon_id))
        raise ConcurrentUpdateConflict("coupon", coupon_id)

    def release_usage(self, coupon_id):
        """Give back one redemption after a failed placement."""
        for _ in range(_MAX_CAS_ATTEMPTS):
            coupon = self._load(coupon_id)
            if coupon is None or coupon.used_count == 0:
                return
            if self._swap_usage(coupon, coupon.used_count - 1):
                return

        logger.error("coupon_release_failed", coupon_id=str(coupon_id))
