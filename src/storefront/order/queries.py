"""Read-side access to orders: the buyer's own orders and the admin list."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.order.order import Order
from storefront.shared.errors import Forbidden, OrderNotFound
from storefront.shared.paging import clamp_page, fetch_all, pagination

DEFAULT_PAGE_SIZE = 20


def get_order(order_id, user_id=None, is_admin=False) -> Order:
    """Fetch one order. Only its owner or an admin may see it."""
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise OrderNotFound(order_id) from None

    if not is_admin and not order.is_owned_by(user_id):
        raise Forbidden("Not authorized to view this order")
    return order


def orders_for_user(user_id) -> list[Order]:
    query = current_domain.repository_for(Order)._dao.query.filter(user_id=str(user_id)).order_by("-created_at")
    return fetch_all(query)


def list_orders(page=1, limit=DEFAULT_PAGE_SIZE, status=None) -> dict:
    page, limit = clamp_page(page, limit, DEFAULT_PAGE_SIZE)
    query = current_domain.repository_for(Order)._dao.query
    if status:
        query = query.filter(status=status)

    result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
    return {
        "items": result.items,
        "count": len(result.items),
        "total": result.total,
        "pagination": pagination(page, limit, result.total),
    }
