"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order was accepted and its stock and coupon usage were taken."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier()
    guest_email = String()
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    discount = Float(required=True)
    shipping = Float(required=True)
    tax = Float(required=True)
    total = Float(required=True)
    currency = String(required=True)
    coupon_code = String()
    shipping_method = String()
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    payment_status = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ShipmentTracked:
    """A carrier and tracking number were recorded for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    tracking_number = String()
    carrier = String()
    tracked_at = DateTime(required=True)
