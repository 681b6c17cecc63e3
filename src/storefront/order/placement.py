"""PlaceOrder: validate, price and persist an order.

Every check runs before anything is written. Once they pass:

1. Coupon usage is incremented conditionally, so it never passes the limit.
2. Stock is decremented conditionally per product, so it never oversells.
3. The order is persisted.

The conditional writes commit on their own, ahead of the order. If one of
them comes up short, or the order cannot be built and added, the writes
already made are undone and the command fails without an order.
"""

import json
from collections import defaultdict
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.coupon.coupon import Coupon
from storefront.domain import storefront
from storefront.order.order import Address, GuestContact, Order
from storefront.order.pricing import PricedLine, price_order
from storefront.product.product import Product
from storefront.shared.email import normalize_email
from storefront.shared.errors import CouponExhausted, CouponMinimumNotMet, InsufficientStock, InvalidCoupon
from storefront.utils.config import setting

logger = structlog.get_logger(__name__)

_ADDRESS_FIELDS = (
    "first_name",
    "last_name",
    "phone",
    "email",
    "street",
    "district",
    "city",
    "postal_code",
    "country",
)


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier()
    guest_email = String(max_length=254)
    items = Text(required=True)  # JSON: [{product_id, variant_id?, quantity}]
    shipping_address = Text(required=True)  # JSON object
    billing_address = Text()  # JSON object, defaults to shipping
    shipping_method = String(max_length=50)
    coupon_code = String(max_length=50)
    notes = Text()


def _load_json(raw, field):
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        raise ValidationError({field: ["Must be valid JSON"]}) from None


def _requested_items(raw):
    items = _load_json(raw, "items")
    if not isinstance(items, list) or not items:
        raise ValidationError({"items": ["An order must contain at least one item"]})

    requested = []
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item.get("product_id"):
            raise ValidationError({"items": [f"Item {index} is missing a product_id"]})
        quantity = item.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"items": [f"Item {index} must have a quantity of at least 1"]})
        requested.append(
            {
                "product_id": str(item["product_id"]),
                "variant_id": str(item["variant_id"]) if item.get("variant_id") else None,
                "quantity": quantity,
            }
        )
    return requested


def _address(raw, field):
    data = _load_json(raw, field)
    if not isinstance(data, dict):
        raise ValidationError({field: ["Must be an address object"]})
    return Address(**{key: data[key] for key in _ADDRESS_FIELDS if data.get(key) is not None})


def _frozen_line(product, item):
    """Snapshot what the customer pays per unit: the variant price, else the product price."""
    line = {
        "product_id": str(product.id),
        "product_name": product.name,
        "sku": product.sku,
        "quantity": item["quantity"],
        "unit_price": product.price,
    }

    if item["variant_id"]:
        variant = product.variant(item["variant_id"])
        if variant is None:
            raise ValidationError({"variant_id": [f"Variant {item['variant_id']} does not belong to {product.name}"]})
        line.update(
            variant_id=str(variant.id),
            variant_name=variant.name,
            size=variant.size,
            color=variant.color,
            sku=variant.sku or product.sku,
        )
        if variant.price is not None:
            line["unit_price"] = variant.price

    return line


def _resolve_coupon(repo, code, subtotal):
    now = datetime.now(UTC)
    coupon = repo.find_by_code(code)
    if coupon is None or not coupon.is_active or not coupon.is_within_window(now):
        raise InvalidCoupon(code)
    if coupon.is_exhausted:
        raise CouponExhausted(coupon.code)
    if subtotal < (coupon.minimum_amount or 0.0):
        raise CouponMinimumNotMet(coupon.code, coupon.minimum_amount, subtotal)
    return coupon


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        product_repo = current_domain.repository_for(Product)
        coupon_repo = current_domain.repository_for(Coupon)

        requested = _requested_items(command.items)
        shipping_address = _address(command.shipping_address, "shipping_address")
        billing_address = _address(command.billing_address, "billing_address") if command.billing_address else None
        guest = self._guest_contact(command, shipping_address)

        # Resolve products
        products = {}
        for item in requested:
            if item["product_id"] not in products:
                products[item["product_id"]] = product_repo.find_by_id(item["product_id"])

        # Check stock against the total asked for each product
        demand = defaultdict(int)
        for item in requested:
            demand[item["product_id"]] += item["quantity"]
        for product_id, quantity in demand.items():
            product = products[product_id]
            if not product.can_supply(quantity):
                raise InsufficientStock(product_id, product.name, product.stock, quantity)

        lines = [_frozen_line(products[item["product_id"]], item) for item in requested]
        subtotal = sum(line["unit_price"] * line["quantity"] for line in lines)

        coupon = _resolve_coupon(coupon_repo, command.coupon_code, subtotal) if command.coupon_code else None

        pricing = price_order(
            [PricedLine(unit_price=line["unit_price"], quantity=line["quantity"]) for line in lines],
            command.shipping_method,
            coupon=coupon,
            shipping_address=shipping_address,
        )

        # All validation passed; take coupon usage and stock
        if coupon is not None and not coupon_repo.conditional_increment_usage(coupon.id):
            raise CouponExhausted(coupon.code)

        taken = []
        try:
            for product_id, quantity in demand.items():
                if not product_repo.conditional_decrement_stock(product_id, quantity):
                    raise InsufficientStock(
                        product_id,
                        products[product_id].name,
                        product_repo.stock_level(product_id),
                        quantity,
                    )
                if products[product_id].track_quantity:
                    taken.append((product_id, quantity))

            order = Order.place(
                lines=lines,
                pricing=pricing,
                shipping_address=shipping_address,
                billing_address=billing_address,
                prefix=setting("order_number_prefix"),
                user_id=command.user_id,
                guest=guest,
                shipping_method=command.shipping_method,
                coupon_id=str(coupon.id) if coupon else None,
                coupon_code=coupon.code if coupon else None,
                notes=command.notes,
            )
            current_domain.repository_for(Order).add(order)
        except Exception:
            self._undo(product_repo, coupon_repo, taken, coupon)
            raise

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=pricing.total,
            coupon_code=order.coupon_code,
        )
        return str(order.id)

    def _guest_contact(self, command, shipping_address):
        if command.user_id:
            return None
        if not command.guest_email:
            raise ValidationError({"guest_email": ["Guest orders require an email address"]})
        return GuestContact(
            email=normalize_email(command.guest_email),
            first_name=shipping_address.first_name,
            last_name=shipping_address.last_name,
            phone=shipping_address.phone,
        )

    def _undo(self, product_repo, coupon_repo, taken, coupon):
        for product_id, quantity in taken:
            product_repo.increment_stock(product_id, quantity)
        if coupon is not None:
            coupon_repo.release_usage(coupon.id)
        logger.warning(
            "order_placement_rolled_back",
            restored=[product_id for product_id, _ in taken],
            coupon_code=coupon.code if coupon else None,
        )
