"""Pricing engine.

A pure computation: lines, an optional resolved coupon and a shipping method
go in, an ``OrderPricing`` comes out. Nothing is read from or written to
storage, and identical inputs always give identical amounts.

    subtotal = Σ unit_price × quantity
    discount = coupon discount on subtotal (clamped to subtotal by default)
    tax      = round2((subtotal − discount) × tax_rate)
    total    = round2(subtotal − discount + shipping + tax)
"""

from dataclasses import dataclass

from storefront.order.order import OrderPricing
from storefront.shared.money import round2
from storefront.utils.config import setting


@dataclass(frozen=True)
class PricedLine:
    """A line as the pricing engine sees it."""

    unit_price: float
    quantity: int


def shipping_cost(shipping_method, shipping_address=None, rates=None, default_rate=None) -> float:
    """Flat rate for the shipping method.

    Unknown or missing methods get the default rate. The rate table does not
    vary by address; the address is accepted so that a destination-based
    policy can slot in behind the same call.
    """
    rates = setting("shipping_rates") if rates is None else rates
    default_rate = setting("default_shipping_rate") if default_rate is None else default_rate
    return float(rates.get(shipping_method or "", default_rate))


def price_order(
    lines,
    shipping_method,
    coupon=None,
    shipping_address=None,
    *,
    rates=None,
    default_rate=None,
    tax_rate=None,
    clamp_discount=None,
    currency=None,
) -> OrderPricing:
    tax_rate = setting("tax_rate") if tax_rate is None else tax_rate
    clamp_discount = setting("clamp_fixed_discount") if clamp_discount is None else clamp_discount

    subtotal = round2(sum(line.unit_price * line.quantity for line in lines))
    shipping = round2(shipping_cost(shipping_method, shipping_address, rates, default_rate))

    discount = round2(coupon.discount_for(subtotal)) if coupon is not None else 0.0
    if clamp_discount:
        discount = min(discount, subtotal)

    tax = round2((subtotal - discount) * tax_rate)
    total = round2(subtotal - discount + shipping + tax)
    if not clamp_discount:
        total = max(total, 0.0)

    return OrderPricing(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        discount=discount,
        total=total,
        currency=currency or setting("currency"),
    )
