"""Shared BDD fixtures and step definitions for order placement."""

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then
from storefront.order.order import Order
from storefront.product.product import Product


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalog():
    """Product ids by name."""
    return {}


@pytest.fixture()
def outcome():
    return {"order_id": None, "exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:d} with {stock:d} in stock'))
def _(catalog, add_product, name, price, stock):
    catalog[name] = add_product(name=name, price=float(price), stock=stock)


@given(parsers.cfparse('a {percent:d} percent coupon "{code}"'))
def _(add_coupon, percent, code):
    add_coupon(code=code, value=float(percent))


@given(parsers.cfparse('a {percent:d} percent coupon "{code}" usable {times:d} time'))
def _(add_coupon, percent, code, times):
    add_coupon(code=code, value=float(percent), usage_limit=times)


@given(parsers.cfparse('user "{user_id}" has already ordered {quantity:d} "{name}" with coupon "{code}"'))
def _(catalog, place_order, user_id, quantity, name, code):
    place_order([{"product_id": catalog[name], "quantity": quantity}], user_id=user_id, coupon_code=code)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the order is placed", target_fixture="order")
def _(outcome):
    assert outcome["exc"] is None, outcome["exc"]
    return current_domain.repository_for(Order).get(outcome["order_id"])


@then(parsers.cfparse('the order is rejected with "{message}"'))
def _(outcome, message):
    assert outcome["order_id"] is None
    assert message in str(outcome["exc"])


@then("no order has been placed")
def _():
    assert current_domain.repository_for(Order)._dao.query.all().total == 0


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(catalog, name, stock):
    assert current_domain.repository_for(Product).stock_level(catalog[name]) == stock


@then(parsers.cfparse('"{name}" is out of stock'))
def _(catalog, name):
    assert current_domain.repository_for(Product).find_by_id(catalog[name]).status == "out_of_stock"
