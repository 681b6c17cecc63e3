"""Shared BDD fixtures and step definitions for review moderation."""

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then
from storefront.product.product import Product
from storefront.review.lookup import load_review
from storefront.review.moderation import SetReviewStatus


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalog():
    """Product ids by name."""
    return {}


@pytest.fixture()
def reviews():
    """Review ids by author."""
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}"'))
def _(catalog, add_product, name):
    catalog[name] = add_product(name=name)


@given(parsers.cfparse('"{user_id}" reviewed "{name}" with {rating:d} stars'))
def _(catalog, reviews, create_review, user_id, name, rating):
    reviews[user_id] = create_review(catalog[name], user_id=user_id, rating=rating)


@given(parsers.cfparse('an admin rejects the review by "{user_id}"'))
def _(reviews, user_id):
    current_domain.process(SetReviewStatus(review_id=reviews[user_id], status="rejected"), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{name}" is rated {rating:f} from {count:d} reviews'))
def _(catalog, name, rating, count):
    product = current_domain.repository_for(Product).find_by_id(catalog[name])
    assert product.rating == rating
    assert product.review_count == count


@then(parsers.cfparse('the review by "{user_id}" is "{status}"'))
def _(reviews, user_id, status):
    assert load_review(reviews[user_id]).status == status
