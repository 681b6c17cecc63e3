import pytest


@pytest.fixture()
def create_review():
    from protean import current_domain
    from storefront.review.submission import CreateReview

    def _create(product_id, **overrides):
        defaults = {
            "product_id": product_id,
            "user_id": "user-001",
            "rating": 5,
            "title": "Beautiful fabric",
            "comment": "The colours held up after several washes.",
        }
        defaults.update(overrides)
        return current_domain.process(CreateReview(**defaults), asynchronous=False)

    return _create
