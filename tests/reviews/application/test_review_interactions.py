"""Helpful marks, likes and reports on reviews."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.product.product import Product
from storefront.review.listing import review_interactions
from storefront.review.lookup import load_review
from storefront.review.reporting import ReportReview
from storefront.review.voting import ToggleHelpful, ToggleLike
from storefront.shared.errors import DuplicateReport, ReviewNotFound


def _process(command):
    return current_domain.process(command, asynchronous=False)


@pytest.fixture()
def product_id(add_product):
    return add_product()


@pytest.fixture()
def review_id(product_id, create_review):
    return create_review(product_id, rating=5)


class TestToggleHelpful:
    def test_first_toggle_adds(self, review_id):
        result = _process(ToggleHelpful(review_id=review_id, user_id="user-002"))
        assert result == {"helpful": 1, "action": "added"}

    def test_second_toggle_removes(self, review_id):
        _process(ToggleHelpful(review_id=review_id, user_id="user-002"))
        result = _process(ToggleHelpful(review_id=review_id, user_id="user-002"))
        assert result == {"helpful": 0, "action": "removed"}
        assert load_review(review_id).helpful == 0

    def test_counts_distinct_users(self, review_id):
        for user in ("u1", "u2", "u3"):
            _process(ToggleHelpful(review_id=review_id, user_id=user))
        assert load_review(review_id).helpful == 3

    def test_unknown_review(self):
        with pytest.raises(ReviewNotFound):
            _process(ToggleHelpful(review_id="ghost", user_id="u1"))


class TestToggleLike:
    def test_like_and_unlike(self, review_id):
        assert _process(ToggleLike(review_id=review_id, user_id="u1")) == {"likes": 1, "action": "added"}
        assert _process(ToggleLike(review_id=review_id, user_id="u1")) == {"likes": 0, "action": "removed"}

    def test_like_does_not_touch_helpful(self, review_id):
        _process(ToggleLike(review_id=review_id, user_id="u1"))
        review = load_review(review_id)
        assert review.likes == 1
        assert review.helpful == 0


class TestInteractions:
    def test_lists_reviews_a_user_reacted_to(self, add_product, create_review):
        first = create_review(add_product(name="Boubou"), user_id="author-1")
        second = create_review(add_product(name="Sandals"), user_id="author-2")
        _process(ToggleHelpful(review_id=first, user_id="fan"))
        _process(ToggleLike(review_id=second, user_id="fan"))
        _process(ToggleLike(review_id=first, user_id="someone-else"))

        interactions = review_interactions("fan")

        assert interactions == {"helpful_reviews": [first], "liked_reviews": [second]}

    def test_removed_reaction_is_not_listed(self, review_id):
        _process(ToggleHelpful(review_id=review_id, user_id="fan"))
        _process(ToggleHelpful(review_id=review_id, user_id="fan"))
        assert review_interactions("fan") == {"helpful_reviews": [], "liked_reviews": []}


class TestReportReview:
    def test_report_is_counted(self, review_id):
        assert _process(ReportReview(review_id=review_id, user_id="u1", reason="Spam")) == {"reports_count": 1}
        assert load_review(review_id).status == "approved"

    def test_third_report_hides_review_and_updates_rating(self, product_id, review_id):
        assert current_domain.repository_for(Product).find_by_id(product_id).review_count == 1

        for reporter in ("u1", "u2", "u3"):
            _process(ReportReview(review_id=review_id, user_id=reporter, reason="Offensive"))

        assert load_review(review_id).status == "pending"
        product = current_domain.repository_for(Product).find_by_id(product_id)
        assert product.review_count == 0
        assert product.rating == 0

    def test_same_reporter_is_rejected(self, review_id):
        _process(ReportReview(review_id=review_id, user_id="u1", reason="Spam"))
        with pytest.raises(DuplicateReport):
            _process(ReportReview(review_id=review_id, user_id="u1", reason="Spam"))
        assert load_review(review_id).reports_count == 1

    def test_reason_is_required(self, review_id):
        with pytest.raises(ValidationError) as exc:
            _process(ReportReview(review_id=review_id, user_id="u1", reason=""))
        assert "reason" in str(exc.value)
