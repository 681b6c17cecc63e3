"""Rating statistics and review sort orders."""

from datetime import UTC, datetime, timedelta

from storefront.review.listing import sort_reviews
from storefront.review.rating import summarize_ratings
from storefront.review.review import Review, Reviewer


class TestSummarizeRatings:
    def test_mean_rounded_to_one_decimal(self):
        summary = summarize_ratings([5, 5, 4])
        assert summary["average_rating"] == 4.7
        assert summary["total_reviews"] == 3

    def test_half_rounds_up(self):
        assert summarize_ratings([4, 5, 4, 4])["average_rating"] == 4.3

    def test_distribution_has_every_star(self):
        summary = summarize_ratings([5, 5, 1])
        assert summary["distribution"] == {"1": 1, "2": 0, "3": 0, "4": 0, "5": 2}

    def test_no_ratings(self):
        summary = summarize_ratings([])
        assert summary["average_rating"] == 0
        assert summary["total_reviews"] == 0
        assert sum(summary["distribution"].values()) == 0


def _review(user, rating, age_days, helpful=0, likes=0):
    review = Review.submit(
        product_id="prod-001",
        reviewer=Reviewer.authenticated(user),
        rating=rating,
        title=f"Review by {user}",
        comment="Fine.",
    )
    review.created_at = datetime.now(UTC) - timedelta(days=age_days)
    review.helpful = helpful
    review.likes = likes
    return review


class TestSortReviews:
    def _reviews(self):
        return [
            _review("old", 5, age_days=10, helpful=1),
            _review("mid", 2, age_days=5, likes=4),
            _review("new", 5, age_days=1, helpful=3),
        ]

    def _users(self, reviews):
        return [str(r.user_id) for r in reviews]

    def test_newest(self):
        assert self._users(sort_reviews(self._reviews(), "newest")) == ["new", "mid", "old"]

    def test_oldest(self):
        assert self._users(sort_reviews(self._reviews(), "oldest")) == ["old", "mid", "new"]

    def test_highest_breaks_ties_by_recency(self):
        assert self._users(sort_reviews(self._reviews(), "highest")) == ["new", "old", "mid"]

    def test_lowest(self):
        assert self._users(sort_reviews(self._reviews(), "lowest"))[0] == "mid"

    def test_most_helpful(self):
        assert self._users(sort_reviews(self._reviews(), "most_helpful")) == ["new", "old", "mid"]

    def test_most_liked(self):
        assert self._users(sort_reviews(self._reviews(), "most_liked"))[0] == "mid"

    def test_unknown_sort_falls_back_to_newest(self):
        assert self._users(sort_reviews(self._reviews(), "random")) == ["new", "mid", "old"]
