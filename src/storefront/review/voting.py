"""ToggleHelpful and ToggleLike: idempotent per-user reactions on a review."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.review.lookup import load_review
from storefront.review.review import ReactionKind, Review


@storefront.command(part_of="Review")
class ToggleHelpful:
    review_id = Identifier(required=True)
    user_id = Identifier(required=True)


@storefront.command(part_of="Review")
class ToggleLike:
    review_id = Identifier(required=True)
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=Review)
class ReviewReactionHandler:
    def _toggle(self, command, kind):
        review = load_review(command.review_id)
        action = review.toggle_reaction(command.user_id, kind)
        current_domain.repository_for(Review).add(review)
        return review, action.value

    @handle(ToggleHelpful)
    def toggle_helpful(self, command):
        review, action = self._toggle(command, ReactionKind.HELPFUL)
        return {"helpful": review.helpful, "action": action}

    @handle(ToggleLike)
    def toggle_like(self, command):
        review, action = self._toggle(command, ReactionKind.LIKE)
        return {"likes": review.likes, "action": action}
