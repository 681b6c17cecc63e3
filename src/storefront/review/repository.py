"""Review repository: hard removal of a review together with its child rows."""

from storefront.domain import storefront
from storefront.review.review import Review, ReviewReaction, ReviewReport


@storefront.repository(part_of=Review)
class ReviewRepository:
    def remove(self, review):
        """Delete the review after its reactions and reports.

        The DAO deletes a single row, so the children are removed one by one
        through their own DAOs first.
        """
        for child_cls, children in ((ReviewReaction, review.reactions), (ReviewReport, review.reports)):
            child_dao = self._domain.repository_for(child_cls)._dao
            for child in list(children):
                child_dao.delete(child)

        self._dao.delete(review)
