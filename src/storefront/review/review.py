"""Review aggregate (CQRS) and its moderation state machine.

A review belongs to exactly one product and is written either by a signed-in
user or by a guest. Only approved reviews count toward a product's rating,
so any change that moves a review into or out of approved must be followed
by a rating recomputation.

State Machine:
    submit  → APPROVED (auto-approve on) | PENDING
    edit    → PENDING, whatever the current state
    reports → PENDING once the report threshold is reached
    admin   → any of PENDING | APPROVED | REJECTED

Helpful marks and likes are sets of user ids. The counters are always the
size of their set, so toggling twice restores the original count and a
counter can never go negative.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.review.events import (
    ReviewEdited,
    ReviewReactionToggled,
    ReviewReported,
    ReviewStatusChanged,
    ReviewSubmitted,
)
from storefront.shared.email import is_valid_email, normalize_email
from storefront.shared.errors import DuplicateReport, Forbidden

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ReviewStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReactionKind(Enum):
    HELPFUL = "helpful"
    LIKE = "like"


class ReactionAction(Enum):
    ADDED = "added"
    REMOVED = "removed"


def touches_approved(previous_status, current_status):
    """True when a status change moves a review into or out of the approved set."""
    approved = ReviewStatus.APPROVED.value
    return previous_status != current_status and approved in (previous_status, current_status)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Review")
class Reviewer:
    """Who wrote a review: a signed-in user, or a guest with a name and maybe an email."""

    user_id = Identifier()
    guest_name = String(max_length=100)
    guest_email = String(max_length=254)

    @invariant.post
    def exactly_one_identity(self):
        if self.user_id and (self.guest_name or self.guest_email):
            raise ValidationError({"reviewer": ["A review is written by a user or by a guest, not both"]})
        if not self.user_id and not (self.guest_name and self.guest_name.strip()):
            raise ValidationError({"guest_name": ["Guest reviews require a name"]})

    @invariant.post
    def guest_email_must_be_well_formed(self):
        if self.guest_email and not is_valid_email(self.guest_email):
            raise ValidationError({"guest_email": [f"Invalid email address: {self.guest_email}"]})

    @classmethod
    def authenticated(cls, user_id):
        return cls(user_id=str(user_id))

    @classmethod
    def guest(cls, name, email=None):
        return cls(guest_name=name.strip() if name else name, guest_email=normalize_email(email))

    @property
    def is_guest(self):
        return not self.user_id

    def duplicate_criteria(self):
        """Fields that must be unique per product for this reviewer, or None when unconstrained."""
        if self.user_id:
            return {"user_id": str(self.user_id)}
        if self.guest_email:
            return {"guest_email": self.guest_email}
        return None

    def is_user(self, user_id):
        return bool(user_id) and not self.is_guest and str(self.user_id) == str(user_id)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Review")
class ReviewReaction:
    """One user's helpful mark or like on a review."""

    user_id = Identifier(required=True)
    kind = String(choices=ReactionKind, required=True)
    reacted_at = DateTime(required=True)


@storefront.entity(part_of="Review")
class ReviewReport:
    reporter_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    reported_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Review:
    product_id = Identifier(required=True)

    # Author: user_id, or guest_name with an optional guest_email
    user_id = Identifier()
    guest_name = String(max_length=100)
    guest_email = String(max_length=254)

    # Verified purchase
    order_id = Identifier()
    verified = Boolean(default=False)

    # Content
    rating = Integer(required=True, min_value=1, max_value=5)
    title = String(required=True, max_length=200)
    comment = Text(required=True)
    images = Text()  # JSON array of image URLs

    status = String(choices=ReviewStatus, default=ReviewStatus.PENDING.value)

    # Interactions
    reactions = HasMany(ReviewReaction)
    helpful = Integer(default=0, min_value=0)
    likes = Integer(default=0, min_value=0)
    reports = HasMany(ReviewReport)
    reports_count = Integer(default=0, min_value=0)

    is_edited = Boolean(default=False)
    edited_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def title_must_not_be_blank(self):
        if self.title is not None and not self.title.strip():
            raise ValidationError({"title": ["Review title cannot be empty"]})

    @invariant.post
    def comment_must_not_be_blank(self):
        if self.comment is not None and not self.comment.strip():
            raise ValidationError({"comment": ["Review comment cannot be empty"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(
        cls,
        product_id,
        reviewer,
        rating,
        title,
        comment,
        images=None,
        order_id=None,
        verified=False,
        auto_approve=True,
    ):
        now = datetime.now(UTC)
        status = ReviewStatus.APPROVED if auto_approve else ReviewStatus.PENDING

        review = cls(
            product_id=product_id,
            user_id=reviewer.user_id,
            guest_name=reviewer.guest_name,
            guest_email=reviewer.guest_email,
            order_id=order_id,
            verified=verified,
            rating=rating,
            title=title.strip() if title else title,
            comment=comment.strip() if comment else comment,
            images=json.dumps(images) if images else None,
            status=status.value,
            helpful=0,
            likes=0,
            reports_count=0,
            is_edited=False,
            created_at=now,
            updated_at=now,
        )

        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                product_id=str(product_id),
                user_id=str(reviewer.user_id) if reviewer.user_id else None,
                guest_name=reviewer.guest_name,
                rating=rating,
                title=review.title,
                comment=review.comment,
                verified=verified,
                status=status.value,
                submitted_at=now,
            )
        )
        return review

    @property
    def reviewer(self):
        if self.user_id:
            return Reviewer(user_id=self.user_id)
        return Reviewer(guest_name=self.guest_name, guest_email=self.guest_email)

    @property
    def image_urls(self):
        return json.loads(self.images) if self.images else []

    def reactors(self, kind):
        """User ids holding a reaction of the given kind."""
        return {str(r.user_id) for r in self.reactions if r.kind == ReactionKind(kind).value}

    # -------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------
    def _move_to(self, target, reason, now):
        previous = self.status
        self.status = target.value
        self.updated_at = now
        self.raise_(
            ReviewStatusChanged(
                review_id=str(self.id),
                product_id=str(self.product_id),
                previous_status=previous,
                status=target.value,
                reason=reason,
                changed_at=now,
            )
        )

    def set_status(self, status):
        """Admin transition to any of the three states. Returns the previous status."""
        try:
            target = ReviewStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Invalid review status {status!r}"]}) from None

        previous = self.status
        if target.value != previous:
            self._move_to(target, "moderation", datetime.now(UTC))
        return previous

    def edit(self, user_id, rating=_UNSET, title=_UNSET, comment=_UNSET, images=_UNSET):
        """Author-only edit. The review goes back to pending. Returns the previous status."""
        if not self.reviewer.is_user(user_id):
            raise Forbidden("Only the author can edit this review")

        now = datetime.now(UTC)
        previous = self.status

        with atomic_change(self):
            if rating is not _UNSET:
                self.rating = rating
            if title is not _UNSET:
                self.title = title.strip() if title else title
            if comment is not _UNSET:
                self.comment = comment.strip() if comment else comment
            if images is not _UNSET:
                self.images = json.dumps(images) if images else None
            self.status = ReviewStatus.PENDING.value
            self.is_edited = True
            self.edited_at = now
            self.updated_at = now

        self.raise_(
            ReviewEdited(
                review_id=str(self.id),
                product_id=str(self.product_id),
                previous_status=previous,
                rating=self.rating,
                title=self.title,
                comment=self.comment,
                edited_at=now,
            )
        )
        return previous

    # -------------------------------------------------------------------
    # Reactions
    # -------------------------------------------------------------------
    def toggle_reaction(self, user_id, kind):
        """Add the user's reaction if absent, remove it if present.

        Returns the ReactionAction taken.
        """
        kind = ReactionKind(kind)
        now = datetime.now(UTC)

        existing = next(
            (r for r in self.reactions if str(r.user_id) == str(user_id) and r.kind == kind.value),
            None,
        )
        if existing is None:
            self.add_reactions(ReviewReaction(user_id=user_id, kind=kind.value, reacted_at=now))
            action = ReactionAction.ADDED
        else:
            self.remove_reactions(existing)
            action = ReactionAction.REMOVED

        count = len(self.reactors(kind.value))
        with atomic_change(self):
            if kind == ReactionKind.HELPFUL:
                self.helpful = count
            else:
                self.likes = count
            self.updated_at = now

        self.raise_(
            ReviewReactionToggled(
                review_id=str(self.id),
                user_id=str(user_id),
                kind=kind.value,
                action=action.value,
                count=count,
                toggled_at=now,
            )
        )
        return action

    # -------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------
    def report(self, reporter_id, reason, threshold=3, dedupe=True):
        """File a report. At ``threshold`` reports the review is forced back to pending.

        Returns the number of reports on file.
        """
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["A reason is required to report a review"]})
        if dedupe and any(str(r.reporter_id) == str(reporter_id) for r in self.reports):
            raise DuplicateReport()

        now = datetime.now(UTC)
        self.add_reports(ReviewReport(reporter_id=reporter_id, reason=reason.strip(), reported_at=now))

        with atomic_change(self):
            self.reports_count = len(self.reports)
            self.updated_at = now
            if self.reports_count >= threshold and self.status != ReviewStatus.PENDING.value:
                self._move_to(ReviewStatus.PENDING, "reports", now)

        self.raise_(
            ReviewReported(
                review_id=str(self.id),
                reporter_id=str(reporter_id),
                reason=reason.strip(),
                reports_count=self.reports_count,
                reported_at=now,
            )
        )
        return self.reports_count
