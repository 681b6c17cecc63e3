"""Domain events for the Review aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Review")
class ReviewSubmitted:
    """A customer or guest posted a review."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    user_id = Identifier()
    guest_name = String()
    rating = Integer(required=True)
    title = String(required=True)
    comment = Text(required=True)
    verified = Boolean(default=False)
    status = String(required=True)
    submitted_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewEdited:
    """The author changed their review and it went back to moderation."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_status = String(required=True)
    rating = Integer(required=True)
    title = String()
    comment = Text()
    edited_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewStatusChanged:
    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    reason = String()  # "moderation" or "reports"
    changed_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewReactionToggled:
    """A user marked or unmarked a review as helpful, or liked or unliked it."""

    __version__ = 1

    review_id = Identifier(required=True)
    user_id = Identifier(required=True)
    kind = String(required=True)
    action = String(required=True)
    count = Integer(required=True)
    toggled_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewReported:
    __version__ = 1

    review_id = Identifier(required=True)
    reporter_id = Identifier(required=True)
    reason = String(required=True)
    reports_count = Integer(required=True)
    reported_at = DateTime(required=True)
