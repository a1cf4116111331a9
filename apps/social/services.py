"""Social services - review validation, status transitions and persistence."""
import logging
from typing import Any, Dict, Optional

from apps.comments.exceptions import CommentDuplicate, CommentFieldTooLong, CommentFlood
from apps.comments.models import Comment
from apps.comments.moderation import CommentModeration
from apps.comments.services import CommentService
from apps.core.models import DiscussionConfig
from apps.utils.security import IPValidator

from . import hooks
from .exceptions import (
    AlreadyTrashed, DeleteFailed, DuplicateReview, ProductInvalid, ReviewContentInvalid,
    ReviewCreateFailed, ReviewFieldTooLong, ReviewInvalidType, ReviewNotFound, TooManyRequests,
    TrashUnsupported,
)
from .models import Review, resolve_product

logger = logging.getLogger('apps.social')

# Keys carried in a mapped record that are not Comment columns
SIDE_CHANNEL_KEYS = ('status', 'rating')


def is_moderator(user) -> bool:
    """Users who may moderate reviews skip flood control and are approved straight away."""
    return bool(
        user and user.is_authenticated
        and (user.is_superuser or user.has_perm('social.change_review'))
    )


class ReviewValidator:
    """Checks a mapped review record before it is written."""

    def __init__(self, moderation: Optional[CommentModeration] = None):
        self.moderation = moderation or CommentModeration(moderator_check=is_moderator)

    def validate(self, record: Dict[str, Any], creating: bool = False, instance: Optional[Comment] = None,
                 user=None) -> Dict[str, Any]:
        """
        Return the record, with ``approved`` set when creating.

        Checks run in order: non-empty body, product reference, column
        lengths, then (create only) the moderation decision.
        """
        content = record['content'] if 'content' in record else getattr(instance, 'content', '')
        if not content:
            raise ReviewContentInvalid()

        if record.get('object_id'):
            if resolve_product(record['object_id'], record.get('content_type')) is None:
                raise ProductInvalid()

        try:
            CommentService.check_max_lengths(record)
        except CommentFieldTooLong as e:
            raise ReviewFieldTooLong(e.code, e.max_length)

        if creating:
            record['approved'] = self.approval(record, user)

        return record

    def approval(self, record: Dict[str, Any], user=None) -> str:
        try:
            return self.moderation.allow(record, user=user)
        except CommentDuplicate as e:
            raise DuplicateReview(e.message)
        except CommentFlood as e:
            raise TooManyRequests(e.message)


class StatusTransition:
    """Moves a stored review to a requested external status."""

    # Requested literal -> (canonical current status it matches, store operation)
    OPERATIONS = {
        'approved': ('approved', 'approve'),
        'approve': ('approved', 'approve'),
        '1': ('approved', 'approve'),
        'hold': ('unapproved', 'hold'),
        '0': ('unapproved', 'hold'),
        'spam': ('spam', 'spam'),
        'unspam': (None, 'unspam'),
        'trash': ('trash', 'trash'),
        'untrash': (None, 'untrash'),
    }

    # Restores only act on the state they restore from
    RESTORES_FROM = {'unspam': 'spam', 'untrash': 'trash'}

    def __init__(self, store=CommentService):
        self.store = store

    def apply(self, requested, review_id, current: Optional[str] = None) -> bool:
        """Return True when the store changed the review's status."""
        requested = str(requested)
        if requested not in self.OPERATIONS:
            logger.warning(f"Ignoring unknown status '{requested}' for review {review_id}")
            return False

        if current is None:
            current = self.store.get_status(review_id)

        if requested == current:
            return False

        target, operation = self.OPERATIONS[requested]
        if target is not None and target == current:
            return False
        if operation in self.RESTORES_FROM and current != self.RESTORES_FROM[operation]:
            return False

        if operation in ('approve', 'hold'):
            changed = self.store.set_status(review_id, operation)
        else:
            changed = getattr(self.store, operation)(review_id)

        if changed:
            logger.info(f"Review {review_id} status {current} -> {requested}")
        return bool(changed)


class ReviewService:
    """Review persistence behind the REST endpoints."""

    @staticmethod
    def get_review(review_id) -> Review:
        """Load a review by id; non-positive or unknown ids and non-product parents are rejected."""
        try:
            review_id = int(review_id)
        except (TypeError, ValueError):
            raise ReviewNotFound()
        if review_id <= 0:
            raise ReviewNotFound()

        review = Review.objects.filter(pk=review_id).select_related('user').prefetch_related('meta').first()
        if review is None:
            raise ReviewNotFound()
        if not review.is_attached_to_product():
            raise ProductInvalid()
        return review

    @staticmethod
    def split_record(record: Dict[str, Any]):
        """Separate Comment columns from the side-channel status/rating keys."""
        columns = {key: value for key, value in record.items() if key not in SIDE_CHANNEL_KEYS}
        extras = {key: record[key] for key in SIDE_CHANNEL_KEYS if key in record}
        return columns, extras

    @staticmethod
    def create(record: Dict[str, Any], request=None, validator: Optional[ReviewValidator] = None) -> Review:
        record = dict(record)
        record.pop('comment_type', None)
        record.setdefault('object_id', 0)
        record.setdefault('author_url', '')
        if not record.get('agent'):
            record.pop('agent', None)
        user = getattr(request, 'user', None)
        if request is not None:
            record.setdefault('author_ip', IPValidator.get_valid_client_ip(request))
            record.setdefault('agent', request.headers.get('User-Agent', ''))
        if user is not None and user.is_authenticated:
            record.setdefault('user', user)
        record['comment_type'] = Review.REVIEW_TYPE

        record = hooks.preprocess_review.apply(record, request=request, instance=None)
        record = (validator or ReviewValidator()).validate(record, creating=True, user=user)
        record = hooks.pre_insert_review.apply(record, request=request)

        columns, extras = ReviewService.split_record(record)
        columns = CommentService.sanitize(columns)
        try:
            comment = CommentService.insert(columns)
        except Exception as e:
            logger.error(f"Review insert failed: {e}")
            raise ReviewCreateFailed() from e

        if extras.get('status') is not None:
            StatusTransition().apply(extras['status'], comment.pk)

        rating = extras.get('rating')
        CommentService.update_meta(comment.pk, 'rating', str(rating) if rating else '0')

        review = ReviewService.get_review(comment.pk)
        hooks.review_inserted.send(sender=Review, review=review, request=request, creating=True)
        logger.info(f"Review {review.pk} created on product {review.object_id} ({review.status})")
        # Receivers may have written meta
        return ReviewService.get_review(review.pk)

    @staticmethod
    def update(review: Review, record: Dict[str, Any], request=None,
               validator: Optional[ReviewValidator] = None) -> Review:
        record = dict(record)
        if 'comment_type' in record and not review.is_review:
            raise ReviewInvalidType()
        record.pop('comment_type', None)

        record = hooks.preprocess_review.apply(record, request=request, instance=review)
        record = (validator or ReviewValidator()).validate(record, instance=review)

        columns, extras = ReviewService.split_record(record)
        CommentService.update(review, CommentService.sanitize(columns))

        if extras.get('status') is not None:
            StatusTransition().apply(extras['status'], review.pk)

        if extras.get('rating'):
            CommentService.update_meta(review.pk, 'rating', str(extras['rating']))

        review = ReviewService.get_review(review.pk)
        hooks.review_inserted.send(sender=Review, review=review, request=request, creating=False)
        logger.info(f"Review {review.pk} updated")
        return review

    @staticmethod
    def supports_trash(review: Review) -> bool:
        config = DiscussionConfig.load()
        return bool(hooks.review_trashable.apply(config.supports_trash, review=review))

    @staticmethod
    def delete(review: Review, force: bool = False, request=None, serializer_class=None):
        """
        Trash a review, or remove it for good with ``force``.

        Returns ``{'deleted': True, 'previous': <review>}`` for a forced delete,
        otherwise the trashed review instance.
        """
        if force:
            previous = serializer_class(review, context={'request': request}).data if serializer_class else None
            if not CommentService.delete(review.pk):
                raise DeleteFailed()
            logger.info(f"Review {review.pk} permanently deleted")
            result = {'deleted': True, 'previous': previous}
        else:
            if not ReviewService.supports_trash(review):
                raise TrashUnsupported()
            if review.approved == Comment.TRASH:
                raise AlreadyTrashed()
            if not CommentService.trash(review.pk):
                raise DeleteFailed()
            review = Review.objects.prefetch_related('meta').get(pk=review.pk)
            logger.info(f"Review {review.pk} moved to trash")
            result = review

        hooks.review_deleted.send(sender=Review, review=review, response=result, request=request)
        return result


def is_verified_owner(review: Review) -> bool:
    """True if the reviewer has a delivered order containing the reviewed product."""
    from apps.sales.models import Order, OrderItem
    if not review.object_id or not (review.user_id or review.author_email):
        return False
    owner_orders = Order.objects.delivered().placed_by(
        user=review.user if review.user_id else None,
        email=review.author_email,
    )
    return OrderItem.objects.filter(product_id=review.object_id, order__in=owner_orders).exists()
