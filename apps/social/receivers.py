"""Signal receivers for review events."""
import logging
from django.dispatch import receiver

from apps.comments.services import CommentService
from .hooks import review_deleted, review_inserted
from .services import is_verified_owner

logger = logging.getLogger('apps.social')


@receiver(review_inserted, dispatch_uid='social.mark_verified_owner')
def mark_verified_owner(sender, review, creating, **kwargs):
    if not creating:
        return
    verified = is_verified_owner(review)
    CommentService.update_meta(review.pk, 'verified', '1' if verified else '0')
    if verified:
        logger.info(f"Review {review.pk} marked as verified purchase")


@receiver(review_deleted, dispatch_uid='social.log_review_deleted')
def log_review_deleted(sender, review, response, **kwargs):
    forced = isinstance(response, dict) and response.get('deleted')
    logger.info(f"Review {review.pk} {'deleted' if forced else 'trashed'} via API")
