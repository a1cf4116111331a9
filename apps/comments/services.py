"""Comments services - single-record store operations and metadata."""
import logging
import time
from typing import Any, Dict, Optional
from django.conf import settings
from django.db import transaction
from apps.utils.security import InputValidator
from .exceptions import CommentFieldTooLong
from .models import Comment, CommentMeta

logger = logging.getLogger('apps.comments')

TRASH_STATUS_KEY = '_trash_meta_status'
TRASH_TIME_KEY = '_trash_meta_time'

DEFAULT_MAX_LENGTHS = {
    'author': 245,
    'author_email': 100,
    'author_url': 200,
    'content': 65525,
}


class CommentService:
    """Single-record operations on the comment store."""

    # ----- lookup -----

    @staticmethod
    def get(comment_id) -> Optional[Comment]:
        return Comment.objects.filter(pk=comment_id).prefetch_related('meta').first()

    @staticmethod
    def get_status(comment_id) -> Optional[str]:
        """'approved', 'unapproved', 'spam', 'trash' or None for an unknown comment."""
        approved = Comment.objects.filter(pk=comment_id).values_list('approved', flat=True).first()
        if approved is None:
            return None
        return Comment.STATUS_NAMES.get(approved)

    # ----- write -----

    @staticmethod
    def sanitize(data: Dict[str, Any]) -> Dict[str, Any]:
        """Clean user supplied columns before they reach the database."""
        cleaned = dict(data)
        if 'author' in cleaned:
            cleaned['author'] = InputValidator.clean_text(cleaned['author'])
        if 'author_email' in cleaned:
            cleaned['author_email'] = InputValidator.clean_email(cleaned['author_email'])
        if 'author_url' in cleaned:
            cleaned['author_url'] = InputValidator.clean_text(cleaned['author_url'])
        if 'content' in cleaned:
            cleaned['content'] = InputValidator.sanitize_html(cleaned['content'])
        return cleaned

    @staticmethod
    def check_max_lengths(data: Dict[str, Any]) -> None:
        """Raise CommentFieldTooLong for the first column over its configured maximum."""
        max_lengths = getattr(settings, 'COMMENT_MAX_LENGTHS', DEFAULT_MAX_LENGTHS)
        for field in ('author', 'author_email', 'author_url', 'content'):
            value = data.get(field)
            limit = max_lengths.get(field)
            if value and limit and len(str(value)) > limit:
                raise CommentFieldTooLong(field, limit)

    @staticmethod
    def insert(data: Dict[str, Any]) -> Comment:
        comment = Comment.objects.create(**data)
        logger.info(f"Comment {comment.pk} inserted ({comment.comment_type}, approved={comment.approved})")
        return comment

    @staticmethod
    def update(comment: Comment, data: Dict[str, Any]) -> Comment:
        if not data:
            return comment
        for attr, value in data.items():
            setattr(comment, attr, value)
        comment.save(update_fields=list(data.keys()))
        return comment

    @staticmethod
    @transaction.atomic
    def delete(comment_id) -> bool:
        """Permanently delete a comment; replies move up to the deleted comment's parent."""
        comment = Comment.objects.filter(pk=comment_id).first()
        if comment is None:
            return False
        Comment.objects.filter(parent=comment).update(parent=comment.parent_id)
        comment.delete()
        logger.info(f"Comment {comment_id} permanently deleted")
        return True

    # ----- status -----

    @staticmethod
    def set_status(comment_id, status: str) -> bool:
        """Set approval: 'approve'/'1', 'hold'/'0', 'spam' or 'trash'."""
        if status in ('approve', '1'):
            approved = Comment.APPROVED
        elif status in ('hold', '0'):
            approved = Comment.HOLD
        elif status == 'spam':
            return CommentService.spam(comment_id)
        elif status == 'trash':
            return CommentService.trash(comment_id)
        else:
            return False

        updated = Comment.objects.filter(pk=comment_id).update(approved=approved)
        if updated:
            logger.info(f"Comment {comment_id} status set to {status}")
        return bool(updated)

    @staticmethod
    @transaction.atomic
    def _park(comment_id, target: str) -> bool:
        """Move to spam/trash, remembering the previous approval for a later restore."""
        comment = Comment.objects.select_for_update().filter(pk=comment_id).first()
        if comment is None or comment.approved == target:
            return False
        CommentService.update_meta(comment.pk, TRASH_STATUS_KEY, comment.approved)
        CommentService.update_meta(comment.pk, TRASH_TIME_KEY, str(int(time.time())))
        comment.approved = target
        comment.save(update_fields=['approved'])
        logger.info(f"Comment {comment_id} moved to {target}")
        return True

    @staticmethod
    @transaction.atomic
    def _restore(comment_id, source: str) -> bool:
        comment = Comment.objects.select_for_update().filter(pk=comment_id).first()
        if comment is None or comment.approved != source:
            return False
        previous = CommentService.get_meta(comment.pk, TRASH_STATUS_KEY)
        if previous not in (Comment.APPROVED, Comment.HOLD):
            previous = Comment.HOLD
        comment.approved = previous
        comment.save(update_fields=['approved'])
        CommentService.delete_meta(comment.pk, TRASH_STATUS_KEY)
        CommentService.delete_meta(comment.pk, TRASH_TIME_KEY)
        logger.info(f"Comment {comment_id} restored from {source} to {previous}")
        return True

    @staticmethod
    def trash(comment_id) -> bool:
        return CommentService._park(comment_id, Comment.TRASH)

    @staticmethod
    def untrash(comment_id) -> bool:
        return CommentService._restore(comment_id, Comment.TRASH)

    @staticmethod
    def spam(comment_id) -> bool:
        return CommentService._park(comment_id, Comment.SPAM)

    @staticmethod
    def unspam(comment_id) -> bool:
        return CommentService._restore(comment_id, Comment.SPAM)

    # ----- metadata -----

    @staticmethod
    def get_meta(comment_id, key: str, default: Optional[str] = None) -> Optional[str]:
        value = CommentMeta.objects.filter(comment_id=comment_id, key=key).values_list('value', flat=True).first()
        return default if value is None else value

    @staticmethod
    def update_meta(comment_id, key: str, value) -> CommentMeta:
        meta, _ = CommentMeta.objects.update_or_create(
            comment_id=comment_id, key=key,
            defaults={'value': '' if value is None else str(value)},
        )
        return meta

    @staticmethod
    def delete_meta(comment_id, key: str) -> bool:
        deleted, _ = CommentMeta.objects.filter(comment_id=comment_id, key=key).delete()
        return bool(deleted)
