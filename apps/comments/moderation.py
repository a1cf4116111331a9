"""Comments moderation - duplicate/flood detection and the initial approval decision."""
import logging
import re
from datetime import timedelta
from typing import Any, Dict, Iterable
from django.db.models import Q
from django.utils import timezone
from .exceptions import CommentDuplicate, CommentFlood
from .models import Comment

logger = logging.getLogger('apps.comments')

LINK_PATTERN = re.compile(r'<a\s[^>]*href', re.IGNORECASE)


class CommentModeration:
    """
    Decide the approval state of a comment that has not been saved yet.

    ``allow()`` returns '1' (approved), '0' (held) or 'spam', or raises
    CommentDuplicate / CommentFlood.
    """

    MATCHED_FIELDS = ('author', 'author_email', 'author_url', 'content', 'author_ip', 'agent')

    def __init__(self, config=None, moderator_check=None):
        self._config = config
        # callable(user) -> bool, users passing it skip flood control and are auto-approved
        self.moderator_check = moderator_check

    @property
    def config(self):
        if self._config is None:
            from apps.core.models import DiscussionConfig
            self._config = DiscussionConfig.load()
        return self._config

    def allow(self, data: Dict[str, Any], user=None) -> str:
        is_moderator = bool(user and self.moderator_check and self.moderator_check(user))

        self.check_duplicate(data)

        if not is_moderator:
            self.check_flood(data)

        if is_moderator:
            return Comment.APPROVED

        if self._matches(data, self.config.disallowed_keys):
            logger.info(f"Comment from {data.get('author_ip')} matched disallowed keys, marking as spam")
            return Comment.SPAM

        if self.config.require_moderation:
            return Comment.HOLD

        if self._too_many_links(data.get('content', '')) or self._matches(data, self.config.moderation_keys):
            return Comment.HOLD

        return Comment.APPROVED

    def check_duplicate(self, data: Dict[str, Any]) -> None:
        author_match = Q()
        if data.get('author'):
            author_match |= Q(author=data['author'])
        if data.get('author_email'):
            author_match |= Q(author_email=data['author_email'])

        duplicates = Comment.objects.filter(
            object_id=data.get('object_id') or 0,
            parent_id=data.get('parent') or data.get('parent_id'),
            content=data.get('content', ''),
        ).not_trashed()
        if author_match:
            duplicates = duplicates.filter(author_match)

        if duplicates.exists():
            logger.warning(f"Duplicate comment rejected on object {data.get('object_id')}")
            raise CommentDuplicate()

    def check_flood(self, data: Dict[str, Any]) -> None:
        interval = self.config.flood_interval
        if not interval:
            return

        origin = Q()
        if data.get('author_ip'):
            origin |= Q(author_ip=data['author_ip'])
        if data.get('author_email'):
            origin |= Q(author_email=data['author_email'])
        if not origin:
            return

        now = timezone.now()
        last = (
            Comment.objects.filter(origin, date_gmt__gte=now - timedelta(hours=1))
            .order_by('-date_gmt')
            .values_list('date_gmt', flat=True)
            .first()
        )
        if last is not None and (now - last).total_seconds() < interval:
            logger.warning(f"Comment flood from {data.get('author_ip')}")
            raise CommentFlood()

    def _too_many_links(self, content: str) -> bool:
        max_links = self.config.max_links
        return bool(max_links) and len(LINK_PATTERN.findall(content or '')) >= max_links

    def _matches(self, data: Dict[str, Any], keys: Iterable[str]) -> bool:
        for key in keys or []:
            key = (key or '').strip()
            if not key:
                continue
            pattern = re.compile(re.escape(key), re.IGNORECASE)
            for field in self.MATCHED_FIELDS:
                if pattern.search(str(data.get(field) or '')):
                    return True
        return False
