"""Comments app models - generic comment storage shared by reviews, order notes, etc."""
from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.db.models import Q
from django.utils import timezone


class CommentQuerySet(models.QuerySet):
    def of_type(self, comment_type):
        return self.filter(comment_type=comment_type)

    def reviews(self):
        return self.of_type('review')

    def for_object(self, obj):
        return self.filter(
            content_type=ContentType.objects.get_for_model(obj),
            object_id=obj.pk,
        )

    def approved(self):
        return self.filter(approved=Comment.APPROVED)

    def not_trashed(self):
        return self.exclude(approved=Comment.TRASH)

    def search(self, term):
        return self.filter(
            Q(author__icontains=term) |
            Q(author_email__icontains=term) |
            Q(author_url__icontains=term) |
            Q(author_ip__icontains=term) |
            Q(content__icontains=term)
        )


class Comment(models.Model):
    """Bình luận gắn với một đối tượng bất kỳ (sản phẩm, đơn hàng...)."""

    APPROVED = '1'
    HOLD = '0'
    SPAM = 'spam'
    TRASH = 'trash'

    APPROVAL_CHOICES = [
        (APPROVED, 'Đã duyệt'),
        (HOLD, 'Chờ duyệt'),
        (SPAM, 'Spam'),
        (TRASH, 'Thùng rác'),
    ]

    # Host-level status names, as returned by CommentService.get_status
    STATUS_NAMES = {
        APPROVED: 'approved',
        HOLD: 'unapproved',
        SPAM: 'spam',
        TRASH: 'trash',
    }

    objects = CommentQuerySet.as_manager()

    # Parent entity
    content_type = models.ForeignKey(
        ContentType, on_delete=models.CASCADE,
        null=True, blank=True, related_name='+'
    )
    object_id = models.PositiveBigIntegerField(default=0, db_index=True)
    content_object = GenericForeignKey('content_type', 'object_id')

    parent = models.ForeignKey(
        'self', on_delete=models.SET_NULL,
        null=True, blank=True, related_name='replies'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        null=True, blank=True, related_name='comments'
    )

    # Author
    author = models.CharField(max_length=255, blank=True)
    author_email = models.CharField(max_length=100, blank=True)
    author_url = models.CharField(max_length=200, blank=True)
    author_ip = models.CharField(max_length=100, blank=True)
    agent = models.CharField(max_length=255, blank=True)

    content = models.TextField(blank=True)

    date = models.DateTimeField(default=timezone.now, db_index=True)
    date_gmt = models.DateTimeField(default=timezone.now, db_index=True)

    approved = models.CharField(max_length=20, choices=APPROVAL_CHOICES, default=APPROVED, db_index=True)
    comment_type = models.CharField(max_length=20, default='comment', db_index=True)

    class Meta:
        verbose_name = 'Bình luận'
        verbose_name_plural = 'Bình luận'
        ordering = ['-date_gmt', '-id']
        indexes = [
            models.Index(fields=['content_type', 'object_id', 'approved']),
        ]

    def __str__(self):
        return f"{self.author or 'Anonymous'} on #{self.object_id}: {self.content[:40]}"

    def get_meta(self, key, default=None):
        """
        Read a meta value. Iterates ``self.meta.all()`` so a
        prefetch_related('meta') on the queryset is reused instead of hitting the DB.
        """
        for meta in self.meta.all():
            if meta.key == key:
                return meta.value
        return default


class CommentMeta(models.Model):
    """Dữ liệu bổ sung dạng key/value cho bình luận (rating, verified...)."""

    comment = models.ForeignKey(Comment, on_delete=models.CASCADE, related_name='meta')
    key = models.CharField(max_length=255, db_index=True)
    value = models.TextField(blank=True, default='')

    class Meta:
        verbose_name = 'Comment meta'
        verbose_name_plural = 'Comment meta'
        unique_together = ['comment', 'key']

    def __str__(self):
        return f"{self.comment_id}:{self.key}={self.value}"
