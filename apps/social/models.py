"""Social app models - product reviews stored as comments."""
from django.contrib.contenttypes.models import ContentType
from apps.catalog.models import Product
from apps.comments.models import Comment


def product_content_type():
    return ContentType.objects.get_for_model(Product)


def resolve_product(object_id, content_type=None):
    """Return the Product a parent reference points at, or None if it is not a product."""
    if not object_id:
        return None
    if content_type is not None:
        content_type_id = getattr(content_type, 'pk', content_type)
        if content_type_id != product_content_type().pk:
            return None
    return Product.objects.filter(pk=object_id).first()


class Review(Comment):
    """Đánh giá sản phẩm (bình luận loại 'review' gắn với sản phẩm)."""

    REVIEW_TYPE = 'review'

    # Storage approval -> external status
    STATUS_OUT = {
        Comment.APPROVED: 'approved',
        Comment.HOLD: 'hold',
        Comment.SPAM: 'spam',
        Comment.TRASH: 'trash',
    }

    class Meta:
        proxy = True
        verbose_name = 'Đánh giá'
        verbose_name_plural = 'Đánh giá'

    def __str__(self):
        return f"{self.author or 'Anonymous'} - #{self.object_id}: {self.rating}⭐"

    @property
    def status(self):
        return self.STATUS_OUT.get(self.approved, self.approved)

    @property
    def rating(self):
        try:
            return int(self.get_meta('rating', 0) or 0)
        except (TypeError, ValueError):
            return 0

    @property
    def verified(self):
        return self.get_meta('verified') == '1'

    @property
    def is_review(self):
        return self.comment_type == self.REVIEW_TYPE

    @property
    def product(self):
        return resolve_product(self.object_id, self.content_type_id)

    def is_attached_to_product(self):
        """A review with no parent reference is allowed; one with a parent must point at a product."""
        if not self.object_id:
            return True
        return self.product is not None
