"""Catalog app models - Product."""
from django.contrib.contenttypes.fields import GenericRelation
from django.db import models
from django.db.models import Avg, IntegerField
from django.db.models.functions import Cast
from django.utils.text import slugify
from django.core.validators import MinValueValidator
from decimal import Decimal


class ProductQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


class ProductManager(models.Manager):
    def get_queryset(self):
        return ProductQuerySet(self.model, using=self._db)

    def active(self):
        return self.get_queryset().active()


class Product(models.Model):
    """Sản phẩm trong hệ thống."""

    objects = ProductManager()

    name = models.CharField(max_length=255, verbose_name='Tên sản phẩm')
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    short_description = models.CharField(max_length=500, blank=True)

    price = models.DecimalField(
        max_digits=12, decimal_places=0, default=0,
        validators=[MinValueValidator(Decimal('0'))]
    )
    sku = models.CharField(max_length=50, unique=True, blank=True, null=True)

    is_active = models.BooleanField(default=True)
    reviews_allowed = models.BooleanField(default=True)

    # All comments attached to the product; reviews are comment_type='review'
    comments = GenericRelation('comments.Comment', related_query_name='product')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Sản phẩm'
        verbose_name_plural = 'Sản phẩm'
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    @property
    def approved_reviews(self):
        return self.comments.reviews().approved()

    @property
    def average_rating(self):
        from apps.comments.models import CommentMeta
        avg = (
            CommentMeta.objects
            .filter(comment__in=self.approved_reviews, key='rating')
            .exclude(value__in=['', '0'])
            .annotate(score=Cast('value', IntegerField()))
            .aggregate(avg=Avg('score'))['avg']
        )
        return round(avg, 1) if avg else 0

    @property
    def review_count(self):
        return self.approved_reviews.count()
