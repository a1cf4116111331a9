from django.db import models
from django.core.cache import cache
from django.core.validators import MinValueValidator


class SingletonModel(models.Model):
    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        self.pk = 1
        super(SingletonModel, self).save(*args, **kwargs)
        self.set_cache()

    def delete(self, *args, **kwargs):
        pass

    @classmethod
    def load(cls):
        cached = cache.get(cls.__name__)
        if cached:
            return cached
        obj, created = cls.objects.get_or_create(pk=1)
        obj.set_cache()
        return obj

    def set_cache(self):
        cache.set(self.__class__.__name__, self)


class DiscussionConfig(SingletonModel):
    """Cấu hình kiểm duyệt đánh giá / bình luận."""

    # Trash
    trash_days = models.PositiveIntegerField(
        default=30,
        help_text="Days a trashed review is kept. 0 disables trashing (deletes must be forced)."
    )

    # Moderation
    require_moderation = models.BooleanField(
        default=False,
        help_text="Hold every new review for manual approval."
    )
    max_links = models.PositiveIntegerField(
        default=2,
        help_text="Hold a review containing this many links or more. 0 disables the check."
    )
    moderation_keys = models.JSONField(
        default=list, blank=True,
        help_text="Words/IPs/emails that send a review to the moderation queue."
    )
    disallowed_keys = models.JSONField(
        default=list, blank=True,
        help_text="Words/IPs/emails that mark a review as spam."
    )

    # Flood control
    flood_interval = models.PositiveIntegerField(
        default=15,
        validators=[MinValueValidator(0)],
        help_text="Minimum seconds between two reviews from the same IP or email."
    )

    # Display
    show_avatars = models.BooleanField(default=True)

    def __str__(self):
        return "Discussion Configuration"

    class Meta:
        verbose_name = "Discussion Configuration"

    @property
    def supports_trash(self):
        return self.trash_days > 0
