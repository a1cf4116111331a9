"""
Review <-> comment field mapping.

``ReviewSerializer(data=...).validated_data`` is the internal record, keyed by
Comment column names, holding only the fields the request supplied.
``status`` and ``rating`` ride along as extra keys for ReviewService.
``ReviewSerializer(instance).data`` is the external representation.
"""
import hashlib
from datetime import timezone as dt_timezone

from django.urls import NoReverseMatch, reverse
from rest_framework import serializers
from rest_framework.fields import SkipField

from .models import Review, product_content_type

REVIEW_STATUSES = ('approved', 'hold', 'spam', 'unspam', 'trash', 'untrash')
AVATAR_SIZES = (24, 48, 96)


class LenientDateTimeField(serializers.DateTimeField):
    """
    DateTimeField that never fails validation: malformed input becomes None so
    both creation dates can be dropped. Renders naive ISO-8601 in its timezone.
    """

    def to_internal_value(self, value):
        if value in ('', None):
            raise SkipField()
        try:
            return super().to_internal_value(value)
        except serializers.ValidationError:
            return None

    def to_representation(self, value):
        if not value:
            return None
        return self.enforce_timezone(value).replace(tzinfo=None, microsecond=0).isoformat()


class ReviewSerializer(serializers.ModelSerializer):
    """Maps API review fields onto Comment columns."""

    id = serializers.IntegerField(read_only=True)
    date_created = LenientDateTimeField(source='date', required=False)
    date_created_gmt = LenientDateTimeField(source='date_gmt', required=False, default_timezone=dt_timezone.utc)
    product_id = serializers.IntegerField(source='object_id', min_value=0)
    status = serializers.ChoiceField(choices=REVIEW_STATUSES, required=False)
    reviewer = serializers.CharField(source='author', allow_blank=True, trim_whitespace=False)
    reviewer_email = serializers.EmailField(source='author_email', allow_blank=True)
    review = serializers.CharField(source='content', allow_blank=True, trim_whitespace=False)
    rating = serializers.IntegerField(min_value=0, max_value=5, required=False)
    verified = serializers.BooleanField(read_only=True)
    reviewer_avatar_urls = serializers.SerializerMethodField()
    _links = serializers.SerializerMethodField(method_name='get_links')

    # Write-only inputs
    author_user_agent = serializers.CharField(source='agent', write_only=True, required=False, allow_blank=True)
    type = serializers.CharField(source='comment_type', write_only=True, required=False)

    class Meta:
        model = Review
        fields = (
            'id', 'date_created', 'date_created_gmt', 'product_id', 'status',
            'reviewer', 'reviewer_email', 'review', 'rating', 'verified',
            'reviewer_avatar_urls', '_links', 'author_user_agent', 'type',
        )

    def validate(self, attrs):
        # Local date wins; a malformed date drops both
        if 'date' in attrs:
            if attrs['date'] is None:
                attrs.pop('date')
                attrs.pop('date_gmt', None)
            else:
                attrs['date_gmt'] = attrs['date']
        elif 'date_gmt' in attrs:
            if attrs['date_gmt'] is None:
                attrs.pop('date_gmt')
            else:
                attrs['date'] = attrs['date_gmt']

        if 'object_id' in attrs:
            attrs['content_type'] = product_content_type() if attrs['object_id'] else None
        return attrs

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not self._show_avatars():
            data.pop('reviewer_avatar_urls', None)
        return data

    def _show_avatars(self):
        show = self.context.get('show_avatars')
        if show is None:
            from apps.core.models import DiscussionConfig
            show = DiscussionConfig.load().show_avatars
            self.context['show_avatars'] = show
        return show

    def get_reviewer_avatar_urls(self, obj):
        digest = hashlib.md5((obj.author_email or '').strip().lower().encode('utf-8')).hexdigest()
        return {
            str(size): f"https://secure.gravatar.com/avatar/{digest}?s={size}&d=mm&r=g"
            for size in AVATAR_SIZES
        }

    def get_links(self, obj):
        links = {
            'self': [{'href': self._absolute('social:review-detail', kwargs={'pk': obj.pk})}],
            'collection': [{'href': self._absolute('social:review-list')}],
        }
        if obj.object_id:
            links['up'] = [{
                'href': self._absolute('catalog:product-detail', kwargs={'pk': obj.object_id}),
                'embeddable': True,
            }]
        if obj.user_id:
            links['reviewer'] = [{
                'href': self._absolute('identity:admin_user_detail', kwargs={'pk': obj.user_id}),
                'embeddable': True,
            }]
        return links

    def _absolute(self, viewname, kwargs=None):
        try:
            path = reverse(viewname, kwargs=kwargs)
        except NoReverseMatch:
            return None
        request = self.context.get('request')
        return request.build_absolute_uri(path) if request is not None else path


class ReviewBatchSerializer(serializers.Serializer):
    """Body of ``POST /reviews/batch/``; items are validated one by one later."""

    create = serializers.ListField(child=serializers.DictField(), required=False, default=list)
    update = serializers.ListField(child=serializers.DictField(), required=False, default=list)
    delete = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
