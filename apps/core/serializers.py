from rest_framework import serializers
from .models import DiscussionConfig


class DiscussionConfigSerializer(serializers.ModelSerializer):
    moderation_keys = serializers.ListField(child=serializers.CharField(), required=False)
    disallowed_keys = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = DiscussionConfig
        fields = ('trash_days', 'require_moderation', 'max_links', 'moderation_keys',
                  'disallowed_keys', 'flood_interval', 'show_avatars')
