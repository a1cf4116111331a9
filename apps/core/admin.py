from django.contrib import admin
from .models import DiscussionConfig

@admin.register(DiscussionConfig)
class DiscussionConfigAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'trash_days', 'require_moderation', 'flood_interval')

    def has_add_permission(self, request):
        return not DiscussionConfig.objects.exists()
