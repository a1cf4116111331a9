from django.contrib import admin
from apps.comments.admin import CommentMetaInline
from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('id', 'author', 'author_email', 'object_id', 'rating', 'verified', 'approved', 'date')
    list_filter = ('approved',)
    search_fields = ('author', 'author_email', 'content')
    inlines = [CommentMetaInline]

    def get_queryset(self, request):
        return super().get_queryset(request).reviews().prefetch_related('meta')

    @admin.display(boolean=True)
    def verified(self, obj):
        return obj.verified
