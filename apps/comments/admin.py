from django.contrib import admin
from .models import Comment, CommentMeta


class CommentMetaInline(admin.TabularInline):
    model = CommentMeta
    extra = 0


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('id', 'author', 'author_email', 'comment_type', 'approved', 'content_type', 'object_id', 'date')
    list_filter = ('comment_type', 'approved', 'content_type')
    search_fields = ('author', 'author_email', 'author_ip', 'content')
    readonly_fields = ('author_ip', 'agent')
    inlines = [CommentMetaInline]
