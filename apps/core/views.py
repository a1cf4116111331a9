from rest_framework import generics, permissions
from .models import DiscussionConfig
from .serializers import DiscussionConfigSerializer


class DiscussionConfigView(generics.RetrieveUpdateAPIView):
    """Admin: read and change moderation options."""
    serializer_class = DiscussionConfigSerializer
    permission_classes = [permissions.IsAdminUser]

    def get_object(self):
        return DiscussionConfig.load()
