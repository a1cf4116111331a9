from django.urls import path
from .views import DiscussionConfigView

app_name = 'core'

urlpatterns = [
    path('discussion/', DiscussionConfigView.as_view(), name='discussion_config'),
]
