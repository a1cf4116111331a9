"""Main URL Configuration for the OWLS reviews backend."""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path('admin/', admin.site.urls),

    # API v1
    path('api/auth/', include('apps.identity.urls', namespace='identity')),
    path('api/core/', include('apps.core.urls', namespace='core')),
    path('api/catalog/', include('apps.catalog.urls', namespace='catalog')),
    path('api/social/', include('apps.social.urls', namespace='social')),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
