from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'social'

router = DefaultRouter()
router.register(r'reviews', views.ReviewViewSet, basename='review') # /reviews/, /reviews/{id}/, /reviews/batch/

urlpatterns = [
    path('', include(router.urls)),
]
