from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'catalog'

router = DefaultRouter()
router.register(r'products', views.ProductViewSet, basename='product') # /products/, /products/{pk}/

urlpatterns = [
    path('', include(router.urls)),
]
