from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView
from . import views

app_name = 'identity'

urlpatterns = [
    # Auth
    path('login/', views.LoginView.as_view(), name='login'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Admin
    path('admin/users/<uuid:pk>/', views.UserDetailAdminView.as_view(), name='admin_user_detail'),
]
