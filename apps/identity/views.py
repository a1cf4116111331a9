import logging
from rest_framework import generics, permissions
from rest_framework.throttling import AnonRateThrottle
from rest_framework_simplejwt.views import TokenObtainPairView
from django.contrib.auth import get_user_model
from .serializers import UserSerializer, CustomTokenObtainPairSerializer

User = get_user_model()
logger = logging.getLogger('apps.identity')


class LoginThrottle(AnonRateThrottle):
    """Strict throttle for login attempts."""
    rate = '60/min'


class LoginView(TokenObtainPairView):
    """Login with email, returns JWT pair and the user profile."""
    serializer_class = CustomTokenObtainPairSerializer
    throttle_classes = [LoginThrottle]

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        logger.info(f"User {request.data.get('email')} logged in")
        return response


class UserDetailAdminView(generics.RetrieveAPIView):
    """Admin: Individual user, target of a review's ``reviewer`` link."""
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = (permissions.IsAdminUser,)
