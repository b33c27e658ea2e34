from rest_framework import status, generics, viewsets
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.contrib.auth import authenticate, get_user_model

from apps.common.pagination import HeaderPagination
from apps.common.response_utils import (
    success_response,
    validation_error_response,
    authentication_error_response,
)

from .serializers import (
    UserRegistrationSerializer,
    UserLoginSerializer,
    UserSerializer,
)
from .services import TokenService
from .permissions import RolePolicyPermission
from .policies import USERS_READ

import logging

logger = logging.getLogger(__name__)

User = get_user_model()


class UserRegistrationView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = UserRegistrationSerializer(data=request.data)

        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        user = serializer.save()

        logger.info(f"New customer account registered: {user.email}")

        return success_response(
            message="Registration successful",
            data=UserSerializer(user).data,
            status_code=status.HTTP_201_CREATED,
        )


class UserLoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = UserLoginSerializer(data=request.data)

        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        user = authenticate(
            request,
            username=serializer.validated_data["email"],
            password=serializer.validated_data["password"],
        )

        if user is None:
            logger.info(f"Failed login for {serializer.validated_data['email']}")
            return authentication_error_response("Invalid credentials")

        logger.info(f"Login successful for {user.email}")

        return success_response(
            message="Login successful",
            data={
                "tokens": TokenService.issue_for(user),
                "user": UserSerializer(user).data,
            },
        )


class CurrentUserView(generics.RetrieveAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer

    def get_object(self):
        return self.request.user

    def retrieve(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_object())
        return success_response(
            message="User profile retrieved successfully", data=serializer.data
        )


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """Paginated user directory, restricted to administrators."""

    queryset = User.objects.order_by("created_at", "id")
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated, RolePolicyPermission]
    pagination_class = HeaderPagination
    policy_operations = {"*": USERS_READ}
