"""
Authentication views.

This module provides API views for:
- Registration and login (issue a bearer access token)
- Listing users
- Deleting the caller's own account

Related files:
    - serializers.py: Request/response serialization
    - services.py: Business logic (AccountService)
    - urls.py: URL routing
"""

from drf_spectacular.utils import (
    OpenApiExample,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.backends import (
    OptionalBearerTokenAuthentication,
    credential_check_for,
)
from authentication.identity import CredentialStatus
from authentication.serializers import (
    AuthTokenSerializer,
    LoginSerializer,
    RegisterSerializer,
    UserSerializer,
)
from authentication.services import AccountService
from core.exception_handler import failure_response
from core.exceptions import TOKEN_EXPIRED, UnauthenticatedError


def _token_response(user, status_code=status.HTTP_200_OK):
    return Response(
        {
            "token": AccountService.issue_token(user),
            "user": UserSerializer(user).data,
        },
        status=status_code,
    )


class RegisterView(APIView):
    """
    API view for account registration.

    POST: Create an account and return an access token

    URL: /api/v1/auth/register/
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register",
        description=(
            "Create an account. The username is stored trimmed and lower-cased; "
            "registering a name that differs only in case is a conflict."
        ),
        tags=["Auth"],
        request=RegisterSerializer,
        responses={
            201: AuthTokenSerializer,
            400: OpenApiResponse(description="Username or password out of bounds"),
            409: OpenApiResponse(
                description="Username already taken",
                examples=[
                    OpenApiExample(
                        "Duplicate",
                        value={
                            "error": "Username is already taken",
                            "error_code": "CONFLICT",
                        },
                    ),
                ],
            ),
        },
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AccountService.register(**serializer.validated_data)
        if not result.success:
            return failure_response(result)
        return _token_response(result.data, status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    API view for username/password login.

    POST: Return an access token for valid credentials

    URL: /api/v1/auth/login/
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log in",
        tags=["Auth"],
        request=LoginSerializer,
        responses={
            200: AuthTokenSerializer,
            401: OpenApiResponse(description="Invalid username or password"),
        },
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AccountService.login(**serializer.validated_data)
        if not result.success:
            return failure_response(result)
        return _token_response(result.data)


class UserListView(APIView):
    """
    API view listing accounts.

    GET: All active users, ordered by username

    URL: /api/v1/users/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="List users",
        tags=["Users"],
        responses={200: UserSerializer(many=True)},
    )
    def get(self, request):
        result = AccountService.list_users()
        if not result.success:
            return failure_response(result)
        return Response(UserSerializer(result.data, many=True).data)


class CurrentUserView(APIView):
    """
    API view for the caller's own account.

    GET: The caller's user record
    DELETE: Remove the caller's account

    URL: /api/v1/users/me/

    Uses optional authentication so that a valid token for an account
    that is already gone reports 404 rather than 401.
    """

    authentication_classes = [OptionalBearerTokenAuthentication]
    permission_classes = [AllowAny]

    def _require_credential(self, request):
        check = credential_check_for(request)
        if check.status is CredentialStatus.EXPIRED:
            raise UnauthenticatedError("Token has expired", error_code=TOKEN_EXPIRED)
        if not check.is_valid:
            raise UnauthenticatedError("Authentication credentials were not provided")
        return check.user_id

    @extend_schema(
        summary="Current user",
        tags=["Users"],
        responses={200: UserSerializer, 401: OpenApiResponse(description="No valid token")},
    )
    def get(self, request):
        self._require_credential(request)
        if not request.user.is_authenticated:
            return Response(
                {"error": "User not found", "error_code": "NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(UserSerializer(request.user).data)

    @extend_schema(
        summary="Delete own account",
        tags=["Users"],
        responses={
            204: None,
            401: OpenApiResponse(description="No valid token"),
            404: OpenApiResponse(description="Account already removed"),
        },
    )
    def delete(self, request):
        user_id = self._require_credential(request)

        result = AccountService.delete_account(user_id)
        if not result.success:
            return failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)
