import logging
from django.contrib.auth import authenticate, login, logout
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from .serializers import (
    UserSerializer,
    RegisterSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    AvatarSerializer,
    get_profile,
)

logger = logging.getLogger(__name__)


def invalid(serializer):
    return Response(
        {"error": "Invalid data", "details": serializer.errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


class RegisterView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer)
        user = serializer.save()
        logger.info("✓ Yangi foydalanuvchi ro'yxatdan o'tdi | ID: %s", user.id)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer)

        user = authenticate(
            request,
            username=serializer.validated_data['username'],
            password=serializer.validated_data['password'],
        )
        if user is None:
            logger.warning("✖︎ Login muvaffaqiyatsiz: %s", serializer.validated_data['username'])
            return Response({"error": "Invalid credentials."}, status=status.HTTP_400_BAD_REQUEST)

        login(request, user)
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)


class LogoutView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        logout(request)
        return Response({"message": "Logged out"}, status=status.HTTP_200_OK)


class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)

    def patch(self, request):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid(serializer)
        user = serializer.save()
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)


class AvatarUploadView(APIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        serializer = AvatarSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer)

        profile = get_profile(request.user)
        if profile.avatar:
            # eski rasmni storage'dan o'chiramiz
            profile.avatar.delete(save=False)
        profile.avatar = serializer.validated_data['avatar']
        profile.save(update_fields=['avatar', 'updated_at'])
        logger.info("🖼 Avatar yuklandi | User: %s | %s", request.user.id, profile.avatar.name)
        return Response({"avatar": profile.avatar.url}, status=status.HTTP_200_OK)
