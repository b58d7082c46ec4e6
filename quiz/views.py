import logging
from django.db import DatabaseError
from django.db.models import Count
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from .models import Test, Comment
from .serializers import (
    TestListSerializer,
    TestDetailSerializer,
    TestCreateSerializer,
    CommentSerializer,
)

logger = logging.getLogger(__name__)


def test_not_found():
    return Response({"error": "Test not found."}, status=status.HTTP_404_NOT_FOUND)


class TestListCreateView(APIView):
    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request):
        tests = (
            Test.objects.select_related('creator')
            .annotate(question_count=Count('questions'))
            .order_by('-created_at', '-id')
        )
        subject = request.query_params.get('subject')
        if subject:
            tests = tests.filter(subject=subject)
        serializer = TestListSerializer(tests, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = TestCreateSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning("✖︎ Test yaratish rad etildi: %s", serializer.errors)
            return Response(
                {"error": "Invalid data", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            test = serializer.save(creator=request.user)
        except DatabaseError as e:
            logger.critical("‼️ Testni saqlashda xatolik: %s", str(e), exc_info=True)
            return Response(
                {"error": f"Database save error: {str(e)}"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        logger.info("✓ Test yaratildi | ID: %s | Muallif: %s", test.id, request.user.username)
        test = Test.objects.prefetch_related('questions__answers').get(pk=test.pk)
        return Response(TestDetailSerializer(test).data, status=status.HTTP_201_CREATED)


class TestDetailView(APIView):
    def get(self, request, test_id):
        try:
            test = (
                Test.objects.select_related('creator')
                .prefetch_related('questions__answers')
                .get(pk=test_id)
            )
        except Test.DoesNotExist:
            return test_not_found()
        return Response(TestDetailSerializer(test).data, status=status.HTTP_200_OK)


class TestCommentsView(APIView):
    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request, test_id):
        if not Test.objects.filter(pk=test_id).exists():
            return test_not_found()
        comments = Comment.objects.filter(test_id=test_id).select_related('user')
        serializer = CommentSerializer(comments, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    def post(self, request, test_id):
        try:
            test = Test.objects.get(pk=test_id)
        except Test.DoesNotExist:
            return test_not_found()

        serializer = CommentSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save(test=test, user=request.user)
            logger.debug("✓ Izoh qo'shildi | Test: %s | User: %s", test.id, request.user.username)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(
            {"error": "Invalid data", "details": serializer.errors},
            status=status.HTTP_400_BAD_REQUEST,
        )
