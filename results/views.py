import logging
import uuid
from django.db.models import Avg, Count, Max
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny
from quiz.models import Test
from .exceptions import SubmissionError
from .models import Statistic
from .scoring import SubmissionScorer
from .serializers import StatisticSerializer, StatisticDetailSerializer

logger = logging.getLogger(__name__)


class SubmitView(APIView):
    permission_classes = [AllowAny]
    scorer_class = SubmissionScorer

    def get_scorer(self):
        return self.scorer_class()

    def post(self, request, *args, **kwargs):
        transaction_id = str(uuid.uuid4())[:8]
        logger.info("⎈ Yangi test topshirildi | Transaction ID: %s", transaction_id)

        try:
            result = self.get_scorer().submit(request.data)
        except SubmissionError as e:
            log = logger.warning if e.http_status < 500 else logger.error
            log("✖︎ Topshiriq rad etildi | Transaction ID: %s | %s", transaction_id, e.message)
            return Response({"error": e.message}, status=e.http_status)

        return Response({
            "message": "Test results saved",
            "score": result.score,
            "total": result.total_questions,
            "correct": result.correct_count,
            "statistic_id": result.statistic_id,
        }, status=status.HTTP_200_OK)


def _int_param(request, name):
    value = request.query_params.get(name)
    if value in (None, ''):
        return None
    return int(value)


class StatisticListView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        try:
            user_id = _int_param(request, 'user_id')
            test_id = _int_param(request, 'test_id')
        except ValueError:
            return Response(
                {"error": "user_id and test_id must be integers."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        stats = Statistic.objects.select_related('test').order_by('-created_at', '-id')
        if user_id is not None:
            stats = stats.filter(user_id=user_id)
        if test_id is not None:
            stats = stats.filter(test_id=test_id)
        return Response(StatisticSerializer(stats, many=True).data, status=status.HTTP_200_OK)


class StatisticDetailView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, statistic_id):
        try:
            statistic = (
                Statistic.objects.select_related('test')
                .prefetch_related('answers')
                .get(pk=statistic_id)
            )
        except Statistic.DoesNotExist:
            return Response({"error": "Statistic not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(StatisticDetailSerializer(statistic).data, status=status.HTTP_200_OK)


class TestStatisticsView(APIView):
    """Bitta test bo'yicha umumiy natijalar: urinishlar soni, o'rtacha va eng yuqori ball."""
    permission_classes = [AllowAny]

    def get(self, request, test_id):
        if not Test.objects.filter(pk=test_id).exists():
            return Response({"error": "Test not found."}, status=status.HTTP_404_NOT_FOUND)

        summary = Statistic.objects.filter(test_id=test_id).aggregate(
            attempts=Count('id'),
            average_score=Avg('score'),
            best_score=Max('score'),
        )
        average = summary['average_score']
        return Response({
            "test_id": test_id,
            "attempts": summary['attempts'],
            "average_score": round(float(average), 1) if average is not None else None,
            "best_score": summary['best_score'],
        }, status=status.HTTP_200_OK)
