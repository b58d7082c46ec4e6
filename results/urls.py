from django.urls import path
from .views import SubmitView, StatisticListView, StatisticDetailView, TestStatisticsView

urlpatterns = [
    path('submit', SubmitView.as_view(), name='submit'),
    path('statistics', StatisticListView.as_view(), name='statistic_list'),
    path('statistics/<int:statistic_id>', StatisticDetailView.as_view(), name='statistic_detail'),
    path('tests/<int:test_id>/statistics', TestStatisticsView.as_view(), name='test_statistics'),
]
