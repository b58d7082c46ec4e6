from django.urls import path
from .views import TestListCreateView, TestDetailView, TestCommentsView

urlpatterns = [
    path('tests', TestListCreateView.as_view(), name='test_list'),
    path('tests/<int:test_id>', TestDetailView.as_view(), name='test_detail'),
    path('tests/<int:test_id>/comments', TestCommentsView.as_view(), name='test_comments'),
]
