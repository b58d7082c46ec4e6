from rest_framework import serializers
from .models import Statistic, AnswerRecord


class AnswerRecordSerializer(serializers.ModelSerializer):
    answer_ids = serializers.ListField(child=serializers.IntegerField(), read_only=True)

    class Meta:
        model = AnswerRecord
        fields = ['id', 'question', 'answer_ids', 'is_correct']


class StatisticSerializer(serializers.ModelSerializer):
    test_title = serializers.CharField(source='test.title', read_only=True)

    class Meta:
        model = Statistic
        fields = [
            'id', 'user', 'test', 'test_title', 'score', 'elapsed_time',
            'correct_count', 'total_questions', 'created_at',
        ]


class StatisticDetailSerializer(StatisticSerializer):
    answers = AnswerRecordSerializer(many=True, read_only=True)

    class Meta(StatisticSerializer.Meta):
        fields = StatisticSerializer.Meta.fields + ['answers']
