from django.db import transaction
from rest_framework import serializers
from .models import Test, Question, Answer, Comment


class AnswerSerializer(serializers.ModelSerializer):
    """Javob variantlari; is_correct tashqariga chiqarilmaydi."""

    class Meta:
        model = Answer
        fields = ['id', 'text']


class QuestionSerializer(serializers.ModelSerializer):
    answers = AnswerSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'text', 'order', 'answers']


class TestListSerializer(serializers.ModelSerializer):
    creator = serializers.CharField(source='creator.username', read_only=True)
    question_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Test
        fields = ['id', 'title', 'subject', 'creator', 'question_count', 'created_at']


class TestDetailSerializer(serializers.ModelSerializer):
    creator = serializers.CharField(source='creator.username', read_only=True)
    questions = QuestionSerializer(many=True, read_only=True)

    class Meta:
        model = Test
        fields = ['id', 'title', 'subject', 'creator', 'created_at', 'questions']


class AnswerWriteSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=255)
    is_correct = serializers.BooleanField(default=False)


class QuestionWriteSerializer(serializers.Serializer):
    text = serializers.CharField()
    answers = AnswerWriteSerializer(many=True)

    def validate_answers(self, value):
        if not value:
            raise serializers.ValidationError("At least one answer is required.")
        if not any(answer['is_correct'] for answer in value):
            raise serializers.ValidationError("At least one answer must be marked correct.")
        return value


class TestCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    subject = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    questions = QuestionWriteSerializer(many=True)

    def validate_questions(self, value):
        if not value:
            raise serializers.ValidationError("A test needs at least one question.")
        return value

    def create(self, validated_data):
        questions = validated_data.pop('questions')
        with transaction.atomic():
            test = Test.objects.create(**validated_data)
            for idx, question_data in enumerate(questions):
                question = Question.objects.create(
                    test=test,
                    text=question_data['text'],
                    order=idx + 1,
                )
                Answer.objects.bulk_create([
                    Answer(question=question, text=a['text'], is_correct=a['is_correct'])
                    for a in question_data['answers']
                ])
        return test


class CommentSerializer(serializers.ModelSerializer):
    user = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'user', 'text', 'created_at']
        read_only_fields = ['created_at']
