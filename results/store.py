from django.contrib.auth import get_user_model
from django.db import transaction
from quiz.models import Test, Question, Answer
from .models import Statistic, AnswerRecord


class SubmissionStore:
    """
    Django ORM orqali ishlaydigan saqlash qatlami.

    SubmissionScorer faqat shu metodlarga tayanadi, shuning uchun testlarda
    uni xotiradagi soxta obyekt bilan almashtirish mumkin.
    """

    def atomic(self):
        return transaction.atomic()

    def user_exists(self, user_id):
        return get_user_model().objects.filter(pk=user_id).exists()

    def test_exists(self, test_id):
        return Test.objects.filter(pk=test_id).exists()

    def fetch_correct_answers(self, test_id, question_ids):
        """
        Returns {question_id: set of correct answer ids} for the given questions
        that belong to the test. Questions without correct answers map to an
        empty set; questions outside the test are absent.
        """
        correct = {
            q_id: set()
            for q_id in Question.objects.filter(
                test_id=test_id, id__in=question_ids
            ).values_list('id', flat=True)
        }
        rows = Answer.objects.filter(
            question_id__in=correct.keys(), is_correct=True
        ).values_list('question_id', 'id')
        for q_id, answer_id in rows:
            correct[q_id].add(answer_id)
        return correct

    def insert_statistic(self, user_id, test_id, score, elapsed_time, correct_count, total_questions):
        statistic = Statistic.objects.create(
            user_id=user_id,
            test_id=test_id,
            score=score,
            elapsed_time=elapsed_time,
            correct_count=correct_count,
            total_questions=total_questions,
        )
        return statistic.id

    def insert_answer_records(self, statistic_id, records):
        AnswerRecord.objects.bulk_create([
            AnswerRecord(
                statistic_id=statistic_id,
                question_id=record.question_id,
                selected_answers=AnswerRecord.encode_answer_ids(record.answer_ids),
                is_correct=record.is_correct,
            )
            for record in records
        ])
