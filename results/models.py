import json
from django.conf import settings
from django.db import models
from quiz.models import Test, Question


class Statistic(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name='statistics', on_delete=models.CASCADE
    )
    test = models.ForeignKey(Test, related_name='statistics', on_delete=models.CASCADE)
    score = models.PositiveSmallIntegerField(default=0)
    elapsed_time = models.PositiveIntegerField(default=0)
    correct_count = models.PositiveIntegerField(default=0)
    total_questions = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.user_id} - {self.test_id}: {self.score}"


class AnswerRecord(models.Model):
    statistic = models.ForeignKey(Statistic, related_name='answers', on_delete=models.CASCADE)
    question = models.ForeignKey(Question, on_delete=models.CASCADE)
    selected_answers = models.TextField()
    is_correct = models.BooleanField(default=False)

    @staticmethod
    def encode_answer_ids(answer_ids):
        return json.dumps(sorted(answer_ids))

    @property
    def answer_ids(self):
        return json.loads(self.selected_answers)
