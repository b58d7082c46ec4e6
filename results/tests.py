from contextlib import nullcontext
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.test import APITestCase

from quiz.models import Test as QuizTest, Question, Answer
from .exceptions import SubmissionValidationError, SubmissionPersistenceError
from .models import Statistic, AnswerRecord
from .scoring import (
    SubmissionScorer,
    calculate_score,
    is_selection_correct,
    parse_submission,
)

User = get_user_model()


class FakeStore:
    """In-memory stand-in for SubmissionStore."""

    def __init__(self, correct, users=(1,), tests=(10,)):
        self.correct = correct
        self.users = set(users)
        self.tests = set(tests)
        self.statistics = []
        self.records = []

    def atomic(self):
        return nullcontext()

    def user_exists(self, user_id):
        return user_id in self.users

    def test_exists(self, test_id):
        return test_id in self.tests

    def fetch_correct_answers(self, test_id, question_ids):
        return {q: set(self.correct[q]) for q in question_ids if q in self.correct}

    def insert_statistic(self, **fields):
        self.statistics.append(fields)
        return len(self.statistics)

    def insert_answer_records(self, statistic_id, records):
        self.records.extend((statistic_id, r) for r in records)


class ScoreCalculationTests(SimpleTestCase):
    def test_rounding(self):
        self.assertEqual(calculate_score(0, 3), 0)
        self.assertEqual(calculate_score(1, 3), 33)
        self.assertEqual(calculate_score(2, 3), 67)
        self.assertEqual(calculate_score(3, 3), 100)

    def test_half_rounds_away_from_zero(self):
        self.assertEqual(calculate_score(1, 8), 13)
        self.assertEqual(calculate_score(1, 40), 3)

    def test_zero_total_scores_zero(self):
        self.assertEqual(calculate_score(0, 0), 0)

    def test_exact_match_only(self):
        self.assertTrue(is_selection_correct(frozenset({1, 2}), {1, 2}))
        self.assertFalse(is_selection_correct(frozenset({1, 2, 3}), {1, 2}))
        self.assertFalse(is_selection_correct(frozenset({1}), {1, 2}))
        self.assertFalse(is_selection_correct(frozenset({1}), set()))


class ParseSubmissionTests(SimpleTestCase):
    def payload(self, **overrides):
        data = {
            "user_id": 1,
            "test_id": 10,
            "answers": [{"question_id": 100, "answer_ids": [1, 2]}],
        }
        data.update(overrides)
        return data

    def test_valid_payload(self):
        submission = parse_submission(self.payload(elapsed_time=42))
        self.assertEqual(submission.user_id, 1)
        self.assertEqual(submission.elapsed_time, 42)
        self.assertEqual(submission.selections[0].answer_ids, frozenset({1, 2}))

    def test_rejects_malformed(self):
        bad_payloads = [
            [],
            {"test_id": 10, "answers": [{"question_id": 1, "answer_ids": [1]}]},
            {"user_id": 1, "answers": [{"question_id": 1, "answer_ids": [1]}]},
            self.payload(answers=[]),
            self.payload(answers="1,2"),
            self.payload(user_id="1"),
            self.payload(test_id=True),
            self.payload(answers=[{"answer_ids": [1]}]),
            self.payload(answers=[{"question_id": 100, "answer_ids": []}]),
            self.payload(answers=[{"question_id": 100, "answer_ids": ["1"]}]),
            self.payload(answers=[
                {"question_id": 100, "answer_ids": [1]},
                {"question_id": 100, "answer_ids": [2]},
            ]),
            self.payload(elapsed_time=-5),
            self.payload(elapsed_time=2 ** 31),
            self.payload(user_id=0),
            self.payload(test_id=2 ** 63),
            self.payload(answers=[{"question_id": 2 ** 64, "answer_ids": [1]}]),
            self.payload(answers=[{"question_id": 100, "answer_ids": [-1]}]),
        ]
        for data in bad_payloads:
            with self.subTest(data=data):
                with self.assertRaises(SubmissionValidationError):
                    parse_submission(data)


class ScorerWithFakeStoreTests(SimpleTestCase):
    def setUp(self):
        self.store = FakeStore(correct={100: {1}, 200: {3, 4}, 300: set()})
        self.scorer = SubmissionScorer(store=self.store)

    def test_scores_and_persists_every_question(self):
        result = self.scorer.submit({
            "user_id": 1,
            "test_id": 10,
            "answers": [
                {"question_id": 100, "answer_ids": [1]},
                {"question_id": 200, "answer_ids": [4, 3]},
                {"question_id": 300, "answer_ids": [5]},
            ],
        })
        self.assertEqual(result.correct_count, 2)
        self.assertEqual(result.total_questions, 3)
        self.assertEqual(result.score, 67)
        self.assertEqual(len(self.store.statistics), 1)
        self.assertEqual(self.store.statistics[0]["score"], 67)
        self.assertEqual([r.is_correct for _, r in self.store.records], [True, True, False])

    def test_unknown_references_are_validation_errors(self):
        answers = [{"question_id": 100, "answer_ids": [1]}]
        for data in (
            {"user_id": 2, "test_id": 10, "answers": answers},
            {"user_id": 1, "test_id": 11, "answers": answers},
            {"user_id": 1, "test_id": 10, "answers": [{"question_id": 999, "answer_ids": [1]}]},
        ):
            with self.subTest(data=data):
                with self.assertRaises(SubmissionValidationError):
                    self.scorer.submit(data)
        self.assertEqual(self.store.statistics, [])

    def test_database_error_becomes_persistence_error(self):
        with patch.object(self.store, "fetch_correct_answers", side_effect=DatabaseError("down")):
            with self.assertRaises(SubmissionPersistenceError):
                self.scorer.submit({
                    "user_id": 1, "test_id": 10,
                    "answers": [{"question_id": 100, "answer_ids": [1]}],
                })


class SubmitViewTests(APITestCase):
    url = "/api/submit"

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(username="learner", password="x")
        author = User.objects.create_user(username="author", password="x")
        cls.test = QuizTest.objects.create(title="Algebra", subject="Math", creator=author)

        cls.q1 = Question.objects.create(test=cls.test, text="2+2?", order=1)
        cls.q1_right = Answer.objects.create(question=cls.q1, text="4", is_correct=True)
        cls.q1_wrong = Answer.objects.create(question=cls.q1, text="5")

        cls.q2 = Question.objects.create(test=cls.test, text="Even numbers?", order=2)
        cls.q2_a = Answer.objects.create(question=cls.q2, text="2", is_correct=True)
        cls.q2_b = Answer.objects.create(question=cls.q2, text="4", is_correct=True)
        cls.q2_c = Answer.objects.create(question=cls.q2, text="7")

        cls.q3 = Question.objects.create(test=cls.test, text="3*3?", order=3)
        cls.q3_right = Answer.objects.create(question=cls.q3, text="9", is_correct=True)
        cls.q3_wrong = Answer.objects.create(question=cls.q3, text="6")

    def submit(self, answers, **extra):
        payload = {"user_id": self.user.id, "test_id": self.test.id, "answers": answers}
        payload.update(extra)
        return self.client.post(self.url, payload, format="json")

    def answers(self, q1, q2, q3):
        return [
            {"question_id": self.q1.id, "answer_ids": q1},
            {"question_id": self.q2.id, "answer_ids": q2},
            {"question_id": self.q3.id, "answer_ids": q3},
        ]

    def test_all_correct_scores_100(self):
        response = self.submit(
            self.answers([self.q1_right.id], [self.q2_b.id, self.q2_a.id], [self.q3_right.id]),
            elapsed_time=95,
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["score"], 100)
        self.assertEqual(response.data["total"], 3)
        self.assertIn("message", response.data)

        statistic = Statistic.objects.get()
        self.assertEqual(statistic.correct_count, 3)
        self.assertEqual(statistic.elapsed_time, 95)
        self.assertEqual(statistic.answers.count(), 3)

    def test_all_incorrect_scores_0(self):
        response = self.submit(
            self.answers([self.q1_wrong.id], [self.q2_c.id], [self.q3_wrong.id])
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["score"], 0)
        self.assertFalse(AnswerRecord.objects.filter(is_correct=True).exists())

    def test_mixed_results_round(self):
        response = self.submit(
            self.answers([self.q1_right.id], [self.q2_c.id], [self.q3_wrong.id])
        )
        self.assertEqual(response.data["score"], 33)

        response = self.submit(
            self.answers([self.q1_right.id], [self.q2_c.id], [self.q3_right.id])
        )
        self.assertEqual(response.data["score"], 67)

    def test_superset_and_subset_are_incorrect(self):
        response = self.submit(self.answers(
            [self.q1_right.id],
            [self.q2_a.id, self.q2_b.id, self.q2_c.id],
            [self.q3_right.id],
        ))
        self.assertEqual(response.data["score"], 67)

        response = self.submit(self.answers(
            [self.q1_right.id], [self.q2_a.id], [self.q3_right.id]
        ))
        self.assertEqual(response.data["score"], 67)
        record = AnswerRecord.objects.filter(question=self.q2).latest("id")
        self.assertFalse(record.is_correct)
        self.assertEqual(record.answer_ids, [self.q2_a.id])

    def test_validation_failures_write_nothing(self):
        cases = [
            {"user_id": self.user.id, "test_id": self.test.id, "answers": []},
            {"test_id": self.test.id, "answers": self.answers([1], [1], [1])},
            {"user_id": self.user.id, "answers": self.answers([1], [1], [1])},
        ]
        for payload in cases:
            with self.subTest(payload=payload):
                response = self.client.post(self.url, payload, format="json")
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn("error", response.data)
        self.assertEqual(Statistic.objects.count(), 0)
        self.assertEqual(AnswerRecord.objects.count(), 0)

    def test_out_of_range_numbers_are_rejected(self):
        valid = self.answers([self.q1_right.id], [self.q2_a.id], [self.q3_right.id])
        cases = [
            {"elapsed_time": 2 ** 64},
            {"answers": [{"question_id": 2 ** 64, "answer_ids": [self.q1_right.id]}]},
            {"answers": [{"question_id": self.q1.id, "answer_ids": [2 ** 64]}]},
        ]
        for extra in cases:
            with self.subTest(extra=extra):
                payload = {"user_id": self.user.id, "test_id": self.test.id, "answers": valid}
                payload.update(extra)
                response = self.client.post(self.url, payload, format="json")
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn("error", response.data)
        self.assertEqual(Statistic.objects.count(), 0)
        self.assertEqual(AnswerRecord.objects.count(), 0)

    def test_question_from_another_test_is_rejected(self):
        other = QuizTest.objects.create(title="Other", creator=self.user)
        foreign = Question.objects.create(test=other, text="?")
        response = self.submit([{"question_id": foreign.id, "answer_ids": [1]}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Statistic.objects.count(), 0)

    def test_failed_answer_insert_rolls_back_statistic(self):
        with patch.object(AnswerRecord.objects, "bulk_create", side_effect=DatabaseError("boom")):
            response = self.submit(
                self.answers([self.q1_right.id], [self.q2_a.id], [self.q3_right.id])
            )
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn("error", response.data)
        self.assertEqual(Statistic.objects.count(), 0)
        self.assertEqual(AnswerRecord.objects.count(), 0)

    def test_resubmission_creates_independent_results(self):
        answers = self.answers([self.q1_right.id], [self.q2_a.id], [self.q3_right.id])
        first = self.submit(answers)
        second = self.submit(answers)
        self.assertNotEqual(first.data["statistic_id"], second.data["statistic_id"])
        self.assertEqual(Statistic.objects.count(), 2)
        self.assertEqual(AnswerRecord.objects.count(), 6)
        for statistic in Statistic.objects.all():
            self.assertEqual(statistic.answers.count(), 3)


class StatisticReadTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(username="learner", password="x")
        cls.other = User.objects.create_user(username="other", password="x")
        cls.test = QuizTest.objects.create(title="History", creator=cls.other)
        cls.question = Question.objects.create(test=cls.test, text="Year?")
        cls.first = Statistic.objects.create(
            user=cls.user, test=cls.test, score=50, correct_count=1, total_questions=2
        )
        AnswerRecord.objects.create(
            statistic=cls.first, question=cls.question,
            selected_answers=AnswerRecord.encode_answer_ids({3, 1}), is_correct=False,
        )
        cls.second = Statistic.objects.create(
            user=cls.other, test=cls.test, score=100, correct_count=2, total_questions=2
        )

    def test_list_filters_by_user(self):
        response = self.client.get("/api/statistics", {"user_id": self.user.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s["id"] for s in response.data], [self.first.id])
        self.assertEqual(response.data[0]["test_title"], "History")

    def test_list_rejects_non_integer_filter(self):
        response = self.client.get("/api/statistics", {"user_id": "abc"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_detail_decodes_answer_ids(self):
        response = self.client.get(f"/api/statistics/{self.first.id}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["answers"][0]["answer_ids"], [1, 3])

    def test_detail_missing(self):
        response = self.client.get("/api/statistics/999999")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_test_summary(self):
        response = self.client.get(f"/api/tests/{self.test.id}/statistics")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["attempts"], 2)
        self.assertEqual(response.data["average_score"], 75.0)
        self.assertEqual(response.data["best_score"], 100)
