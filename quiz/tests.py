from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from .models import Test as QuizTest, Question, Answer, Comment

User = get_user_model()


def build_payload(**overrides):
    data = {
        "title": "Geography",
        "subject": "World",
        "questions": [
            {
                "text": "Capital of France?",
                "answers": [
                    {"text": "Paris", "is_correct": True},
                    {"text": "Lyon"},
                ],
            },
            {
                "text": "Pick the continents",
                "answers": [
                    {"text": "Asia", "is_correct": True},
                    {"text": "Africa", "is_correct": True},
                    {"text": "Danube"},
                ],
            },
        ],
    }
    data.update(overrides)
    return data


class TestAuthoringTests(APITestCase):
    url = "/api/tests"

    def setUp(self):
        self.user = User.objects.create_user(username="ustoz", password="x")

    def test_create_nested_test(self):
        self.client.force_authenticate(self.user)
        response = self.client.post(self.url, build_payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["creator"], "ustoz")
        self.assertEqual([q["order"] for q in response.data["questions"]], [1, 2])
        self.assertNotIn("is_correct", response.data["questions"][0]["answers"][0])

        test = QuizTest.objects.get()
        self.assertEqual(test.questions.count(), 2)
        self.assertEqual(
            Answer.objects.filter(question__test=test, is_correct=True).count(), 3
        )

    def test_anonymous_cannot_create(self):
        response = self.client.post(self.url, build_payload(), format="json")
        self.assertIn(
            response.status_code,
            (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN),
        )
        self.assertFalse(QuizTest.objects.exists())

    def test_question_without_correct_answer_is_rejected(self):
        self.client.force_authenticate(self.user)
        payload = build_payload(questions=[
            {"text": "?", "answers": [{"text": "a"}, {"text": "b"}]},
        ])
        response = self.client.post(self.url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("details", response.data)
        self.assertFalse(QuizTest.objects.exists())

    def test_test_without_questions_is_rejected(self):
        self.client.force_authenticate(self.user)
        response = self.client.post(self.url, build_payload(questions=[]), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_and_filter_by_subject(self):
        math = QuizTest.objects.create(title="Algebra", subject="Math", creator=self.user)
        Question.objects.create(test=math, text="1+1?")
        QuizTest.objects.create(title="Poems", subject="Literature", creator=self.user)

        response = self.client.get(self.url)
        self.assertEqual(len(response.data), 2)

        response = self.client.get(self.url, {"subject": "Math"})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["question_count"], 1)

    def test_detail_not_found(self):
        response = self.client.get(f"{self.url}/424242")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn("error", response.data)


class CommentTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="reader", password="x")
        self.test = QuizTest.objects.create(title="Physics", creator=self.user)
        self.url = f"/api/tests/{self.test.id}/comments"

    def test_post_and_list_comments(self):
        self.client.force_authenticate(self.user)
        first = self.client.post(self.url, {"text": "Nice test"}, format="json")
        self.client.post(self.url, {"text": "Too hard"}, format="json")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data["user"], "reader")

        self.client.logout()
        response = self.client.get(self.url)
        self.assertEqual([c["text"] for c in response.data], ["Nice test", "Too hard"])

    def test_blank_comment_is_rejected(self):
        self.client.force_authenticate(self.user)
        response = self.client.post(self.url, {"text": "   "}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Comment.objects.exists())

    def test_comments_for_missing_test(self):
        response = self.client.get("/api/tests/999999/comments")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
