import io
import shutil
import tempfile

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from PIL import Image
from rest_framework import status
from rest_framework.test import APITestCase

from .models import Profile

User = get_user_model()

PASSWORD = "Kalit-So'z-2024!"


class RegisterLoginTests(APITestCase):
    def register(self, **overrides):
        data = {"username": "aziza", "email": "aziza@example.com", "password": PASSWORD}
        data.update(overrides)
        return self.client.post("/api/register", data, format="json")

    def test_register_hashes_password_and_creates_profile(self):
        response = self.register()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn("password", response.data)

        user = User.objects.get(username="aziza")
        self.assertNotEqual(user.password, PASSWORD)
        self.assertTrue(user.check_password(PASSWORD))
        self.assertTrue(Profile.objects.filter(user=user).exists())

    def test_duplicate_username_or_email(self):
        self.register()
        self.assertEqual(
            self.register(email="other@example.com").status_code,
            status.HTTP_400_BAD_REQUEST,
        )
        self.assertEqual(
            self.register(username="other", email="AZIZA@example.com").status_code,
            status.HTTP_400_BAD_REQUEST,
        )

    def test_weak_password_is_rejected(self):
        response = self.register(password="123")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", response.data["details"])

    def test_login(self):
        self.register()
        ok = self.client.post(
            "/api/login", {"username": "aziza", "password": PASSWORD}, format="json"
        )
        self.assertEqual(ok.status_code, status.HTTP_200_OK)
        self.assertEqual(ok.data["username"], "aziza")
        self.assertEqual(self.client.get("/api/profile").status_code, status.HTTP_200_OK)

        self.client.post("/api/logout")
        bad = self.client.post(
            "/api/login", {"username": "aziza", "password": "wrong"}, format="json"
        )
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("error", bad.data)


class ProfileTests(APITestCase):
    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        cls.media_root = tempfile.mkdtemp()

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.media_root, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.user = User.objects.create_user(
            username="bobur", email="bobur@example.com", password=PASSWORD
        )

    def png(self, name="avatar.png"):
        buffer = io.BytesIO()
        Image.new("RGB", (8, 8), color="white").save(buffer, format="PNG")
        return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")

    def test_profile_requires_login(self):
        response = self.client.get("/api/profile")
        self.assertIn(
            response.status_code,
            (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN),
        )

    def test_reading_profile_does_not_create_one(self):
        self.client.force_authenticate(self.user)
        response = self.client.get("/api/profile")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["bio"], "")
        self.assertIsNone(response.data["avatar"])
        self.assertFalse(Profile.objects.filter(user=self.user).exists())

    def test_edit_profile(self):
        self.client.force_authenticate(self.user)
        response = self.client.patch(
            "/api/profile", {"first_name": "Bobur", "bio": "Matematika"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["first_name"], "Bobur")
        self.assertEqual(response.data["bio"], "Matematika")
        self.user.refresh_from_db()
        self.assertEqual(self.user.profile.bio, "Matematika")

    def test_email_taken_by_someone_else(self):
        User.objects.create_user(username="other", email="taken@example.com", password=PASSWORD)
        self.client.force_authenticate(self.user)
        response = self.client.patch("/api/profile", {"email": "taken@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_avatar_upload(self):
        with override_settings(MEDIA_ROOT=self.media_root):
            self.client.force_authenticate(self.user)
            response = self.client.post(
                "/api/profile/avatar", {"avatar": self.png()}, format="multipart"
            )
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertIn(f"avatars/{self.user.id}/", response.data["avatar"])

            profile = Profile.objects.get(user=self.user)
            self.assertTrue(profile.avatar.storage.exists(profile.avatar.name))

    def test_avatar_must_be_an_image(self):
        with override_settings(MEDIA_ROOT=self.media_root):
            self.client.force_authenticate(self.user)
            bogus = SimpleUploadedFile("avatar.png", b"not an image", content_type="image/png")
            response = self.client.post(
                "/api/profile/avatar", {"avatar": bogus}, format="multipart"
            )
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertFalse(Profile.objects.filter(user=self.user, avatar__gt="").exists())
