"""
Pytest configuration and fixtures for the CMS test suite.
"""

from io import BytesIO

import pytest
from PIL import Image


@pytest.fixture(scope="session")
def django_db_setup(django_db_blocker):
    """Configure the test database and run migrations."""
    from django.core.management import call_command

    with django_db_blocker.unblock():
        call_command("migrate", "--run-syncdb", verbosity=0)


@pytest.fixture
def api_client():
    """Create a test API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def user(db):
    """Create an editor account."""
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(username="editor", password="secret")


@pytest.fixture
def auth_client(api_client, user):
    """API client authenticated as the editor."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def upload_dir(tmp_path, settings):
    """Point the uploads directory at a per-test temp dir."""
    path = tmp_path / "uploads"
    settings.CMS_UPLOADS_DIR = path
    settings.CMS_UPLOADS_URL = "/uploads/"
    return path


def make_image_bytes(size=(64, 48), mode="RGB", image_format="PNG", color=(200, 30, 30)):
    """Encode a solid-color image generated with Pillow."""
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_image_bytes()


@pytest.fixture
def image_bytes():
    """Factory for generated image payloads."""
    return make_image_bytes
