"""
Tests for interactive page creation and editing.
"""

import pytest

from cms.exceptions import NotFoundError, UniqueConstraintError, ValidationError
from cms.models import ContentStatus, Page
from cms.services.pages import create_page, update_page


@pytest.mark.django_db
class TestCreatePage:
    def test_slug_derived_from_title(self, user):
        page = create_page({"title": "Hello World"}, author=user)

        assert page.slug == "hello-world"
        assert page.status == ContentStatus.DRAFT
        assert page.author == user

    def test_title_required(self):
        with pytest.raises(ValidationError, match="Title is required"):
            create_page({"title": "  "})

    def test_duplicate_slug(self):
        create_page({"title": "About"})

        with pytest.raises(UniqueConstraintError, match="Slug already exists"):
            create_page({"title": "About"})

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            create_page({"title": "About", "status": "LIVE"})

    def test_new_homepage_clears_previous(self):
        first = create_page({"title": "Home", "isHomepage": True})
        second = create_page({"title": "New Home", "isHomepage": True})

        first.refresh_from_db()
        assert first.is_homepage is False
        assert second.is_homepage is True
        assert Page.objects.filter(is_homepage=True).count() == 1


@pytest.mark.django_db
class TestUpdatePage:
    def test_partial_update(self):
        page = create_page({"title": "About", "excerpt": "old"})

        updated = update_page(page.pk, {"excerpt": "new", "status": "PUBLISHED"})

        assert updated.excerpt == "new"
        assert updated.status == ContentStatus.PUBLISHED
        assert updated.title == "About"

    def test_missing_page(self):
        with pytest.raises(NotFoundError, match="Page not found"):
            update_page(99999, {"title": "x"})

    def test_slug_collision(self):
        create_page({"title": "About"})
        contact = create_page({"title": "Contact"})

        with pytest.raises(UniqueConstraintError):
            update_page(contact.pk, {"slug": "about"})

    def test_keeping_own_slug_is_allowed(self):
        page = create_page({"title": "About"})

        assert update_page(page.pk, {"slug": "about", "title": "About Us"}).title == "About Us"

    def test_setting_homepage_clears_others(self):
        home = create_page({"title": "Home", "isHomepage": True})
        other = create_page({"title": "Landing"})

        update_page(other.pk, {"isHomepage": True})

        home.refresh_from_db()
        other.refresh_from_db()
        assert home.is_homepage is False
        assert other.is_homepage is True
