"""
Tests for ContentRepository.
"""

import pytest

from cms.exceptions import NotFoundError, UniqueConstraintError
from cms.models import PostCategory, Setting
from cms.persistence import ContentRepository


@pytest.fixture
def repository():
    return ContentRepository()


@pytest.mark.django_db
class TestContentRepository:
    def test_create_and_find_by_key(self, repository):
        created = repository.create(PostCategory, {"name": "News", "slug": "news"})

        found = repository.find_by_key(PostCategory, "slug", "news")

        assert found.pk == created.pk
        assert repository.find_by_key(PostCategory, "slug", "missing") is None

    def test_create_duplicate_key_raises_unique_constraint_error(self, repository):
        repository.create(PostCategory, {"name": "News", "slug": "news"})

        with pytest.raises(UniqueConstraintError):
            repository.create(PostCategory, {"name": "Other", "slug": "news"})

    def test_update_missing_row_raises_not_found(self, repository):
        with pytest.raises(NotFoundError):
            repository.update(PostCategory, 99999, {"name": "Nope"})

    def test_update_changes_fields(self, repository):
        category = repository.create(PostCategory, {"name": "News", "slug": "news"})

        repository.update(PostCategory, category.pk, {"name": "Latest News"})

        category.refresh_from_db()
        assert category.name == "Latest News"

    def test_delete_missing_row_raises_not_found(self, repository):
        with pytest.raises(NotFoundError):
            repository.delete(PostCategory, 99999)

    def test_delete_removes_row(self, repository):
        category = repository.create(PostCategory, {"name": "News", "slug": "news"})

        repository.delete(PostCategory, category.pk)

        assert not PostCategory.objects.filter(pk=category.pk).exists()

    def test_upsert_creates_then_updates(self, repository):
        instance, created = repository.upsert_by_key(
            Setting, "key", "site_name", {"value": {"value": "A"}}, {"value": {"value": "A"}}
        )
        assert created is True

        instance, created = repository.upsert_by_key(
            Setting, "key", "site_name", {"value": {"value": "B"}}, {"value": {"value": "B"}}
        )
        assert created is False
        assert Setting.objects.count() == 1
        assert Setting.objects.get(key="site_name").value == {"value": "B"}

    def test_upsert_falls_back_to_update_when_create_collides(self, repository):
        Setting.objects.create(key="theme", value={"value": "old"})

        # Simulate another writer inserting between lookup and create
        original_find = repository.find_by_key
        calls = []

        def find_then_miss(model, key_field, key):
            calls.append(key)
            if len(calls) == 1:
                return None
            return original_find(model, key_field, key)

        repository.find_by_key = find_then_miss

        instance, created = repository.upsert_by_key(
            Setting, "key", "theme", {"value": {"value": "new"}}, {"value": {"value": "new"}}
        )

        assert created is False
        assert Setting.objects.count() == 1
        assert Setting.objects.get(key="theme").value == {"value": "new"}
