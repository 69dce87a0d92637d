"""
Interactive page editing.

Unlike the bulk demo import, create_page() and update_page() keep exactly one
homepage: turning is_homepage on for a page clears it on every other page in
the same transaction.
"""

import logging
from typing import Any, Dict, Optional

from django.db import transaction

from cms.exceptions import NotFoundError, UniqueConstraintError, ValidationError
from cms.models import ContentStatus, Page
from cms.persistence import ContentRepository
from cms.utils import derive_slug

logger = logging.getLogger(__name__)

# API key -> model field for optional page attributes
PAGE_FIELDS = {
    "content": "content",
    "template": "template",
    "excerpt": "excerpt",
    "featuredImage": "featured_image",
    "status": "status",
    "isHomepage": "is_homepage",
    "seoTitle": "seo_title",
    "seoDesc": "seo_desc",
    "seoKeywords": "seo_keywords",
    "parentId": "parent_id",
    "sortOrder": "sort_order",
}


def _collect_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    values = {}
    for key, field_name in PAGE_FIELDS.items():
        if key in data:
            values[field_name] = data[key]

    if "status" in values and values["status"] not in ContentStatus.values:
        raise ValidationError(f"Unknown page status: {values['status']}")
    if "is_homepage" in values:
        values["is_homepage"] = bool(values["is_homepage"])
    for text_field in ("excerpt", "featured_image", "seo_title", "seo_desc", "seo_keywords"):
        if text_field in values and values[text_field] is None:
            values[text_field] = ""
    if values.get("content") is None and "content" in values:
        values["content"] = {}
    return values


def _unset_other_homepages(page_id: Optional[int] = None):
    others = Page.objects.filter(is_homepage=True)
    if page_id is not None:
        others = others.exclude(pk=page_id)
    cleared = others.update(is_homepage=False)
    if cleared:
        logger.info(f"Cleared homepage flag on {cleared} page(s)")


def create_page(data: Dict[str, Any], author=None) -> Page:
    """
    Create a page.

    Raises:
        ValidationError: Missing title or bad status
        UniqueConstraintError: Slug already exists
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise ValidationError("Title is required")

    slug = data.get("slug") or derive_slug(title)
    if not slug:
        raise ValidationError("Could not derive a slug from the title")

    values = _collect_fields(data)
    values.setdefault("status", ContentStatus.DRAFT)
    values.setdefault("seo_title", title)
    values.setdefault("seo_desc", values.get("excerpt", ""))

    repository = ContentRepository()
    with transaction.atomic():
        if repository.find_by_key(Page, "slug", slug) is not None:
            raise UniqueConstraintError("Slug already exists")
        if values.get("is_homepage"):
            _unset_other_homepages()
        page = repository.create(Page, {"title": title, "slug": slug, "author": author, **values})

    logger.info(f"Created page {page.slug}")
    return page


def update_page(page_id, data: Dict[str, Any]) -> Page:
    """
    Apply a partial update to a page.

    Raises:
        NotFoundError: No such page
        ValidationError: Bad status
        UniqueConstraintError: New slug already exists
    """
    repository = ContentRepository()

    with transaction.atomic():
        try:
            page = Page.objects.select_for_update().get(pk=page_id)
        except Page.DoesNotExist:
            raise NotFoundError("Page not found")

        values = _collect_fields(data)
        if data.get("title"):
            values["title"] = data["title"]

        new_slug = data.get("slug")
        if new_slug and new_slug != page.slug:
            if repository.find_by_key(Page, "slug", new_slug) is not None:
                raise UniqueConstraintError("Slug already exists")
            values["slug"] = new_slug

        if values.get("is_homepage") and not page.is_homepage:
            _unset_other_homepages(page.pk)

        page = repository.update(Page, page.pk, values)

    logger.info(f"Updated page {page.slug}")
    return page
