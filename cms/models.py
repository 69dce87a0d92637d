"""
Django models for the CMS content service.

Models: CrawlJob, Page, PostCategory, Post, ProductCategory, Product,
        Menu, Setting, Media

CrawlJob carries its own state machine; every status change goes through
one of its transition methods so that illegal moves raise InvalidStateError
instead of silently overwriting the row.
"""

import uuid
from django.conf import settings
from django.db import models
from django.utils import timezone

from cms.exceptions import InvalidStateError


class CrawlJobStatus(models.TextChoices):
    """Status of a crawl job."""

    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"
    IMPORTED = "IMPORTED", "Imported"


class ContentStatus(models.TextChoices):
    """Publication status shared by pages, posts and products."""

    DRAFT = "DRAFT", "Draft"
    PUBLISHED = "PUBLISHED", "Published"
    ARCHIVED = "ARCHIVED", "Archived"


# Terminal states map to an empty set.
CRAWL_JOB_TRANSITIONS = {
    CrawlJobStatus.PENDING: {CrawlJobStatus.PROCESSING},
    CrawlJobStatus.PROCESSING: {CrawlJobStatus.COMPLETED, CrawlJobStatus.FAILED},
    CrawlJobStatus.COMPLETED: {CrawlJobStatus.IMPORTED},
    CrawlJobStatus.FAILED: set(),
    CrawlJobStatus.IMPORTED: set(),
}


class Page(models.Model):
    """
    A CMS page built from content blocks.

    At most one page should have is_homepage set; the interactive
    create/update path enforces this, the bulk demo import does not.
    """

    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    content = models.JSONField(default=dict, blank=True)
    template = models.CharField(max_length=50, default="page")
    excerpt = models.TextField(blank=True)
    featured_image = models.CharField(max_length=1000, blank=True)
    status = models.CharField(
        max_length=20, choices=ContentStatus.choices, default=ContentStatus.DRAFT
    )
    is_homepage = models.BooleanField(default=False)
    sort_order = models.IntegerField(default=0)

    # SEO
    seo_title = models.CharField(max_length=255, blank=True)
    seo_desc = models.TextField(blank=True)
    seo_keywords = models.CharField(max_length=500, blank=True)

    parent = models.ForeignKey(
        "self", on_delete=models.SET_NULL, null=True, blank=True, related_name="children"
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="pages",
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "pages"
        ordering = ["sort_order", "title"]
        indexes = [
            models.Index(fields=["status", "is_homepage"], name="pages_status_homepage_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.slug})"


class CategoryBase(models.Model):
    """Fields shared by post and product categories."""

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    image = models.CharField(max_length=1000, blank=True)
    sort_order = models.IntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["sort_order", "name"]

    def __str__(self):
        return self.name


class PostCategory(CategoryBase):
    """Blog post category."""

    class Meta(CategoryBase.Meta):
        db_table = "post_categories"
        verbose_name_plural = "post categories"


class ProductCategory(CategoryBase):
    """Shop product category."""

    class Meta(CategoryBase.Meta):
        db_table = "product_categories"
        verbose_name_plural = "product categories"


class Post(models.Model):
    """A blog post."""

    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    content = models.JSONField(default=dict, blank=True)
    excerpt = models.TextField(blank=True)
    featured_image = models.CharField(max_length=1000, blank=True)
    status = models.CharField(
        max_length=20, choices=ContentStatus.choices, default=ContentStatus.DRAFT
    )
    is_featured = models.BooleanField(default=False)
    tags = models.JSONField(default=list, blank=True)

    seo_title = models.CharField(max_length=255, blank=True)
    seo_desc = models.TextField(blank=True)

    category = models.ForeignKey(
        PostCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name="posts"
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="posts",
    )

    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "posts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "published_at"], name="posts_status_published_idx"),
        ]

    def __str__(self):
        return self.title


class Product(models.Model):
    """A shop product."""

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    short_desc = models.TextField(blank=True)
    # Either plain text or block content
    description = models.JSONField(default=dict, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    sale_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    sku = models.CharField(max_length=100, blank=True)
    stock = models.IntegerField(default=0)
    images = models.JSONField(default=list, blank=True)
    status = models.CharField(
        max_length=20, choices=ContentStatus.choices, default=ContentStatus.DRAFT
    )
    is_featured = models.BooleanField(default=False)
    specifications = models.JSONField(default=dict, blank=True)

    seo_title = models.CharField(max_length=255, blank=True)
    seo_desc = models.TextField(blank=True)

    category = models.ForeignKey(
        ProductCategory,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "is_featured"], name="products_status_featured_idx"),
        ]

    def __str__(self):
        return self.name


class Menu(models.Model):
    """A navigation menu; items are an ordered nested list."""

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    items = models.JSONField(default=list, blank=True)
    location = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "menus"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Setting(models.Model):
    """Flat site setting. The value is stored wrapped as {"value": ...}."""

    key = models.CharField(max_length=100, unique=True)
    value = models.JSONField(default=dict, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "settings"
        ordering = ["key"]

    def __str__(self):
        return self.key


class Media(models.Model):
    """A file in the media library, usually a rehosted image."""

    filename = models.CharField(max_length=255)
    original_name = models.CharField(max_length=500, blank=True)
    path = models.CharField(max_length=1000)
    url = models.CharField(max_length=1000)
    mimetype = models.CharField(max_length=100, blank=True)
    size = models.BigIntegerField(default=0)
    width = models.IntegerField(null=True, blank=True)
    height = models.IntegerField(null=True, blank=True)
    alt = models.CharField(max_length=500, blank=True)

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="media",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "media"
        ordering = ["-created_at"]
        verbose_name_plural = "media"

    def __str__(self):
        return self.filename


class CrawlJob(models.Model):
    """
    Tracks a single-page crawl from submission to import.

    Lifecycle: PENDING -> PROCESSING -> COMPLETED | FAILED, and
    COMPLETED -> IMPORTED once the content has become a page.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    source_url = models.URLField(max_length=2000)

    # Status
    status = models.CharField(
        max_length=20, choices=CrawlJobStatus.choices, default=CrawlJobStatus.PENDING
    )

    # Extraction options as submitted (camelCase keys)
    options = models.JSONField(default=dict, blank=True)

    # Results
    title = models.CharField(max_length=500, blank=True)
    content = models.TextField(blank=True)
    images = models.JSONField(default=list, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    # Error Details
    error_message = models.TextField(blank=True)

    imported_page = models.ForeignKey(
        Page, on_delete=models.SET_NULL, null=True, blank=True, related_name="crawl_jobs"
    )

    # Timing
    created_at = models.DateTimeField(default=timezone.now)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "crawl_jobs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="crawl_jobs_status_created_idx"),
        ]

    def __str__(self):
        return f"Job {self.id} - {self.source_url[:80]} ({self.status})"

    @property
    def duration_seconds(self):
        """Calculate job duration."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def can_transition_to(self, status: str) -> bool:
        return status in CRAWL_JOB_TRANSITIONS.get(self.status, set())

    def _transition_to(self, status: str):
        if not self.can_transition_to(status):
            raise InvalidStateError(
                f"Cannot move crawl job from {self.status} to {status}"
            )
        self.status = status

    def start_processing(self):
        """Mark job as picked up by the extractor."""
        self._transition_to(CrawlJobStatus.PROCESSING)
        self.started_at = timezone.now()
        self.save(update_fields=["status", "started_at"])

    def mark_completed(self, title: str, content: str, images: list, metadata: dict):
        """Store extraction results and mark job as completed."""
        self._transition_to(CrawlJobStatus.COMPLETED)
        self.title = (title or "")[: self._meta.get_field("title").max_length]
        self.content = content
        self.images = images
        self.metadata = metadata
        self.completed_at = timezone.now()
        self.save(
            update_fields=["status", "title", "content", "images", "metadata", "completed_at"]
        )

    def mark_failed(self, error_message: str):
        """Mark job as failed, keeping the error message verbatim."""
        self._transition_to(CrawlJobStatus.FAILED)
        self.error_message = error_message
        self.completed_at = timezone.now()
        self.save(update_fields=["status", "error_message", "completed_at"])

    def mark_imported(self, page: Page):
        """Mark job as imported into the given page."""
        self._transition_to(CrawlJobStatus.IMPORTED)
        self.imported_page = page
        self.save(update_fields=["status", "imported_page"])
