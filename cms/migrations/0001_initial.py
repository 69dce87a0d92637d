"""
Migration: Initial CMS schema.

Creates the content tables (pages, posts, products, categories, menus,
settings, media) and the crawl_jobs table.
"""

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


CONTENT_STATUS_CHOICES = [
    ("DRAFT", "Draft"),
    ("PUBLISHED", "Published"),
    ("ARCHIVED", "Archived"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Page",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("content", models.JSONField(blank=True, default=dict)),
                ("template", models.CharField(default="page", max_length=50)),
                ("excerpt", models.TextField(blank=True)),
                ("featured_image", models.CharField(blank=True, max_length=1000)),
                ("status", models.CharField(choices=CONTENT_STATUS_CHOICES, default="DRAFT", max_length=20)),
                ("is_homepage", models.BooleanField(default=False)),
                ("sort_order", models.IntegerField(default=0)),
                ("seo_title", models.CharField(blank=True, max_length=255)),
                ("seo_desc", models.TextField(blank=True)),
                ("seo_keywords", models.CharField(blank=True, max_length=500)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "author",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="pages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="children",
                        to="cms.page",
                    ),
                ),
            ],
            options={
                "db_table": "pages",
                "ordering": ["sort_order", "title"],
                "indexes": [
                    models.Index(fields=["status", "is_homepage"], name="pages_status_homepage_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PostCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True)),
                ("image", models.CharField(blank=True, max_length=1000)),
                ("sort_order", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "post_categories",
                "ordering": ["sort_order", "name"],
                "verbose_name_plural": "post categories",
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="ProductCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True)),
                ("image", models.CharField(blank=True, max_length=1000)),
                ("sort_order", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "product_categories",
                "ordering": ["sort_order", "name"],
                "verbose_name_plural": "product categories",
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Post",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("content", models.JSONField(blank=True, default=dict)),
                ("excerpt", models.TextField(blank=True)),
                ("featured_image", models.CharField(blank=True, max_length=1000)),
                ("status", models.CharField(choices=CONTENT_STATUS_CHOICES, default="DRAFT", max_length=20)),
                ("is_featured", models.BooleanField(default=False)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("seo_title", models.CharField(blank=True, max_length=255)),
                ("seo_desc", models.TextField(blank=True)),
                ("published_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "author",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="posts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="posts",
                        to="cms.postcategory",
                    ),
                ),
            ],
            options={
                "db_table": "posts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "published_at"], name="posts_status_published_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("short_desc", models.TextField(blank=True)),
                ("description", models.JSONField(blank=True, default=dict)),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("sale_price", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("sku", models.CharField(blank=True, max_length=100)),
                ("stock", models.IntegerField(default=0)),
                ("images", models.JSONField(blank=True, default=list)),
                ("status", models.CharField(choices=CONTENT_STATUS_CHOICES, default="DRAFT", max_length=20)),
                ("is_featured", models.BooleanField(default=False)),
                ("specifications", models.JSONField(blank=True, default=dict)),
                ("seo_title", models.CharField(blank=True, max_length=255)),
                ("seo_desc", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="cms.productcategory",
                    ),
                ),
            ],
            options={
                "db_table": "products",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "is_featured"], name="products_status_featured_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Menu",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("items", models.JSONField(blank=True, default=list)),
                ("location", models.CharField(blank=True, max_length=50)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "menus",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Setting",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.CharField(max_length=100, unique=True)),
                ("value", models.JSONField(blank=True, default=dict)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "settings",
                "ordering": ["key"],
            },
        ),
        migrations.CreateModel(
            name="Media",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("filename", models.CharField(max_length=255)),
                ("original_name", models.CharField(blank=True, max_length=500)),
                ("path", models.CharField(max_length=1000)),
                ("url", models.CharField(max_length=1000)),
                ("mimetype", models.CharField(blank=True, max_length=100)),
                ("size", models.BigIntegerField(default=0)),
                ("width", models.IntegerField(blank=True, null=True)),
                ("height", models.IntegerField(blank=True, null=True)),
                ("alt", models.CharField(blank=True, max_length=500)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "uploaded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="media",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "media",
                "ordering": ["-created_at"],
                "verbose_name_plural": "media",
            },
        ),
        migrations.CreateModel(
            name="CrawlJob",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("source_url", models.URLField(max_length=2000)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PROCESSING", "Processing"),
                            ("COMPLETED", "Completed"),
                            ("FAILED", "Failed"),
                            ("IMPORTED", "Imported"),
                        ],
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                ("options", models.JSONField(blank=True, default=dict)),
                ("title", models.CharField(blank=True, max_length=500)),
                ("content", models.TextField(blank=True)),
                ("images", models.JSONField(blank=True, default=list)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("error_message", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "imported_page",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="crawl_jobs",
                        to="cms.page",
                    ),
                ),
            ],
            options={
                "db_table": "crawl_jobs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="crawl_jobs_status_created_idx"),
                ],
            },
        ),
    ]
