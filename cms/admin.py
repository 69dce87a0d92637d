"""
Django admin configuration for CMS models.

Content models get list/search/filter views; crawl jobs are read-only with
a status badge and an action that imports completed jobs as draft pages.
"""

from django.contrib import admin, messages
from django.utils.html import format_html

from cms.exceptions import CMSError
from cms.models import (
    CrawlJob,
    CrawlJobStatus,
    ContentStatus,
    Media,
    Menu,
    Page,
    Post,
    PostCategory,
    Product,
    ProductCategory,
    Setting,
)
from cms.services.crawl_importer import import_job_as_page

BADGE_HTML = (
    '<span style="background-color: {}; color: white; '
    'padding: 2px 8px; border-radius: 4px;">{}</span>'
)

CONTENT_STATUS_COLORS = {
    ContentStatus.DRAFT: "#ffc107",
    ContentStatus.PUBLISHED: "#28a745",
    ContentStatus.ARCHIVED: "#6c757d",
}

CRAWL_STATUS_COLORS = {
    CrawlJobStatus.PENDING: "#ffc107",
    CrawlJobStatus.PROCESSING: "#007bff",
    CrawlJobStatus.COMPLETED: "#28a745",
    CrawlJobStatus.FAILED: "#dc3545",
    CrawlJobStatus.IMPORTED: "#17a2b8",
}


def content_status_badge(obj):
    color = CONTENT_STATUS_COLORS.get(obj.status, "#6c757d")
    return format_html(BADGE_HTML, color, obj.get_status_display())


content_status_badge.short_description = "Status"
content_status_badge.admin_order_field = "status"


@admin.register(Page)
class PageAdmin(admin.ModelAdmin):
    list_display = ["title", "slug", content_status_badge, "is_homepage", "template", "updated_at"]
    list_filter = ["status", "is_homepage", "template"]
    search_fields = ["title", "slug"]
    prepopulated_fields = {"slug": ("title",)}
    ordering = ["sort_order", "title"]
    raw_id_fields = ["parent", "author"]

    fieldsets = (
        ("Page", {
            "fields": ("title", "slug", "template", "status", "is_homepage", "parent", "sort_order"),
        }),
        ("Content", {
            "fields": ("excerpt", "featured_image", "content"),
        }),
        ("SEO", {
            "fields": ("seo_title", "seo_desc", "seo_keywords"),
            "classes": ("collapse",),
        }),
        ("Metadata", {
            "fields": ("author",),
            "classes": ("collapse",),
        }),
    )


@admin.register(PostCategory, ProductCategory)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "sort_order"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ("name",)}
    ordering = ["sort_order", "name"]


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ["title", "slug", content_status_badge, "category", "published_at"]
    list_filter = ["status", "category"]
    search_fields = ["title", "slug"]
    prepopulated_fields = {"slug": ("title",)}
    raw_id_fields = ["author"]
    date_hierarchy = "published_at"


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", content_status_badge, "price", "sale_price", "stock", "is_featured"]
    list_filter = ["status", "is_featured", "category"]
    search_fields = ["name", "slug", "sku"]
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Menu)
class MenuAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "location", "updated_at"]
    search_fields = ["name", "slug"]


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ["key", "updated_at"]
    search_fields = ["key"]


@admin.register(Media)
class MediaAdmin(admin.ModelAdmin):
    list_display = ["filename", "mimetype", "dimensions", "size", "created_at"]
    list_filter = ["mimetype"]
    search_fields = ["filename", "original_name", "alt"]
    readonly_fields = ["filename", "path", "url", "mimetype", "size", "width", "height", "created_at"]

    def dimensions(self, obj):
        if obj.width and obj.height:
            return f"{obj.width}x{obj.height}"
        return "-"
    dimensions.short_description = "Size (px)"


@admin.register(CrawlJob)
class CrawlJobAdmin(admin.ModelAdmin):
    """
    Read-only view of crawl jobs.

    Completed jobs can be turned into draft pages with the
    "import_as_draft_page" action.
    """

    list_display = [
        "id_short",
        "source_url",
        "status_badge",
        "title",
        "created_at",
        "duration_display",
        "imported_page",
    ]
    list_filter = [
        "status",
        ("created_at", admin.DateFieldListFilter),
    ]
    search_fields = ["source_url", "title", "id"]
    readonly_fields = [
        "id",
        "source_url",
        "status",
        "options",
        "title",
        "content",
        "images",
        "metadata",
        "error_message",
        "imported_page",
        "created_at",
        "started_at",
        "completed_at",
    ]
    ordering = ["-created_at"]
    actions = ["import_as_draft_page"]

    fieldsets = (
        ("Job Information", {
            "fields": ("id", "source_url", "status", "options", "imported_page"),
        }),
        ("Timing", {
            "fields": ("created_at", "started_at", "completed_at"),
        }),
        ("Result", {
            "fields": ("title", "content", "images", "metadata"),
            "classes": ("collapse",),
        }),
        ("Error Details", {
            "fields": ("error_message",),
            "classes": ("collapse",),
        }),
    )

    def id_short(self, obj):
        return str(obj.id)[:8]
    id_short.short_description = "Job ID"

    def status_badge(self, obj):
        color = CRAWL_STATUS_COLORS.get(obj.status, "#6c757d")
        return format_html(BADGE_HTML, color, obj.get_status_display())
    status_badge.short_description = "Status"
    status_badge.admin_order_field = "status"

    def duration_display(self, obj):
        """Display job duration in human-readable format."""
        seconds = obj.duration_seconds
        if not seconds:
            return "-"
        if seconds < 60:
            return f"{seconds:.1f}s"
        return f"{seconds / 60:.1f}m"
    duration_display.short_description = "Duration"

    @admin.action(description="Import as draft page")
    def import_as_draft_page(self, request, queryset):
        imported = 0
        for job in queryset:
            try:
                import_job_as_page(job.id, acting_user=request.user)
                imported += 1
            except CMSError as e:
                self.message_user(request, f"{job.source_url}: {e}", level=messages.WARNING)
        self.message_user(request, f"Imported {imported} crawl job(s) as draft pages.")

    def has_add_permission(self, request):
        """Jobs are created through the API or the crawl_site command."""
        return False

    def has_change_permission(self, request, obj=None):
        return False
