"""
URL patterns for the cms REST API.

Endpoints:
- POST   /api/v1/crawler/crawl/                 - Start a crawl job
- GET    /api/v1/crawler/jobs/                  - List crawl jobs
- GET    /api/v1/crawler/jobs/<job_id>/         - Crawl job detail
- DELETE /api/v1/crawler/jobs/<job_id>/         - Delete a crawl job
- POST   /api/v1/crawler/jobs/<job_id>/import/  - Import a crawl job as a draft page
- POST   /api/v1/demo/import/                   - Import demo data
- POST   /api/v1/pages/                         - Create a page
- PUT    /api/v1/pages/<page_id>/               - Update a page
"""

from django.urls import path

from cms.api.views import (
    crawl_job_detail,
    create_page_view,
    import_crawl_job,
    import_demo_data,
    list_crawl_jobs,
    start_crawl_job,
    update_page_view,
)

app_name = "cms_api"

urlpatterns = [
    # Crawler
    path("crawler/crawl/", start_crawl_job, name="start_crawl"),
    path("crawler/jobs/", list_crawl_jobs, name="list_crawl_jobs"),
    path("crawler/jobs/<uuid:job_id>/", crawl_job_detail, name="crawl_job_detail"),
    path("crawler/jobs/<uuid:job_id>/import/", import_crawl_job, name="import_crawl_job"),

    # Demo data
    path("demo/import/", import_demo_data, name="import_demo_data"),

    # Pages
    path("pages/", create_page_view, name="create_page"),
    path("pages/<int:page_id>/", update_page_view, name="update_page"),
]
