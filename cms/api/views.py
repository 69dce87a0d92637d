"""
CMS REST API views.

This module provides endpoints for:
- Starting crawl jobs and inspecting, deleting or importing their results
- Importing a demo content document (inline or bundled with a theme)
- Creating and updating pages

All endpoints require authentication. Service errors are mapped onto HTTP
status codes by _error_response():

    ValidationError, InvalidStateError -> 400
    NotFoundError                      -> 404
    PersistenceConflict                -> 409
    NetworkError                       -> 502
"""

import logging
from typing import Any, Dict

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from cms.api.throttling import CrawlTriggerThrottle, DemoImportThrottle
from cms.exceptions import (
    CMSError,
    InvalidStateError,
    NetworkError,
    NotFoundError,
    PersistenceConflict,
    ValidationError,
)
from cms.models import CrawlJob, Page
from cms.services import crawl_jobs
from cms.services.crawl_importer import import_job_as_page
from cms.services.demo_importer import (
    DemoDataDocument,
    import_demo_document,
    load_theme_demo_document,
)
from cms.services.pages import create_page, update_page

logger = logging.getLogger(__name__)

ERROR_STATUS = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PersistenceConflict, status.HTTP_409_CONFLICT),
    (NetworkError, status.HTTP_502_BAD_GATEWAY),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidStateError, status.HTTP_400_BAD_REQUEST),
]


def _error_response(error: CMSError) -> Response:
    for error_class, http_status in ERROR_STATUS:
        if isinstance(error, error_class):
            break
    else:
        http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    return Response({"success": False, "message": str(error)}, status=http_status)


def _serialize_job(job: CrawlJob, include_content: bool = True) -> Dict[str, Any]:
    data = {
        "id": str(job.id),
        "url": job.source_url,
        "status": job.status,
        "options": job.options,
        "title": job.title,
        "error": job.error_message or None,
        "importedPageId": job.imported_page_id,
        "createdAt": job.created_at.isoformat() if job.created_at else None,
        "startedAt": job.started_at.isoformat() if job.started_at else None,
        "completedAt": job.completed_at.isoformat() if job.completed_at else None,
        "durationSeconds": job.duration_seconds,
    }
    if include_content:
        data["content"] = job.content
        data["images"] = job.images
        data["metadata"] = job.metadata
    return data


def _serialize_page(page: Page) -> Dict[str, Any]:
    return {
        "id": page.id,
        "title": page.title,
        "slug": page.slug,
        "template": page.template,
        "status": page.status,
        "isHomepage": page.is_homepage,
        "content": page.content,
        "excerpt": page.excerpt,
        "featuredImage": page.featured_image,
        "seoTitle": page.seo_title,
        "seoDesc": page.seo_desc,
        "seoKeywords": page.seo_keywords,
        "parentId": page.parent_id,
        "sortOrder": page.sort_order,
        "createdAt": page.created_at.isoformat() if page.created_at else None,
        "updatedAt": page.updated_at.isoformat() if page.updated_at else None,
    }


# ============================================================
# Crawler Endpoints
# ============================================================

@extend_schema(
    tags=["Crawler"],
    summary="Start a crawl job",
    description="""
    Queue a URL for rendering and extraction.

    Returns immediately with the job id; poll the job detail endpoint
    for the outcome.
    """,
    request={
        "application/json": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "format": "uri"},
                "options": {
                    "type": "object",
                    "properties": {
                        "waitForSelector": {"type": "string", "default": "body"},
                        "timeout": {"type": "integer", "default": 30000},
                        "extractImages": {"type": "boolean", "default": True},
                        "rehostImagesLocally": {"type": "boolean", "default": False},
                    },
                },
            },
            "required": ["url"],
        }
    },
    responses={
        202: {"description": "Crawl job queued"},
        400: {"description": "Invalid URL or options"},
    },
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
@throttle_classes([CrawlTriggerThrottle])
def start_crawl_job(request):
    """Queue a crawl job for one URL."""
    try:
        job = crawl_jobs.start_crawl(request.data.get("url"), request.data.get("options"))
    except CMSError as e:
        return _error_response(e)

    return Response(
        {
            "success": True,
            "message": "Crawl job started",
            "data": {"id": str(job.id), "status": job.status},
        },
        status=status.HTTP_202_ACCEPTED,
    )


@extend_schema(
    tags=["Crawler"],
    summary="List crawl jobs",
    parameters=[
        OpenApiParameter("status", OpenApiTypes.STR, description="Filter by job status"),
        OpenApiParameter("limit", OpenApiTypes.INT, description="Page size (max 200)"),
        OpenApiParameter("offset", OpenApiTypes.INT, description="Rows to skip"),
    ],
    responses={200: {"description": "Paginated crawl jobs"}},
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def list_crawl_jobs(request):
    """List crawl jobs, newest first."""
    try:
        limit = int(request.query_params.get("limit", crawl_jobs.DEFAULT_PAGE_SIZE))
        offset = int(request.query_params.get("offset", 0))
    except ValueError:
        return _error_response(ValidationError("limit and offset must be integers"))

    try:
        jobs, total = crawl_jobs.list_jobs(
            status=request.query_params.get("status") or None,
            limit=limit,
            offset=offset,
        )
    except CMSError as e:
        return _error_response(e)

    return Response({
        "success": True,
        "data": [_serialize_job(job, include_content=False) for job in jobs],
        "pagination": {
            "total": total,
            "limit": max(1, min(limit, crawl_jobs.MAX_PAGE_SIZE)),
            "offset": max(0, offset),
        },
    })


@extend_schema(
    tags=["Crawler"],
    summary="Get or delete a crawl job",
    responses={
        200: {"description": "Crawl job detail"},
        404: {"description": "Crawl job not found"},
    },
)
@api_view(["GET", "DELETE"])
@permission_classes([IsAuthenticated])
def crawl_job_detail(request, job_id):
    """Return a job with its extracted content, or delete it."""
    try:
        if request.method == "DELETE":
            crawl_jobs.delete_job(job_id)
            return Response({"success": True, "message": "Crawl job deleted"})

        job = crawl_jobs.get_job(job_id)
    except CMSError as e:
        return _error_response(e)

    return Response({"success": True, "data": _serialize_job(job)})


@extend_schema(
    tags=["Crawler"],
    summary="Import a crawl job as a draft page",
    request={
        "application/json": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "slug": {"type": "string"},
                "template": {"type": "string"},
            },
        }
    },
    responses={
        201: {"description": "Draft page created"},
        400: {"description": "Crawl job not completed"},
        404: {"description": "Crawl job not found"},
        409: {"description": "Slug already exists"},
    },
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def import_crawl_job(request, job_id):
    """Create a draft page from a completed crawl job."""
    overrides = {
        key: request.data.get(key)
        for key in ("title", "slug", "template")
        if request.data.get(key)
    }
    try:
        page = import_job_as_page(job_id, overrides=overrides, acting_user=request.user)
    except CMSError as e:
        return _error_response(e)

    return Response(
        {"success": True, "message": "Page created as draft", "data": _serialize_page(page)},
        status=status.HTTP_201_CREATED,
    )


# ============================================================
# Demo Data Endpoint
# ============================================================

@extend_schema(
    tags=["Demo data"],
    summary="Import demo content",
    description="""
    Import a demo content document, either inline under "document" or the
    one bundled with a theme named by "theme". Items that fail are skipped
    and counted under "failed".
    """,
    request={
        "application/json": {
            "type": "object",
            "properties": {
                "document": {"type": "object"},
                "theme": {"type": "string"},
            },
        }
    },
    responses={
        200: {"description": "Per-kind import counts"},
        400: {"description": "Malformed document or theme name"},
        404: {"description": "Theme has no demo data"},
    },
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
@throttle_classes([DemoImportThrottle])
def import_demo_data(request):
    """Run a demo content import synchronously."""
    try:
        if request.data.get("theme"):
            document = load_theme_demo_document(request.data["theme"])
        elif request.data.get("document") is not None:
            document = DemoDataDocument.from_dict(request.data["document"])
        else:
            raise ValidationError("Either document or theme is required")

        result = import_demo_document(document, acting_user=request.user)
    except CMSError as e:
        return _error_response(e)

    return Response({
        "success": True,
        "message": "Demo data imported",
        "data": result.as_dict(),
    })


# ============================================================
# Page Endpoints
# ============================================================

@extend_schema(
    tags=["Pages"],
    summary="Create a page",
    request={"application/json": {"type": "object"}},
    responses={
        201: {"description": "Page created"},
        400: {"description": "Missing title"},
        409: {"description": "Slug already exists"},
    },
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def create_page_view(request):
    try:
        page = create_page(request.data, author=request.user)
    except CMSError as e:
        return _error_response(e)

    return Response(
        {"success": True, "data": _serialize_page(page)},
        status=status.HTTP_201_CREATED,
    )


@extend_schema(
    tags=["Pages"],
    summary="Update a page",
    request={"application/json": {"type": "object"}},
    responses={
        200: {"description": "Page updated"},
        404: {"description": "Page not found"},
        409: {"description": "Slug already exists"},
    },
)
@api_view(["PUT"])
@permission_classes([IsAuthenticated])
def update_page_view(request, page_id):
    try:
        page = update_page(page_id, request.data)
    except CMSError as e:
        return _error_response(e)

    return Response({"success": True, "data": _serialize_page(page)})
