"""
Tests for the CMS REST API endpoints.
"""

import uuid
from unittest.mock import patch

import pytest

from cms.exceptions import NetworkError
from cms.models import CrawlJob, CrawlJobStatus, Page


@pytest.fixture
def completed_job(db):
    job = CrawlJob.objects.create(source_url="https://example.com/menu")
    job.start_processing()
    job.mark_completed("Menu", "<p>Soup</p>", [], {"description": "Today"})
    return job


@pytest.mark.django_db
class TestAuthentication:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("post", "/api/v1/crawler/crawl/"),
            ("get", "/api/v1/crawler/jobs/"),
            ("post", "/api/v1/demo/import/"),
            ("post", "/api/v1/pages/"),
        ],
    )
    def test_requires_authentication(self, api_client, method, path):
        response = getattr(api_client, method)(path, {}, format="json")

        assert response.status_code in (401, 403)


@pytest.mark.django_db
class TestStartCrawl:
    @patch("cms.services.crawl_jobs.crawl_url.apply_async")
    def test_returns_202_with_processing_job(self, mock_apply, auth_client):
        response = auth_client.post(
            "/api/v1/crawler/crawl/",
            {"url": "https://example.com/", "options": {"rehostImagesLocally": True}},
            format="json",
        )

        assert response.status_code == 202
        data = response.json()
        assert data["success"] is True
        assert data["data"]["status"] == CrawlJobStatus.PROCESSING
        job = CrawlJob.objects.get(id=data["data"]["id"])
        assert job.options["rehostImagesLocally"] is True
        mock_apply.assert_called_once()

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({}, "URL is required"),
            ({"url": "not-a-url"}, "Invalid URL format"),
        ],
    )
    def test_invalid_url_returns_400(self, auth_client, payload, message):
        response = auth_client.post("/api/v1/crawler/crawl/", payload, format="json")

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": message}
        assert CrawlJob.objects.count() == 0

    @patch("cms.services.crawl_jobs.start_crawl", side_effect=NetworkError("browser unavailable"))
    def test_network_error_maps_to_502(self, mock_start, auth_client):
        response = auth_client.post(
            "/api/v1/crawler/crawl/", {"url": "https://example.com/"}, format="json"
        )

        assert response.status_code == 502


@pytest.mark.django_db
class TestCrawlJobs:
    def test_list_with_pagination(self, auth_client, completed_job):
        CrawlJob.objects.create(source_url="https://example.com/other")

        response = auth_client.get("/api/v1/crawler/jobs/?limit=1&offset=0")

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"] == {"total": 2, "limit": 1, "offset": 0}
        assert len(data["data"]) == 1
        assert "content" not in data["data"][0]

    def test_list_filtered_by_status(self, auth_client, completed_job):
        CrawlJob.objects.create(source_url="https://example.com/other")

        response = auth_client.get("/api/v1/crawler/jobs/?status=COMPLETED")

        assert [job["id"] for job in response.json()["data"]] == [str(completed_job.id)]

    def test_list_unknown_status_is_400(self, auth_client):
        response = auth_client.get("/api/v1/crawler/jobs/?status=BOGUS")

        assert response.status_code == 400

    def test_list_non_numeric_limit_is_400(self, auth_client):
        response = auth_client.get("/api/v1/crawler/jobs/?limit=ten")

        assert response.status_code == 400

    def test_detail(self, auth_client, completed_job):
        response = auth_client.get(f"/api/v1/crawler/jobs/{completed_job.id}/")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == CrawlJobStatus.COMPLETED
        assert data["content"] == "<p>Soup</p>"
        assert data["metadata"] == {"description": "Today"}

    def test_detail_not_found(self, auth_client):
        response = auth_client.get(f"/api/v1/crawler/jobs/{uuid.uuid4()}/")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Crawl job not found"}

    def test_delete(self, auth_client, completed_job):
        response = auth_client.delete(f"/api/v1/crawler/jobs/{completed_job.id}/")

        assert response.status_code == 200
        assert not CrawlJob.objects.filter(pk=completed_job.pk).exists()

    def test_import_creates_draft_page(self, auth_client, user, completed_job):
        response = auth_client.post(
            f"/api/v1/crawler/jobs/{completed_job.id}/import/", {"slug": "menu"}, format="json"
        )

        assert response.status_code == 201
        page = Page.objects.get(slug="menu")
        assert page.author == user
        assert response.json()["data"]["status"] == "DRAFT"

    def test_import_twice_is_400(self, auth_client, completed_job):
        auth_client.post(f"/api/v1/crawler/jobs/{completed_job.id}/import/", {}, format="json")

        response = auth_client.post(
            f"/api/v1/crawler/jobs/{completed_job.id}/import/", {}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot import: crawl job not completed"

    def test_import_slug_conflict_is_409(self, auth_client, completed_job):
        Page.objects.create(title="Menu", slug="menu")

        response = auth_client.post(
            f"/api/v1/crawler/jobs/{completed_job.id}/import/", {"slug": "menu"}, format="json"
        )

        assert response.status_code == 409


@pytest.mark.django_db
class TestDemoImportEndpoint:
    def test_inline_document(self, auth_client, upload_dir):
        response = auth_client.post(
            "/api/v1/demo/import/",
            {"document": {"pages": [{"title": "Home"}], "settings": {"site_name": "Cafe"}}},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["pages"] == 1
        assert data["settings"] == 1
        assert data["failed"] == 0

    def test_missing_body_is_400(self, auth_client):
        response = auth_client.post("/api/v1/demo/import/", {}, format="json")

        assert response.status_code == 400

    def test_unknown_theme_is_404(self, auth_client, tmp_path, settings):
        settings.CMS_THEMES_DIR = tmp_path

        response = auth_client.post("/api/v1/demo/import/", {"theme": "starter"}, format="json")

        assert response.status_code == 404
        assert response.json()["message"] == "No demo data available for this theme"


@pytest.mark.django_db
class TestPageEndpoints:
    def test_create_and_update(self, auth_client):
        response = auth_client.post("/api/v1/pages/", {"title": "Contact Us"}, format="json")

        assert response.status_code == 201
        page = response.json()["data"]
        assert page["slug"] == "contact-us"

        response = auth_client.put(
            f"/api/v1/pages/{page['id']}/", {"isHomepage": True}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["data"]["isHomepage"] is True

    def test_duplicate_slug_is_409(self, auth_client):
        auth_client.post("/api/v1/pages/", {"title": "Contact"}, format="json")

        response = auth_client.post("/api/v1/pages/", {"title": "Contact"}, format="json")

        assert response.status_code == 409
        assert response.json()["message"] == "Slug already exists"

    def test_update_missing_is_404(self, auth_client):
        response = auth_client.put("/api/v1/pages/99999/", {"title": "x"}, format="json")

        assert response.status_code == 404
