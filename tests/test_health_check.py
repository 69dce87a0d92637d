"""
Tests for the health check endpoint.
"""

from unittest.mock import MagicMock, patch

import pytest
from django.db import OperationalError

from cms.models import CrawlJob


@pytest.mark.django_db
class TestHealthCheck:
    @patch("cms.views.get_celery_worker_count", return_value=2)
    def test_healthy_response(self, mock_workers, client):
        CrawlJob.objects.create(source_url="https://example.com/a")
        done = CrawlJob.objects.create(source_url="https://example.com/b")
        done.start_processing()

        response = client.get("/api/health/")

        assert response.status_code == 200
        assert response["Content-Type"] == "application/json"
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["redis"] == "not_configured"
        assert data["celery_workers"] == 2
        assert data["crawl_jobs"]["PENDING"] == 1
        assert data["crawl_jobs"]["PROCESSING"] == 1
        assert data["crawl_jobs"]["FAILED"] == 0

    @patch("cms.views.get_celery_worker_count", side_effect=Exception("broker down"))
    def test_celery_failure_degrades_gracefully(self, mock_workers, client):
        response = client.get("/api/health/")

        assert response.status_code == 200
        assert response.json()["celery_workers"] == 0

    @patch("cms.views.get_celery_worker_count", return_value=0)
    @patch("cms.views.get_redis_connection")
    def test_redis_connected(self, mock_redis, mock_workers, client):
        redis_client = MagicMock()
        redis_client.ping.return_value = True
        mock_redis.return_value = redis_client

        response = client.get("/api/health/")

        assert response.json()["redis"] == "connected"

    @patch("cms.views.get_celery_worker_count", return_value=0)
    @patch("cms.views.connection")
    def test_database_failure_is_503(self, mock_connection, mock_workers, client):
        mock_connection.ensure_connection.side_effect = OperationalError("db down")

        response = client.get("/api/health/")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["database"] == "error"
        assert data["crawl_jobs"] is None
