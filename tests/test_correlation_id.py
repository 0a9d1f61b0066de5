# tests/test_correlation_id.py
"""
Tests for correlation ID middleware and context management.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from fundcompare.main import app
from fundcompare.utils.context import (
    clear_correlation_id,
    get_correlation_id,
    run_in_context,
    set_correlation_id,
)


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        """Should return None when correlation ID is not set."""
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        """Should set and retrieve correlation ID."""
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"
        clear_correlation_id()

    def test_clear_correlation_id(self):
        """Should clear correlation ID."""
        set_correlation_id("test-correlation-456")
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_plain_worker_thread_does_not_inherit(self):
        """Threads start with an empty context unless run_in_context is used."""
        set_correlation_id("caller-id")
        try:
            with ThreadPoolExecutor(max_workers=1) as pool:
                plain = pool.submit(get_correlation_id).result()
                bound = pool.submit(run_in_context(get_correlation_id)).result()
        finally:
            clear_correlation_id()

        assert plain is None
        assert bound == "caller-id"


class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    @pytest.fixture
    def client(self):
        """Create test client (health endpoints need no overrides)."""
        with TestClient(app) as c:
            yield c

    def test_generates_correlation_id_when_not_provided(self, client):
        """Should generate correlation ID when not provided in request."""
        response = client.get("/health/live")

        assert response.status_code == 200
        assert "X-Correlation-ID" in response.headers
        # Should be a valid UUID format
        correlation_id = response.headers["X-Correlation-ID"]
        assert len(correlation_id) == 36  # UUID length
        assert correlation_id.count("-") == 4  # UUID format

    def test_uses_provided_correlation_id(self, client):
        """Should use correlation ID from request header."""
        custom_id = "my-custom-trace-id-123"
        response = client.get(
            "/health/live",
            headers={"X-Correlation-ID": custom_id}
        )

        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"] == custom_id

    def test_uses_request_id_header_as_fallback(self, client):
        """Should use X-Request-ID header if X-Correlation-ID not provided."""
        custom_id = "my-request-id-456"
        response = client.get(
            "/health/live",
            headers={"X-Request-ID": custom_id}
        )

        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"] == custom_id

    def test_prefers_correlation_id_over_request_id(self, client):
        """Should prefer X-Correlation-ID over X-Request-ID."""
        response = client.get(
            "/health/live",
            headers={
                "X-Correlation-ID": "correlation-123",
                "X-Request-ID": "request-456",
            }
        )

        assert response.headers["X-Correlation-ID"] == "correlation-123"

    def test_different_requests_get_different_ids(self, client):
        """Different requests should get different correlation IDs."""
        id1 = client.get("/health/live").headers["X-Correlation-ID"]
        id2 = client.get("/health/live").headers["X-Correlation-ID"]

        assert id1 != id2

    def test_health_reports_dataset(self, client):
        """Without DATA_FILE the providers start empty but healthy."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["dataset"]["status"] == "healthy"
        assert "X-Correlation-ID" in response.headers
