"""Tests for API key authentication."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from tests.app.conftest import TEST_API_KEY


class TestApiKey:
    def test_health_needs_no_key(self, secured_client: TestClient):
        response = secured_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/environment"),
            ("get", "/runs"),
            ("get", "/runs/summary"),
            ("get", "/runs/1"),
            ("patch", "/runs/1"),
            ("get", "/settings"),
            ("put", "/settings"),
            ("post", "/runs/active"),
            ("get", "/runs/active"),
            ("post", "/runs/active/stop"),
            ("delete", "/runs/active"),
        ],
    )
    def test_missing_key_is_rejected(self, method, path, secured_client: TestClient):
        response = getattr(secured_client, method)(path)
        assert response.status_code == 401

    def test_wrong_key_is_rejected(self, secured_client: TestClient):
        response = secured_client.get("/runs", headers={"X-API-Key": "nope"})
        assert response.status_code == 401

    @patch("pacer.app.routers.runs.get_all_runs", return_value=[])
    def test_valid_key(self, _mock_runs, secured_client: TestClient):
        response = secured_client.get("/runs", headers={"X-API-Key": TEST_API_KEY})
        assert response.status_code == 200
        assert response.json() == []

    @patch("pacer.app.routers.runs.get_all_runs", return_value=[])
    def test_no_key_configured_allows_everything(self, _mock_runs, client: TestClient):
        assert client.get("/runs").status_code == 200

    def test_environment(self, client: TestClient, monkeypatch):
        monkeypatch.setenv("ENV", "staging")
        response = client.get("/environment")
        assert response.status_code == 200
        assert response.json() == {"environment": "staging"}
