"""Tests for /health and /api/status."""
from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient

from sagasynth.db import SqliteHistoryStore


def test_health_ok(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "history_store": "ok"}


def test_health_degraded_when_store_unusable(client: TestClient, history: SqliteHistoryStore) -> None:
    with patch.object(history, "ping", return_value=False):
        response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"


def test_status_reports_configuration(client: TestClient) -> None:
    response = client.get("/api/status")

    assert response.status_code == 200
    body = response.json()
    assert body["llm_provider"] == "gemini"
    assert body["llm_model"] == "gemini-2.5-flash"
    assert body["llm_key_present"] is True
    assert body["private_key_present"] is True
    assert body["funding_rpc_present"] is True
    assert body["history_backend"] == "sqlite"
    assert body["missing_chain_config"] == []
    assert body["missing_upload_config"] == []
    assert "private_key" not in body
