"""Tests for dataset upload and preview."""
from __future__ import annotations

import hashlib
import json

import httpx
import respx
from fastapi.testclient import TestClient

from tests.fakes import GATEWAY, RecordingUploader

BLOB_URL = "https://gateway.test/blob"


class TestPreview:
    def test_first_five_rows_of_a_list(self, client: TestClient) -> None:
        rows = [{"n": i} for i in range(8)]
        with respx.mock:
            respx.get(BLOB_URL).mock(return_value=httpx.Response(200, json=rows))
            response = client.get("/api/dataset/preview", params={"url": BLOB_URL})

        assert response.status_code == 200
        assert response.json() == {"preview": rows[:5], "totalRows": 8, "previewRows": 5}

    def test_single_object_is_one_row(self, client: TestClient) -> None:
        with respx.mock:
            respx.get(BLOB_URL).mock(return_value=httpx.Response(200, json={"name": "x"}))
            body = client.get("/api/dataset/preview", params={"url": BLOB_URL}).json()

        assert body == {"preview": {"name": "x"}, "totalRows": 1, "previewRows": 1}

    def test_missing_url_is_400(self, client: TestClient) -> None:
        response = client.get("/api/dataset/preview")

        assert response.status_code == 400
        assert response.json()["error"] == "URL parameter is required"

    def test_unreachable_url_is_500(self, client: TestClient) -> None:
        with respx.mock:
            respx.get(BLOB_URL).mock(return_value=httpx.Response(404))
            response = client.get("/api/dataset/preview", params={"url": BLOB_URL})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to get preview"
        assert response.json()["kind"] == "remote_rejected"


class TestUpload:
    def test_upload_returns_mint_ready_arguments(self, client: TestClient, uploader: RecordingUploader) -> None:
        data = [{"q": "héllo"}, {"q": "two"}]
        digest = hashlib.sha256(
            json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        ).hexdigest()

        response = client.post(
            "/api/dataset/upload",
            json={"data": data, "metadata": {"name": "My set", "tags": ["a", "b"]}},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["dataUrl"] == f"{GATEWAY}/upload-1"
        assert body["metadataUrl"] == f"{GATEWAY}/upload-2"
        assert body["contentHash"] == "0x" + digest

        prepared = body["prepared"]
        assert prepared["sourceUrl"] == "SagaSynth Generated"
        assert prepared["contentHash"] == "0x" + digest
        assert prepared["contentLink"] == f"{GATEWAY}/upload-1"
        assert prepared["tokenURI"] == f"{GATEWAY}/upload-2"
        assert prepared["tags"] == ["a", "b"]
        assert prepared["embedVectorId"].startswith("vector_")

        assert uploader.uploads[0][0] == data
        uploaded_meta = uploader.uploads[1][0]
        assert uploaded_meta["name"] == "My set"
        assert uploaded_meta["dataUrl"] == f"{GATEWAY}/upload-1"
        assert uploaded_meta["contentHash"] == digest
        assert uploaded_meta["createdAt"].endswith("Z")

    def test_default_tags(self, client: TestClient) -> None:
        body = client.post("/api/dataset/upload", json={"data": {"x": 1}, "metadata": {}}).json()
        assert body["prepared"]["tags"] == ["synthetic", "dataset"]

    def test_missing_metadata_is_400(self, client: TestClient, uploader: RecordingUploader) -> None:
        response = client.post("/api/dataset/upload", json={"data": [1, 2]})

        assert response.status_code == 400
        assert response.json()["error"] == "Data and metadata are required"
        assert uploader.uploads == []
