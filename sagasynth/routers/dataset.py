from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from sagasynth import service
from sagasynth.deps import Clients, get_clients
from sagasynth.errors import error_summary
from sagasynth.schemas import DatasetUploadRequest

router = APIRouter(prefix="/api/dataset", tags=["dataset"])


@router.post("/upload")
def api_dataset_upload(req: DatasetUploadRequest, clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    """Upload data and metadata; the ``prepared`` block feeds straight into /api/nft/mint."""
    with error_summary("Upload failed"):
        return service.upload_dataset(clients, req)


@router.get("/preview")
def api_dataset_preview(url: str | None = None, clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    with error_summary("Failed to get preview"):
        return service.preview_dataset(clients, url)
