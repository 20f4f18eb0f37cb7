from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from sagasynth import service
from sagasynth.deps import Clients, get_clients
from sagasynth.errors import error_summary

router = APIRouter(prefix="/api/marketplace", tags=["marketplace"])


@router.get("/nfts")
def api_marketplace_nfts(clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    """Records minted by the service wallet, newest first, with their tokenURI JSON."""
    with error_summary("Failed to get marketplace NFTs"):
        return service.marketplace_nfts(clients)
