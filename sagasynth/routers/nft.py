"""Metadata record endpoints backed by the registry contract."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from sagasynth import service
from sagasynth.deps import Clients, get_clients
from sagasynth.errors import error_summary
from sagasynth.schemas import DonateRequest, DonateResponse, MintRequest, MintResponse

router = APIRouter(prefix="/api/nft", tags=["nft"])


@router.post("/mint", response_model=MintResponse)
def api_nft_mint(req: MintRequest, clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    with error_summary("Minting failed"):
        return service.mint(clients, req)


# Declared before /{tokenId} so "creator" is not parsed as a token id
@router.get("/creator/{address}")
def api_nft_by_creator(address: str, clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    with error_summary("Failed to get creator NFTs"):
        return service.get_creator_nfts(clients, address)


@router.get("/{tokenId}")
def api_nft_get(tokenId: int, clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    with error_summary("Failed to get metadata"):
        return service.get_nft(clients, tokenId)


@router.post("/{tokenId}/donate", response_model=DonateResponse)
def api_nft_donate(
    tokenId: int,
    req: DonateRequest | None = None,
    clients: Clients = Depends(get_clients),
) -> dict[str, Any]:
    with error_summary("Donation failed"):
        return service.donate(clients, tokenId, req.amount if req else None)
