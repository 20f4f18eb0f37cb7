"""Generation endpoints: synthesize, upload, record in history and optionally mint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from sagasynth import service
from sagasynth.deps import Clients, get_clients
from sagasynth.errors import error_summary
from sagasynth.schemas import GenerateAndMintRequest, GenerateRequest, GenerateResponse, GenerateTestRequest

router = APIRouter(prefix="/api", tags=["generate"])


@router.post("/generate", response_model=GenerateResponse)
def api_generate(req: GenerateRequest, clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    with error_summary("Generation failed"):
        return service.generate_dataset(clients, req)


@router.post("/generate/test")
def api_generate_test(req: GenerateTestRequest, clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    with error_summary("Test generation failed"):
        return service.generate_test(clients, req)


@router.get("/generate/history")
def api_generate_history(clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    with error_summary("Error fetching history"):
        return service.get_history(clients)


@router.post("/generate-and-mint")
def api_generate_and_mint(req: GenerateAndMintRequest, clients: Clients = Depends(get_clients)) -> dict[str, Any]:
    with error_summary("Generate and mint failed"):
        return service.generate_and_mint(clients, req)
