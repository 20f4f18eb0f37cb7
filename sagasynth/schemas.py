from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# Required request fields are optional here so a missing value can be
# answered with a 400 naming the field rather than a generic 422.


class GenerateRequest(BaseModel):
    input_text: str | None = None
    sample_size: int = Field(default=3, ge=1)
    model: str = "gemini-2.0-flash"
    max_tokens: int = 3000
    dataset_name: str = "Generated Dataset"
    description: str = "Synthetic dataset"
    visibility: str = "public-sellable"
    price: str | float = "5"
    tags: list[str] = Field(default_factory=lambda: ["synthetic"])


class GenerateTestRequest(BaseModel):
    input_text: str | None = None
    domain: str = "medical"


class GenerateAndMintRequest(BaseModel):
    input_text: str | None = None
    sample_size: int = Field(default=3, ge=1)
    dataset_name: str = "Generated Dataset"
    description: str = "Synthetic dataset"
    tags: list[str] = Field(default_factory=lambda: ["synthetic"])


class DatasetUploadRequest(BaseModel):
    data: Any = None
    metadata: dict[str, Any] | None = None


class MintRequest(BaseModel):
    sourceUrl: str | None = None
    contentHash: str | None = None
    contentLink: str | None = None
    embedVectorId: str | None = None
    createdAt: int | None = None
    tags: list[str] | None = None
    tokenURI: str | None = None


class DonateRequest(BaseModel):
    # Ether amount, e.g. "0.01"
    amount: str | float | None = None


class IrysLinks(BaseModel):
    content_url: str
    metadata_url: str


class ReadyForNft(BaseModel):
    sourceUrl: str
    contentLink: str
    tokenURI: str
    tags: list[str]


class GenerateResponse(BaseModel):
    success: bool = True
    message: str
    data: list[dict[str, Any]]
    metadata: dict[str, Any]
    irys_links: IrysLinks
    ready_for_nft: ReadyForNft


class MintResponse(BaseModel):
    success: bool = True
    tokenId: str | None
    transactionHash: str
    blockNumber: int
    gasUsed: str


class DonateResponse(BaseModel):
    success: bool = True
    tokenId: str
    amount: str
    transactionHash: str
    blockNumber: int
    gasUsed: str


class ErrorResponse(BaseModel):
    error: str
    details: str
    kind: str


class HealthResponse(BaseModel):
    status: str
    history_store: str


class AppStatus(BaseModel):
    version: str
    llm_provider: str
    llm_model: str
    llm_key_present: bool
    private_key_present: bool
    contract_address: str | None
    rpc_url: str
    funding_rpc_present: bool
    history_backend: str
    missing_chain_config: list[str]
    missing_upload_config: list[str]
