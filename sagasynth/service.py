"""Multi-step operations behind the HTTP endpoints.

Each function is a straight composition of the generator, uploader, ledger
and history calls. Every failure surfaces as a ``SagaSynthError``.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime
from typing import Any

from sagasynth.chain.types import TxResult
from sagasynth.db import utc_now_iso
from sagasynth.deps import Clients
from sagasynth.errors import InvalidRequestError, RemoteRejectedError, SagaSynthError
from sagasynth.generation.synthesizer import generate_synthetic_data
from sagasynth.hashing import compact_json, content_hash, sha256_text
from sagasynth.schemas import (
    DatasetUploadRequest,
    GenerateAndMintRequest,
    GenerateRequest,
    GenerateTestRequest,
    MintRequest,
)
from sagasynth.storage.uploader import Tag, json_tags

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100
PREVIEW_ROWS = 5

# bytes32 as the contract stores it
CONTENT_HASH_RE = re.compile(r"0x[0-9a-fA-F]{64}")

# Upload tags used by the quick test flow
TEST_DATA_APP_NAME = "Saga-AI-Generator"
TEST_METADATA_APP_NAME = "Saga-AI-Generator-Metadata"

# Shown in formatted history where an entry does not record the value
HISTORY_DEFAULTS: dict[str, Any] = {
    "dataset_name": "Test Dataset",
    "description": "Test generation",
    "visibility": "Private",
    "price_usdc": 0,
    "max_tokens": 3000,
    "output_format": "JSON",
    "source_dataset": "Custom Input",
    "ai_model": "Gemini 2.5 Flash",
    "filename": "test.csv",
}


def now_ms() -> int:
    return int(time.time() * 1000)


def new_embed_vector_id() -> str:
    return f"vector_{now_ms()}"


def _require_text(value: str | None) -> str:
    if not value:
        raise InvalidRequestError("input_text is required")
    return value


def _parse_price(price: str | float) -> float:
    try:
        return float(price)
    except (TypeError, ValueError) as e:
        raise InvalidRequestError(f"Invalid price: {price!r}") from e


def _token_id_str(result: TxResult) -> str | None:
    return str(result.identifier) if result.identifier is not None else None


def generate_samples(clients: Clients, input_text: str, sample_size: int) -> list[dict[str, Any]]:
    """Generate ``sample_size`` variations of ``input_text``.

    Raises when not a single row came back.
    """
    logger.info("Generating %d synthetic data samples...", sample_size)
    rows = [{"text": input_text} for _ in range(sample_size)]
    synthetic = generate_synthetic_data(
        clients.generator,
        rows,
        concurrency=clients.settings.generation_concurrency,
    )
    if not synthetic:
        raise RemoteRejectedError("Generation failed, no results.")
    return synthetic


def upload_json(clients: Clients, payload: Any, tags: list[Tag]) -> str:
    return clients.uploader.upload(payload, tags)


def generate_dataset(clients: Clients, req: GenerateRequest) -> dict[str, Any]:
    input_text = _require_text(req.input_text)
    price_usdc = _parse_price(req.price)
    app_name = clients.settings.app_name

    synthetic = generate_samples(clients, input_text, req.sample_size)

    logger.info("Uploading generated data...")
    content_url = upload_json(clients, synthetic, json_tags(app_name, "Dataset"))

    metadata = {
        "name": req.dataset_name,
        "description": req.description,
        "content_url": content_url,
        "sample_size": len(synthetic),
        "model": req.model,
        "max_tokens": req.max_tokens,
        "visibility": req.visibility,
        "price_usdc": price_usdc,
        "tags": req.tags,
        "created_at": utc_now_iso(),
        "input_text": input_text,
    }

    logger.info("Uploading metadata...")
    metadata_url = upload_json(clients, metadata, json_tags(app_name, "Metadata"))

    clients.history.append_entry(
        {
            "input_text": input_text,
            "data": synthetic,
            "metadata": metadata,
            "created_at": utc_now_iso(),
            "content_url": content_url,
            "metadata_url": metadata_url,
        }
    )

    return {
        "success": True,
        "message": "Dataset generated successfully",
        "data": synthetic,
        "metadata": metadata,
        "irys_links": {"content_url": content_url, "metadata_url": metadata_url},
        "ready_for_nft": {
            "sourceUrl": input_text,
            "contentLink": content_url,
            "tokenURI": metadata_url,
            "tags": req.tags,
        },
    }


def generate_test(clients: Clients, req: GenerateTestRequest) -> dict[str, Any]:
    """Quick three-sample run with domain-tagged metadata."""
    input_text = _require_text(req.input_text)
    synthetic = generate_samples(clients, input_text, 3)

    logger.info("Uploading generated data...")
    content_url = upload_json(
        clients,
        synthetic,
        [Tag("Content-Type", "application/json"), Tag("App-Name", TEST_DATA_APP_NAME)],
    )

    metadata = {
        "name": f"Synthetic Dataset for: {input_text[:30]}...",
        "description": f'A synthetic dataset generated based on the input: "{input_text}"',
        "content_url": content_url,
        "domain": req.domain,
        "created_at": utc_now_iso(),
    }

    logger.info("Uploading metadata...")
    metadata_url = upload_json(
        clients,
        metadata,
        [Tag("Content-Type", "application/json"), Tag("App-Name", TEST_METADATA_APP_NAME)],
    )

    clients.history.append_entry(
        {
            "input_text": input_text,
            "domain": req.domain,
            "data": synthetic,
            "metadata": metadata,
            "created_at": utc_now_iso(),
            "content_url": content_url,
            "metadata_url": metadata_url,
        }
    )

    return {
        "message": "Test generation and upload successful",
        "input_text": input_text,
        "data": synthetic,
        "irys_links": {"content_url": content_url, "metadata_url": metadata_url},
    }


def _created_at_key(value: Any) -> float:
    if not value:
        return 0.0
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def format_history_entry(entry: dict[str, Any]) -> dict[str, Any]:
    metadata = entry.get("metadata") or {}
    data = entry.get("data") or []
    return {
        "metadata": {
            "dataset_name": metadata.get("name", HISTORY_DEFAULTS["dataset_name"]),
            "description": metadata.get("description", HISTORY_DEFAULTS["description"]),
            "visibility": metadata.get("visibility", HISTORY_DEFAULTS["visibility"]),
            "price_usdc": metadata.get("price_usdc", HISTORY_DEFAULTS["price_usdc"]),
            "domain": entry.get("domain"),
            "sample_size": len(data),
            "max_tokens": metadata.get("max_tokens", HISTORY_DEFAULTS["max_tokens"]),
            "output_format": HISTORY_DEFAULTS["output_format"],
            "source_dataset": HISTORY_DEFAULTS["source_dataset"],
            "ai_model": metadata.get("model", HISTORY_DEFAULTS["ai_model"]),
            "created_at": entry.get("created_at"),
            "filename": HISTORY_DEFAULTS["filename"],
        },
        "data": data,
    }


def get_history(clients: Clients, limit: int = HISTORY_LIMIT) -> dict[str, Any]:
    """Formatted history, newest first."""
    entries = clients.history.list_entries()
    # Reverse first so entries sharing a timestamp stay newest-first
    formatted = [format_history_entry(e) for e in reversed(entries)]
    formatted.sort(key=lambda r: _created_at_key(r["metadata"]["created_at"]), reverse=True)
    return {"total_records": len(formatted), "history": formatted[:limit]}


def upload_dataset(clients: Clients, req: DatasetUploadRequest) -> dict[str, Any]:
    """Upload arbitrary data plus metadata and return arguments ready for minting."""
    if req.data is None or req.metadata is None:
        raise InvalidRequestError("Data and metadata are required")

    app_name = clients.settings.app_name
    data_url = upload_json(clients, req.data, json_tags(app_name, "Dataset"))

    digest = sha256_text(compact_json(req.data))
    metadata_with_links = {
        **req.metadata,
        "dataUrl": data_url,
        "contentHash": digest,
        "createdAt": utc_now_iso(),
    }
    metadata_url = upload_json(clients, metadata_with_links, json_tags(app_name, "Metadata"))

    return {
        "success": True,
        "dataUrl": data_url,
        "metadataUrl": metadata_url,
        "contentHash": "0x" + digest,
        "prepared": {
            "sourceUrl": req.metadata.get("sourceUrl") or "SagaSynth Generated",
            "contentHash": "0x" + digest,
            "contentLink": data_url,
            "embedVectorId": new_embed_vector_id(),
            "createdAt": int(time.time()),
            "tags": req.metadata.get("tags") or ["synthetic", "dataset"],
            "tokenURI": metadata_url,
        },
    }


def mint(clients: Clients, req: MintRequest) -> dict[str, Any]:
    if not req.contentHash or not req.contentLink or not req.tokenURI:
        raise InvalidRequestError("Missing required fields for minting")
    if not CONTENT_HASH_RE.fullmatch(req.contentHash):
        raise InvalidRequestError(
            "Invalid contentHash",
            details="expected 0x followed by 64 hex characters",
        )

    result = clients.chain.mint_metadata(
        source_url=req.sourceUrl or "SagaSynth Dataset",
        content_hash=req.contentHash,
        content_link=req.contentLink,
        embed_vector_id=req.embedVectorId or new_embed_vector_id(),
        created_at=req.createdAt or int(time.time()),
        tags=req.tags or ["synthetic"],
        token_uri=req.tokenURI,
    )
    return {
        "success": True,
        "tokenId": _token_id_str(result),
        "transactionHash": result.tx_hash,
        "blockNumber": result.block_number,
        "gasUsed": str(result.gas_used),
    }


def get_nft(clients: Clients, token_id: int) -> dict[str, Any]:
    return clients.chain.get_metadata(token_id).to_api()


def get_creator_nfts(clients: Clients, address: str) -> dict[str, Any]:
    chain = clients.chain
    token_ids = chain.get_metadata_by_creator(address)
    nfts = [chain.get_metadata(token_id).to_api() for token_id in token_ids]
    return {"creator": address, "totalNFTs": len(nfts), "nfts": nfts}


def donate(clients: Clients, token_id: int, amount: str | float | None) -> dict[str, Any]:
    if amount is None or str(amount).strip() == "":
        raise InvalidRequestError("Amount is required")
    amount_str = str(amount).strip()

    result = clients.chain.donate(token_id, amount_str)
    return {
        "success": True,
        "tokenId": str(token_id),
        "amount": amount_str,
        "transactionHash": result.tx_hash,
        "blockNumber": result.block_number,
        "gasUsed": str(result.gas_used),
    }


def _external_metadata(clients: Clients, token_id: int) -> Any | None:
    try:
        token_uri = clients.chain.token_uri(token_id)
    except SagaSynthError as e:
        logger.info("Could not read tokenURI for %s: %s", token_id, e)
        return None
    return clients.fetcher.try_get_json(token_uri)


def marketplace_nfts(clients: Clients) -> dict[str, Any]:
    """Records minted by the service wallet, newest first.

    Each item carries the JSON its tokenURI points at, or None when that
    fetch fails.
    """
    chain = clients.chain
    token_ids = chain.get_metadata_by_creator(chain.address)

    nfts = []
    for token_id in token_ids:
        item = chain.get_metadata(token_id).to_api()
        item["metadata"] = _external_metadata(clients, token_id)
        nfts.append(item)

    nfts.sort(key=lambda n: n["createdAt"], reverse=True)
    return {"totalNFTs": len(nfts), "nfts": nfts}


def preview_dataset(clients: Clients, url: str | None) -> dict[str, Any]:
    if not url:
        raise InvalidRequestError("URL parameter is required")

    data = clients.fetcher.get_json(url)
    if isinstance(data, list):
        preview = data[:PREVIEW_ROWS]
        return {"preview": preview, "totalRows": len(data), "previewRows": len(preview)}
    return {"preview": data, "totalRows": 1, "previewRows": 1}


def generate_and_mint(clients: Clients, req: GenerateAndMintRequest) -> dict[str, Any]:
    """Generate, upload, mint and record in history in one call."""
    input_text = _require_text(req.input_text)
    app_name = clients.settings.app_name

    synthetic = generate_samples(clients, input_text, req.sample_size)

    logger.info("Uploading generated data...")
    content_url = upload_json(clients, synthetic, json_tags(app_name, "Dataset"))
    data_hash = content_hash(synthetic)

    metadata = {
        "name": req.dataset_name,
        "description": req.description,
        "content_url": content_url,
        "sample_size": len(synthetic),
        "tags": req.tags,
        "created_at": utc_now_iso(),
        "input_text": input_text,
    }
    metadata_url = upload_json(clients, metadata, json_tags(app_name, "Metadata"))

    logger.info("Minting NFT...")
    result = clients.chain.mint_metadata(
        source_url=input_text,
        content_hash=data_hash,
        content_link=content_url,
        embed_vector_id=new_embed_vector_id(),
        created_at=int(time.time()),
        tags=req.tags,
        token_uri=metadata_url,
    )
    token_id = _token_id_str(result)

    clients.history.append_entry(
        {
            "input_text": input_text,
            "data": synthetic,
            "metadata": metadata,
            "created_at": utc_now_iso(),
            "content_url": content_url,
            "metadata_url": metadata_url,
            "tokenId": token_id,
            "transactionHash": result.tx_hash,
        }
    )

    base_url = clients.settings.public_base_url.rstrip("/")
    return {
        "success": True,
        "message": "Dataset generated and NFT minted successfully",
        "tokenId": token_id,
        "transactionHash": result.tx_hash,
        "data": synthetic,
        "metadata": metadata,
        "irys_links": {"content_url": content_url, "metadata_url": metadata_url},
        "donation_info": {
            "tokenId": token_id,
            "donateEndpoint": f"/api/nft/{token_id}/donate",
            "example": {
                "method": "POST",
                "url": f"{base_url}/api/nft/{token_id}/donate",
                "body": {"amount": "0.01"},
            },
        },
    }
