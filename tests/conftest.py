"""
Pytest configuration and shared fixtures.

Remote collaborators are replaced with in-process fakes: a scripted LLM
provider, a recording uploader and a MagicMock chain client. The external
JSON fetcher is the real one, driven through respx in the tests that use it.
"""
from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from sagasynth.chain.client import ChainClient
from sagasynth.chain.types import TxResult
from sagasynth.db import SqliteHistoryStore
from sagasynth.deps import Clients, get_clients
from sagasynth.generation.synthesizer import TextGenerator
from sagasynth.settings import Settings
from sagasynth.storage.fetcher import JsonFetcher

from tests.fakes import SERVICE_ADDRESS, TX_HASH, RecordingUploader, ScriptedProvider


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=tmp_path,
        private_key="0x" + "11" * 32,
        google_api_key="test-key",
        funding_rpc_url="https://funding.test",
        public_base_url="http://localhost:3001",
    )


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def generator(provider: ScriptedProvider) -> TextGenerator:
    return TextGenerator(provider, "gemini-test", max_output_tokens=3000, temperature=0.7)


@pytest.fixture
def uploader() -> RecordingUploader:
    return RecordingUploader()


@pytest.fixture
def chain() -> MagicMock:
    mock = MagicMock(spec=ChainClient)
    mock.address = SERVICE_ADDRESS
    mock.mint_metadata.return_value = TxResult(tx_hash=TX_HASH, block_number=42, gas_used=21000, identifier=7)
    mock.donate.return_value = TxResult(tx_hash=TX_HASH, block_number=43, gas_used=30000)
    return mock


@pytest.fixture
def history(tmp_path: Path) -> SqliteHistoryStore:
    return SqliteHistoryStore(tmp_path / "history.sqlite3")


@pytest.fixture
def fetcher() -> JsonFetcher:
    http = JsonFetcher(timeout_s=1.0)
    yield http
    http.close()


@pytest.fixture
def clients(
    test_settings: Settings,
    generator: TextGenerator,
    uploader: RecordingUploader,
    chain: MagicMock,
    history: SqliteHistoryStore,
    fetcher: JsonFetcher,
) -> Clients:
    return Clients(
        test_settings,
        chain=chain,
        uploader=uploader,  # type: ignore[arg-type]
        generator=generator,
        fetcher=fetcher,
        history=history,
    )


@pytest.fixture
def client(clients: Clients):
    """TestClient with every remote client replaced by a fake."""
    from sagasynth.main import app

    app.dependency_overrides[get_clients] = lambda: clients
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
