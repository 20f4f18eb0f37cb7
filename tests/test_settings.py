"""Tests for configuration loading."""
from __future__ import annotations

from pathlib import Path

import pytest

from sagasynth.errors import ConfigurationError, ErrorKind
from sagasynth.settings import HistoryBackendEnum, LLMProviderEnum, Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PRIVATE_KEY",
        "SAGASYNTH_PRIVATE_KEY",
        "CONTRACT_ADDRESS",
        "SAGASYNTH_CONTRACT_ADDRESS",
        "INFURA_RPC",
        "SAGASYNTH_FUNDING_RPC_URL",
        "GOOGLE_API_KEY",
        "SAGASYNTH_GOOGLE_API_KEY",
        "SAGASYNTH_LLM_PROVIDER",
        "SAGASYNTH_LLM_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = Settings(_env_file=None)
    assert s.port == 3001
    assert s.llm_provider == LLMProviderEnum.GEMINI
    assert s.generation_max_output_tokens == 3000
    assert s.generation_temperature == 0.7
    assert s.generation_concurrency == 1
    assert s.history_backend == HistoryBackendEnum.SQLITE
    assert s.metadata_fetch_timeout_s == 5.0
    assert s.private_key is None


def test_unprefixed_legacy_variables_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRIVATE_KEY", "abc")
    monkeypatch.setenv("CONTRACT_ADDRESS", "0x2222222222222222222222222222222222222222")
    monkeypatch.setenv("INFURA_RPC", "https://rpc.test")
    monkeypatch.setenv("GOOGLE_API_KEY", "g-key")

    s = Settings(_env_file=None)

    assert s.private_key == "abc"
    assert s.contract_address == "0x2222222222222222222222222222222222222222"
    assert s.funding_rpc_url == "https://rpc.test"
    assert s.google_api_key == "g-key"


def test_prefixed_variables_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAGASYNTH_PORT", "8080")
    monkeypatch.setenv("SAGASYNTH_HISTORY_BACKEND", "json")
    monkeypatch.setenv("SAGASYNTH_GENERATION_CONCURRENCY", "4")

    s = Settings(_env_file=None)

    assert s.port == 8080
    assert s.history_backend == HistoryBackendEnum.JSON
    assert s.generation_concurrency == 4


def test_env_file_is_read(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("PRIVATE_KEY=from-file\nSAGASYNTH_EXPLORER_URL=https://explorer.test\n", encoding="utf-8")

    s = Settings(_env_file=env_file)

    assert s.private_key == "from-file"
    assert s.explorer_url == "https://explorer.test"


def test_require_helpers_name_the_missing_variable() -> None:
    s = Settings(_env_file=None, contract_address=None)

    with pytest.raises(ConfigurationError, match="PRIVATE_KEY") as exc:
        s.require_private_key()
    assert exc.value.kind is ErrorKind.CONFIGURATION
    with pytest.raises(ConfigurationError, match="CONTRACT_ADDRESS"):
        s.require_contract_address()
    with pytest.raises(ConfigurationError, match="INFURA_RPC"):
        s.require_funding_rpc_url()

    assert s.missing_chain_config() == ["PRIVATE_KEY", "CONTRACT_ADDRESS"]
    assert s.missing_upload_config() == ["PRIVATE_KEY", "INFURA_RPC"]


def test_resolved_paths(tmp_path: Path) -> None:
    s = Settings(_env_file=None, data_dir=tmp_path)
    assert s.resolved_history_path == tmp_path / "history.sqlite3"
    assert s.resolved_artifact_path.name == "CrawlRegistry.json"

    s_json = Settings(_env_file=None, data_dir=tmp_path, history_backend="json")
    assert s_json.resolved_history_path == tmp_path / "history.json"


@pytest.mark.parametrize(
    ("provider", "model"),
    [("gemini", "gemini-2.5-flash"), ("openai", "gpt-4o-mini"), ("ollama", "llama3.1")],
)
def test_model_follows_provider_when_unset(provider: str, model: str) -> None:
    s = Settings(_env_file=None, llm_provider=provider)
    assert s.llm_model is None
    assert s.resolved_llm_model == model


def test_explicit_model_wins() -> None:
    s = Settings(_env_file=None, llm_provider="anthropic", llm_model="claude-sonnet-4-5")
    assert s.resolved_llm_model == "claude-sonnet-4-5"


def test_concurrency_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, generation_concurrency=0)
