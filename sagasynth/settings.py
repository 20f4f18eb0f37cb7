from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sagasynth.errors import ConfigurationError
from sagasynth.llm.providers import LLMProviderType, get_default_model


def _default_repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


class LLMProviderEnum(str, Enum):
    """Supported text-generation providers."""
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


class HistoryBackendEnum(str, Enum):
    SQLITE = "sqlite"
    JSON = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SAGASYNTH_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    repo_root: Path = Field(default_factory=_default_repo_root)
    data_dir: Path | None = None

    # Ledger node and contract
    private_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SAGASYNTH_PRIVATE_KEY", "PRIVATE_KEY"),
    )
    rpc_url: str = "https://asga-2752562277992000-1.jsonrpc.sagarpc.io"
    contract_address: str | None = Field(
        default="0x6251C36F321aeEf6F06ED0fdFcd597862e784D06",
        validation_alias=AliasChoices("SAGASYNTH_CONTRACT_ADDRESS", "CONTRACT_ADDRESS"),
    )
    artifact_path: Path | None = None
    tx_timeout_s: float = 120.0
    explorer_url: str = "https://sagascan.io"

    # Text generation
    llm_provider: LLMProviderEnum = LLMProviderEnum.GEMINI
    # None picks the provider's default model
    llm_model: str | None = None
    google_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SAGASYNTH_GOOGLE_API_KEY", "GOOGLE_API_KEY"),
    )
    generation_max_output_tokens: int = 3000
    generation_temperature: float = 0.7
    # 1 keeps the one-call-at-a-time loop
    generation_concurrency: int = Field(default=1, ge=1)

    # Upload gateway
    irys_node_url: str = "https://devnet.irys.xyz"
    irys_gateway_url: str = "https://gateway.irys.xyz"
    irys_token: str = "ethereum"
    funding_rpc_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SAGASYNTH_FUNDING_RPC_URL", "INFURA_RPC"),
    )
    app_name: str = "SagaSynth"
    upload_timeout_s: float = 60.0

    # History log
    history_backend: HistoryBackendEnum = HistoryBackendEnum.SQLITE
    history_path: Path | None = None

    # External metadata fetches (marketplace, preview, donate)
    metadata_fetch_timeout_s: float = 5.0

    # HTTP service
    host: str = "127.0.0.1"
    port: int = 3001
    public_base_url: str = "http://localhost:3001"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def resolved_data_dir(self) -> Path:
        return self.data_dir or (self.repo_root / "data")

    @property
    def resolved_llm_model(self) -> str:
        return self.llm_model or get_default_model(LLMProviderType(self.llm_provider.value))

    @property
    def resolved_artifact_path(self) -> Path:
        return self.artifact_path or (
            self.repo_root / "artifacts" / "contracts" / "Contract.sol" / "CrawlRegistry.json"
        )

    @property
    def resolved_history_path(self) -> Path:
        if self.history_path:
            return self.history_path
        if self.history_backend == HistoryBackendEnum.JSON:
            return self.resolved_data_dir / "history.json"
        return self.resolved_data_dir / "history.sqlite3"

    def require_private_key(self) -> str:
        if not self.private_key:
            raise ConfigurationError("PRIVATE_KEY is not set. Please set your PRIVATE_KEY in the .env file")
        return self.private_key

    def require_contract_address(self) -> str:
        if not self.contract_address:
            raise ConfigurationError("CONTRACT_ADDRESS is not set")
        return self.contract_address

    def require_funding_rpc_url(self) -> str:
        if not self.funding_rpc_url:
            raise ConfigurationError("INFURA_RPC is not set in the .env file")
        return self.funding_rpc_url

    def missing_chain_config(self) -> list[str]:
        """Names of unset variables needed before any ledger call."""
        missing = []
        if not self.private_key:
            missing.append("PRIVATE_KEY")
        if not self.contract_address:
            missing.append("CONTRACT_ADDRESS")
        return missing

    def missing_upload_config(self) -> list[str]:
        missing = []
        if not self.private_key:
            missing.append("PRIVATE_KEY")
        if not self.funding_rpc_url:
            missing.append("INFURA_RPC")
        return missing


# Singleton instance - import this instead of creating Settings()
settings = Settings()
