from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sagasynth.chain.client import ChainClient
from sagasynth.settings import Settings

from tests.fakes import SERVICE_ADDRESS


@pytest.fixture
def cli_settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=tmp_path,
        private_key="0x" + "11" * 32,
        explorer_url="https://explorer.test",
    )


@pytest.fixture
def cli_chain() -> MagicMock:
    mock = MagicMock(spec=ChainClient)
    mock.address = SERVICE_ADDRESS
    return mock


@pytest.fixture
def patch_cli(monkeypatch: pytest.MonkeyPatch, cli_settings: Settings, cli_chain: MagicMock):
    """Point a CLI module at the test settings and the mock chain client.

    Returns the ChainClient stand-in so tests can check whether a client
    was built at all.
    """

    def apply(module) -> MagicMock:
        factory = MagicMock()
        factory.from_settings.return_value = cli_chain
        monkeypatch.setattr(module, "settings", cli_settings)
        monkeypatch.setattr(module, "ChainClient", factory)
        return factory

    return apply
