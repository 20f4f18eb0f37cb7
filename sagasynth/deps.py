"""FastAPI dependency providers.

Remote clients are built on first use and then reused for the life of the
process. Building one validates its configuration but makes no network call,
so handlers can reject bad input before touching a client.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from sagasynth.chain.client import ChainClient
from sagasynth.db import HistoryStore, open_history_store
from sagasynth.generation.synthesizer import TextGenerator
from sagasynth.llm.providers import get_llm_client
from sagasynth.settings import Settings, settings
from sagasynth.storage.fetcher import JsonFetcher
from sagasynth.storage.uploader import IrysUploader

logger = logging.getLogger(__name__)


class Clients:
    """Lazily constructed remote clients sharing one Settings object.

    Any client may be passed in up front; the rest are built from settings
    the first time they are requested.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        chain: ChainClient | None = None,
        uploader: IrysUploader | None = None,
        generator: TextGenerator | None = None,
        fetcher: JsonFetcher | None = None,
        history: HistoryStore | None = None,
    ) -> None:
        self.settings = settings
        self._lock = threading.Lock()
        self._chain = chain
        self._uploader = uploader
        self._generator = generator
        self._fetcher = fetcher
        self._history = history

    @property
    def chain(self) -> ChainClient:
        with self._lock:
            if self._chain is None:
                self._chain = ChainClient.from_settings(self.settings)
            return self._chain

    @property
    def uploader(self) -> IrysUploader:
        with self._lock:
            if self._uploader is None:
                self._uploader = IrysUploader.from_settings(self.settings)
            return self._uploader

    @property
    def generator(self) -> TextGenerator:
        with self._lock:
            if self._generator is None:
                provider = get_llm_client(
                    self.settings.llm_provider.value,
                    google_api_key=self.settings.google_api_key,
                )
                self._generator = TextGenerator.from_settings(self.settings, provider)
            return self._generator

    @property
    def fetcher(self) -> JsonFetcher:
        with self._lock:
            if self._fetcher is None:
                self._fetcher = JsonFetcher(timeout_s=self.settings.metadata_fetch_timeout_s)
            return self._fetcher

    @property
    def history(self) -> HistoryStore:
        with self._lock:
            if self._history is None:
                self._history = open_history_store(self.settings)
            return self._history

    def close(self) -> None:
        closeables: list[Any] = [self._uploader, self._fetcher]
        for client in closeables:
            if client is not None:
                client.close()


_clients: Clients | None = None
_clients_lock = threading.Lock()


def get_settings() -> Settings:
    return settings


def get_clients() -> Clients:
    global _clients
    with _clients_lock:
        if _clients is None:
            _clients = Clients(settings)
        return _clients


def reset_clients() -> None:
    """Close and forget the process-wide clients (app shutdown)."""
    global _clients
    with _clients_lock:
        if _clients is not None:
            _clients.close()
        _clients = None
