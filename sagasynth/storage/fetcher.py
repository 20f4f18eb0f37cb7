from __future__ import annotations

import logging
from typing import Any

import httpx

from sagasynth.errors import MalformedResponseError, RemoteRejectedError, RemoteUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "SagaSynth/0.1 (metadata reader)"


class JsonFetcher:
    """Plain GET of externally hosted JSON (token metadata, dataset blobs)."""

    def __init__(self, *, timeout_s: float = 5.0, http: httpx.Client | None = None) -> None:
        self._client = http or httpx.Client(
            timeout=timeout_s,
            follow_redirects=True,
            headers={"User-Agent": DEFAULT_USER_AGENT},
        )

    def close(self) -> None:
        self._client.close()

    def get_json(self, url: str) -> Any:
        try:
            resp = self._client.get(url)
        except httpx.RequestError as e:
            raise RemoteUnavailableError(f"Failed to fetch from {url}", details=str(e)) from e
        except httpx.InvalidURL as e:
            raise RemoteRejectedError(f"Failed to fetch from {url}", details=str(e)) from e
        if not resp.is_success:
            raise RemoteRejectedError(f"Failed to fetch from {url}", details=f"status {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response from {url} is not JSON", details=resp.text[:200]) from e

    def try_get_json(self, url: str | None) -> Any | None:
        """Like get_json but returns None on any failure."""
        if not url:
            return None
        try:
            return self.get_json(url)
        except (RemoteUnavailableError, RemoteRejectedError, MalformedResponseError) as e:
            logger.info("Could not fetch metadata content from %s: %s", url, e)
            return None
