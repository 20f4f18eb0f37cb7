"""Error taxonomy shared by the HTTP service and the CLI scripts.

Every failure that leaves a client wrapper is one of the subclasses below, so
callers only need to look at ``kind`` to decide how to report it.
"""
from __future__ import annotations

import contextlib
from collections.abc import Iterator
from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    REMOTE_REJECTED = "remote_rejected"
    MALFORMED_RESPONSE = "malformed_response"
    INVALID_REQUEST = "invalid_request"


class SagaSynthError(Exception):
    kind: ErrorKind = ErrorKind.REMOTE_REJECTED

    def __init__(self, message: str, *, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        # Operation-level headline, e.g. "Minting failed"
        self.summary: str | None = None

    def to_dict(self, summary: str | None = None) -> dict[str, str]:
        return {
            "error": summary or self.summary or self.message,
            "details": f"{self.message}: {self.details}" if self.details else self.message,
            "kind": self.kind.value,
        }


class ConfigurationError(SagaSynthError):
    """Missing credential, endpoint or artifact. Raised before network activity."""

    kind = ErrorKind.CONFIGURATION


class RemoteUnavailableError(SagaSynthError):
    """Transport failure or timeout talking to a remote service."""

    kind = ErrorKind.REMOTE_UNAVAILABLE


class RemoteRejectedError(SagaSynthError):
    """The remote service answered but refused the request."""

    kind = ErrorKind.REMOTE_REJECTED


class MalformedResponseError(SagaSynthError):
    """The remote service answered with something we cannot parse."""

    kind = ErrorKind.MALFORMED_RESPONSE


class InvalidRequestError(SagaSynthError):
    kind = ErrorKind.INVALID_REQUEST


@contextlib.contextmanager
def error_summary(summary: str) -> Iterator[None]:
    """Attach an operation headline to errors escaping the block.

    Invalid-request errors keep their own message as the headline.
    """
    try:
        yield
    except SagaSynthError as e:
        if e.summary is None and e.kind is not ErrorKind.INVALID_REQUEST:
            e.summary = summary
        raise
