from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from sagasynth.errors import ConfigurationError


def load_abi(path: Path) -> list[dict[str, Any]]:
    """Read a contract ABI from a build artifact.

    Accepts a Hardhat/Foundry artifact (``{"abi": [...], ...}``) or a file
    holding the bare ABI list.
    """
    if not path.exists():
        raise ConfigurationError(f"Contract artifact not found: {path}")
    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Contract artifact is not valid JSON: {path}", details=str(e)) from e

    abi = loaded.get("abi") if isinstance(loaded, dict) else loaded
    if not isinstance(abi, list):
        raise ConfigurationError(f"Contract artifact has no ABI list: {path}")
    return abi


def event_names(abi: list[dict[str, Any]]) -> set[str]:
    return {str(item.get("name")) for item in abi if item.get("type") == "event"}
