"""History log of past generations.

Two interchangeable backends behind ``HistoryStore``: SQLite (default) and a
JSON array file. Both make ``append_entry`` atomic with respect to concurrent
requests in the same process; SQLite also across processes.
"""

from __future__ import annotations

import json
import os
import sqlite3
import tempfile
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from sagasynth.errors import ConfigurationError
from sagasynth.settings import HistoryBackendEnum, Settings


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HistoryStore(Protocol):
    def append_entry(self, entry: dict[str, Any]) -> None: ...

    def list_entries(self) -> list[dict[str, Any]]: ...

    def latest_entry(self) -> dict[str, Any] | None: ...

    def ping(self) -> bool: ...


def _connect(db_path: Path) -> sqlite3.Connection:
    """Open the history database.

    IMMEDIATE isolation takes the write lock at BEGIN so concurrent appends
    serialize instead of failing mid-transaction.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        str(db_path),
        timeout=30.0,
        isolation_level="IMMEDIATE",
    )
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path) -> None:
    with _connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS history (
                entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
                created_at_utc TEXT NOT NULL,
                entry_json TEXT NOT NULL
            )
            """
        )


class SqliteHistoryStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        init_db(db_path)

    def append_entry(self, entry: dict[str, Any]) -> None:
        created_at = str(entry.get("created_at") or utc_now_iso())
        with _connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO history(created_at_utc, entry_json) VALUES (?, ?)",
                (created_at, json.dumps(entry, ensure_ascii=False)),
            )

    def list_entries(self) -> list[dict[str, Any]]:
        """All entries in insertion order."""
        with _connect(self.db_path) as conn:
            rows = conn.execute("SELECT entry_json FROM history ORDER BY entry_id ASC").fetchall()
        return [json.loads(r["entry_json"]) for r in rows]

    def latest_entry(self) -> dict[str, Any] | None:
        with _connect(self.db_path) as conn:
            row = conn.execute("SELECT entry_json FROM history ORDER BY entry_id DESC LIMIT 1").fetchone()
        return json.loads(row["entry_json"]) if row else None

    def ping(self) -> bool:
        try:
            with _connect(self.db_path) as conn:
                conn.execute("SELECT 1 FROM history LIMIT 1").fetchall()
        except sqlite3.Error:
            return False
        return True


class JsonFileHistoryStore:
    """History kept as one JSON array, rewritten on every append.

    The read-modify-write runs under a lock and the new file is moved into
    place with ``os.replace``, so readers never see a partial write.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._write([])

    def _read(self) -> list[dict[str, Any]]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"History file {self.path} is not valid JSON", details=str(e)) from e
        if not isinstance(data, list):
            raise ConfigurationError(f"History file {self.path} does not hold a JSON array")
        return data

    def _write(self, entries: list[dict[str, Any]]) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".history-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entries, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def append_entry(self, entry: dict[str, Any]) -> None:
        with self._lock:
            entries = self._read()
            entries.append(entry)
            self._write(entries)

    def list_entries(self) -> list[dict[str, Any]]:
        with self._lock:
            return self._read()

    def latest_entry(self) -> dict[str, Any] | None:
        entries = self.list_entries()
        return entries[-1] if entries else None

    def ping(self) -> bool:
        try:
            self.list_entries()
        except (OSError, ConfigurationError):
            return False
        return True


def open_history_store(settings: Settings) -> HistoryStore:
    path = settings.resolved_history_path
    if settings.history_backend == HistoryBackendEnum.JSON:
        return JsonFileHistoryStore(path)
    return SqliteHistoryStore(path)
