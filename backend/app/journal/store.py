"""
Session store: a keyed, capacity-bounded, recency-ordered list of threads.

Contract:
- upsert() moves the session to the front (replacing any entry with the same id)
  and truncates the list to `capacity`, silently evicting the oldest entries
- every mutating call persists the full list immediately through the backend
- an unreadable persisted blob is logged and read as an empty store
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from backend.app.journal.errors import PersistenceReadError
from backend.app.journal.schema import Session
from backend.app.observability import hash_thread_id

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50
DEFAULT_STORAGE_KEY = "layers_sessions"


class StorageBackend(Protocol):
    def load(self) -> Optional[str]:
        ...

    def save(self, blob: str) -> None:
        ...


class InMemoryBackend:
    def __init__(self, blob: Optional[str] = None) -> None:
        self.blob = blob
        self.save_count = 0

    def load(self) -> Optional[str]:
        return self.blob

    def save(self, blob: str) -> None:
        self.blob = blob
        self.save_count += 1


class FileBackend:
    """One JSON file per storage key, replaced atomically on every save."""

    def __init__(self, directory: str | os.PathLike, key: str = DEFAULT_STORAGE_KEY) -> None:
        self.directory = Path(directory).expanduser()
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def save(self, blob: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{self.key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(blob)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


def decode_sessions(blob: Optional[str]) -> List[Session]:
    if blob is None or not blob.strip():
        return []
    try:
        records = json.loads(blob)
    except ValueError as exc:
        raise PersistenceReadError("session blob is not valid JSON") from exc
    if not isinstance(records, list):
        raise PersistenceReadError("session blob must be a JSON array")
    try:
        return [Session.model_validate(record) for record in records]
    except PydanticValidationError as exc:
        raise PersistenceReadError(f"invalid session record: {exc.error_count()} error(s)") from exc


def encode_sessions(sessions: List[Session]) -> str:
    return json.dumps([s.to_record() for s in sessions], ensure_ascii=False)


class SessionStore:
    def __init__(self, backend: StorageBackend, *, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.backend = backend
        self.capacity = capacity

    def _read(self) -> List[Session]:
        try:
            try:
                blob = self.backend.load()
            except (OSError, ValueError) as exc:
                raise PersistenceReadError(f"session blob unreadable: {exc.__class__.__name__}") from exc
            return decode_sessions(blob)
        except PersistenceReadError as exc:
            logger.warning("[STORE] persisted sessions unreadable, starting empty", extra={"reason": str(exc)})
            return []

    def _write(self, sessions: List[Session]) -> None:
        self.backend.save(encode_sessions(sessions))

    def list(self) -> List[Session]:
        return self._read()

    def get_by_id(self, session_id: str) -> Optional[Session]:
        for session in self._read():
            if session.id == session_id:
                return session
        return None

    def upsert(self, session: Session) -> None:
        sessions = [s for s in self._read() if s.id != session.id]
        sessions.insert(0, session)
        evicted = sessions[self.capacity:]
        self._write(sessions[: self.capacity])
        logger.info(
            "[STORE] upsert",
            extra={"thread_hash": hash_thread_id(session.id), "size": min(len(sessions), self.capacity), "evicted": len(evicted)},
        )

    def delete(self, session_id: str) -> bool:
        sessions = self._read()
        remaining = [s for s in sessions if s.id != session_id]
        if len(remaining) == len(sessions):
            return False
        self._write(remaining)
        return True

    def __len__(self) -> int:
        return len(self._read())


def create_file_store(directory: str | os.PathLike, key: str = DEFAULT_STORAGE_KEY, *, capacity: int = DEFAULT_CAPACITY) -> SessionStore:
    return SessionStore(FileBackend(directory, key), capacity=capacity)


__all__ = [
    "DEFAULT_CAPACITY",
    "DEFAULT_STORAGE_KEY",
    "FileBackend",
    "InMemoryBackend",
    "SessionStore",
    "StorageBackend",
    "create_file_store",
    "decode_sessions",
    "encode_sessions",
]
