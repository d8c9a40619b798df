"""Append-only message history for switchyard sessions.

A session's history is an ordered log of turns (user/assistant messages) and
the parts attached to them. Nothing here edits or deletes an entry once it has
been appended; current state is derived by replaying the log.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

from switchyard.conf import settings

logger = logging.getLogger(__name__)

Role = Literal["user", "assistant"]


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Part(BaseModel):
    """A sub-unit of a turn's content."""

    model_config = ConfigDict(frozen=True)  # pyright: ignore[reportUnannotatedClassAttribute]

    id: str
    message_id: str
    session_id: str
    type: str = "text"
    text: str | None = None
    # Set on content generated by the system itself rather than a human or model.
    synthetic: bool = False


class Turn(BaseModel):
    """One message-level entry in a session's history."""

    model_config = ConfigDict(frozen=True)  # pyright: ignore[reportUnannotatedClassAttribute]

    id: str
    session_id: str
    role: Role
    created: datetime = Field(default_factory=utcnow)
    model: str | None = None
    mode: str | None = None
    parts: tuple[Part, ...] = ()

    def text_parts(self) -> list[Part]:
        return [p for p in self.parts if p.type == "text" and p.text is not None]


class HistoryStore(Protocol):
    """Interface consumed by mode inference and the switch controller."""

    def stream_turns(self, session_id: str) -> AsyncIterator[Turn]:
        """Yield the session's turns oldest first, parts attached in append order."""
        ...

    async def append_turn(self, turn: Turn) -> None: ...

    async def append_part(self, part: Part) -> None: ...

    async def list_sessions(self) -> list[str]: ...


def _assemble(turns: list[Turn], parts: list[Part]) -> list[Turn]:
    """Attach parts to their turns, preserving append order for both."""
    by_turn: dict[str, list[Part]] = {}
    for part in parts:
        by_turn.setdefault(part.message_id, []).append(part)
    return [
        turn.model_copy(update={"parts": (*turn.parts, *by_turn.get(turn.id, ()))})
        for turn in turns
    ]


class MemoryHistoryStore:
    """In-process history store."""

    _turns: dict[str, list[Turn]]
    _parts: dict[str, list[Part]]

    def __init__(self) -> None:
        self._turns = {}
        self._parts = {}

    async def stream_turns(self, session_id: str) -> AsyncIterator[Turn]:
        # Snapshot so that appends made while a caller iterates do not leak in.
        turns = list(self._turns.get(session_id, ()))
        parts = list(self._parts.get(session_id, ()))
        for turn in _assemble(turns, parts):
            yield turn

    async def append_turn(self, turn: Turn) -> None:
        self._turns.setdefault(turn.session_id, []).append(turn)

    async def append_part(self, part: Part) -> None:
        known = {t.id for t in self._turns.get(part.session_id, ())}
        if part.message_id not in known:
            raise LookupError(f"Unknown message {part.message_id} in session {part.session_id}")
        self._parts.setdefault(part.session_id, []).append(part)

    async def list_sessions(self) -> list[str]:
        return list(self._turns)


class FileHistoryStore:
    """Append-only JSONL history, one file per session.

    Each line is ``{"kind": "turn" | "part", ...}``. Corrupt lines raise
    instead of being skipped so that inference never silently ignores history.
    """

    session_dir: Path
    _lock: threading.Lock

    def __init__(self, session_dir: Path | None = None) -> None:
        self.session_dir = session_dir or settings.SESSION_DIR
        self.session_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def session_file(self, session_id: str) -> Path:
        return self.session_dir / f"session-{session_id}.jsonl"

    def _append(self, session_id: str, record: dict[str, Any]) -> None:
        """Thread-safe append to JSONL file."""
        with self._lock:
            with open(self.session_file(session_id), "a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")

    def _load(self, session_id: str) -> list[Turn]:
        path = self.session_file(session_id)
        if not path.exists():
            return []

        turns: list[Turn] = []
        parts: list[Part] = []
        with open(path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, 1):
                if not line.strip():
                    continue
                raw = json.loads(line)
                kind = raw.pop("kind", None)
                if kind == "turn":
                    turns.append(Turn.model_validate(raw))
                elif kind == "part":
                    parts.append(Part.model_validate(raw))
                else:
                    raise ValueError(f"{path}:{lineno}: unknown record kind {kind!r}")
        return _assemble(turns, parts)

    def _has_turn(self, session_id: str, message_id: str) -> bool:
        return any(t.id == message_id for t in self._load(session_id))

    async def stream_turns(self, session_id: str) -> AsyncIterator[Turn]:
        """Yield the session's turns with their parts attached.

        The whole file is parsed before the first turn is yielded: a part may
        be appended after later turns (interleaved switches), so no turn is
        complete until the end of the file. A first-match scan stops consuming
        early but the file has already been read in full. The result is a snapshot;
        appends made while the caller iterates are not seen.
        """
        turns = await asyncio.to_thread(self._load, session_id)
        for turn in turns:
            yield turn

    async def append_turn(self, turn: Turn) -> None:
        record = {"kind": "turn", **turn.model_dump(mode="json", exclude={"parts"})}
        await asyncio.to_thread(self._append, turn.session_id, record)
        for part in turn.parts:
            await self.append_part(part)

    async def append_part(self, part: Part) -> None:
        if not await asyncio.to_thread(self._has_turn, part.session_id, part.message_id):
            raise LookupError(f"Unknown message {part.message_id} in session {part.session_id}")
        record = {"kind": "part", **part.model_dump(mode="json")}
        await asyncio.to_thread(self._append, part.session_id, record)

    async def list_sessions(self) -> list[str]:
        return [p.stem.removeprefix("session-") for p in list_session_files(self.session_dir)]


def list_session_files(session_dir: Path | None = None) -> list[Path]:
    """Return list of session-*.jsonl files, sorted by mtime (newest first)."""
    session_dir = session_dir or settings.SESSION_DIR
    if not session_dir.exists():
        return []
    return sorted(
        session_dir.glob("session-*.jsonl"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )


def get_session_info(path: Path) -> dict[str, Any]:
    """Return session metadata: id, created, modified, size, turn_count."""
    stat = path.stat()
    turn_count = 0
    try:
        with open(path, encoding="utf-8") as f:
            turn_count = sum(1 for line in f if '"kind": "turn"' in line)
    except OSError as e:
        logger.warning(f"Failed to read session file {path}: {e}")

    return {
        "id": path.stem.replace("session-", ""),
        "path": str(path),
        "created": datetime.fromtimestamp(stat.st_ctime).isoformat(),
        "modified": datetime.fromtimestamp(stat.st_mtime).isoformat(),
        "size": stat.st_size,
        "turn_count": turn_count,
    }
