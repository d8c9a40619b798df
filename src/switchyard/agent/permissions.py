"""Per-session permission sets.

A session's permission set is an ordered list of rules. An empty list means
the session is unrestricted. Sets are only ever replaced wholesale; there is
no incremental add/remove at the registry level.
"""

from __future__ import annotations

import asyncio
import json
import threading
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict, TypeAdapter

from switchyard.conf import settings

Action = Literal["allow", "deny", "ask"]


class PermissionRule(BaseModel):
    """One capability rule: which tool, which target pattern, what to do."""

    model_config = ConfigDict(frozen=True)  # pyright: ignore[reportUnannotatedClassAttribute]

    permission: str
    pattern: str = "*"
    action: Action = "deny"


_RULES = TypeAdapter(list[PermissionRule])


def evaluate(rules: list[PermissionRule], tool: str, target: str = "*") -> Action:
    """Return the action for a tool call under ``rules``.

    The last matching rule wins; when nothing matches the call is allowed.
    Both ``permission`` and ``pattern`` are shell-style globs.
    """
    action: Action = "allow"
    for rule in rules:
        if fnmatchcase(tool, rule.permission) and fnmatchcase(target, rule.pattern):
            action = rule.action
    return action


class PermissionRegistry(Protocol):
    """Interface consumed by the switch controller."""

    async def get_permissions(self, session_id: str) -> list[PermissionRule]: ...

    async def set_permissions(self, session_id: str, rules: list[PermissionRule]) -> None:
        """Replace the session's permission set. ``[]`` means unrestricted."""
        ...


class MemoryPermissionRegistry:
    """In-process permission registry."""

    _rules: dict[str, list[PermissionRule]]

    def __init__(self) -> None:
        self._rules = {}

    async def get_permissions(self, session_id: str) -> list[PermissionRule]:
        return list(self._rules.get(session_id, ()))

    async def set_permissions(self, session_id: str, rules: list[PermissionRule]) -> None:
        self._rules[session_id] = list(rules)


class FilePermissionRegistry:
    """Permission sets stored as one JSON file per session."""

    permission_dir: Path
    _lock: threading.Lock

    def __init__(self, permission_dir: Path | None = None) -> None:
        self.permission_dir = permission_dir or settings.PERMISSION_DIR
        self.permission_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def permission_file(self, session_id: str) -> Path:
        return self.permission_dir / f"permissions-{session_id}.json"

    def _read(self, session_id: str) -> list[PermissionRule]:
        path = self.permission_file(session_id)
        if not path.exists():
            return []
        return _RULES.validate_json(path.read_bytes())

    def _write(self, session_id: str, rules: list[PermissionRule]) -> None:
        path = self.permission_file(session_id)
        tmp = path.with_suffix(".json.tmp")
        payload = [rule.model_dump() for rule in rules]
        with self._lock:
            tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp.replace(path)

    async def get_permissions(self, session_id: str) -> list[PermissionRule]:
        return await asyncio.to_thread(self._read, session_id)

    async def set_permissions(self, session_id: str, rules: list[PermissionRule]) -> None:
        await asyncio.to_thread(self._write, session_id, list(rules))
