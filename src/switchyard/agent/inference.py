"""Recover a session's implicit state by replaying its history.

No "current mode" or "current model" field is persisted anywhere. Both are
folded out of the session's turns, scanning forward (oldest first) and
stopping at the first match. The scan direction and first-match-wins rule
decide which historical switch counts as current, so keep them as they are.

The agent tag shown to the user (prompt, status, role confirmation) is the
exception: it is the latest mode tag, so the whole history is read.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Callable
from typing import TypeVar

from switchyard.agent.history import HistoryStore, Turn
from switchyard.agent.modes import DEFAULT_MODE

T = TypeVar("T")

ROLE_MARKER = "Switched to role: "

ModelResolver = Callable[[], str]


def parse_role_marker(text: str) -> str | None:
    """Extract the role label from a ``Switched to role: <label>.`` sentence.

    The label runs up to, but not including, the next ``.``. A marker with no
    following period does not match. An empty label is skipped in favour of
    any later marker in the same text.
    """
    start = text.find(ROLE_MARKER)
    while start != -1:
        label_start = start + len(ROLE_MARKER)
        end = text.find(".", label_start)
        if end == -1:
            return None
        if end > label_start:
            return text[label_start:end]
        start = text.find(ROLE_MARKER, label_start)
    return None


async def first_match(turns: AsyncIterable[Turn], pick: Callable[[Turn], T | None]) -> T | None:
    """Return the first non-None ``pick(turn)`` in iteration order."""
    async for turn in turns:
        found = pick(turn)
        if found is not None:
            return found
    return None


async def last_match(turns: AsyncIterable[Turn], pick: Callable[[Turn], T | None]) -> T | None:
    """Return the last non-None ``pick(turn)``; consumes the whole stream."""
    found: T | None = None
    async for turn in turns:
        picked = pick(turn)
        if picked is not None:
            found = picked
    return found


def _user_model(turn: Turn) -> str | None:
    if turn.role == "user" and turn.model:
        return turn.model
    return None


def _user_mode_tag(turn: Turn) -> str | None:
    if turn.role == "user" and turn.mode:
        return turn.mode
    return None


def _role_marker(turn: Turn) -> str | None:
    if turn.role != "user" or not turn.mode:
        return None
    for part in turn.text_parts():
        label = parse_role_marker(part.text or "")
        if label is not None:
            return label
    return None


async def resolve_last_model(
    store: HistoryStore, session_id: str, default_model: ModelResolver
) -> str:
    """Model of the first user turn that names one, else the system default."""
    model = await first_match(store.stream_turns(session_id), _user_model)
    return model if model is not None else default_model()


async def resolve_current_mode(store: HistoryStore, session_id: str) -> str | None:
    """Role label from the first mode-tagged user turn carrying a role marker."""
    return await first_match(store.stream_turns(session_id), _role_marker)


async def resolve_current_agent(store: HistoryStore, session_id: str) -> str:
    """Mode tag of the most recent mode-tagged user turn, else the default mode."""
    agent = await last_match(store.stream_turns(session_id), _user_mode_tag)
    return agent if agent is not None else DEFAULT_MODE.value
