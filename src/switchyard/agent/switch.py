"""Mode switching for a running session.

One call to :meth:`ModeSwitchController.switch_mode` is one logical transition:

1. recover the last selected model and the current role/mode from history
2. reset the session's permissions when leaving a tagged mode for build
3. append a user turn tagged with the new mode and the recovered model
4. append a synthetic text part to that turn describing the effect

The steps run strictly one after another. Collaborator failures propagate
unchanged and nothing already applied is rolled back: if the permission reset
succeeds and the turn append fails, the session is left unrestricted without a
recorded transition.

Concurrent calls for the same session are not serialized here. Callers that
need a single writer per session can route calls through
:class:`SessionSequencer`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from switchyard.agent.history import HistoryStore, Part, Turn, utcnow
from switchyard.agent.ids import IdKind
from switchyard.agent.inference import ModelResolver, resolve_current_mode, resolve_last_model
from switchyard.agent.log import TransitionLogger
from switchyard.agent.modes import DEFAULT_MODE, MODES, Mode, parse_mode
from switchyard.agent.permissions import PermissionRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

IdSource = Callable[[IdKind], str]


@dataclass(frozen=True, slots=True)
class SwitchResult:
    """Result handed back to the tool-invocation layer.

    Attributes:
        title: Short title naming the target.
        metadata: Structured details (e.g. ``{"mode": "plan"}``).
        output: The same text recorded in the synthetic part.
    """

    title: str
    metadata: dict[str, Any] = field(default_factory=dict)
    output: str = ""


class ModeSwitchController:
    """Performs mode transitions against external collaborators."""

    store: HistoryStore
    permissions: PermissionRegistry
    ids: IdSource
    default_model: ModelResolver
    trace: TransitionLogger | None

    def __init__(
        self,
        store: HistoryStore,
        permissions: PermissionRegistry,
        ids: IdSource,
        default_model: ModelResolver,
        trace: TransitionLogger | None = None,
    ) -> None:
        self.store = store
        self.permissions = permissions
        self.ids = ids
        self.default_model = default_model
        self.trace = trace

    async def switch_mode(self, session_id: str, target: Mode | str) -> SwitchResult:
        """Switch ``session_id`` to ``target`` and record the transition.

        Raises:
            InvalidModeError: ``target`` is not a supported mode. Raised before
                any collaborator is touched.
        """
        mode = parse_mode(target)
        spec = MODES[mode]

        last_model = await resolve_last_model(self.store, session_id, self.default_model)
        current_mode = await resolve_current_mode(self.store, session_id)
        logger.debug(f"[{session_id}] recovered model={last_model} mode={current_mode}")
        if self.trace:
            self.trace.log_inference(session_id, last_model, current_mode)

        if current_mode and mode is DEFAULT_MODE:
            await self.permissions.set_permissions(session_id, [])
            if self.trace:
                self.trace.log_permission_reset(session_id, current_mode)

        turn = Turn(
            id=self.ids("message"),
            session_id=session_id,
            role="user",
            created=utcnow(),
            mode=mode.value,
            model=last_model,
        )
        await self.store.append_turn(turn)

        message = spec.switch_message
        await self.store.append_part(
            Part(
                id=self.ids("part"),
                message_id=turn.id,
                session_id=session_id,
                type="text",
                text=message,
                synthetic=True,
            )
        )

        if self.trace:
            self.trace.log_mode_switch(session_id, mode.value, turn.id)

        return SwitchResult(
            title=f"Switched to {mode.value}",
            metadata={"mode": mode.value},
            output=message,
        )


class SessionSequencer:
    """Opt-in single-writer queue: runs at most one operation per session at a time.

    A session's lock is dropped once no operation holds or waits on it.
    """

    _locks: dict[str, asyncio.Lock]
    _users: dict[str, int]

    def __init__(self) -> None:
        self._locks = {}
        self._users = {}

    def active_sessions(self) -> list[str]:
        """Sessions with an operation running or queued."""
        return list(self._locks)

    async def run(self, session_id: str, operation: Callable[[], Awaitable[T]]) -> T:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                return await operation()
        finally:
            self._users[session_id] -= 1
            if not self._users[session_id]:
                del self._users[session_id]
                del self._locks[session_id]
