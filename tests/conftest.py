from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from pathlib import Path

import pytest

from switchyard.agent.history import HistoryStore, Part, Turn
from switchyard.agent.ids import IdentifierGenerator
from switchyard.agent.roles import clear_role_cache
from switchyard.agent.runtime import Runtime
from switchyard.conf import settings

SeedTurn = Callable[..., Awaitable[Turn]]


@pytest.fixture(autouse=True)
def _isolate_switchyard_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep tests hermetic: redirect switchyard paths to tmp_path + reset caches."""

    session_dir = tmp_path / "sessions"
    permission_dir = tmp_path / "permissions"
    roles_dir = tmp_path / ".switchyard" / "roles"
    log_dir = tmp_path / "logs"

    for d in [session_dir, permission_dir, roles_dir, log_dir]:
        d.mkdir(parents=True, exist_ok=True)

    monkeypatch.chdir(tmp_path)

    monkeypatch.setattr(settings, "SESSION_DIR", session_dir, raising=False)
    monkeypatch.setattr(settings, "PERMISSION_DIR", permission_dir, raising=False)
    monkeypatch.setattr(settings, "ROLES_DIR", roles_dir, raising=False)
    monkeypatch.setattr(settings, "LOG_DIR", log_dir, raising=False)
    monkeypatch.setattr(settings, "LOG_TO_CONSOLE", False, raising=False)
    monkeypatch.setattr(settings, "DEFAULT_MODEL", "default-model", raising=False)

    clear_role_cache()

    yield

    clear_role_cache()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def roles_dir() -> Path:
    return Path(settings.ROLES_DIR)


@pytest.fixture
def runtime(roles_dir: Path) -> Runtime:
    return Runtime.in_memory(roles_dir=roles_dir)


@pytest.fixture
def write_role(roles_dir: Path) -> Callable[..., Path]:
    """Write a role YAML file into the isolated roles directory."""

    def _write(name: str, body: str) -> Path:
        path = roles_dir / f"{name}.yaml"
        path.write_text(body, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def seed_turn() -> SeedTurn:
    """Append a turn (and text parts) to a store, bypassing the controllers."""
    ids = IdentifierGenerator()

    async def _seed(
        store: HistoryStore,
        session_id: str,
        *texts: str,
        role: str = "user",
        mode: str | None = None,
        model: str | None = None,
        synthetic: bool = False,
    ) -> Turn:
        turn = Turn(id=ids("message"), session_id=session_id, role=role, mode=mode, model=model)
        await store.append_turn(turn)
        for text in texts:
            await store.append_part(
                Part(
                    id=ids("part"),
                    message_id=turn.id,
                    session_id=session_id,
                    text=text,
                    synthetic=synthetic,
                )
            )
        return turn

    return _seed


@pytest.fixture
def collect() -> Callable[[HistoryStore, str], Awaitable[list[Turn]]]:
    """Drain a session's turn stream into a list."""

    async def _collect(store: HistoryStore, session_id: str) -> list[Turn]:
        return [turn async for turn in store.stream_turns(session_id)]

    return _collect
