"""Role registry and role switching.

A role is a named posture (description, system prompt, allowed tools) loaded
from ``{settings.ROLES_DIR}/*.yaml``. Switching to a role records a synthetic
``Switched to role: <name>. ...`` sentence on a build-tagged user turn; that
sentence is what mode inference later reads back as the session's current
role.

Role file format::

    name: reviewer
    description: Reviews changes without editing
    system_prompt: |
      You are a careful code reviewer.
    allowed_tools:
      - read_file
      - grep_search
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from switchyard.agent.exceptions import RoleNotFoundError, RoleSwitchCancelled, ToolParameterError
from switchyard.agent.history import HistoryStore, Part, Turn, utcnow
from switchyard.agent.inference import ModelResolver, resolve_current_agent, resolve_last_model
from switchyard.agent.log import TransitionLogger
from switchyard.agent.modes import Mode
from switchyard.agent.switch import IdSource, SwitchResult
from switchyard.conf import settings

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], Awaitable[bool]]


class RoleConfig(BaseModel):
    """Configuration for a single role."""

    name: str
    description: str = ""
    system_prompt: str = ""
    allowed_tools: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        # A period would end the label early when the role marker is parsed back.
        if not re.match(r"^[a-zA-Z0-9_-]+$", v):
            raise ValueError("Role name must be alphanumeric, dash, or underscore")
        return v

    def switch_text(self) -> str:
        tools = ", ".join(self.allowed_tools)
        return (
            f"Switched to role: {self.name}. {self.description}\n\n"
            f"Allowed tools: {tools}\n\n{self.system_prompt}"
        )


def parse_role_file(path: Path) -> RoleConfig | None:
    """Parse a single role file.

    Returns:
        RoleConfig if valid, None if parsing failed (warning logged)
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            logger.warning(f"Invalid role file {path}: expected a mapping")
            return None
        data.setdefault("name", path.stem)
        return RoleConfig(**data)
    except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
        logger.warning(f"Invalid role file {path}: {e}")
        return None


class RoleLoader:
    """Discovers and caches roles from a directory."""

    roles_dir: Path
    _roles: list[RoleConfig] | None

    def __init__(self, roles_dir: Path) -> None:
        self.roles_dir = roles_dir
        self._roles = None

    def _discover(self) -> list[RoleConfig]:
        if not self.roles_dir.is_dir():
            return []

        roles: list[RoleConfig] = []
        seen: set[str] = set()
        paths = sorted([*self.roles_dir.glob("*.yaml"), *self.roles_dir.glob("*.yml")])
        for path in paths:
            role = parse_role_file(path)
            if role is None:
                continue
            key = role.name.lower()
            if key in seen:
                logger.warning(f"Duplicate role '{role.name}' in {path}, skipping")
                continue
            seen.add(key)
            roles.append(role)
            logger.debug(f"Loaded role '{role.name}' from {path}")
        return roles

    def list_roles(self) -> list[RoleConfig]:
        if self._roles is None:
            self._roles = self._discover()
        return list(self._roles)

    def get_role(self, name: str) -> RoleConfig | None:
        """Case-insensitive lookup."""
        wanted = name.lower()
        for role in self.list_roles():
            if role.name.lower() == wanted:
                return role
        return None


@lru_cache(maxsize=16)
def _get_role_loader(roles_dir: Path | None = None) -> RoleLoader:
    resolved = roles_dir if roles_dir is not None else Path(settings.ROLES_DIR)
    return RoleLoader(resolved)


def clear_role_cache() -> None:
    """Forget loaded roles. Useful for testing or when role files change."""
    _get_role_loader.cache_clear()


def get_role_loader(roles_dir: Path | None = None) -> RoleLoader:
    return _get_role_loader(roles_dir)


class RoleSwitcher:
    """Lists roles and records role switches in session history."""

    store: HistoryStore
    ids: IdSource
    default_model: ModelResolver
    loader: RoleLoader
    trace: TransitionLogger | None

    def __init__(
        self,
        store: HistoryStore,
        ids: IdSource,
        default_model: ModelResolver,
        loader: RoleLoader | None = None,
        trace: TransitionLogger | None = None,
    ) -> None:
        self.store = store
        self.ids = ids
        self.default_model = default_model
        self.loader = loader or get_role_loader()
        self.trace = trace

    def list_roles(self) -> SwitchResult:
        roles = self.loader.list_roles()
        output = "\n".join(f"{r.name}: {r.description}" for r in roles)
        return SwitchResult(
            title="Available Roles",
            metadata={"roles": [r.name for r in roles]},
            output=output,
        )

    async def switch(
        self,
        session_id: str,
        role_name: str | None,
        confirm: ConfirmCallback | None = None,
    ) -> SwitchResult:
        """Switch ``session_id`` to a role.

        In plan mode the user is asked first; declining (or having no way to
        ask) raises ``RoleSwitchCancelled`` before anything is written.
        """
        if not role_name:
            raise ToolParameterError("role_name required for switch action")

        role = self.loader.get_role(role_name)
        if role is None:
            available = ", ".join(r.name for r in self.loader.list_roles())
            raise RoleNotFoundError(f'Role "{role_name}" not found. Available: {available}')

        current_agent = await resolve_current_agent(self.store, session_id)
        if current_agent == Mode.PLAN.value:
            question = (
                f'Switch to role "{role.name}"? This will apply the role\'s permissions '
                "and switch to build mode to execute tasks."
            )
            if confirm is None or not await confirm(question):
                raise RoleSwitchCancelled("Role switch cancelled")

        model = await resolve_last_model(self.store, session_id, self.default_model)

        turn = Turn(
            id=self.ids("message"),
            session_id=session_id,
            role="user",
            created=utcnow(),
            mode=Mode.BUILD.value,
            model=model,
        )
        await self.store.append_turn(turn)
        await self.store.append_part(
            Part(
                id=self.ids("part"),
                message_id=turn.id,
                session_id=session_id,
                type="text",
                text=role.switch_text(),
                synthetic=True,
            )
        )

        if self.trace:
            self.trace.log_role_switch(session_id, role.name, turn.id)

        tools = ", ".join(role.allowed_tools)
        return SwitchResult(
            title=f"Switched to {role.name}",
            metadata={"role": role.name, "allowed_tools": list(role.allowed_tools)},
            output=f'Role changed to "{role.name}". Allowed tools: {tools}',
        )
