"""Collaborator wiring.

A Runtime bundles the external collaborators the switching core consumes
(history store, permission registry, identifier source, model resolver) and
builds the controllers that operate on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from switchyard.agent.history import FileHistoryStore, HistoryStore, MemoryHistoryStore
from switchyard.agent.ids import IdentifierGenerator, default_ids
from switchyard.agent.inference import ModelResolver
from switchyard.agent.log import TransitionLogger
from switchyard.agent.permissions import (
    FilePermissionRegistry,
    MemoryPermissionRegistry,
    PermissionRegistry,
)
from switchyard.agent.roles import RoleLoader, RoleSwitcher, get_role_loader
from switchyard.agent.switch import IdSource, ModeSwitchController
from switchyard.conf import settings


def default_model() -> str:
    """System-wide fallback model."""
    return settings.DEFAULT_MODEL


@dataclass
class Runtime:
    store: HistoryStore
    permissions: PermissionRegistry
    ids: IdSource = field(default=default_ids)
    default_model: ModelResolver = field(default=default_model)
    roles: RoleLoader | None = None
    trace: TransitionLogger | None = None

    @classmethod
    def from_settings(cls, trace: TransitionLogger | None = None) -> Runtime:
        """File-backed collaborators rooted at the configured directories."""
        return cls(
            store=FileHistoryStore(settings.SESSION_DIR),
            permissions=FilePermissionRegistry(settings.PERMISSION_DIR),
            roles=get_role_loader(Path(settings.ROLES_DIR)),
            trace=trace,
        )

    @classmethod
    def in_memory(cls, roles_dir: Path | None = None) -> Runtime:
        """Process-local collaborators with a private identifier generator."""
        return cls(
            store=MemoryHistoryStore(),
            permissions=MemoryPermissionRegistry(),
            ids=IdentifierGenerator(),
            roles=RoleLoader(roles_dir) if roles_dir is not None else None,
        )

    def mode_switcher(self) -> ModeSwitchController:
        return ModeSwitchController(
            self.store, self.permissions, self.ids, self.default_model, trace=self.trace
        )

    def role_switcher(self) -> RoleSwitcher:
        return RoleSwitcher(
            self.store, self.ids, self.default_model, loader=self.roles, trace=self.trace
        )
