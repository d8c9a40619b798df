"""Base types for agent modes.

An *agent mode* is the operating posture of a session. Modes are not stored on
the session; the active one is recovered from history (see
:mod:`switchyard.agent.inference`). Each mode declares:
- the canned message recorded when a session switches into it
- whether it is restricted, and which tools it is meant to withhold
- the interactive prompt prefix
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum


class Mode(StrEnum):
    """Supported agent modes."""

    BUILD = "build"
    PLAN = "plan"


class ModeSpec(ABC):
    """Interface for agent mode definitions."""

    @property
    @abstractmethod
    def mode(self) -> Mode:
        """The enum value this spec describes."""

    @property
    def name(self) -> str:
        return self.mode.value

    @property
    @abstractmethod
    def restricted(self) -> bool:
        """True if the mode carries a reduced capability set."""

    @property
    @abstractmethod
    def switch_message(self) -> str:
        """Human-readable sentence recorded when switching into the mode."""

    @property
    def denied_tools(self) -> tuple[str, ...]:
        """Tools the mode is meant to withhold."""
        return ()

    @abstractmethod
    def prompt_prefix(self, default_prompt: str) -> str:
        """Return the prompt string to show in interactive mode."""
