"""Build mode: the unrestricted default."""

from __future__ import annotations

from typing import override

from switchyard.agent.modes.base import Mode, ModeSpec


class BuildMode(ModeSpec):
    """Full tool access."""

    @property
    @override
    def mode(self) -> Mode:
        return Mode.BUILD

    @property
    @override
    def restricted(self) -> bool:
        return False

    @property
    @override
    def switch_message(self) -> str:
        return "Switched to build agent. Full tool access enabled."

    @override
    def prompt_prefix(self, default_prompt: str) -> str:
        return default_prompt
