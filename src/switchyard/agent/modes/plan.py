"""Plan mode implementation.

Plan mode is read-only: the agent explores and designs but does not edit.

Note: entering plan mode does not write a permission set. The restriction is
recorded in history and enforced by whichever tool layer consults the mode;
only leaving a restricted posture for build resets the session's permissions.
"""

from __future__ import annotations

from typing import override

from switchyard.agent.modes.base import Mode, ModeSpec


class PlanMode(ModeSpec):
    """Mode for systematic exploration and planning."""

    @property
    @override
    def mode(self) -> Mode:
        return Mode.PLAN

    @property
    @override
    def restricted(self) -> bool:
        return True

    @property
    @override
    def switch_message(self) -> str:
        return "Switched to plan mode. Edit tools are disabled."

    @property
    @override
    def denied_tools(self) -> tuple[str, ...]:
        return ("write_file", "edit_file", "patch", "shell")

    @override
    def prompt_prefix(self, default_prompt: str) -> str:
        del default_prompt
        return "[PLAN] >>> "
