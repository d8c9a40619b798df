"""Agent modes.

A mode is the enumerated operating posture of a session. ``build`` is the
unrestricted default; ``plan`` withholds edit tools.
"""

from __future__ import annotations

from switchyard.agent.exceptions import InvalidModeError
from switchyard.agent.modes.base import Mode, ModeSpec
from switchyard.agent.modes.build import BuildMode
from switchyard.agent.modes.plan import PlanMode

DEFAULT_MODE = Mode.BUILD

MODES: dict[Mode, ModeSpec] = {
    Mode.BUILD: BuildMode(),
    Mode.PLAN: PlanMode(),
}


def parse_mode(value: object) -> Mode:
    """Return the ``Mode`` for ``value`` or raise ``InvalidModeError``."""
    if isinstance(value, Mode):
        return value
    if isinstance(value, str):
        try:
            return Mode(value)
        except ValueError:
            pass
    supported = ", ".join(m.value for m in Mode)
    raise InvalidModeError(f"Unsupported mode {value!r}. Supported modes: {supported}")


def get_mode_spec(value: object) -> ModeSpec:
    return MODES[parse_mode(value)]


__all__ = [
    "DEFAULT_MODE",
    "MODES",
    "BuildMode",
    "Mode",
    "ModeSpec",
    "PlanMode",
    "get_mode_spec",
    "parse_mode",
]
