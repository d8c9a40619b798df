from __future__ import annotations

import pytest

from switchyard.agent.exceptions import InvalidModeError
from switchyard.agent.modes import (
    DEFAULT_MODE,
    MODES,
    BuildMode,
    Mode,
    PlanMode,
    get_mode_spec,
    parse_mode,
)


def test_build_is_the_unrestricted_default() -> None:
    assert DEFAULT_MODE is Mode.BUILD
    assert MODES[Mode.BUILD].restricted is False
    assert MODES[Mode.BUILD].denied_tools == ()


def test_plan_mode_contract() -> None:
    mode = PlanMode()
    assert mode.name == "plan"
    assert mode.restricted is True
    assert "write_file" in mode.denied_tools
    assert mode.prompt_prefix(">>> ") == "[PLAN] >>> "
    assert mode.switch_message == "Switched to plan mode. Edit tools are disabled."


def test_build_mode_contract() -> None:
    mode = BuildMode()
    assert mode.prompt_prefix(">>> ") == ">>> "
    assert mode.switch_message == "Switched to build agent. Full tool access enabled."


@pytest.mark.parametrize("value", ["build", "plan", Mode.PLAN])
def test_parse_mode_accepts_supported_values(value: object) -> None:
    assert parse_mode(value) in set(Mode)


@pytest.mark.parametrize("value", ["Build", "review", "", None, 1])
def test_parse_mode_rejects_everything_else(value: object) -> None:
    with pytest.raises(InvalidModeError, match="Supported modes: build, plan"):
        parse_mode(value)


def test_invalid_mode_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        get_mode_spec("nope")
