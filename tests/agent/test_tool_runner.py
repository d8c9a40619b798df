from __future__ import annotations

from typing import Any

import pytest

from switchyard.agent.exceptions import InvalidModeError, ToolNotFoundError, ToolParameterError
from switchyard.agent.runtime import Runtime
from switchyard.agent.tool_runner import ToolContext, available_tools, run_tool
from switchyard.agent.tool_schema import TOOLS, TOOLS_BY_NAME, populate_role_descriptions

SID = "ses_tools"


@pytest.fixture
def ctx(runtime: Runtime) -> ToolContext:
    return ToolContext(session_id=SID, runtime=runtime)


@pytest.mark.anyio
async def test_agent_switch_tool(ctx: ToolContext, collect: Any) -> None:
    result = await run_tool("agent_switch", {"mode": "plan"}, ctx)

    assert result.title == "Switched to plan"
    assert result.metadata == {"mode": "plan"}
    [turn] = await collect(ctx.runtime.store, SID)
    assert turn.mode == "plan"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "parameters",
    [{}, {"mode": "review"}, {"mode": "plan", "extra": 1}, {"mode": 3}],
)
async def test_agent_switch_rejects_bad_parameters(
    ctx: ToolContext, parameters: dict[str, Any], collect: Any
) -> None:
    with pytest.raises(ToolParameterError, match="Invalid parameters for agent_switch"):
        await run_tool("agent_switch", parameters, ctx)

    assert await collect(ctx.runtime.store, SID) == []


@pytest.mark.anyio
async def test_parameter_errors_are_value_errors(ctx: ToolContext) -> None:
    with pytest.raises(ValueError):
        await run_tool("agent_switch", {"mode": "review"}, ctx)
    assert not issubclass(ToolParameterError, InvalidModeError)


@pytest.mark.anyio
async def test_unknown_tool(ctx: ToolContext) -> None:
    expected = "Unknown tool: shell. Known tools: agent_switch, role"
    with pytest.raises(ToolNotFoundError, match=expected):
        await run_tool("shell", {}, ctx)


@pytest.mark.anyio
async def test_role_tool_list_and_switch(write_role: Any, ctx: ToolContext) -> None:
    write_role("reviewer", "description: Reviews\nallowed_tools: [read_file]\n")

    listed = await run_tool("role", {"action": "list"}, ctx)
    switched = await run_tool("role", {"action": "switch", "role_name": "reviewer"}, ctx)

    assert listed.metadata == {"roles": ["reviewer"]}
    assert switched.metadata == {"role": "reviewer", "allowed_tools": ["read_file"]}


@pytest.mark.anyio
async def test_role_tool_switch_without_name(ctx: ToolContext) -> None:
    with pytest.raises(ToolParameterError, match="role_name required"):
        await run_tool("role", {"action": "switch"}, ctx)


@pytest.mark.anyio
async def test_role_tool_rejects_unknown_action(ctx: ToolContext) -> None:
    with pytest.raises(ToolParameterError, match="Invalid parameters for role"):
        await run_tool("role", {"action": "delete"}, ctx)


def test_schema_mode_enum_matches_modes() -> None:
    params = TOOLS_BY_NAME["agent_switch"]["function"]["parameters"]

    assert params["properties"]["mode"]["enum"] == ["build", "plan"]
    assert params["required"] == ["mode"]


def test_populate_role_descriptions_does_not_mutate_tools() -> None:
    before = TOOLS_BY_NAME["role"]["function"]["description"]

    tools = populate_role_descriptions([("reviewer", "Reviews changes")])

    role_tool = next(t for t in tools if t["function"]["name"] == "role")
    assert "- reviewer: Reviews changes" in role_tool["function"]["description"]
    assert TOOLS_BY_NAME["role"]["function"]["description"] == before
    assert "(none)" in before
    assert len(tools) == len(TOOLS)


def test_available_tools_lists_loaded_roles(write_role: Any, runtime: Runtime) -> None:
    write_role("writer", "description: Writes docs\n")

    tools = available_tools(runtime)

    role_tool = next(t for t in tools if t["function"]["name"] == "role")
    assert "- writer: Writes docs" in role_tool["function"]["description"]
