"""Tool execution for the mode and role tools.

This is the seam between a model's tool call and the switching core:
parameters are validated here, before any collaborator is touched, and the
core's result is handed back unchanged.

Architectural constraint:
    This module must not import the CLI to avoid import cycles.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from switchyard.agent.exceptions import ToolNotFoundError, ToolParameterError
from switchyard.agent.modes import Mode
from switchyard.agent.roles import ConfirmCallback
from switchyard.agent.runtime import Runtime
from switchyard.agent.switch import SwitchResult
from switchyard.agent.tool_schema import populate_role_descriptions

P = TypeVar("P", bound=BaseModel)


class AgentSwitchParams(BaseModel):
    model_config = ConfigDict(extra="forbid")  # pyright: ignore[reportUnannotatedClassAttribute]

    mode: Mode


class RoleParams(BaseModel):
    model_config = ConfigDict(extra="forbid")  # pyright: ignore[reportUnannotatedClassAttribute]

    action: Literal["list", "switch"]
    role_name: str | None = None


@dataclass
class ToolContext:
    """Per-call context supplied by the invoking layer."""

    session_id: str
    runtime: Runtime
    confirm: ConfirmCallback | None = None


ToolHandler = Callable[[dict[str, Any], ToolContext], Awaitable[SwitchResult]]


def _validate(model: type[P], tool_name: str, parameters: dict[str, Any]) -> P:
    try:
        return model.model_validate(parameters)
    except ValidationError as e:
        raise ToolParameterError(f"Invalid parameters for {tool_name}: {e}") from e


async def _agent_switch(parameters: dict[str, Any], ctx: ToolContext) -> SwitchResult:
    params = _validate(AgentSwitchParams, "agent_switch", parameters)
    return await ctx.runtime.mode_switcher().switch_mode(ctx.session_id, params.mode)


async def _role(parameters: dict[str, Any], ctx: ToolContext) -> SwitchResult:
    params = _validate(RoleParams, "role", parameters)
    switcher = ctx.runtime.role_switcher()
    if params.action == "list":
        return switcher.list_roles()
    return await switcher.switch(ctx.session_id, params.role_name, confirm=ctx.confirm)


TOOL_HANDLERS: dict[str, ToolHandler] = {
    "agent_switch": _agent_switch,
    "role": _role,
}


async def run_tool(tool_name: str, parameters: dict[str, Any], ctx: ToolContext) -> SwitchResult:
    """Dispatch and execute a single tool call.

    Raises:
        ToolNotFoundError: ``tool_name`` is not a known tool.
        ToolParameterError: ``parameters`` fail validation (nothing is written).
    """
    handler = TOOL_HANDLERS.get(tool_name)
    if handler is None:
        known = ", ".join(sorted(TOOL_HANDLERS))
        raise ToolNotFoundError(f"Unknown tool: {tool_name}. Known tools: {known}")
    return await handler(parameters, ctx)


def available_tools(runtime: Runtime) -> list[dict[str, Any]]:
    """Tool schemas with the role tool describing the roles ``runtime`` can load."""
    roles = runtime.role_switcher().loader.list_roles()
    return populate_role_descriptions([(r.name, r.description) for r in roles])
