from __future__ import annotations

import copy
from typing import Any

from switchyard.agent.modes import Mode

# Model-facing tool schemas (OpenAI function calling / tools API).
#
# Important architectural rule:
# - This module must stay import-light and must not import tool runtime code.
# - Tool execution lives in `switchyard.agent.tool_runner`.

AGENT_SWITCH_DESCRIPTION = """Switch between agents.

Commands:
- /build - Switch to build agent (default, full tool access)
- /plan - Switch to plan mode (read-only, no editing)

Use /build to exit a role and return to full tool access."""

ROLE_DESCRIPTION_TEMPLATE = """Manage roles for specialized task handling.

Available roles:
{roles}

Commands:
- /role list - Show all available roles
- /role <name> - Switch to a specific role

Roles define what tools are available and how the agent behaves."""

TOOLS: list[dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": "agent_switch",
            "description": AGENT_SWITCH_DESCRIPTION,
            "parameters": {
                "type": "object",
                "properties": {
                    "mode": {
                        "type": "string",
                        "enum": [m.value for m in Mode],
                        "description": "Agent to switch to",
                    }
                },
                "required": ["mode"],
                "additionalProperties": False,
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "role",
            "description": ROLE_DESCRIPTION_TEMPLATE.format(roles="(none)"),
            "parameters": {
                "type": "object",
                "properties": {
                    "action": {
                        "type": "string",
                        "enum": ["list", "switch"],
                        "description": "Action to perform",
                    },
                    "role_name": {
                        "type": "string",
                        "description": "Name of the role to switch to",
                    },
                },
                "required": ["action"],
                "additionalProperties": False,
            },
        },
    },
]

TOOLS_BY_NAME: dict[str, dict[str, Any]] = {t["function"]["name"]: t for t in TOOLS}


def populate_role_descriptions(roles: list[tuple[str, str]]) -> list[dict[str, Any]]:
    """Return a copy of TOOLS with the role tool listing ``(name, description)`` pairs."""
    tools = copy.deepcopy(TOOLS)
    role_list = "\n".join(f"- {name}: {description}" for name, description in roles) or "(none)"
    for tool in tools:
        if tool["function"]["name"] == "role":
            tool["function"]["description"] = ROLE_DESCRIPTION_TEMPLATE.format(roles=role_list)
    return tools
