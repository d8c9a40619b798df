"""Slash commands for interactive mode.

Built-in commands are registered in the COMMANDS dict. Anything that is not a
slash command is recorded as an ordinary user turn.

Commands:
- /build, /plan     switch agent mode
- /role <name>      switch to a role (/role list shows roles)
- /roles            list roles
- /mode             show the mode and model recovered from history
- /permissions      show the session's permission rules
- /help, /quit
"""

from __future__ import annotations

import dataclasses
import shlex
from collections.abc import Awaitable, Callable

import typer

from switchyard.agent.exceptions import SwitchyardError
from switchyard.agent.history import Part, Turn, utcnow
from switchyard.agent.inference import (
    resolve_current_agent,
    resolve_current_mode,
    resolve_last_model,
)
from switchyard.agent.modes import Mode, get_mode_spec
from switchyard.agent.roles import ConfirmCallback
from switchyard.agent.runtime import Runtime


@dataclasses.dataclass
class ChatSession:
    """The interactive shell's handle on one session."""

    session_id: str
    runtime: Runtime
    confirm: ConfirmCallback | None = None


SlashCommandHandler = Callable[[list[str], ChatSession], Awaitable[None]]


@dataclasses.dataclass(frozen=True, slots=True)
class SlashCommandSpec:
    handler: SlashCommandHandler
    description: str
    usage: str | None = None


def _parse_slash_command_argv(text: str) -> list[str]:
    """Parse a slash command into argv tokens.

    Quotes group tokens, ``#`` is not a comment and backslashes are preserved.
    """
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    lexer.escape = ""
    return list(lexer)


async def prompt_prefix(session: ChatSession, default_prompt: str = ">>> ") -> str:
    """Prompt for the mode recovered from the session's history."""
    agent = await resolve_current_agent(session.runtime.store, session.session_id)
    try:
        spec = get_mode_spec(agent)
    except SwitchyardError:
        return default_prompt
    return spec.prompt_prefix(default_prompt)


async def _switch(session: ChatSession, mode: Mode) -> None:
    result = await session.runtime.mode_switcher().switch_mode(session.session_id, mode)
    print(result.output)


async def _cmd_build(args: list[str], session: ChatSession) -> None:
    """Switch to build mode (full tool access)."""
    del args
    await _switch(session, Mode.BUILD)


async def _cmd_plan(args: list[str], session: ChatSession) -> None:
    """Switch to plan mode (edit tools disabled)."""
    del args
    await _switch(session, Mode.PLAN)


async def _cmd_roles(args: list[str], session: ChatSession) -> None:
    """List available roles."""
    del args
    result = session.runtime.role_switcher().list_roles()
    print(result.output or "No roles defined.")


async def _cmd_role(args: list[str], session: ChatSession) -> None:
    """Switch to a role, or list roles with `/role list`."""
    if not args or args[0] == "list":
        await _cmd_roles([], session)
        return

    switcher = session.runtime.role_switcher()
    try:
        result = await switcher.switch(session.session_id, args[0], confirm=session.confirm)
    except SwitchyardError as e:
        print(str(e))
        return
    print(result.output)


async def _cmd_mode(args: list[str], session: ChatSession) -> None:
    """Show the mode, role and model recovered from history."""
    del args
    runtime = session.runtime
    agent = await resolve_current_agent(runtime.store, session.session_id)
    role = await resolve_current_mode(runtime.store, session.session_id)
    model = await resolve_last_model(runtime.store, session.session_id, runtime.default_model)
    print(f"Mode:  {agent}")
    print(f"Role:  {role or '-'}")
    print(f"Model: {model}")


async def _cmd_permissions(args: list[str], session: ChatSession) -> None:
    """Show the session's permission rules."""
    del args
    rules = await session.runtime.permissions.get_permissions(session.session_id)
    if not rules:
        print("No restrictions.")
        return
    for rule in rules:
        print(f"  {rule.action:<5} {rule.permission} {rule.pattern}")


async def _cmd_help(args: list[str], session: ChatSession) -> None:
    """Show help for available commands."""
    del args, session
    print("Built-in commands:")
    for name in sorted(COMMANDS):
        spec = COMMANDS[name]
        usage = spec.usage or name
        print(f"  {usage:<15} - {spec.description}")


async def _cmd_quit(args: list[str], session: ChatSession) -> None:
    """Exit switchyard."""
    del args, session
    print("Goodbye!")
    raise typer.Exit(code=0)


COMMANDS: dict[str, SlashCommandSpec] = {
    "/build": SlashCommandSpec(
        handler=_cmd_build,
        description="Switch to build agent (full tool access)",
    ),
    "/help": SlashCommandSpec(
        handler=_cmd_help,
        description="Show this help",
    ),
    "/mode": SlashCommandSpec(
        handler=_cmd_mode,
        description="Show current mode, role and model",
    ),
    "/permissions": SlashCommandSpec(
        handler=_cmd_permissions,
        description="Show the session's permission rules",
    ),
    "/plan": SlashCommandSpec(
        handler=_cmd_plan,
        description="Switch to plan mode (read-only)",
    ),
    "/quit": SlashCommandSpec(
        handler=_cmd_quit,
        description="Exit switchyard",
    ),
    "/role": SlashCommandSpec(
        handler=_cmd_role,
        description="Switch to a role",
        usage="/role <name>|list",
    ),
    "/roles": SlashCommandSpec(
        handler=_cmd_roles,
        description="List available roles",
    ),
}


async def record_user_input(text: str, session: ChatSession) -> Turn:
    """Append ``text`` as an ordinary (non-synthetic) user turn."""
    runtime = session.runtime
    model = await resolve_last_model(runtime.store, session.session_id, runtime.default_model)
    turn = Turn(
        id=runtime.ids("message"),
        session_id=session.session_id,
        role="user",
        created=utcnow(),
        model=model,
    )
    await runtime.store.append_turn(turn)
    await runtime.store.append_part(
        Part(
            id=runtime.ids("part"),
            message_id=turn.id,
            session_id=session.session_id,
            type="text",
            text=text,
        )
    )
    return turn


async def handle_slash_command(user_input: str, session: ChatSession) -> bool:
    """Handle slash commands.

    Returns:
        True if the input was a slash command (known or not), False otherwise.
    """
    candidate = user_input.lstrip()
    if not candidate.startswith("/"):
        return False

    try:
        argv = _parse_slash_command_argv(candidate)
    except ValueError as e:
        print(f"Command parse error: {e}")
        return True

    if not argv:
        return False

    command, args = argv[0], argv[1:]
    spec = COMMANDS.get(command)
    if spec is None:
        print(f"Unknown command: {command}")
        return True

    await spec.handler(args, session)
    return True
