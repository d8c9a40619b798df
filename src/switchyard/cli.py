"""Command-line interface for switchyard"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Annotated, Any, TypeVar

import typer
from prompt_toolkit import PromptSession
from prompt_toolkit.enums import EditingMode
from rich.console import Console
from rich.prompt import Confirm

from switchyard.agent.commands import (
    ChatSession,
    handle_slash_command,
    prompt_prefix,
    record_user_input,
)
from switchyard.agent.exceptions import SwitchyardError
from switchyard.agent.history import get_session_info, list_session_files
from switchyard.agent.ids import ascending
from switchyard.agent.inference import (
    resolve_current_agent,
    resolve_current_mode,
    resolve_last_model,
)
from switchyard.agent.log import TransitionLogger
from switchyard.agent.modes import ModeSpec, get_mode_spec
from switchyard.agent.permissions import PermissionRule, evaluate
from switchyard.agent.runtime import Runtime

app = typer.Typer(add_completion=False)
console = Console()

T = TypeVar("T")


@contextmanager
def _runtime(traced: bool = False) -> Iterator[Runtime]:
    """File-backed runtime; ``traced`` commands also get a transition log file."""
    if not traced:
        yield Runtime.from_settings()
        return
    trace = TransitionLogger()
    try:
        yield Runtime.from_settings(trace=trace)
    finally:
        trace.close()


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning switchyard errors into a clean exit code."""
    try:
        return asyncio.run(coro)
    except SwitchyardError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(code=1) from None


async def _ask(question: str) -> bool:
    return await asyncio.to_thread(Confirm.ask, question, console=console, default=False)


def _auto_yes(answer: bool) -> Callable[[str], Awaitable[bool]]:
    async def _answer(question: str) -> bool:
        del question
        return answer

    return _answer


async def interactive_loop(session: ChatSession, prompt_text: str = ">>> ") -> None:
    """Run interactive prompt loop with slash commands."""
    prompt_session: PromptSession[str] = PromptSession(editing_mode=EditingMode.EMACS)
    print(f"Session: {session.session_id}  (/help for commands)")
    while True:
        try:
            user_input: str = await prompt_session.prompt_async(
                await prompt_prefix(session, prompt_text)
            )
        except (EOFError, KeyboardInterrupt):
            return

        if not user_input.strip():
            continue

        try:
            if await handle_slash_command(user_input, session):
                continue
        except SwitchyardError as e:
            print(f"Error: {e}")
            continue

        await record_user_input(user_input, session)


@app.callback(invoke_without_command=True)
def run(
    ctx: typer.Context,
    session_id: Annotated[
        str | None,
        typer.Option("--session", help="Resume session by ID"),
    ] = None,
) -> None:
    """Run switchyard interactively."""

    # Typer always invokes the callback; only start the shell without a subcommand.
    if ctx.invoked_subcommand is not None:
        return

    with _runtime(traced=True) as runtime:
        session = ChatSession(
            session_id=session_id or ascending("session"),
            runtime=runtime,
            confirm=_ask,
        )
        asyncio.run(interactive_loop(session))


@app.command()
def new() -> None:
    """Print a fresh session ID."""
    print(ascending("session"))


@app.command()
def switch(
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    mode: Annotated[str, typer.Argument(help="Target mode (build or plan)")],
) -> None:
    """Switch a session's agent mode."""
    with _runtime(traced=True) as runtime:
        result = _run(runtime.mode_switcher().switch_mode(session_id, mode))
    console.print(f"[bold]{result.title}[/]")
    print(result.output)


@app.command()
def status(session_id: Annotated[str, typer.Argument(help="Session ID")]) -> None:
    """Show the mode, role and model recovered from a session's history."""

    async def _status(runtime: Runtime) -> tuple[str, str | None, str]:
        agent = await resolve_current_agent(runtime.store, session_id)
        role = await resolve_current_mode(runtime.store, session_id)
        model = await resolve_last_model(runtime.store, session_id, runtime.default_model)
        return agent, role, model

    with _runtime() as runtime:
        agent, role, model = _run(_status(runtime))
    print(f"Mode:  {agent}")
    print(f"Role:  {role or '-'}")
    print(f"Model: {model}")


@app.command()
def roles() -> None:
    """List available roles."""
    with _runtime() as runtime:
        result = runtime.role_switcher().list_roles()
    print(result.output or "No roles defined.")


@app.command()
def role(
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    name: Annotated[str, typer.Argument(help="Role name")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Confirm without asking when in plan mode."),
    ] = False,
) -> None:
    """Switch a session to a role."""
    confirm = _auto_yes(True) if yes else _ask
    with _runtime(traced=True) as runtime:
        result = _run(runtime.role_switcher().switch(session_id, name, confirm=confirm))
    console.print(f"[bold]{result.title}[/]")
    print(result.output)


@app.command()
def permissions(session_id: Annotated[str, typer.Argument(help="Session ID")]) -> None:
    """Show a session's permission rules."""
    with _runtime() as runtime:
        rules = _run(runtime.permissions.get_permissions(session_id))
    if not rules:
        print("No restrictions.")
        return
    for rule in rules:
        print(f"{rule.action:<5} {rule.permission} {rule.pattern}")


@app.command()
def deny(
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    tool: Annotated[str, typer.Argument(help="Tool name or glob")],
    pattern: Annotated[str, typer.Option("--pattern", "-p", help="Target glob")] = "*",
) -> None:
    """Add a deny rule to a session's permission set."""

    async def _deny(runtime: Runtime) -> list[PermissionRule]:
        rules = await runtime.permissions.get_permissions(session_id)
        rules.append(PermissionRule(permission=tool, pattern=pattern, action="deny"))
        await runtime.permissions.set_permissions(session_id, rules)
        return rules

    with _runtime() as runtime:
        rules = _run(_deny(runtime))
    print(f"{len(rules)} rule(s) in effect.")


@app.command()
def check(
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    tool: Annotated[str, typer.Argument(help="Tool name")],
    target: Annotated[str, typer.Option("--target", "-t", help="Call target")] = "*",
) -> None:
    """Show whether a tool call is allowed for a session."""

    async def _check(runtime: Runtime) -> tuple[str, ModeSpec]:
        rules = await runtime.permissions.get_permissions(session_id)
        agent = await resolve_current_agent(runtime.store, session_id)
        return evaluate(rules, tool, target), get_mode_spec(agent)

    with _runtime() as runtime:
        action, spec = _run(_check(runtime))
    print(action)
    if spec.restricted and tool in spec.denied_tools:
        print(f"Note: {tool} is withheld in {spec.name} mode.")


@app.command()
def history(session_id: Annotated[str, typer.Argument(help="Session ID")]) -> None:
    """Print a session's turns and parts, oldest first."""

    async def _collect(runtime: Runtime) -> list[str]:
        lines: list[str] = []
        async for turn in runtime.store.stream_turns(session_id):
            tags = " ".join(
                f"{k}={v}" for k, v in (("mode", turn.mode), ("model", turn.model)) if v
            )
            lines.append(f"{turn.created:%Y-%m-%d %H:%M:%S} {turn.role:<9} {turn.id} {tags}")
            for part in turn.text_parts():
                marker = "*" if part.synthetic else " "
                first_line = (part.text or "").partition("\n")[0]
                lines.append(f"    {marker} {first_line}")
        return lines

    with _runtime() as runtime:
        lines = _run(_collect(runtime))
    if not lines:
        print("No history.")
        return
    print("\n".join(lines))


@app.command()
def sessions(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Max sessions to show"),
    ] = 10,
) -> None:
    """List available sessions."""
    session_files = list_session_files()[:limit]

    if not session_files:
        print("No sessions found.")
        return

    print(f"{'Session ID':<36} {'Created':<20} {'Turns':<8} {'Size':<10}")
    print("-" * 78)
    for path in session_files:
        info = get_session_info(path)
        created = datetime.fromisoformat(info["created"]).strftime("%Y-%m-%d %H:%M:%S")
        print(f"{info['id']:<36} {created:<20} {info['turn_count']:<8} {info['size']:<10}")


def main() -> None:
    app()
