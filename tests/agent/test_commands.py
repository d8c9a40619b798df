from __future__ import annotations

from typing import Any

import pytest
import typer

from switchyard.agent.commands import (
    COMMANDS,
    ChatSession,
    _parse_slash_command_argv,
    handle_slash_command,
    prompt_prefix,
    record_user_input,
)
from switchyard.agent.permissions import PermissionRule
from switchyard.agent.runtime import Runtime

SID = "ses_shell"


@pytest.fixture
def session(runtime: Runtime) -> ChatSession:
    return ChatSession(session_id=SID, runtime=runtime)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("/role reviewer", ["/role", "reviewer"]),
        ('/role "two words"', ["/role", "two words"]),
        ("/role a#b", ["/role", "a#b"]),
        (r"/role a\b", ["/role", r"a\b"]),
    ],
)
def test_parse_slash_command_argv(text: str, expected: list[str]) -> None:
    assert _parse_slash_command_argv(text) == expected


@pytest.mark.anyio
async def test_plain_text_is_not_a_command(session: ChatSession) -> None:
    assert await handle_slash_command("hello /plan", session) is False


@pytest.mark.anyio
async def test_plan_then_build_changes_prompt(
    session: ChatSession, capsys: pytest.CaptureFixture[str]
) -> None:
    assert await prompt_prefix(session) == ">>> "

    assert await handle_slash_command("/plan", session) is True
    assert await prompt_prefix(session) == "[PLAN] >>> "

    await handle_slash_command("  /build", session)
    assert await prompt_prefix(session) == ">>> "
    out = capsys.readouterr().out
    assert "Switched to plan mode. Edit tools are disabled." in out
    assert "Switched to build agent. Full tool access enabled." in out


@pytest.mark.anyio
async def test_unknown_command(session: ChatSession, capsys: pytest.CaptureFixture[str]) -> None:
    assert await handle_slash_command("/review", session) is True
    assert capsys.readouterr().out == "Unknown command: /review\n"


@pytest.mark.anyio
async def test_parse_error_is_reported(
    session: ChatSession, capsys: pytest.CaptureFixture[str]
) -> None:
    assert await handle_slash_command('/role "unterminated', session) is True
    assert capsys.readouterr().out.startswith("Command parse error:")


@pytest.mark.anyio
async def test_role_list_without_roles(
    session: ChatSession, capsys: pytest.CaptureFixture[str]
) -> None:
    await handle_slash_command("/role list", session)
    assert capsys.readouterr().out == "No roles defined.\n"


@pytest.mark.anyio
async def test_role_commands(
    session: ChatSession, write_role: Any, capsys: pytest.CaptureFixture[str], collect: Any
) -> None:
    write_role("reviewer", "description: Reviews\nallowed_tools: [read_file]\n")

    await handle_slash_command("/roles", session)
    assert capsys.readouterr().out == "reviewer: Reviews\n"

    await handle_slash_command("/role ghost", session)
    assert capsys.readouterr().out == 'Role "ghost" not found. Available: reviewer\n'

    await handle_slash_command("/role reviewer", session)
    assert capsys.readouterr().out == 'Role changed to "reviewer". Allowed tools: read_file\n'
    assert len(await collect(session.runtime.store, SID)) == 1


@pytest.mark.anyio
async def test_mode_and_permissions(
    session: ChatSession, capsys: pytest.CaptureFixture[str]
) -> None:
    await handle_slash_command("/mode", session)
    assert capsys.readouterr().out.splitlines() == [
        "Mode:  build",
        "Role:  -",
        "Model: default-model",
    ]

    await handle_slash_command("/plan", session)
    await handle_slash_command("/build", session)
    capsys.readouterr()
    await handle_slash_command("/mode", session)
    assert capsys.readouterr().out.splitlines()[0] == "Mode:  build"

    await handle_slash_command("/permissions", session)
    assert capsys.readouterr().out == "No restrictions.\n"

    await session.runtime.permissions.set_permissions(
        SID, [PermissionRule(permission="shell", action="deny")]
    )
    await handle_slash_command("/permissions", session)
    assert capsys.readouterr().out.split() == ["deny", "shell", "*"]


@pytest.mark.anyio
async def test_help_lists_every_command(
    session: ChatSession, capsys: pytest.CaptureFixture[str]
) -> None:
    await handle_slash_command("/help", session)

    out = capsys.readouterr().out
    for name in COMMANDS:
        assert name in out
    assert "/role <name>|list" in out


@pytest.mark.anyio
async def test_quit(session: ChatSession, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(typer.Exit):
        await handle_slash_command("/quit", session)
    assert capsys.readouterr().out == "Goodbye!\n"


@pytest.mark.anyio
async def test_record_user_input(session: ChatSession, collect: Any) -> None:
    await handle_slash_command("/plan", session)

    turn = await record_user_input("what does this do?", session)

    turns = await collect(session.runtime.store, SID)
    assert turns[-1].id == turn.id
    assert turn.mode is None
    assert turn.model == "default-model"
    [part] = turns[-1].parts
    assert part.text == "what does this do?"
    assert part.synthetic is False
