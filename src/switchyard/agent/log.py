"""Transition logging utilities.

Mode and role transitions are reported on two surfaces:
- a JSONL trace file (machine-readable)
- rich-colored stderr output (human-readable)

This module keeps the logging concerns isolated from the switch controller.
"""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, override

from rich.console import Console

from switchyard.conf import settings


class JSONFormatter(logging.Formatter):
    """Format log records as a single-line JSON object."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "session_id": getattr(record, "session_id", None),
            "mode": getattr(record, "mode", None),
            "message_id": getattr(record, "message_id", None),
        }
        return json.dumps(log_obj)


class TransitionLogger:
    """Structured logging for mode transitions with JSON file + colored stderr."""

    run_id: str
    log_file: Path
    console: Console | None

    _logger: logging.Logger

    def __init__(
        self,
        run_id: str | None = None,
        log_file: Path | None = None,
        console: bool | None = None,
    ) -> None:
        self.run_id = run_id or str(datetime.now().timestamp())
        self.log_file = log_file or settings.log_file
        use_console = settings.LOG_TO_CONSOLE if console is None else console
        self.console = Console(stderr=True) if use_console else None

        # Instance-specific logger so repeated runs never share handlers.
        self._logger = logging.getLogger(f"switchyard.transitions.{self.run_id}")
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False

        for h in list(self._logger.handlers):
            try:
                h.close()
            finally:
                self._logger.removeHandler(h)

        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        json_handler = logging.FileHandler(self.log_file, encoding="utf-8")
        json_handler.setFormatter(JSONFormatter())
        self._logger.addHandler(json_handler)

    def close(self) -> None:
        """Close any file handlers attached to this logger."""
        for h in list(self._logger.handlers):
            try:
                h.close()
            finally:
                self._logger.removeHandler(h)

    def _log(self, level: int, msg: str, session_id: str, **kwargs: Any) -> None:
        self._logger.log(level, msg, extra={"session_id": session_id, **kwargs})

    def _print(self, text: str) -> None:
        if self.console is not None:
            self.console.print(text)

    def log_inference(self, session_id: str, last_model: str, current_mode: str | None) -> None:
        """Log the state recovered from history before a transition."""
        self._log(
            logging.INFO,
            f"Recovered model={last_model} mode={current_mode or '-'}",
            session_id,
            mode=current_mode,
        )

    def log_permission_reset(self, session_id: str, previous_mode: str) -> None:
        """Log a permission reset caused by leaving a restricted mode."""
        self._log(
            logging.INFO,
            f"Permissions reset (leaving {previous_mode})",
            session_id,
            mode=previous_mode,
        )
        self._print(f"[yellow]⟲ permissions reset[/] [dim](was {previous_mode})[/]")

    def log_mode_switch(self, session_id: str, mode: str, message_id: str) -> None:
        """Log a completed mode transition."""
        self._log(logging.INFO, f"Switched to {mode}", session_id, mode=mode, message_id=message_id)
        self._print(f"[bold cyan]→[/] mode [bold]{mode}[/]")

    def log_role_switch(self, session_id: str, role: str, message_id: str) -> None:
        """Log a completed role switch."""
        self._log(
            logging.INFO,
            f"Switched to role {role}",
            session_id,
            mode="build",
            message_id=message_id,
        )
        self._print(f"[bold magenta]→[/] role [bold]{role}[/]")
