"""Subprocess implementation of `CommandRunner`.

Why a wrapper:
- Standardizes timeouts, environment layering, stdin and logging for every
  external tool the pipeline calls.
- Converts "executable not found" and timeouts into exit codes so stages only
  ever look at a `CommandResult`.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Mapping, Sequence

from core.interfaces.runner import EXIT_NOT_EXECUTABLE, EXIT_NOT_FOUND, EXIT_TIMEOUT, CommandResult

logger = logging.getLogger(__name__)


class SubprocessRunner:
    """Runs commands with `subprocess.run`, capturing text output."""

    def __init__(self, *, timeout_seconds: float = 1800.0) -> None:
        self._timeout = timeout_seconds

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        input_text: str | None = None,
    ) -> CommandResult:
        argv = tuple(str(a) for a in args)
        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        started = time.monotonic()
        try:
            completed = subprocess.run(
                argv,
                cwd=str(cwd) if cwd else None,
                env=full_env,
                input=input_text,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            logger.error("Executable not found: %s", argv[0])
            return CommandResult(
                args=argv,
                exit_code=EXIT_NOT_FOUND,
                stderr=str(exc),
                duration_seconds=time.monotonic() - started,
            )
        except OSError as exc:
            # Not executable, a directory, or similar.
            logger.error("Cannot execute %s: %s", argv[0], exc)
            return CommandResult(
                args=argv,
                exit_code=EXIT_NOT_EXECUTABLE,
                stderr=str(exc),
                duration_seconds=time.monotonic() - started,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("Command timed out after %.0fs: %s", self._timeout, argv[0])
            return CommandResult(
                args=argv,
                exit_code=EXIT_TIMEOUT,
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr) or f"timed out after {self._timeout:.0f}s",
                duration_seconds=time.monotonic() - started,
            )

        duration = time.monotonic() - started
        logger.debug("exit %s in %.2fs: %s", completed.returncode, duration, argv[0])
        return CommandResult(
            args=argv,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration_seconds=duration,
        )


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
