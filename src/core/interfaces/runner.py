"""Contract for running external commands.

Why Protocol:
- Every stage delegates to a third-party tool (git, npm, docker). Routing all
  of them through one structural contract lets tests swap in a recording fake.
- Non-zero exit codes are data, not exceptions: a runner returns a
  `CommandResult` and the pipeline decides what the failure means.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol, Sequence, runtime_checkable


EXIT_TIMEOUT = 124
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one external command."""

    args: tuple[str, ...]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.args)

    def tail(self, lines: int = 20) -> str:
        """Last lines of stderr (or stdout if stderr is empty) for log messages."""

        text = self.stderr.strip() or self.stdout.strip()
        return "\n".join(text.splitlines()[-lines:])


@runtime_checkable
class CommandRunner(Protocol):
    """Minimal contract for executing an external command.

    Rules:
    - `run` never raises for a failing command; missing or non-executable
      binaries and timeouts are reported through `CommandResult.exit_code`.
    - Output is decoded as UTF-8; undecodable bytes are replaced.
    - `env` entries are layered on top of the current process environment.
    - `input_text` is fed to stdin (used for `--password-stdin`).
    """

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        input_text: str | None = None,
    ) -> CommandResult:
        ...
