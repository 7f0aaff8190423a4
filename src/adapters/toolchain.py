"""Tool version probing (env-verify stage and `doctor`)."""

from __future__ import annotations

from dataclasses import dataclass

from core.interfaces.runner import CommandRunner


@dataclass(frozen=True)
class ToolCheck:
    name: str
    binary: str
    ok: bool
    detail: str


def check_tool(runner: CommandRunner, *, name: str, binary: str) -> ToolCheck:
    """Run `<binary> --version` and keep the first output line."""

    result = runner.run([binary, "--version"])
    if not result.ok:
        return ToolCheck(name=name, binary=binary, ok=False, detail=result.tail(3) or f"exit {result.exit_code}")
    first_line = (result.stdout.strip() or result.stderr.strip()).splitlines()
    return ToolCheck(name=name, binary=binary, ok=True, detail=first_line[0] if first_line else "")
