"""Thin wrapper over the package manager CLI (install, test, audit stages)."""

from __future__ import annotations

from pathlib import Path

from core.interfaces.runner import CommandResult, CommandRunner


class NpmClient:
    def __init__(self, runner: CommandRunner, *, npm_bin: str = "npm") -> None:
        self._runner = runner
        self._npm = npm_bin

    def install(self, workspace: Path) -> CommandResult:
        # `npm ci` needs a lockfile; fall back to a regular install without one.
        verb = "ci" if (workspace / "package-lock.json").exists() else "install"
        return self._runner.run([self._npm, verb], cwd=workspace)

    def test(self, workspace: Path) -> CommandResult:
        return self._runner.run([self._npm, "test"], cwd=workspace)

    def audit(self, workspace: Path) -> CommandResult:
        """Run `npm audit --json`.

        npm exits non-zero whenever vulnerabilities are found, so callers must
        judge the report, not the exit code.
        """

        return self._runner.run([self._npm, "audit", "--json"], cwd=workspace)
