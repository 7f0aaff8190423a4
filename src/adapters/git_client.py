"""Thin wrapper over the `git` CLI (checkout stage)."""

from __future__ import annotations

from pathlib import Path

from core.interfaces.runner import CommandResult, CommandRunner


class GitClient:
    def __init__(self, runner: CommandRunner, *, git_bin: str = "git") -> None:
        self._runner = runner
        self._git = git_bin

    def is_work_tree(self, workspace: Path) -> CommandResult:
        return self._runner.run([self._git, "rev-parse", "--is-inside-work-tree"], cwd=workspace)

    def clone(self, repo_url: str, workspace: Path, *, branch: str | None = None) -> CommandResult:
        args = [self._git, "clone"]
        if branch:
            args += ["--branch", branch]
        args += [repo_url, str(workspace)]
        return self._runner.run(args)

    def fetch(self, workspace: Path) -> CommandResult:
        return self._runner.run([self._git, "fetch", "--prune", "origin"], cwd=workspace)

    def checkout(self, workspace: Path, branch: str) -> CommandResult:
        return self._runner.run([self._git, "checkout", branch], cwd=workspace)

    def current_branch(self, workspace: Path) -> str | None:
        result = self._runner.run([self._git, "rev-parse", "--abbrev-ref", "HEAD"], cwd=workspace)
        if not result.ok:
            return None
        name = result.stdout.strip()
        # Detached HEAD reports the literal "HEAD".
        if not name or name == "HEAD":
            return None
        return name
