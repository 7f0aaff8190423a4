from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

import pytest

from core.config import AppSettings
from core.interfaces.runner import CommandResult


@dataclass
class Call:
    args: tuple[str, ...]
    cwd: Path | None
    env: dict[str, str] | None
    input_text: str | None


class FakeRunner:
    """Records every command; answers from prefix rules (longest prefix wins)."""

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._rules: dict[tuple[str, ...], tuple[int, str, str]] = {}

    def on(self, *prefix: str, exit_code: int = 0, stdout: str = "", stderr: str = "") -> "FakeRunner":
        self._rules[tuple(prefix)] = (exit_code, stdout, stderr)
        return self

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        input_text: str | None = None,
    ) -> CommandResult:
        argv = tuple(args)
        self.calls.append(Call(argv, cwd, dict(env) if env else None, input_text))
        best: tuple[int, str, str] = (0, "", "")
        best_len = -1
        for prefix, answer in self._rules.items():
            if argv[: len(prefix)] == prefix and len(prefix) > best_len:
                best, best_len = answer, len(prefix)
        exit_code, stdout, stderr = best
        return CommandResult(args=argv, exit_code=exit_code, stdout=stdout, stderr=stderr)

    def invoked(self, *prefix: str) -> list[Call]:
        return [c for c in self.calls if c.args[: len(prefix)] == prefix]


def audit_json(high: int = 0, critical: int = 0, **others: int) -> str:
    vulns = {"info": 0, "low": 0, "moderate": 0, "high": high, "critical": critical}
    vulns.update(others)
    vulns.setdefault("total", sum(v for k, v in vulns.items() if k != "total"))
    return json.dumps({"auditReportVersion": 2, "vulnerabilities": {}, "metadata": {"vulnerabilities": vulns}})


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner().on("npm", "audit", stdout=audit_json())


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        _env_file=None,
        workspace=tmp_path,
        build_number="42",
        branch="main",
        variant="standard",
        registry="registry.example.com",
        image_name="web",
        registry_username="ci-bot",
        registry_password="s3cret",
    )
