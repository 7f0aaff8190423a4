"""Thin wrapper over the container engine CLI (build, push, cleanup stages)."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

from core.domain.models import ImageReference
from core.interfaces.runner import CommandResult, CommandRunner


class DockerClient:
    def __init__(self, runner: CommandRunner, *, docker_bin: str = "docker") -> None:
        self._runner = runner
        self._docker = docker_bin

    def build(self, workspace: Path, images: Sequence[ImageReference]) -> CommandResult:
        args = [self._docker, "build"]
        for image in images:
            args += ["-t", str(image)]
        args.append(".")
        return self._runner.run(args, cwd=workspace)

    def login(
        self,
        registry: str,
        *,
        username: str,
        password: str,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        args = [self._docker, "login", "--username", username, "--password-stdin"]
        if registry:
            args.append(registry)
        return self._runner.run(args, env=env, input_text=password)

    def push(self, image: ImageReference, *, env: Mapping[str, str] | None = None) -> CommandResult:
        return self._runner.run([self._docker, "push", str(image)], env=env)

    def logout(self, registry: str) -> CommandResult:
        args = [self._docker, "logout"]
        if registry:
            args.append(registry)
        return self._runner.run(args)

    def remove_images(self, images: Sequence[ImageReference]) -> CommandResult:
        return self._runner.run([self._docker, "rmi", "--force", *[str(i) for i in images]])
