"""Build pipeline orchestration.

This module owns the fixed stage list and the rules that map stage failures to
a build status. Each stage is a pass-through to an external tool (git, npm,
docker); the sequencer only times it, records the commands it ran, and applies
the stage's failure policy. Side-effects for the UI (progress, tables) are
exposed as hooks so the CLI stays out of the core logic.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping, Sequence

from adapters.docker_client import DockerClient
from adapters.dockerfile_renderer import ensure_dockerfile
from adapters.git_client import GitClient
from adapters.npm_audit import describe_counts, evaluate_audit, parse_audit_report
from adapters.npm_client import NpmClient
from adapters.shell_runner import SubprocessRunner
from adapters.toolchain import check_tool
from core.config import AppSettings
from core.domain.models import (
    AuditPolicy,
    FailurePolicy,
    ImageReference,
    PipelineRun,
    StageResult,
    StageStatus,
    image_references,
)
from core.domain.variants import PipelineVariant, get_variant, normalize_branch
from core.errors import AuditReportError, CredentialsError
from core.interfaces.runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


CHECKOUT = "checkout"
ENV_VERIFY = "env-verify"
INSTALL = "install"
TEST = "test"
AUDIT = "audit"
DOCKER_BUILD = "docker-build"
DOCKER_PUSH = "docker-push"
CLEANUP = "cleanup"

STAGE_ORDER: tuple[str, ...] = (
    CHECKOUT,
    ENV_VERIFY,
    INSTALL,
    TEST,
    AUDIT,
    DOCKER_BUILD,
    DOCKER_PUSH,
    CLEANUP,
)


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers."""

    stage_start: Callable[[str], None] | None = None
    stage_end: Callable[[StageResult], None] | None = None


@dataclass
class StageOutcome:
    """What a stage body reports back to the sequencer."""

    status: StageStatus
    message: str = ""
    exit_code: int | None = None
    details: dict[str, str] = field(default_factory=dict)
    policy: FailurePolicy | None = None

    @classmethod
    def from_command(cls, result: CommandResult, *, success: str) -> "StageOutcome":
        if result.ok:
            return cls(StageStatus.PASSED, success, exit_code=0)
        return cls(
            StageStatus.FAILED,
            f"`{result.command_line}` exited {result.exit_code}: {result.tail(5)}".strip(),
            exit_code=result.exit_code,
        )


class _RecordingRunner:
    """Delegates to a runner and remembers the command lines of one stage."""

    def __init__(self, inner: CommandRunner) -> None:
        self._inner = inner
        self.commands: list[str] = []

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        input_text: str | None = None,
    ) -> CommandResult:
        result = self._inner.run(args, cwd=cwd, env=env, input_text=input_text)
        self.commands.append(result.command_line)
        logger.info("$ %s -> exit %s", result.command_line, result.exit_code)
        return result


class BuildPipeline:
    """Runs `checkout → env-verify → install → test → audit → docker-build →
    docker-push → cleanup` strictly in order on the calling thread."""

    def __init__(
        self,
        settings: AppSettings,
        *,
        runner: CommandRunner | None = None,
        hooks: PipelineHooks | None = None,
        variant: PipelineVariant | None = None,
    ) -> None:
        self._settings = settings
        self._runner = _RecordingRunner(
            runner or SubprocessRunner(timeout_seconds=settings.command_timeout_seconds)
        )
        self._hooks = hooks or PipelineHooks()
        self._variant = variant or get_variant(settings.variant)
        self._workspace = Path(settings.workspace)
        self._branch = normalize_branch(settings.branch) if settings.branch else None
        self._images: list[ImageReference] = image_references(
            registry=settings.registry,
            name=settings.image_name,
            build_number=settings.build_number,
        )
        self._built = False
        self._logged_in = False

        self._git = GitClient(self._runner, git_bin=settings.git_bin)
        self._npm = NpmClient(self._runner, npm_bin=settings.npm_bin)
        self._docker = DockerClient(self._runner, docker_bin=settings.docker_bin)

        self._stages: dict[str, tuple[Callable[[PipelineRun], StageOutcome], FailurePolicy]] = {
            CHECKOUT: (self._checkout, FailurePolicy.CONTINUE),
            ENV_VERIFY: (self._env_verify, FailurePolicy.CONTINUE),
            INSTALL: (self._install, FailurePolicy.CONTINUE),
            TEST: (self._test, self._variant.test_policy),
            AUDIT: (
                self._audit,
                FailurePolicy.FAIL if self._variant.audit_policy is AuditPolicy.FAIL else FailurePolicy.CONTINUE,
            ),
            DOCKER_BUILD: (self._docker_build, FailurePolicy.UNSTABLE),
            DOCKER_PUSH: (self._docker_push, FailurePolicy.UNSTABLE),
            CLEANUP: (self._cleanup, FailurePolicy.CONTINUE),
        }

    @property
    def images(self) -> list[ImageReference]:
        return list(self._images)

    def run(self) -> PipelineRun:
        run = PipelineRun(
            build_number=self._settings.build_number,
            branch=self._branch,
            variant=self._variant.name,
            images=self.images,
        )
        logger.info(
            "Build %s (variant=%s) in %s",
            run.build_number,
            run.variant,
            self._workspace,
        )

        for name in STAGE_ORDER:
            body, policy = self._stages[name]
            result = self._run_stage(name, body, policy, run)
            run.record(result)
            if self._hooks.stage_end:
                self._hooks.stage_end(result)

        run.branch = self._branch
        run.finished_at = datetime.now(timezone.utc)
        logger.info("Build %s finished: %s", run.build_number, run.status.value)
        return run

    def _run_stage(
        self,
        name: str,
        body: Callable[[PipelineRun], StageOutcome],
        policy: FailurePolicy,
        run: PipelineRun,
    ) -> StageResult:
        if self._hooks.stage_start:
            self._hooks.stage_start(name)
        logger.info("Stage %s", name)

        self._runner.commands = []
        started = time.monotonic()
        try:
            outcome = body(run)
        except Exception as exc:
            logger.debug("Stage %s raised", name, exc_info=True)
            outcome = StageOutcome(StageStatus.FAILED, f"{type(exc).__name__}: {exc}")
        duration = time.monotonic() - started

        effective_policy = outcome.policy or policy
        result = StageResult(
            name=name,
            status=outcome.status,
            policy=effective_policy,
            exit_code=outcome.exit_code,
            duration_seconds=duration,
            message=outcome.message,
            commands=list(self._runner.commands),
            details=outcome.details,
        )

        if result.status is StageStatus.FAILED:
            level = logging.ERROR if effective_policy is FailurePolicy.FAIL else logging.WARNING
            logger.log(level, "Stage %s failed (%s): %s", name, effective_policy.value, result.message)
        elif result.status is StageStatus.WARNED:
            logger.warning("Stage %s: %s", name, result.message)
        else:
            logger.info("Stage %s %s%s", name, result.status.value, f": {result.message}" if result.message else "")
        return result

    # Stages

    def _checkout(self, run: PipelineRun) -> StageOutcome:
        settings = self._settings
        if settings.repo_url:
            if (self._workspace / ".git").exists():
                result = self._git.fetch(self._workspace)
                if result.ok and self._branch:
                    result = self._git.checkout(self._workspace, self._branch)
            else:
                result = self._git.clone(settings.repo_url, self._workspace, branch=self._branch)
        else:
            result = self._git.is_work_tree(self._workspace)

        outcome = StageOutcome.from_command(result, success=f"workspace {self._workspace}")
        # A failed fetch still leaves a usable clone to read HEAD from.
        if not self._branch and (result.ok or (self._workspace / ".git").exists()):
            self._branch = self._git.current_branch(self._workspace)
        if self._branch:
            outcome.details["branch"] = self._branch
        return outcome

    def _env_verify(self, run: PipelineRun) -> StageOutcome:
        settings = self._settings
        missing: list[str] = []
        details: dict[str, str] = {}
        for name, binary in (
            ("node", settings.node_bin),
            ("npm", settings.npm_bin),
            ("docker", settings.docker_bin),
        ):
            check = check_tool(self._runner, name=name, binary=binary)
            details[name] = check.detail
            if not check.ok:
                missing.append(name)
        if missing:
            return StageOutcome(
                StageStatus.FAILED,
                f"unavailable: {', '.join(missing)}",
                details=details,
            )
        return StageOutcome(StageStatus.PASSED, "toolchain available", details=details)

    def _install(self, run: PipelineRun) -> StageOutcome:
        return StageOutcome.from_command(self._npm.install(self._workspace), success="dependencies installed")

    def _test(self, run: PipelineRun) -> StageOutcome:
        return StageOutcome.from_command(self._npm.test(self._workspace), success="tests passed")

    def _audit(self, run: PipelineRun) -> StageOutcome:
        result = self._npm.audit(self._workspace)
        report_path = self._workspace / self._settings.audit_report_name
        report_saved = False
        if result.stdout.strip():
            try:
                report_path.write_text(result.stdout, encoding="utf-8")
                report_saved = True
            except OSError as exc:
                logger.warning("Could not save audit report to %s: %s", report_path, exc)

        try:
            counts = parse_audit_report(result.stdout)
        except AuditReportError as exc:
            return StageOutcome(
                StageStatus.FAILED,
                f"could not read audit report: {exc}",
                exit_code=result.exit_code,
                policy=FailurePolicy.CONTINUE,
            )

        run.vulnerabilities = counts
        status = evaluate_audit(counts, self._variant.audit_policy)
        details = {"high": str(counts.high), "critical": str(counts.critical)}
        if report_saved:
            details["report"] = str(report_path)
        if status is StageStatus.PASSED:
            return StageOutcome(status, "no high or critical vulnerabilities", result.exit_code, details)
        return StageOutcome(
            status,
            f"vulnerabilities found ({describe_counts(counts)})",
            result.exit_code,
            details,
        )

    def _docker_build(self, run: PipelineRun) -> StageOutcome:
        _, generated = ensure_dockerfile(workspace=self._workspace, base_image=self._settings.base_image)
        result = self._docker.build(self._workspace, self._images)
        self._built = result.ok
        outcome = StageOutcome.from_command(
            result,
            success=", ".join(str(i) for i in self._images),
        )
        outcome.details["dockerfile"] = "generated" if generated else "existing"
        return outcome

    def _docker_push(self, run: PipelineRun) -> StageOutcome:
        if not self._variant.allows_push(self._branch):
            return StageOutcome(
                StageStatus.SKIPPED,
                f"push not enabled for branch '{self._branch or '?'}' in variant {self._variant.name}",
            )
        if not self._built:
            return StageOutcome(StageStatus.SKIPPED, "no image was built")

        settings = self._settings
        if not settings.has_credentials:
            raise CredentialsError(
                f"registry credentials missing (set {settings.username_env_var}/{settings.password_env_var})"
            )

        username = settings.registry_username or ""
        password = settings.registry_password.get_secret_value() if settings.registry_password else ""
        env = {settings.username_env_var: username, settings.password_env_var: password}

        login = self._docker.login(settings.registry, username=username, password=password, env=env)
        if not login.ok:
            return StageOutcome.from_command(login, success="")
        self._logged_in = True

        for image in self._images:
            result = self._docker.push(image, env=env)
            if not result.ok:
                return StageOutcome.from_command(result, success="")
        return StageOutcome(StageStatus.PASSED, ", ".join(str(i) for i in self._images), exit_code=0)

    def _cleanup(self, run: PipelineRun) -> StageOutcome:
        failures: list[str] = []
        actions: list[str] = []
        if self._logged_in:
            result = self._docker.logout(self._settings.registry)
            actions.append("logout")
            if not result.ok:
                failures.append(f"logout exited {result.exit_code}")
            self._logged_in = False
        if self._built:
            result = self._docker.remove_images(self._images)
            actions.append("rmi")
            if not result.ok:
                failures.append(f"rmi exited {result.exit_code}")
        if failures:
            return StageOutcome(StageStatus.FAILED, "; ".join(failures))
        return StageOutcome(StageStatus.PASSED, ", ".join(actions) if actions else "nothing to clean")


def run_pipeline(
    *,
    settings: AppSettings,
    runner: CommandRunner | None = None,
    hooks: PipelineHooks | None = None,
) -> PipelineRun:
    return BuildPipeline(settings, runner=runner, hooks=hooks).run()
