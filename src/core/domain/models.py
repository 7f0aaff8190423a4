"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation at construction time (non-negative counts, valid tags).
- The run record serializes to JSON without a separate schema layer.

Note:
- These models describe *what* a pipeline run is, not *how* stages execute.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from core.errors import InvalidBuildNumberError


_DOCKER_TAG_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")

LATEST_TAG = "latest"


class BuildStatus(str, Enum):
    """Final status of a pipeline run, ordered from best to worst."""

    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    def worst(self, other: "BuildStatus") -> "BuildStatus":
        """Combine two statuses; a run's status can only get worse."""

        return self if self.rank >= other.rank else other


_STATUS_RANK = {
    BuildStatus.SUCCESS: 0,
    BuildStatus.UNSTABLE: 1,
    BuildStatus.FAILURE: 2,
}


class StageStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    WARNED = "warned"
    SKIPPED = "skipped"


class FailurePolicy(str, Enum):
    """What a failed stage does to the build status."""

    CONTINUE = "continue"
    UNSTABLE = "unstable"
    FAIL = "fail"

    def status_on_failure(self) -> BuildStatus:
        if self is FailurePolicy.FAIL:
            return BuildStatus.FAILURE
        if self is FailurePolicy.UNSTABLE:
            return BuildStatus.UNSTABLE
        return BuildStatus.SUCCESS


class AuditPolicy(str, Enum):
    """How positive high/critical counts are treated."""

    WARN = "warn"
    FAIL = "fail"


class VulnerabilityCounts(BaseModel):
    """Vulnerability counts by severity, parsed from an audit report."""

    high: int = Field(default=0, ge=0, description="High severity findings.")
    critical: int = Field(default=0, ge=0, description="Critical severity findings.")
    moderate: int = Field(default=0, ge=0)
    low: int = Field(default=0, ge=0)
    info: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)

    @property
    def has_blocking(self) -> bool:
        return self.high + self.critical > 0


def validate_build_number(value: str) -> str:
    value = (value or "").strip()
    if not _DOCKER_TAG_RE.match(value):
        raise InvalidBuildNumberError(
            f"Build number '{value}' is not a valid image tag "
            "(letters, digits, '_', '.', '-'; max 128 chars)."
        )
    return value


class ImageReference(BaseModel):
    """A tagged image in a registry: `<registry>/<name>:<tag>`."""

    registry: str = Field(default="", description="Registry host, e.g. 'registry.example.com:5000'.")
    name: str = Field(..., min_length=1, description="Repository name inside the registry.")
    tag: str = Field(..., min_length=1)

    @field_validator("registry")
    @classmethod
    def _strip_registry(cls, value: str) -> str:
        return value.strip().rstrip("/")

    def __str__(self) -> str:
        if self.registry:
            return f"{self.registry}/{self.name}:{self.tag}"
        return f"{self.name}:{self.tag}"


def image_references(*, registry: str, name: str, build_number: str) -> list[ImageReference]:
    """References produced by one build: `:<build_number>` then `:latest`."""

    tag = validate_build_number(build_number)
    return [
        ImageReference(registry=registry, name=name, tag=tag),
        ImageReference(registry=registry, name=name, tag=LATEST_TAG),
    ]


class StageResult(BaseModel):
    """Outcome of one stage."""

    name: str = Field(..., min_length=1)
    status: StageStatus
    policy: FailurePolicy = FailurePolicy.CONTINUE
    exit_code: int | None = None
    duration_seconds: float = Field(default=0.0, ge=0.0)
    message: str = ""
    commands: list[str] = Field(
        default_factory=list,
        description="Command lines executed by the stage (no secrets).",
    )
    details: dict[str, str] = Field(default_factory=dict)

    @property
    def build_status(self) -> BuildStatus:
        """Contribution of this stage to the overall build status."""

        if self.status is StageStatus.FAILED:
            return self.policy.status_on_failure()
        return BuildStatus.SUCCESS


class PipelineRun(BaseModel):
    """Aggregate for a single pipeline execution."""

    build_number: str
    branch: str | None = None
    variant: str
    stages: list[StageResult] = Field(default_factory=list)
    images: list[ImageReference] = Field(default_factory=list)
    vulnerabilities: VulnerabilityCounts | None = None
    status: BuildStatus = BuildStatus.SUCCESS
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    def record(self, result: StageResult) -> None:
        self.stages.append(result)
        self.status = self.status.worst(result.build_status)

    def stage(self, name: str) -> StageResult | None:
        for result in self.stages:
            if result.name == name:
                return result
        return None
