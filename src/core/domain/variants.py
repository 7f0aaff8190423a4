"""Pipeline variants.

The four pipeline definitions differ only in a handful of switches: how the
audit gate reacts, which branches may push, and how a failing test run is
treated. Keeping them as data lets the CLI and config select one by name.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from core.domain.models import AuditPolicy, FailurePolicy
from core.errors import UnknownVariantError


class PipelineVariant(BaseModel):
    """Switches for one pipeline definition."""

    name: str = Field(..., min_length=1)
    description: str = ""
    audit_policy: AuditPolicy = AuditPolicy.WARN
    test_policy: FailurePolicy = FailurePolicy.CONTINUE
    push_enabled: bool = True
    push_branches: frozenset[str] | None = Field(
        default=frozenset({"main", "master"}),
        description="Branches allowed to push. None means any branch.",
    )

    def allows_push(self, branch: str | None) -> bool:
        if not self.push_enabled:
            return False
        if self.push_branches is None:
            return True
        if not branch:
            return False
        return normalize_branch(branch) in self.push_branches


def normalize_branch(branch: str) -> str:
    """Strip remote prefixes such as `origin/` or `refs/heads/`."""

    value = branch.strip()
    for prefix in ("refs/heads/", "refs/remotes/origin/", "origin/"):
        if value.startswith(prefix):
            return value[len(prefix):]
    return value


DEFAULT_VARIANT = "standard"

_VARIANTS: dict[str, PipelineVariant] = {
    v.name: v
    for v in (
        PipelineVariant(
            name="standard",
            description="Audit findings warn; push from main/master.",
        ),
        PipelineVariant(
            name="strict",
            description="Audit findings and test failures fail the build; push from main/master.",
            audit_policy=AuditPolicy.FAIL,
            test_policy=FailurePolicy.FAIL,
        ),
        PipelineVariant(
            name="lenient",
            description="Audit findings warn; push from any branch.",
            push_branches=None,
        ),
        PipelineVariant(
            name="local",
            description="Audit findings warn; never push.",
            push_enabled=False,
        ),
    )
}


def get_variant(name: str) -> PipelineVariant:
    try:
        return _VARIANTS[name.strip().lower()]
    except KeyError as exc:
        raise UnknownVariantError(name, sorted(_VARIANTS)) from exc


def list_variants() -> list[PipelineVariant]:
    return list(_VARIANTS.values())
