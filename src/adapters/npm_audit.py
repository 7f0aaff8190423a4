"""Audit report parsing.

`npm audit --json` (npm 7+) summarizes findings under
`metadata.vulnerabilities`:

    {"metadata": {"vulnerabilities": {"info": 0, "low": 1, "moderate": 0,
                                      "high": 2, "critical": 0, "total": 3}}}

Only `high` and `critical` drive the gate; the other severities are kept for
the run record.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.domain.models import AuditPolicy, StageStatus, VulnerabilityCounts
from core.errors import AuditReportError


_SEVERITIES = ("info", "low", "moderate", "high", "critical", "total")


def parse_audit_report(data: str | bytes | dict[str, Any]) -> VulnerabilityCounts:
    """Extract vulnerability counts from an audit report."""

    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise AuditReportError(f"Audit report is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise AuditReportError("Audit report must be a JSON object.")

    metadata = data.get("metadata")
    vulns = metadata.get("vulnerabilities") if isinstance(metadata, dict) else None
    if not isinstance(vulns, dict):
        raise AuditReportError("Audit report has no 'metadata.vulnerabilities' section.")

    counts: dict[str, int] = {}
    for key in _SEVERITIES:
        value = vulns.get(key, 0)
        # bool is an int subclass; reject it explicitly.
        if isinstance(value, bool) or not isinstance(value, int):
            raise AuditReportError(f"'{key}' count must be an integer, got {value!r}.")
        if value < 0:
            raise AuditReportError(f"'{key}' count must be non-negative, got {value}.")
        counts[key] = value

    return VulnerabilityCounts(**counts)


def load_audit_report(path: Path) -> VulnerabilityCounts:
    if not path.is_file():
        raise AuditReportError(f"Audit report not found: {path}")
    return parse_audit_report(path.read_text(encoding="utf-8"))


def evaluate_audit(counts: VulnerabilityCounts, policy: AuditPolicy) -> StageStatus:
    """Gate decision: zero high/critical always passes."""

    if not counts.has_blocking:
        return StageStatus.PASSED
    if policy is AuditPolicy.FAIL:
        return StageStatus.FAILED
    return StageStatus.WARNED


def describe_counts(counts: VulnerabilityCounts) -> str:
    return f"high={counts.high}, critical={counts.critical}"
