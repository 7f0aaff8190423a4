"""JSON export of the run record.

Why JSON:
- Interoperates with the automation server (archived artifacts, dashboards).
- Keeps a durable record of every stage without parsing console output.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import PipelineRun


def render_run_json(run: PipelineRun) -> str:
    payload = run.model_dump(mode="json")
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def export_run_json(*, run: PipelineRun, output_path: Path) -> Path:
    """Export `PipelineRun` as UTF-8 JSON with stable formatting."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_run_json(run), encoding="utf-8")
    return output_path
