from __future__ import annotations

from pathlib import Path

from adapters.dockerfile_renderer import ensure_dockerfile, render_dockerfile


def test_template_has_five_fixed_lines():
    content = render_dockerfile(base_image="node:20-alpine")

    assert content.splitlines() == [
        "FROM node:20-alpine",
        "WORKDIR /app",
        "COPY . .",
        "RUN npm install --production",
        'CMD ["npm", "start"]',
    ]
    assert content.endswith("\n")


def test_existing_dockerfile_is_kept(tmp_path: Path):
    (tmp_path / "Dockerfile").write_text("FROM scratch\n", encoding="utf-8")

    path, generated = ensure_dockerfile(workspace=tmp_path, base_image="node:18-alpine")

    assert not generated
    assert path.read_text(encoding="utf-8") == "FROM scratch\n"


def test_missing_dockerfile_is_generated(tmp_path: Path):
    path, generated = ensure_dockerfile(workspace=tmp_path, base_image="node:18-alpine")

    assert generated
    assert path == tmp_path / "Dockerfile"
    assert path.read_text(encoding="utf-8").startswith("FROM node:18-alpine\n")
