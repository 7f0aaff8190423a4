"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without leaking into the CLI.
- Adapters and the pipeline read the same typed contract.
- Automation-server variables (`BUILD_NUMBER`, `BRANCH_NAME`, `GIT_BRANCH`) are
  accepted as-is so the runner drops into an existing job unchanged.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.variants import DEFAULT_VARIANT


def get_user_config_dir() -> Path:
    """Per-user config directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "buildrelay"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "buildrelay"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "buildrelay"
    return Path.home() / ".config" / "buildrelay"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Write/update variables in the user's global .env."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# buildrelay user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typed, validated configuration at the edge (env vars, .env files).
    - One contract shared by the CLI, the pipeline and the adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="BUILDRELAY_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    workspace: Path = Field(
        default=Path("."),
        description="Directory holding the checked-out project.",
    )
    repo_url: str | None = Field(
        default=None,
        description="Repository to clone into the workspace (optional).",
    )
    branch: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BUILDRELAY_BRANCH", "BRANCH_NAME", "GIT_BRANCH"),
        description="Branch being built; resolved from git when unset.",
    )
    build_number: str = Field(
        default="local",
        min_length=1,
        validation_alias=AliasChoices("BUILDRELAY_BUILD_NUMBER", "BUILD_NUMBER"),
        description="Build identifier, used as the image tag.",
    )
    variant: str = Field(
        default=DEFAULT_VARIANT,
        min_length=1,
        description="Pipeline variant (standard/strict/lenient/local).",
    )

    registry: str = Field(
        default="",
        description="Registry host, e.g. 'registry.example.com:5000'. Empty means local only.",
    )
    image_name: str = Field(
        default="app",
        min_length=1,
        description="Repository name of the image inside the registry.",
    )
    base_image: str = Field(
        default="node:18-alpine",
        min_length=1,
        description="FROM image of the generated Dockerfile.",
    )

    git_bin: str = Field(default="git", min_length=1)
    node_bin: str = Field(default="node", min_length=1)
    npm_bin: str = Field(default="npm", min_length=1)
    docker_bin: str = Field(default="docker", min_length=1)

    registry_username: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BUILDRELAY_REGISTRY_USERNAME", "REGISTRY_USERNAME"),
    )
    registry_password: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("BUILDRELAY_REGISTRY_PASSWORD", "REGISTRY_PASSWORD"),
    )
    username_env_var: str = Field(
        default="REGISTRY_USERNAME",
        min_length=1,
        description="Variable the username is bound to during the push stage.",
    )
    password_env_var: str = Field(
        default="REGISTRY_PASSWORD",
        min_length=1,
        description="Variable the password is bound to during the push stage.",
    )

    command_timeout_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Timeout per external command (seconds).",
    )
    registry_probe_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for the doctor's registry reachability probe.",
    )
    audit_report_name: str = Field(
        default="audit-report.json",
        min_length=1,
        description="File (inside the workspace) the raw audit report is written to.",
    )
    log_level: str = Field(default="INFO", min_length=1)

    @property
    def has_credentials(self) -> bool:
        return bool(self.registry_username) and self.registry_password is not None
