from __future__ import annotations

from pathlib import Path

from core.config import AppSettings, write_user_env_vars


def test_automation_server_variables_are_accepted(monkeypatch):
    monkeypatch.setenv("BUILD_NUMBER", "117")
    monkeypatch.setenv("BRANCH_NAME", "main")
    monkeypatch.delenv("BUILDRELAY_BUILD_NUMBER", raising=False)
    monkeypatch.delenv("BUILDRELAY_BRANCH", raising=False)

    settings = AppSettings(_env_file=None)

    assert settings.build_number == "117"
    assert settings.branch == "main"


def test_prefixed_variables_and_credentials(monkeypatch):
    monkeypatch.setenv("BUILDRELAY_REGISTRY", "reg.local:5000")
    monkeypatch.setenv("REGISTRY_USERNAME", "jenkins")
    monkeypatch.setenv("REGISTRY_PASSWORD", "hunter2")

    settings = AppSettings(_env_file=None)

    assert settings.registry == "reg.local:5000"
    assert settings.has_credentials
    assert settings.registry_password.get_secret_value() == "hunter2"
    assert "hunter2" not in repr(settings)


def test_keyword_overrides_win(monkeypatch):
    monkeypatch.setenv("BUILD_NUMBER", "117")

    settings = AppSettings(_env_file=None, build_number="9", workspace=Path("/tmp/ws"))

    assert settings.build_number == "9"
    assert settings.workspace == Path("/tmp/ws")


def test_write_user_env_vars_merges(tmp_path: Path):
    env_path = tmp_path / "cfg" / ".env"
    env_path.parent.mkdir()
    env_path.write_text("# old\nBUILDRELAY_IMAGE_NAME=old\nKEEP='yes'\n", encoding="utf-8")

    write_user_env_vars({"BUILDRELAY_IMAGE_NAME": "web", "BUILDRELAY_REGISTRY": "reg"}, env_path=env_path)

    lines = env_path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        "# buildrelay user config (.env)",
        "BUILDRELAY_IMAGE_NAME=web",
        "BUILDRELAY_REGISTRY=reg",
        "KEEP=yes",
    ]
