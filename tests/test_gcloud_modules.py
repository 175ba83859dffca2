from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from gae_deploy_kit import gcloud_modules
from gae_deploy_kit.config import GCloudAppOptions
from gae_deploy_kit.gcloud_modules import ModulesCommand, build_modules_command
from gae_deploy_kit.manifest import AppManifest, find_ear_modules, read_manifest
from gae_deploy_kit.subprocess_utils import RunResult


_XML = """<?xml version="1.0" encoding="utf-8"?>
<appengine-web-app xmlns="http://appengine.google.com/ns/1.0">
  <application>my-app</application>
  {module}
  {version}
</appengine-web-app>
"""


def _write_manifest(app_dir: Path, module: str = "", version: str = "") -> None:
    web_inf = app_dir / "WEB-INF"
    web_inf.mkdir(parents=True)
    (web_inf / "appengine-web.xml").write_text(
        _XML.format(
            module=f"<module>{module}</module>" if module else "",
            version=f"<version>{version}</version>" if version else "",
        ),
        encoding="utf-8",
    )


def test_read_manifest_with_namespace(tmp_path: Path) -> None:
    _write_manifest(tmp_path, module="api", version="3")

    assert read_manifest(tmp_path) == AppManifest(module="api", version="3")


def test_read_manifest_defaults_module(tmp_path: Path) -> None:
    _write_manifest(tmp_path)

    assert read_manifest(tmp_path) == AppManifest(module="default", version=None)


def test_read_manifest_missing_returns_none(tmp_path: Path) -> None:
    assert read_manifest(tmp_path) is None


def test_read_manifest_invalid_xml_raises(tmp_path: Path) -> None:
    web_inf = tmp_path / "WEB-INF"
    web_inf.mkdir()
    (web_inf / "appengine-web.xml").write_text("<appengine-web-app>", encoding="utf-8")

    with pytest.raises(ValueError):
        read_manifest(tmp_path)


def test_build_uses_manifest_version_and_server() -> None:
    options = GCloudAppOptions(server="appengine.google.com")

    cmd = ModulesCommand("stop").build(options, AppManifest(module="api", version="3"))

    assert cmd == [
        "gcloud", "preview", "app", "modules",
        "stop", "api", "--version=3", "--server=appengine.google.com",
    ]


def test_build_prefers_configured_version_and_server() -> None:
    options = GCloudAppOptions(
        gcloud_path="/sdk/bin/gcloud",
        gcloud_app_version="v9",
        gcloud_app_server="gcloud.example.com",
        server="ignored.example.com",
    )

    cmd = ModulesCommand("set-default").build(options, AppManifest(module="default", version="3"))

    assert cmd == [
        "/sdk/bin/gcloud", "preview", "app", "modules",
        "set-default", "default", "--version=v9", "--server=gcloud.example.com",
    ]


def test_build_without_any_version_logs_error(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("ERROR"):
        cmd = ModulesCommand("start").build(GCloudAppOptions(), AppManifest())

    assert cmd[-2:] == ["start", "default"]
    assert "GCLOUD_APP_VERSION" in caplog.text


def test_ear_layout_lists_modules(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    _write_manifest(tmp_path / "frontend")
    _write_manifest(tmp_path / "backend")
    (tmp_path / "lib").mkdir()

    assert [p.name for p in find_ear_modules(tmp_path)] == ["backend", "frontend"]

    with caplog.at_level("WARNING"):
        cmd = build_modules_command("delete", GCloudAppOptions(app_dir=str(tmp_path)))

    assert cmd == ["gcloud", "preview", "app", "modules"]
    assert "backend" in caplog.text and "frontend" in caplog.text


def test_unknown_sub_command_is_rejected() -> None:
    with pytest.raises(ValueError):
        ModulesCommand("restart")


def test_run_modules_command_runs_in_app_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_manifest(tmp_path, module="api", version="1")
    calls: list[dict[str, Any]] = []

    def fake_run_command(cmd, **kwargs):  # noqa: ANN001, ANN003, ANN202
        calls.append({"cmd": list(cmd), **kwargs})
        return RunResult(returncode=0, output="")

    monkeypatch.setattr(gcloud_modules, "run_command", fake_run_command)

    options = GCloudAppOptions(app_dir=str(tmp_path), timeout=60.0)
    result = gcloud_modules.run_modules_command("cancel-deployment", options)

    assert result.returncode == 0
    assert calls[0]["cmd"][-3:] == ["cancel-deployment", "api", "--version=1"]
    assert calls[0]["cwd"] == str(tmp_path)
    assert calls[0]["timeout"] == 60.0
