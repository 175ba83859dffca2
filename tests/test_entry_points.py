from __future__ import annotations

import io
import sys
import threading
from pathlib import Path

import pytest

from gae_deploy_kit.entry_points import AppCfgExitError, InProcessAppCfg, SubprocessAppCfg


def _script(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "appcfg.py"
    path.write_text(body, encoding="utf-8")
    return path


def test_in_process_passes_argv_and_uses_current_stdout(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    out = io.StringIO()
    monkeypatch.setattr(sys, "stdout", out)
    appcfg = _script(tmp_path, "import sys\nprint(' '.join(sys.argv[1:]))\n")
    saved_argv = sys.argv

    InProcessAppCfg(appcfg)(["--oauth2", "update", "app"])

    assert out.getvalue() == "--oauth2 update app\n"
    assert sys.argv is saved_argv


def test_in_process_exit_zero_is_success(tmp_path: Path) -> None:
    appcfg = _script(tmp_path, "import sys\nsys.exit(0)\n")

    InProcessAppCfg(appcfg)(["update"])


def test_in_process_nonzero_exit_raises(tmp_path: Path) -> None:
    appcfg = _script(tmp_path, "import sys\nsys.exit(3)\n")

    with pytest.raises(AppCfgExitError) as excinfo:
        InProcessAppCfg(appcfg)(["update"])

    assert excinfo.value.returncode == 3
    assert excinfo.value.command[-1] == "update"


def test_subprocess_streams_output_to_current_stdout(monkeypatch: pytest.MonkeyPatch) -> None:
    out = io.StringIO()
    monkeypatch.setattr(sys, "stdout", out)

    SubprocessAppCfg([sys.executable, "-c", "import sys; print('hello', sys.argv[1])"])(["world"])

    assert out.getvalue().replace("\r\n", "\n") == "hello world\n"


def test_subprocess_nonzero_exit_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "stdout", io.StringIO())

    with pytest.raises(AppCfgExitError) as excinfo:
        SubprocessAppCfg([sys.executable, "-c", "import sys; sys.exit(4)"])([])

    assert excinfo.value.returncode == 4


def test_subprocess_missing_binary_raises_runtime_error() -> None:
    with pytest.raises(RuntimeError) as excinfo:
        SubprocessAppCfg(["definitely-not-an-appcfg-binary"])(["update"])

    assert "definitely-not-an-appcfg-binary" in str(excinfo.value)


def test_subprocess_forwards_replaced_stdin_and_joins_pump(monkeypatch: pytest.MonkeyPatch) -> None:
    out = io.StringIO()
    monkeypatch.setattr(sys, "stdin", io.StringIO("secret\n"))
    monkeypatch.setattr(sys, "stdout", out)

    SubprocessAppCfg([sys.executable, "-c", "print('got', input())"])([])

    assert out.getvalue().replace("\r\n", "\n") == "got secret\n"
    assert not [t for t in threading.enumerate() if t.name == "AppCfgStdinPump"]
