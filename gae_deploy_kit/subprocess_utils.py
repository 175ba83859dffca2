from __future__ import annotations

import queue
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from textwrap import shorten
from typing import Mapping, Sequence

from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RunResult:
    returncode: int
    output: str


def _timeout_error(cmd: Sequence[str], timeout: float | None) -> RuntimeError:
    return RuntimeError(f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}")


def run_command(
    cmd: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = 900.0,
) -> RunResult:
    """
    gcloud 등 외부 명령을 실행하면서 출력을 줄 단위로 현재 sys.stdout 에 흘린다.

    stderr 는 stdout 에 합쳐지고, 실패 시 예외 메시지에 출력 요약이 붙는다.
    """
    logger.info("명령 실행: %s", " ".join(cmd))

    # gcloud 는 stderr 로도 진행 로그를 내보내므로 STDOUT 으로 합친다.
    try:
        proc = subprocess.Popen(  # noqa: S603
            list(cmd),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
        )
    except FileNotFoundError as e:
        raise RuntimeError(
            f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (gcloud 가 설치되어 있는지 확인하세요)"
        ) from e

    out_lines: list[str] = []
    deadline = None if timeout is None else time.monotonic() + float(timeout)
    q: queue.Queue[str | None] = queue.Queue()

    def _reader() -> None:
        try:
            assert proc.stdout is not None
            for line in proc.stdout:
                q.put(line)
        finally:
            q.put(None)

    reader_thread = threading.Thread(target=_reader, daemon=True)
    reader_thread.start()

    try:
        while True:
            if deadline is not None and time.monotonic() >= deadline:
                proc.kill()
                raise _timeout_error(cmd, timeout)

            try:
                item = q.get(timeout=0.1)
            except queue.Empty:
                continue

            if item is None:
                break

            out_lines.append(item)
            sys.stdout.write(item)
            sys.stdout.flush()

        reader_thread.join(timeout=1.0)

        wait_timeout = None
        if deadline is not None:
            wait_timeout = max(deadline - time.monotonic(), 0.0)
        returncode = proc.wait(timeout=wait_timeout)
    except subprocess.TimeoutExpired as e:
        proc.kill()
        raise _timeout_error(cmd, timeout) from e
    finally:
        if proc.stdout is not None:
            proc.stdout.close()

    output = "".join(out_lines)
    if returncode != 0:
        combined = output.strip()
        detail = "\nstdout/stderr:\n" + shorten(combined, width=2000) if combined else ""
        raise RuntimeError(f"명령 실행 실패: {' '.join(cmd)} (exit={returncode}){detail}")

    return RunResult(returncode=returncode, output=output)
