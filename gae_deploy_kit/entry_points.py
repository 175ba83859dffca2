"""
entry_points
------------

appcfg 를 실제로 실행하는 진입점 구현.

둘 다 호출 시점의 sys.stdin / sys.stdout 을 사용하므로, ProcessSupervisor 가
교체해 둔 스트림을 통해 비밀번호 프롬프트를 감시/응답할 수 있다.
"""

from __future__ import annotations

import codecs
import runpy
import subprocess
import sys
import threading
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, TextIO

from .logging_utils import get_logger


logger = get_logger(__name__)


class AppCfgExitError(RuntimeError):
    def __init__(self, returncode: object, command: Sequence[str]) -> None:
        self.returncode = returncode
        self.command = list(command)
        super().__init__(f"appcfg 가 실패 코드로 종료되었습니다 (exit={returncode})")


class InProcessAppCfg:
    """
    SDK 의 appcfg.py 를 현재 인터프리터 안에서 __main__ 으로 실행한다.
    """

    def __init__(self, appcfg_path: Path) -> None:
        self.appcfg_path = Path(appcfg_path)

    def __call__(self, args: Sequence[str]) -> None:
        argv = [str(self.appcfg_path), *args]
        saved_argv = sys.argv
        sys.argv = argv
        try:
            runpy.run_path(str(self.appcfg_path), run_name="__main__")
        except SystemExit as e:
            if e.code not in (None, 0):
                raise AppCfgExitError(e.code, argv) from e
        finally:
            sys.argv = saved_argv


class SubprocessAppCfg:
    """
    appcfg 를 별도 프로세스로 실행하고, 현재 sys.stdin / sys.stdout 과 파이프로 잇는다.

    - 자식 stdout 은 read 가 돌려주는 만큼 바로 sys.stdout 에 기록한다.
      (줄바꿈 없는 프롬프트가 line 버퍼에 갇히지 않도록)
    - sys.stdin 이 교체되어 있으면 별도 스레드에서 자식 stdin 으로 전달한다.
      교체되지 않은 원래 stdin 이면 자식이 그대로 상속한다.
    """

    def __init__(
        self,
        command_prefix: Sequence[str],
        *,
        cwd: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        read_size: int = 1024,
    ) -> None:
        self.command_prefix: List[str] = list(command_prefix)
        self.cwd = cwd
        self.env = dict(env) if env is not None else None
        self.read_size = read_size

    def __call__(self, args: Sequence[str]) -> None:
        cmd = [*self.command_prefix, *args]
        stdin: TextIO = sys.stdin
        stdout: TextIO = sys.stdout
        forward_stdin = stdin is not sys.__stdin__

        try:
            proc = subprocess.Popen(  # noqa: S603
                cmd,
                cwd=self.cwd,
                env=self.env,
                stdin=subprocess.PIPE if forward_stdin else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                bufsize=0,
            )
        except FileNotFoundError as e:
            raise RuntimeError(
                f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (App Engine SDK 경로를 확인하세요)"
            ) from e

        pump: Optional[threading.Thread] = None
        if forward_stdin:
            pump = threading.Thread(
                target=self._pump_stdin,
                args=(stdin, proc),
                name="AppCfgStdinPump",
                daemon=True,
            )
            pump.start()

        assert proc.stdout is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while True:
                chunk = proc.stdout.read(self.read_size)
                if not chunk:
                    break
                text = decoder.decode(chunk)
                if text:
                    stdout.write(text)
                    stdout.flush()
            tail = decoder.decode(b"", final=True)
            if tail:
                stdout.write(tail)
                stdout.flush()
        except BaseException:
            proc.kill()
            raise
        finally:
            proc.stdout.close()
            returncode = proc.wait()
            if pump is not None:
                # 입력이 EOF 에 닿은 펌프는 여기서 정리된다. 입력을 기다리는 중이면 데몬으로 남는다.
                pump.join(timeout=1.0)
                if pump.is_alive():
                    logger.debug("appcfg stdin 전달 스레드가 아직 입력을 기다리고 있습니다.")

        if returncode != 0:
            raise AppCfgExitError(returncode, cmd)

    @staticmethod
    def _pump_stdin(stdin: TextIO, proc: subprocess.Popen) -> None:
        assert proc.stdin is not None
        try:
            for line in stdin:
                proc.stdin.write(line.encode("utf-8"))
                proc.stdin.flush()
        except (OSError, ValueError) as e:
            logger.debug("appcfg stdin 전달 종료: %s", e)
        finally:
            try:
                proc.stdin.close()
            except OSError:
                pass
