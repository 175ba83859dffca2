"""
supervisor
----------

appcfg 진입점을 전용 워커 스레드에서 실행하면서 프로세스 전역 stdin/stdout 을
잠시 교체하여, 비밀번호 프롬프트에 자동으로 응답하는 모듈.

흐름:
    1. 워커 스레드에서 현재 stdin/stdout 을 저장
    2. StreamBridge(파이프)의 reader 를 sys.stdin 으로 설치
    3. 원래 stdout 을 감싼 PromptWatchingWriter 를 sys.stdout 으로 설치
    4. appcfg 진입점 실행 (프롬프트 감지 시 PasswordInjector 가 파이프에 비밀번호 기록)
    5. 어떤 경로로 끝나든 원래 stdin/stdout 복원
호출 스레드는 join 으로 워커 종료를 기다린 뒤, 워커에서 난 예외를 다시 올린다.
"""

from __future__ import annotations

import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, TextIO

from .injection import PasswordInjector, StreamBridge
from .logging_utils import get_logger, mask_secrets_in_logs
from .prompt_watch import PASSWORD_PROMPT, PromptWatchingWriter


logger = get_logger(__name__)


EntryPoint = Callable[[Sequence[str]], None]


class AppCfgExecutionError(RuntimeError):
    def __init__(self, arguments: Sequence[str], cause: Optional[BaseException] = None) -> None:
        self.arguments: List[str] = list(arguments)
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"appcfg 명령 실행 실패 command={self.arguments}{detail}")


@dataclass(frozen=True)
class IOContext:
    stdin: TextIO
    stdout: TextIO

    @classmethod
    def current(cls) -> "IOContext":
        return cls(stdin=sys.stdin, stdout=sys.stdout)

    def install(self) -> None:
        sys.stdin = self.stdin
        sys.stdout = self.stdout


@contextmanager
def redirected_io(saved: IOContext) -> Iterator[None]:
    """
    with 블록 동안 교체된 stdin/stdout 을 유지하고, 블록을 벗어나면
    (정상 종료/예외 모두) saved 로 정확히 한 번 복원한다.
    교체 자체는 블록 안에서 수행하므로, 설치 도중 실패해도 복원된다.
    """
    try:
        yield
    finally:
        saved.install()
        logger.debug("stdin/stdout 복원 완료")


class SupervisionGroup:
    """
    한 번의 명령 실행을 위해 만들어진 스레드 묶음.

    생성 시점에 살아 있던 스레드를 기록해 두고, 그 이후 시작된 스레드를
    이 그룹의 소속으로 본다 (워커 스레드와, appcfg 가 내부에서 띄우는 스레드).
    명령 실행은 동시에 하나만 돈다는 전제를 둔다.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        # ident 는 종료된 스레드의 값이 재사용되므로 Thread 객체 자체를 기록한다.
        self._baseline = set(threading.enumerate())

    def owns(self, thread: threading.Thread) -> bool:
        return thread not in self._baseline

    def owns_current(self) -> bool:
        return self.owns(threading.current_thread())

    def members(self) -> List[threading.Thread]:
        return [t for t in threading.enumerate() if self.owns(t)]


class ProcessSupervisor:
    def __init__(self, entry_point: EntryPoint, trigger: str = PASSWORD_PROMPT) -> None:
        self._entry_point = entry_point
        self._trigger = trigger

    def run(self, args: Sequence[str]) -> None:
        """
        비밀번호 주입 없이 진입점을 바로 실행한다.
        """
        try:
            self._entry_point(list(args))
        except Exception as e:  # noqa: BLE001
            raise AppCfgExecutionError(args, e) from e

    def run_with_password_prompt(self, args: Sequence[str], password: str) -> None:
        arguments = list(args)
        group = SupervisionGroup("AppCfgThreadGroup")
        outcome: dict[str, BaseException] = {}

        def _work() -> None:
            saved = IOContext.current()
            try:
                with redirected_io(saved):
                    try:
                        bridge = StreamBridge()
                    except OSError:
                        logger.exception("stdin/stdout 리디렉션 설정 실패")
                        raise

                    with bridge:
                        injector = PasswordInjector(bridge.writer, password)
                        watcher = PromptWatchingWriter(
                            saved.stdout,
                            self._trigger,
                            injector.on_trigger,
                            group=group,
                        )
                        IOContext(stdin=bridge.reader, stdout=watcher).install()
                        self._entry_point(arguments)
                        if not watcher.fired:
                            logger.debug("appcfg 가 비밀번호 프롬프트를 출력하지 않았습니다.")
            except BaseException as e:  # noqa: BLE001
                outcome["error"] = e

        worker = threading.Thread(target=_work, name="AppCfgMainThread")

        with mask_secrets_in_logs(password):
            worker.start()
            while True:
                try:
                    worker.join()
                    break
                except KeyboardInterrupt:
                    # 워커는 중단하지 않는다. appcfg 가 스스로 끝날 때까지 계속 기다린다.
                    logger.error("워커 스레드 종료 대기 중 인터럽트가 발생했습니다. 계속 대기합니다.")

        error = outcome.get("error")
        if error is not None:
            raise AppCfgExecutionError(arguments, error) from error
