"""
injection
---------

비밀번호 주입용 파이프(StreamBridge)와, 프롬프트 감지 시 파이프에
비밀번호를 써 넣는 PasswordInjector.
"""

from __future__ import annotations

import os
import threading
from typing import Optional, TextIO

from .logging_utils import get_logger


logger = get_logger(__name__)


class StreamBridge:
    """
    os.pipe 기반 단방향 파이프.

    reader 는 sys.stdin 자리에 설치되고, writer 는 PasswordInjector 가 사용한다.
    한 번의 명령 실행 동안만 소유하며 close() 로 양쪽 끝을 모두 닫는다.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        read_fd, write_fd = os.pipe()
        try:
            self.reader: TextIO = open(read_fd, "r", encoding=encoding, closefd=True)
        except Exception:
            os.close(read_fd)
            os.close(write_fd)
            raise
        try:
            self.writer: TextIO = open(write_fd, "w", encoding=encoding, closefd=True)
        except Exception:
            self.reader.close()
            os.close(write_fd)
            raise
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True

        # writer 를 먼저 닫아야 reader 쪽에서 EOF 를 받는다.
        for name, stream in (("writer", self.writer), ("reader", self.reader)):
            try:
                stream.close()
            except OSError as e:
                logger.debug("파이프 %s 종료 중 오류 (무시): %s", name, e)

    def __enter__(self) -> "StreamBridge":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()


class PasswordInjector:
    """
    on_trigger() 가 호출되면 password + 줄바꿈을 writer 에 쓰고 flush 후 닫는다.
    여러 번 호출되거나 다른 스레드에서 호출되어도 한 번만 주입한다.
    """

    def __init__(self, writer: TextIO, password: str) -> None:
        self._writer = writer
        self._password = password
        self._lock = threading.Lock()
        self._injected = False
        self.error: Optional[BaseException] = None

    @property
    def injected(self) -> bool:
        return self._injected

    def on_trigger(self) -> None:
        with self._lock:
            if self._injected:
                return
            self._injected = True

            try:
                self._writer.write(self._password)
                self._writer.write("\n")
                self._writer.flush()
            except (OSError, ValueError) as e:
                # 파이프가 이미 닫혔거나(프로세스 종료) 쓰기 실패.
                # 명령의 성공/실패는 appcfg 종료 결과로만 판단한다.
                self.error = e
                logger.error("비밀번호를 입력하지 못했습니다: %s", e)
            finally:
                try:
                    self._writer.close()
                except (OSError, ValueError) as e:
                    logger.debug("비밀번호 writer 종료 중 오류 (무시): %s", e)
