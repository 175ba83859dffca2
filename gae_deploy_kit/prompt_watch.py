"""
prompt_watch
------------

sys.stdout 자리에 설치되는 텍스트 스트림 래퍼.

받은 출력은 즉시 원래 콘솔(sink)로 흘려보내고, 동시에 최근 출력 꼬리를
보관하여 비밀번호 프롬프트(trigger)가 나타나는지 감시한다.
프롬프트는 줄바꿈 없이 출력된 뒤 stdin 을 기다리므로, 버퍼링 없이
write 마다 flush 해야 콘솔이 멈춘 것처럼 보이지 않는다.
"""

from __future__ import annotations

import enum
import io
import threading
from typing import Callable, Optional, Protocol, TextIO

from .logging_utils import get_logger


logger = get_logger(__name__)


# appcfg 가 --passin 상태에서 stdin 을 읽기 직전에 출력하는 프롬프트
PASSWORD_PROMPT = "Password for "


class ThreadScope(Protocol):
    def owns_current(self) -> bool: ...


class WatchState(enum.Enum):
    WATCHING = "watching"
    FIRED = "fired"


class PromptWatchingWriter(io.TextIOBase):
    def __init__(
        self,
        sink: TextIO,
        trigger: str,
        callback: Callable[[], None],
        group: Optional[ThreadScope] = None,
    ) -> None:
        super().__init__()
        if not trigger:
            raise ValueError("trigger 문자열이 비어 있습니다.")
        self._sink = sink
        self._trigger = trigger
        self._callback = callback
        self._group = group
        self._lock = threading.Lock()
        self._state = WatchState.WATCHING
        self._tail = ""

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def fired(self) -> bool:
        return self._state is WatchState.FIRED

    @property
    def encoding(self) -> str:  # type: ignore[override]
        return getattr(self._sink, "encoding", None) or "utf-8"

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        try:
            return bool(self._sink.isatty())
        except Exception:  # noqa: BLE001
            return False

    def fileno(self) -> int:
        return self._sink.fileno()

    def flush(self) -> None:
        self._sink.flush()

    def write(self, text: str) -> int:
        self._sink.write(text)
        self._sink.flush()

        if self._state is WatchState.WATCHING and text:
            if self._group is None or self._group.owns_current():
                self._scan(text)

        return len(text)

    def _scan(self, text: str) -> None:
        with self._lock:
            if self._state is not WatchState.WATCHING:
                return
            window = self._tail + text
            if self._trigger not in window:
                # 다음 write 와 이어 붙여 검사할 수 있도록 trigger 길이 - 1 만큼 보관
                keep = len(self._trigger) - 1
                self._tail = window[-keep:] if keep else ""
                return
            self._state = WatchState.FIRED
            self._tail = ""

        logger.debug("비밀번호 프롬프트 감지: %r", self._trigger)
        try:
            self._callback()
        except Exception:  # noqa: BLE001
            logger.exception("비밀번호 프롬프트 콜백 실행 중 오류 발생")
