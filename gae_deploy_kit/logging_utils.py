import logging
import sys
from contextlib import contextmanager
from typing import Iterable, Iterator


def setup_logging(verbosity: int = 0) -> None:
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG

    # StreamHandler 는 이 시점의 sys.stdout 을 붙잡아 두므로,
    # appcfg 실행 중 sys.stdout 이 교체되어도 로그는 원래 콘솔로 나간다.
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class SecretMaskingFilter(logging.Filter):
    """
    로그 메시지에 포함된 비밀번호 값을 '***' 로 치환한다.
    """

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        self._secrets = {s for s in secrets if s}

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self._secrets:
            masked = masked.replace(secret, "***")
        if masked != message:
            record.msg = masked
            record.args = None
        return True


@contextmanager
def mask_secrets_in_logs(*secrets: str) -> Iterator[SecretMaskingFilter]:
    """
    root 로거의 모든 핸들러에 SecretMaskingFilter 를 잠시 붙였다가 제거한다.
    """
    masking = SecretMaskingFilter(secrets)
    handlers = list(logging.getLogger().handlers)
    for handler in handlers:
        handler.addFilter(masking)
    try:
        yield masking
    finally:
        for handler in handlers:
            handler.removeFilter(masking)
