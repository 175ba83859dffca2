"""
credentials
-----------

server id 로 자격 증명(username/password)을 찾고, 비밀번호를 복호화하는 모듈.

자격 증명 파일(.env.servers)은 dotenv 형식이며 다음과 같이 작성한다.

    PROD_USERNAME=deployer@example.com
    PROD_PASSWORD={gAAAAAB...}
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping, Optional

from dotenv import dotenv_values

from .decryptors import Decryptor
from .logging_utils import get_logger


logger = get_logger(__name__)


def _normalize_server_id(server_id: str) -> str:
    return server_id.strip().upper().replace("-", "_").replace(".", "_")


@dataclass(frozen=True)
class Credential:
    server_id: str
    username: str
    encrypted_secret: str = field(default="", repr=False)


class CredentialStore(Mapping[str, Credential]):
    """
    server id -> Credential 매핑. 조회 시 server id 는 대소문자/구분자를 정규화한다.
    """

    def __init__(self, entries: Optional[Mapping[str, Credential]] = None) -> None:
        self._entries: Dict[str, Credential] = {}
        for key, credential in (entries or {}).items():
            self._entries[_normalize_server_id(key)] = credential

    def __getitem__(self, server_id: str) -> Credential:
        return self._entries[_normalize_server_id(server_id)]

    def __contains__(self, server_id: object) -> bool:
        if not isinstance(server_id, str):
            return False
        return _normalize_server_id(server_id) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_env_file(cls, path: str) -> "CredentialStore":
        """
        <ID>_USERNAME / <ID>_PASSWORD 쌍을 읽어 store 를 만든다.
        USERNAME 이 없는 항목은 무시한다. 파일이 없으면 빈 store.
        """
        if not os.path.exists(path):
            logger.debug("자격 증명 파일이 없습니다: %s", path)
            return cls()

        values = dotenv_values(dotenv_path=path)
        entries: Dict[str, Credential] = {}
        for key, value in values.items():
            if value is None or not key.endswith("_USERNAME"):
                continue
            server_id = key[: -len("_USERNAME")]
            if not server_id:
                continue
            entries[server_id] = Credential(
                server_id=server_id,
                username=value,
                encrypted_secret=values.get(f"{server_id}_PASSWORD") or "",
            )

        logger.debug("자격 증명 %d 건 로드: %s", len(entries), path)
        return cls(entries)


class ResolveStatus(enum.Enum):
    NOT_CONFIGURED = "not_configured"
    NOT_FOUND = "not_found"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Resolution:
    status: ResolveStatus
    credential: Optional[Credential] = None

    def __bool__(self) -> bool:
        return self.status is ResolveStatus.RESOLVED


class CredentialResolver:
    def __init__(self, store: Mapping[str, Credential], decryptor: Optional[Decryptor] = None) -> None:
        self._store = store
        self._decryptor = decryptor

    def resolve(self, server_id: Optional[str]) -> Resolution:
        """
        server id 로 자격 증명을 찾는다.

        - server id 가 비어 있으면 NOT_CONFIGURED
        - server id 가 있지만 store 에 없으면 NOT_FOUND (경고 로그)
        둘 다 호출 측에서는 APPENGINE_EMAIL 등 직접 설정값으로 폴백한다.
        """
        if not server_id or not server_id.strip():
            return Resolution(ResolveStatus.NOT_CONFIGURED)

        credential = self._store.get(server_id)
        if credential is None:
            logger.warning(
                "server id %r 에 해당하는 자격 증명이 없습니다. 직접 설정된 계정/OAuth2 로 진행합니다.",
                server_id,
            )
            return Resolution(ResolveStatus.NOT_FOUND)

        return Resolution(ResolveStatus.RESOLVED, credential)

    def decrypt(self, secret: Optional[str]) -> str:
        """
        best-effort 복호화. 실패해도 예외를 올리지 않고 원본 값을 돌려준다.
        """
        if not secret:
            return ""

        if self._decryptor is None:
            logger.debug("Decryptor 가 설정되지 않아 비밀번호를 복호화하지 않습니다.")
            return secret

        try:
            return self._decryptor.decrypt(secret)
        except Exception as e:  # noqa: BLE001
            logger.warning("비밀번호 복호화에 실패하여 원본 값을 사용합니다: %s", e)
            return secret
