"""
decryptors
----------

자격 증명 파일에 저장된 비밀번호를 복호화하는 Decryptor 구현 모음.

Decryptor 는 선택 기능이다. 설정이 없거나 초기화에 실패하면 load_decryptor 가
None 을 돌려주고, 호출 측(CredentialResolver)은 원본 값을 그대로 사용한다.
"""

from __future__ import annotations

from typing import Optional, Protocol

from cryptography.fernet import Fernet, InvalidToken
from google.api_core.exceptions import NotFound
from google.cloud import secretmanager

from .logging_utils import get_logger


logger = get_logger(__name__)


SECRET_MANAGER_SCHEME = "sm://"

DECRYPTOR_NAMES = ("none", "fernet", "secret-manager")


class Decryptor(Protocol):
    def decrypt(self, secret: str) -> str: ...


class FernetDecryptor:
    """
    '{...}' 로 감싼 값을 Fernet 토큰으로 보고 복호화한다.
    중괄호가 없는 값은 평문으로 간주하여 그대로 반환한다.
    """

    def __init__(self, master_key: str) -> None:
        self._fernet = Fernet(master_key.encode("utf-8"))

    @staticmethod
    def is_encrypted(secret: str) -> bool:
        return len(secret) > 2 and secret.startswith("{") and secret.endswith("}")

    def decrypt(self, secret: str) -> str:
        if not self.is_encrypted(secret):
            return secret
        token = secret[1:-1]
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as e:
            raise ValueError("Fernet 토큰 복호화 실패 (마스터 키를 확인하세요)") from e


class SecretManagerDecryptor:
    """
    'sm://<secret>[#<version>]' 형식의 값을 Secret Manager 에서 조회한다.
    """

    def __init__(self, project_id: str, client=None) -> None:  # noqa: ANN001
        self._project_id = project_id
        self._client = client

    def _get_client(self):  # noqa: ANN202
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def decrypt(self, secret: str) -> str:
        if not secret.startswith(SECRET_MANAGER_SCHEME):
            return secret

        ref = secret[len(SECRET_MANAGER_SCHEME):]
        secret_id, _, version = ref.partition("#")
        name = (
            f"projects/{self._project_id}/secrets/{secret_id}/versions/{version or 'latest'}"
        )
        logger.debug("Secret Manager 에서 비밀번호 조회: %s", name)

        try:
            response = self._get_client().access_secret_version(name=name)
        except NotFound as e:
            raise RuntimeError(f"Secret 이 존재하지 않습니다: {name}") from e
        return response.payload.data.decode("utf-8")


def load_decryptor(
    name: Optional[str],
    *,
    master_key: Optional[str] = None,
    secret_project: Optional[str] = None,
) -> Optional[Decryptor]:
    """
    이름으로 Decryptor 를 찾는다. 찾을 수 없거나 설정이 부족하면 경고만 남기고 None.
    """
    key = (name or "none").strip().lower()

    if key == "none":
        return None

    if key == "fernet":
        if not master_key:
            logger.warning("GAE_DECRYPTOR=fernet 이지만 GAE_MASTER_KEY 가 없어 복호화를 사용하지 않습니다.")
            return None
        try:
            return FernetDecryptor(master_key)
        except ValueError as e:
            logger.warning("GAE_MASTER_KEY 가 올바른 Fernet 키가 아니어서 복호화를 사용하지 않습니다: %s", e)
            return None

    if key == "secret-manager":
        if not secret_project:
            logger.warning(
                "GAE_DECRYPTOR=secret-manager 이지만 GAE_SECRET_PROJECT 가 없어 복호화를 사용하지 않습니다."
            )
            return None
        return SecretManagerDecryptor(secret_project)

    logger.warning(
        "알 수 없는 GAE_DECRYPTOR 값입니다: %r (%s 중 하나). 복호화 기능이 비활성화됩니다.",
        name,
        " | ".join(DECRYPTOR_NAMES),
    )
    return None
