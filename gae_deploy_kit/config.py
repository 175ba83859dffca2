from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, List

from dotenv import load_dotenv


ENV_FILES_DEFAULT_ORDER = [".env", ".env.appengine", ".env.secrets"]

APPCFG_MODES = ("inprocess", "subprocess")


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ValueError(f"{name} 는 정수여야 합니다: {raw!r}") from e


def _get_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip()


@dataclass
class AppCfgOptions:
    # 필드 선언 순서가 곧 appcfg 플래그 출력 순서다 (appcfg_args.build_args 참고)
    server: Optional[str] = None
    server_id: Optional[str] = None
    # deprecated: server_id + 자격 증명 파일 사용을 권장
    email: Optional[str] = None
    host: Optional[str] = None
    proxy_host: Optional[str] = None
    proxy_https: Optional[str] = None
    no_cookies: bool = False
    passin: bool = False
    insecure: bool = False
    app_id: Optional[str] = None
    version: Optional[str] = None
    oauth2: bool = True
    enable_jar_splitting: bool = False
    jar_splitting_excludes: Optional[str] = None
    retain_upload_dir: bool = False
    compile_encoding: bool = False
    num_days: Optional[int] = None
    severity: Optional[str] = None
    append: bool = False
    num_runs: Optional[int] = None
    force: bool = False
    delete_jsps: bool = False
    enable_jar_classes: bool = False

    # 명령 대상
    backend_name: Optional[str] = None
    app_dir: str = "target/app"

    # 실행 환경
    sdk_root: Optional[str] = None
    appcfg_mode: str = "inprocess"

    # 자격 증명
    decryptor: str = "none"
    master_key: Optional[str] = None
    secret_project: Optional[str] = None
    credentials_file: str = ".env.servers"

    @classmethod
    def from_env(cls) -> "AppCfgOptions":
        cfg = cls(
            server=_get_str("APPENGINE_SERVER"),
            server_id=_get_str("APPENGINE_SERVER_ID"),
            email=_get_str("APPENGINE_EMAIL"),
            host=_get_str("APPENGINE_HOST"),
            proxy_host=_get_str("APPENGINE_PROXY_HOST"),
            proxy_https=_get_str("APPENGINE_PROXY_HTTPS"),
            no_cookies=_get_bool("APPENGINE_NO_COOKIES"),
            passin=_get_bool("APPENGINE_PASSIN"),
            insecure=_get_bool("APPENGINE_INSECURE"),
            app_id=_get_str("APPENGINE_APP_ID"),
            version=_get_str("APPENGINE_VERSION"),
            oauth2=_get_bool("APPENGINE_OAUTH2", True),
            enable_jar_splitting=_get_bool("APPENGINE_ENABLE_JAR_SPLITTING"),
            jar_splitting_excludes=_get_str("APPENGINE_JAR_SPLITTING_EXCLUDES"),
            retain_upload_dir=_get_bool("APPENGINE_RETAIN_UPLOAD_DIR"),
            compile_encoding=_get_bool("APPENGINE_COMPILE_ENCODING"),
            num_days=_get_int("APPENGINE_NUM_DAYS"),
            severity=_get_str("APPENGINE_SEVERITY"),
            append=_get_bool("APPENGINE_APPEND"),
            num_runs=_get_int("APPENGINE_NUM_RUNS"),
            force=_get_bool("APPENGINE_FORCE"),
            delete_jsps=_get_bool("APPENGINE_DELETE_JSPS"),
            enable_jar_classes=_get_bool("APPENGINE_ENABLE_JAR_CLASSES"),
            backend_name=_get_str("APPENGINE_BACKEND_NAME"),
            app_dir=os.getenv("APPENGINE_APP_DIR", "target/app"),
            sdk_root=_get_str("APPENGINE_SDK_ROOT"),
            appcfg_mode=(os.getenv("APPENGINE_APPCFG_MODE") or "inprocess").strip().lower(),
            decryptor=(os.getenv("GAE_DECRYPTOR") or "none").strip().lower(),
            master_key=_get_str("GAE_MASTER_KEY"),
            secret_project=_get_str("GAE_SECRET_PROJECT"),
            credentials_file=os.getenv("GAE_CREDENTIALS_FILE", ".env.servers"),
        )

        if cfg.appcfg_mode not in APPCFG_MODES:
            raise ValueError(
                f"APPENGINE_APPCFG_MODE 값이 올바르지 않습니다: {cfg.appcfg_mode!r} "
                f"({' | '.join(APPCFG_MODES)} 중 하나)"
            )

        return cfg


@dataclass
class GCloudAppOptions:
    gcloud_path: str = "gcloud"
    app_dir: str = "target/app"
    gcloud_app_version: Optional[str] = None
    gcloud_app_server: Optional[str] = None
    server: Optional[str] = None
    timeout: float = 900.0

    @classmethod
    def from_env(cls) -> "GCloudAppOptions":
        raw_timeout = _get_str("GCLOUD_TIMEOUT_SECONDS")
        try:
            timeout = float(raw_timeout) if raw_timeout is not None else 900.0
        except ValueError as e:
            raise ValueError(
                f"GCLOUD_TIMEOUT_SECONDS 는 숫자여야 합니다: {raw_timeout!r}"
            ) from e

        return cls(
            gcloud_path=os.getenv("GCLOUD_PATH", "gcloud"),
            app_dir=os.getenv("APPENGINE_APP_DIR", "target/app"),
            gcloud_app_version=_get_str("GCLOUD_APP_VERSION"),
            gcloud_app_server=_get_str("GCLOUD_APP_SERVER"),
            server=_get_str("APPENGINE_SERVER"),
            timeout=timeout,
        )
