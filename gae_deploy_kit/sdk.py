"""
sdk
---

App Engine SDK 설치 경로를 찾는 모듈.

APPENGINE_SDK_ROOT 에 디렉토리를 주면 그대로 사용하고, zip 아카이브를 주면
캐시 디렉토리에 한 번만 풀어서 그 안의 SDK 루트를 사용한다.
"""

from __future__ import annotations

import os
import zipfile
from pathlib import Path
from typing import Optional

from .logging_utils import get_logger


logger = get_logger(__name__)


DEFAULT_CACHE_DIR = Path("~/.cache/gae-deploy-kit/sdk")

SDK_ROOT_ENV = "APPENGINE_SDK_ROOT"


class SdkResolutionError(RuntimeError):
    pass


def _extract_archive(archive: Path, cache_dir: Path) -> Path:
    target = cache_dir / archive.stem
    marker = target / ".extracted"

    if not marker.exists():
        logger.info("SDK 아카이브 압축 해제: %s -> %s", archive, target)
        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(target)
        except (zipfile.BadZipFile, OSError) as e:
            raise SdkResolutionError(f"SDK zip 아카이브를 열 수 없습니다: {archive}") from e
        marker.touch()
    else:
        logger.debug("이미 압축 해제된 SDK 를 사용합니다: %s", target)

    # 아카이브 안에 최상위 디렉토리 하나(google_appengine/ 등)만 있으면 그것이 SDK 루트
    children = [p for p in target.iterdir() if p.is_dir()]
    if len(children) == 1:
        return children[0]
    return target


def resolve_sdk_root(sdk_root: Optional[str], cache_dir: Optional[Path] = None) -> Path:
    if not sdk_root:
        raise SdkResolutionError(
            f"App Engine SDK 경로가 설정되지 않았습니다. {SDK_ROOT_ENV} 를 지정하세요."
        )

    path = Path(sdk_root).expanduser()
    if path.is_dir():
        return path.resolve()

    if not path.exists():
        raise SdkResolutionError(f"App Engine SDK 경로가 존재하지 않습니다: {path}")

    if path.suffix.lower() != ".zip":
        raise SdkResolutionError(
            f"App Engine SDK 경로는 디렉토리 또는 .zip 아카이브여야 합니다: {path}"
        )

    base = (cache_dir or DEFAULT_CACHE_DIR).expanduser()
    try:
        base.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SdkResolutionError(f"SDK 캐시 디렉토리를 만들 수 없습니다: {base}") from e

    return _extract_archive(path, base).resolve()


def configure_sdk_environment(root: Path) -> Path:
    os.environ[SDK_ROOT_ENV] = str(root)
    logger.debug("%s=%s", SDK_ROOT_ENV, root)
    return root


def find_appcfg(root: Path) -> Path:
    appcfg = root / "appcfg.py"
    if not appcfg.is_file():
        raise SdkResolutionError(f"SDK 에서 appcfg.py 를 찾을 수 없습니다: {appcfg}")
    return appcfg
