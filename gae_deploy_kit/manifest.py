"""
manifest
--------

WEB-INF/appengine-web.xml 에서 module 이름과 version 을 읽는다.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .logging_utils import get_logger


logger = get_logger(__name__)


MANIFEST_RELATIVE_PATH = Path("WEB-INF") / "appengine-web.xml"

DEFAULT_MODULE = "default"


@dataclass(frozen=True)
class AppManifest:
    module: str = DEFAULT_MODULE
    version: Optional[str] = None


def _local_name(tag: str) -> str:
    # '{http://appengine.google.com/ns/1.0}module' -> 'module'
    return tag.rsplit("}", 1)[-1]


def _child_text(root: ET.Element, name: str) -> Optional[str]:
    for child in root:
        if _local_name(child.tag) == name:
            text = (child.text or "").strip()
            return text or None
    return None


def read_manifest(app_dir: str | Path) -> Optional[AppManifest]:
    """
    appengine-web.xml 이 없으면 None (EAR 구성일 가능성).
    """
    path = Path(app_dir) / MANIFEST_RELATIVE_PATH
    if not path.is_file():
        return None

    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise ValueError(f"appengine-web.xml 을 파싱할 수 없습니다: {path} ({e})") from e

    module = _child_text(root, "module") or _child_text(root, "service") or DEFAULT_MODULE
    version = _child_text(root, "version")
    logger.debug("appengine-web.xml: module=%s version=%s", module, version)
    return AppManifest(module=module, version=version)


def find_ear_modules(app_dir: str | Path) -> List[Path]:
    base = Path(app_dir)
    if not base.is_dir():
        return []
    return sorted(p for p in base.iterdir() if (p / MANIFEST_RELATIVE_PATH).is_file())
