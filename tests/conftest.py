"""
pytest 설정:

site-packages 에 설치된 다른 버전의 gae_deploy_kit 보다 현재 레포의 소스가
먼저 import 되도록 repo root 를 sys.path 최상단에 고정한다.
"""

from __future__ import annotations

import os
import sys

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


@pytest.fixture
def clean_appengine_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in list(os.environ):
        if key.startswith(("APPENGINE_", "GAE_", "GCLOUD_")):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
