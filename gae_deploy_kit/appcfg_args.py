"""
appcfg_args
-----------

AppCfgOptions 를 appcfg 커맨드라인 토큰 목록으로 변환한다.
플래그 철자와 순서는 appcfg 와의 호환을 위해 고정되어 있다.
"""

from __future__ import annotations

from typing import List, Optional

from .config import AppCfgOptions
from .credentials import Credential


def build_args(options: AppCfgOptions, credential: Optional[Credential] = None) -> List[str]:
    """
    설정된 옵션마다 고정 플래그를 선언 순서대로 추가한다.

    credential 이 있으면 -e 는 그 username 을 쓰고 --passin 이 강제되며,
    --oauth2 는 생략된다 (oauth2=True 여도 자격 증명이 우선).
    """
    o = options
    args: List[str] = []

    if o.server:
        args += ["-s", o.server]

    if credential is not None:
        args += ["-e", credential.username]
    elif o.email:
        args += ["-e", o.email]

    if o.host:
        args += ["-H", o.host]

    if o.proxy_host:
        args.append(f"--proxy={o.proxy_host}")

    if o.proxy_https:
        args.append(f"--proxy_https={o.proxy_https}")

    if o.no_cookies:
        args.append("--no_cookies")

    if o.passin or credential is not None:
        args.append("--passin")

    if o.insecure:
        args.append("--insecure")

    if o.app_id:
        args += ["-A", o.app_id]

    if o.version:
        args += ["-V", o.version]

    if o.oauth2 and credential is None:
        args.append("--oauth2")

    if o.enable_jar_splitting:
        args.append("--enable_jar_splitting")

    if o.jar_splitting_excludes:
        args.append(f"--jar_splitting_excludes={o.jar_splitting_excludes}")

    if o.retain_upload_dir:
        args.append("--retain_upload_dir")

    if o.compile_encoding:
        args.append("--compile_encoding")

    if o.num_days is not None:
        args.append(f"--num_days={o.num_days}")

    if o.severity:
        args.append(f"--severity={o.severity}")

    if o.append:
        args.append("-a")

    if o.num_runs is not None:
        args.append(f"--num_runs={o.num_runs}")

    if o.force:
        args.append("-f")

    if o.delete_jsps:
        args.append("--delete_jsps")

    if o.enable_jar_classes:
        args.append("--enable_jar_classes")

    return args


def build_action_args(
    options: AppCfgOptions,
    action: str,
    app_dir: str,
    credential: Optional[Credential] = None,
) -> List[str]:
    return build_args(options, credential) + [action, app_dir]


def build_backends_args(
    options: AppCfgOptions,
    action: str,
    app_dir: str,
    credential: Optional[Credential] = None,
) -> List[str]:
    if not options.backend_name:
        raise ValueError(
            f"backends {action} 를 실행하려면 APPENGINE_BACKEND_NAME 이 필요합니다."
        )
    return build_args(options, credential) + ["backends", action, app_dir, options.backend_name]
