from __future__ import annotations

import os
import shlex
import sys
from dataclasses import dataclass
from typing import List, Optional

from .appcfg_args import build_action_args, build_backends_args
from .config import AppCfgOptions
from .credentials import Credential, CredentialResolver, CredentialStore
from .decryptors import load_decryptor
from .entry_points import InProcessAppCfg, SubprocessAppCfg
from .logging_utils import get_logger
from .sdk import configure_sdk_environment, find_appcfg, resolve_sdk_root
from .supervisor import EntryPoint, ProcessSupervisor


logger = get_logger(__name__)

# CLI 등에서 사용할 수 있도록 액션 이름을 상수로 노출
APPCFG_ACTIONS: List[str] = [
    "update",
    "rollback",
    "update_cron",
    "update_dos",
    "update_indexes",
    "update_queues",
    "update_dispatch",
    "vacuum_indexes",
    "cron_info",
    "request_logs",
    "download_app",
    "set_default_version",
    "start_module_version",
    "stop_module_version",
    "debug",
]

BACKENDS_ACTIONS: List[str] = [
    "update",
    "rollback",
    "start",
    "stop",
    "delete",
    "configure",
]


@dataclass(frozen=True)
class AppCfgCommand:
    action: str
    backends: bool = False

    def __post_init__(self) -> None:
        allowed = BACKENDS_ACTIONS if self.backends else APPCFG_ACTIONS
        if self.action not in allowed:
            kind = "backends" if self.backends else "appcfg"
            raise ValueError(
                f"알 수 없는 {kind} 액션입니다: {self.action!r} (허용: {', '.join(allowed)})"
            )

    def arguments(self, options: AppCfgOptions, credential: Optional[Credential] = None) -> List[str]:
        if self.backends:
            return build_backends_args(options, self.action, options.app_dir, credential)
        return build_action_args(options, self.action, options.app_dir, credential)

    def execute(
        self,
        options: AppCfgOptions,
        resolver: CredentialResolver,
        entry_point: EntryPoint,
    ) -> None:
        """
        appcfg 명령을 실행한다.

        server id 로 자격 증명을 찾으면 비밀번호 프롬프트 자동 응답 경로로 실행하고,
        그렇지 않으면 진입점을 바로 호출한다.
        실패 시 AppCfgExecutionError (인자 목록 포함) 를 올린다.
        """
        resolution = resolver.resolve(options.server_id)
        credential = resolution.credential
        args = self.arguments(options, credential)

        logger.info("Running %s", " ".join(args))

        supervisor = ProcessSupervisor(entry_point)
        if credential is None:
            supervisor.run(args)
            return

        logger.info("자격 증명 설정 사용: server id {%s}", options.server_id)
        password = resolver.decrypt(credential.encrypted_secret)
        supervisor.run_with_password_prompt(args, password)


def build_resolver(options: AppCfgOptions, base_dir: str = ".") -> CredentialResolver:
    path = options.credentials_file
    if not os.path.isabs(path):
        path = os.path.join(base_dir, path)
    store = CredentialStore.from_env_file(path)
    decryptor = load_decryptor(
        options.decryptor,
        master_key=options.master_key,
        secret_project=options.secret_project,
    )
    return CredentialResolver(store, decryptor)


def build_entry_point(options: AppCfgOptions) -> EntryPoint:
    """
    SDK 경로를 확인하고 appcfg 진입점을 만든다. SDK 문제는 치명적 설정 오류(SdkResolutionError).
    """
    root = configure_sdk_environment(resolve_sdk_root(options.sdk_root))
    appcfg = find_appcfg(root)
    logger.info("App Engine SDK: %s (mode=%s)", root, options.appcfg_mode)

    if options.appcfg_mode == "subprocess":
        return SubprocessAppCfg([sys.executable, str(appcfg)])
    return InProcessAppCfg(appcfg)


def plan_appcfg(
    action: str,
    options: AppCfgOptions,
    resolver: CredentialResolver,
    backends: bool = False,
) -> str:
    """
    실제 실행 없이, 실행될 appcfg 명령과 인증 방식을 요약 텍스트로 리턴한다.
    """
    command = AppCfgCommand(action, backends=backends)
    resolution = resolver.resolve(options.server_id)
    args = command.arguments(options, resolution.credential)

    lines: List[str] = []
    lines.append("# appcfg plan")
    lines.append(f"- action: {'backends ' if backends else ''}{action}")
    lines.append(f"- app_dir: {options.app_dir}")
    lines.append(f"- server_id: {options.server_id or '(not set)'} ({resolution.status.value})")
    if resolution.credential is not None:
        lines.append("- auth: password (--passin, 프롬프트 자동 응답)")
    elif options.oauth2:
        lines.append("- auth: oauth2")
    else:
        lines.append("- auth: (appcfg 기본값)")
    lines.append("")
    lines.append("## Command")
    lines.append("appcfg.py " + " ".join(shlex.quote(a) for a in args))
    return "\n".join(lines)
