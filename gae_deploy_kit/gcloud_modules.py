"""
gcloud_modules
--------------

`gcloud preview app modules <sub-command>` 로 App Engine 모듈을 관리한다.

하위 명령마다 클래스를 두지 않고, ModulesCommand 하나에 sub_command 값을 넣어 사용한다.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .config import GCloudAppOptions
from .logging_utils import get_logger
from .manifest import AppManifest, find_ear_modules, read_manifest
from .subprocess_utils import RunResult, run_command


logger = get_logger(__name__)


MODULE_SUB_COMMANDS = (
    "delete",
    "cancel-deployment",
    "set-default",
    "set-managed-by",
    "start",
    "stop",
)


@dataclass(frozen=True)
class ModulesCommand:
    sub_command: str

    def __post_init__(self) -> None:
        if self.sub_command not in MODULE_SUB_COMMANDS:
            raise ValueError(
                f"알 수 없는 modules 하위 명령입니다: {self.sub_command!r} "
                f"(허용: {', '.join(MODULE_SUB_COMMANDS)})"
            )

    def build(
        self,
        options: GCloudAppOptions,
        manifest: Optional[AppManifest],
        ear_modules: Sequence[Path] = (),
    ) -> List[str]:
        cmd: List[str] = [options.gcloud_path, "preview", "app", "modules"]

        if manifest is None:
            # EAR 구성: 모듈별 appengine-web.xml 이 하위 디렉토리에 있다.
            for module_dir in ear_modules:
                logger.warning("EAR 모듈은 개별 처리가 필요합니다: %s", module_dir)
        else:
            cmd += [self.sub_command, manifest.module]

            if options.gcloud_app_version:
                cmd.append(f"--version={options.gcloud_app_version}")
            elif manifest.version:
                cmd.append(f"--version={manifest.version}")
            else:
                logger.error(
                    "GCLOUD_APP_VERSION 이 설정되지 않았고 appengine-web.xml 에도 <version> 이 없습니다."
                )

        if options.gcloud_app_server:
            cmd.append(f"--server={options.gcloud_app_server}")
        elif options.server:
            cmd.append(f"--server={options.server}")

        return cmd


def build_modules_command(sub_command: str, options: GCloudAppOptions) -> List[str]:
    manifest = read_manifest(options.app_dir)
    ear_modules = find_ear_modules(options.app_dir) if manifest is None else []
    return ModulesCommand(sub_command).build(options, manifest, ear_modules)


def run_modules_command(sub_command: str, options: GCloudAppOptions) -> RunResult:
    logger.info("gcloud app modules %s 실행", sub_command)
    cmd = build_modules_command(sub_command, options)
    return run_command(
        cmd,
        cwd=options.app_dir,
        timeout=options.timeout,
    )
