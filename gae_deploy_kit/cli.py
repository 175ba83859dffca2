import sys

import click

from .config import load_env_files, AppCfgOptions, GCloudAppOptions
from .gcloud_modules import MODULE_SUB_COMMANDS, run_modules_command
from .logging_utils import setup_logging, get_logger
from .orchestrator import (
    APPCFG_ACTIONS,
    BACKENDS_ACTIONS,
    AppCfgCommand,
    build_entry_point,
    build_resolver,
    plan_appcfg,
)


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리)",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다.",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int) -> None:
    """App Engine appcfg / gcloud app modules 실행용 CLI"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir
    ctx.obj["verbose"] = verbose


def _load_options_from_ctx(ctx: click.Context) -> AppCfgOptions:
    load_env_files(ctx.obj["chdir"])
    options = AppCfgOptions.from_env()
    logger.debug("Options loaded: %s", options)
    return options


def _run_appcfg(ctx: click.Context, action: str, backends: bool, dry_run: bool) -> None:
    base_dir: str = ctx.obj["chdir"]
    try:
        options = _load_options_from_ctx(ctx)
        command = AppCfgCommand(action, backends=backends)
        resolver = build_resolver(options, base_dir)
    except Exception as e:  # noqa: BLE001
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)

    if dry_run:
        try:
            report = plan_appcfg(action, options, resolver, backends=backends)
        except ValueError as e:
            click.echo(f"[ERROR] {e}", err=True)
            sys.exit(1)
        click.echo(report)
        return

    try:
        entry_point = build_entry_point(options)
    except Exception as e:  # noqa: BLE001
        click.echo(f"[ERROR] App Engine SDK 준비 실패: {e}", err=True)
        sys.exit(1)

    try:
        command.execute(options, resolver, entry_point)
    except Exception as e:  # noqa: BLE001
        logger.exception("appcfg 실행 중 오류 발생")
        click.echo(f"[ERROR] appcfg 실행 실패: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("action", type=click.Choice(APPCFG_ACTIONS))
@click.option("--dry-run", is_flag=True, help="실행하지 않고 appcfg 명령만 출력합니다.")
@click.pass_context
def appcfg(ctx: click.Context, action: str, dry_run: bool) -> None:
    """appcfg <ACTION> <app_dir> 실행"""
    _run_appcfg(ctx, action, backends=False, dry_run=dry_run)


@main.command()
@click.argument("action", type=click.Choice(BACKENDS_ACTIONS))
@click.option("--dry-run", is_flag=True, help="실행하지 않고 appcfg 명령만 출력합니다.")
@click.pass_context
def backends(ctx: click.Context, action: str, dry_run: bool) -> None:
    """appcfg backends <ACTION> <app_dir> <backend> 실행 (APPENGINE_BACKEND_NAME 필요)"""
    _run_appcfg(ctx, action, backends=True, dry_run=dry_run)


@main.command()
@click.argument("action", type=click.Choice(APPCFG_ACTIONS))
@click.pass_context
def plan(ctx: click.Context, action: str) -> None:
    """실행될 appcfg 명령과 인증 방식을 출력 (실행하지 않음)"""
    _run_appcfg(ctx, action, backends=False, dry_run=True)


@main.command()
@click.argument("sub_command", type=click.Choice(MODULE_SUB_COMMANDS))
@click.pass_context
def modules(ctx: click.Context, sub_command: str) -> None:
    """gcloud preview app modules <SUB_COMMAND> 실행"""
    try:
        load_env_files(ctx.obj["chdir"])
        options = GCloudAppOptions.from_env()
    except Exception as e:  # noqa: BLE001
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)

    try:
        run_modules_command(sub_command, options)
    except Exception as e:  # noqa: BLE001
        logger.exception("gcloud app modules 실행 중 오류 발생")
        click.echo(f"[ERROR] modules {sub_command} 실패: {e}", err=True)
        sys.exit(1)
