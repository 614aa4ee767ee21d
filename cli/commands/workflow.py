"""
@PURPOSE: CLI 工作流命令 - 执行发布, 查看/重置运行状态, 离线阶段探测
@OUTLINE:
  - workflow_app: Typer 工作流命令组
  - run(): 打开浏览器执行发布工作流
  - status(): 查看持久化运行状态
  - reset(): 清除运行状态
  - detect(): 根据 URL 和页面标记判定阶段(不启动浏览器)
@GOTCHAS:
  - run 需要 Playwright Chromium, 未安装时运行 playwright install chromium
  - 运行状态保存在 settings.workflow.state_file, 进程重启后仍可恢复
@DEPENDENCIES:
  - 内部: autopost.browser, autopost.core, autopost.models
  - 外部: typer, rich, python-dotenv
"""

import asyncio
import json
from pathlib import Path

import typer
from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

# 加载 .env 文件
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file)

from autopost.browser.browser_manager import BrowserManager
from autopost.browser.page_driver import PostingSession
from autopost.core.environment_probe import EnvironmentProbe
from autopost.core.run_state import JsonFileRunStateStore
from autopost.models.page import PageEnvironment
from autopost.models.phase import Phase
from autopost.models.run import ListingPayload, WorkflowRun
from config.settings import settings

workflow_app = typer.Typer(
    name="workflow",
    help="发布工作流执行和状态管理",
)

console = Console()


def _state_store() -> JsonFileRunStateStore:
    return JsonFileRunStateStore(settings.get_absolute_path(settings.workflow.state_file))


def _print_run(run: WorkflowRun) -> None:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("字段", style="cyan")
    table.add_column("值")

    table.add_row("提交ID", run.submission_id or "-")
    table.add_row("当前阶段", run.current_phase.label)
    table.add_row("尝试次数", f"{run.attempt_count}/{run.max_attempts}")
    table.add_row("需要邮件确认", "✓ 是" if run.requires_confirmation else "✗ 否")
    table.add_row("最后错误", run.last_error or "-")
    table.add_row("更新时间", run.updated_at[:19])
    console.print(table)

    if run.completion_flags:
        console.print("\n[bold]完成标记:[/bold]")
        for flag, done in sorted(run.completion_flags.items()):
            console.print(f"  {'✓' if done else '✗'} {flag}")


@workflow_app.command("run")
def run(
    payload_file: Path = typer.Option(..., "--payload", "-p", help="发布数据文件(JSON)"),
    start_url: str | None = typer.Option(None, "--start-url", help="起始地址"),
    headless: bool | None = typer.Option(None, "--headless/--headed", help="是否无头模式"),
    timeout: float | None = typer.Option(None, "--timeout", help="会话总超时(秒)"),
):
    """打开 Craigslist 发布页并自动推进各个步骤.

    Examples:
        autopost workflow run -p listing.json

        # 指定城市入口并使用无头模式
        autopost workflow run -p listing.json --start-url https://post.craigslist.org/c/sea --headless
    """
    console.print("\n[bold blue]🚀 Craigslist 自动发布[/bold blue]\n")

    if not payload_file.exists():
        console.print(f"[red]✗[/red] 发布数据文件不存在: {payload_file}")
        raise typer.Exit(1)

    try:
        payload = ListingPayload.model_validate(json.loads(payload_file.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]✗[/red] 发布数据无效: {e}")
        raise typer.Exit(1) from None

    console.print(f"[green]✓[/green] 已加载发布数据: {payload.title or '(无标题)'}")
    console.print(f"  提交ID: {payload.listing_id}")
    console.print(f"  图片: {len(payload.images)} 张")
    console.print(f"  环境: {settings.environment}")
    console.print(f"  最大尝试: {settings.workflow.max_attempts} 次")

    settings.ensure_directories()
    final = asyncio.run(_execute(payload, start_url, headless, timeout))

    console.print("\n" + "=" * 60)
    if final is None:
        console.print("[yellow]⚠[/yellow] 没有运行状态")
        raise typer.Exit(1)

    _print_run(final)
    if final.current_phase is Phase.COMPLETED:
        console.print("\n[green]✓ 发布完成![/green]")
    else:
        console.print(f"\n[red]✗ 工作流未完成: {final.current_phase.label}[/red]")
        raise typer.Exit(1)


@workflow_app.command("status")
def status():
    """查看持久化的运行状态.

    Examples:
        autopost workflow status
    """
    console.print("\n[bold blue]📊 工作流状态[/bold blue]\n")

    state = asyncio.run(_state_store().get())
    if not state:
        console.print("[yellow]⚠[/yellow] 暂无运行状态")
        return

    _print_run(WorkflowRun.from_state(state, settings.workflow.max_attempts))


@workflow_app.command("reset")
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="跳过确认"),
):
    """清除运行状态(相当于 RESET_WORKFLOW).

    Examples:
        autopost workflow reset -y
    """
    if not yes and not typer.confirm("确定清除运行状态?"):
        raise typer.Abort()

    asyncio.run(_state_store().clear())
    console.print("[green]✓[/green] 运行状态已清除")


@workflow_app.command("detect")
def detect(
    url: str = typer.Option(..., "--url", "-u", help="页面地址"),
    markers: list[str] = typer.Option([], "--marker", "-m", help="页面上存在的标记(可多次指定)"),
):
    """根据地址和页面标记判定工作流阶段.

    Examples:
        autopost workflow detect -u "https://post.craigslist.org/k/abc/sfo?s=edit"
        autopost workflow detect -u https://post.craigslist.org/c/sfo -m initial_picker
    """
    env = PageEnvironment(url=url, markers=frozenset(markers))
    phase = EnvironmentProbe().detect(env)
    console.print(f"阶段: [bold cyan]{phase.value}[/bold cyan] ({phase.label})")


# ========== 辅助函数 ==========


async def _execute(
    payload: ListingPayload,
    start_url: str | None,
    headless: bool | None,
    timeout: float | None,
) -> WorkflowRun | None:
    """启动浏览器并运行发布会话(内部函数)."""
    store = _state_store()
    manager = BrowserManager(settings.browser)
    try:
        page = await manager.start(headless=headless)
        session = PostingSession(page, payload, settings, store=store)
        return await session.run(start_url, timeout_s=timeout)
    except Exception as e:
        logger.error(f"工作流执行失败: {e}")
        state = await store.get()
        return WorkflowRun.from_state(state) if state else None
    finally:
        await manager.close()
