"""
@PURPOSE: CLI 主入口 - Craigslist 自动发布命令行工具
@OUTLINE:
  - app: Typer 主应用
  - 集成 workflow 命令组
  - version(): 版本信息
  - info(): 配置与目录状态
@GOTCHAS:
  - 确保 Playwright 浏览器已安装(playwright install chromium)
  - Webhook 地址等敏感配置放在 .env 文件中
@DEPENDENCIES:
  - 内部: cli.commands.*, config.settings, autopost.utils.logger_setup
  - 外部: typer, rich
"""

import sys
from pathlib import Path

import typer
from rich.console import Console

from autopost import __version__
from autopost.utils.logger_setup import setup_logger
from cli.commands.workflow import workflow_app
from config.settings import settings

# 创建主应用
app = typer.Typer(
    name="autopost",
    help="Craigslist 自动发布 - 多阶段发布工作流执行器",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

# 添加命令组
app.add_typer(workflow_app, name="workflow")


@app.command()
def version():
    """显示版本信息.

    Examples:
        autopost version
    """
    console.print("\n[bold cyan]Craigslist 自动发布[/bold cyan]")
    console.print(f"版本: [bold]{__version__}[/bold]")
    console.print("\n环境配置:")
    console.print(f"  环境: {settings.environment}")
    console.print(f"  Python: {sys.version.split()[0]}")
    console.print(f"  工作目录: {Path.cwd()}")


@app.command()
def info():
    """显示配置和目录状态.

    Examples:
        autopost info
    """
    console.print("\n[bold blue]📊 系统状态[/bold blue]\n")

    console.print("[bold]环境配置:[/bold]")
    console.print(f"  环境: {settings.environment}")
    console.print(f"  日志级别: {settings.logging.level}")
    console.print(f"  浏览器无头: {'✓ 是' if settings.browser.headless else '✗ 否'}")
    console.print(f"  起始地址: {settings.workflow.start_url}")

    console.print("\n[bold]重试配置:[/bold]")
    console.print(
        f"  hard: {settings.retry.hard_max_retries} 次, 初始 {settings.retry.hard_base_delay_ms}ms"
    )
    console.print(
        f"  soft: {settings.retry.soft_max_retries} 次, 初始 {settings.retry.soft_base_delay_ms}ms"
    )
    console.print(f"  退避因子: {settings.retry.backoff_factor}x (上限 {settings.retry.delay_cap_ms}ms)")
    console.print(f"  最大尝试: {settings.workflow.max_attempts} 次")

    console.print("\n[bold]事件通道:[/bold]")
    console.print(f"  类型: {settings.events.channel}")
    if settings.events.channel == "webhook":
        configured = "✓ 已配置" if settings.events.webhook_url else "✗ 未配置"
        console.print(f"  Webhook: {configured}")

    console.print("\n[bold]目录状态:[/bold]")
    dirs = [
        ("临时", settings.data_temp_dir),
        ("日志", settings.data_logs_dir),
        ("图片", settings.workflow.image_download_dir),
        ("状态", str(Path(settings.workflow.state_file).parent)),
    ]
    for name, dir_path in dirs:
        full_path = settings.get_absolute_path(dir_path)
        exists = "✓" if full_path.exists() else "✗"
        console.print(f"  {name}: {exists} {dir_path}")


@app.callback()
def main():
    """Craigslist 自动发布命令行工具.

    主要功能：
      - workflow run: 打开发布页并自动完成各步骤
      - workflow status / reset: 查看或清除运行状态
      - workflow detect: 离线判定页面阶段
    """
    setup_logger()


if __name__ == "__main__":
    app()
