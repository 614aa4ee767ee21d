"""
@PURPOSE: 浏览器管理器, 使用 Playwright 启动 Chromium 并提供发布会话所需的页面
@OUTLINE:
  - class BrowserManager: 浏览器管理器主类
  - async def start(): 启动浏览器(支持持久化用户目录, 保留 Craigslist 登录态)
  - async def close(): 关闭浏览器, 按顺序释放资源
@GOTCHAS:
  - 必须使用 async/await 异步操作
  - 配置了 user_data_dir 时使用 launch_persistent_context, 此时 browser 为 None
  - 关闭时每个资源都有独立超时, 单个失败不影响后续清理
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: config.settings (BrowserConfig)
@RELATED: page_driver.py, action_sink.py
"""

import asyncio
from pathlib import Path
from typing import Any

from loguru import logger
from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-infobars",
]


class BrowserManager:
    """浏览器管理器.

    Attributes:
        config: 浏览器配置(settings.browser)
        playwright: Playwright 实例
        browser: 浏览器实例(持久化上下文模式下为 None)
        context: 浏览器上下文
        page: 当前页面

    Examples:
        >>> async with BrowserManager(settings.browser) as manager:
        ...     await manager.page.goto("https://post.craigslist.org/c/sfo")
    """

    def __init__(self, config: Any = None):
        """初始化管理器.

        Args:
            config: BrowserConfig, 为空时使用全局配置
        """
        if config is None:
            from config.settings import settings

            config = settings.browser
        self.config = config

        self.playwright: Playwright | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None

    def _context_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"viewport": dict(self.config.viewport)}
        if self.config.user_agent:
            options["user_agent"] = self.config.user_agent
        return options

    async def start(self, headless: bool | None = None) -> Page:
        """启动浏览器.

        Args:
            headless: 是否无头模式, None 则使用配置

        Returns:
            当前页面
        """
        if headless is None:
            headless = self.config.headless

        logger.info("启动 Playwright 浏览器..")
        self.playwright = await async_playwright().start()

        launch_options = {
            "headless": headless,
            "args": list(LAUNCH_ARGS),
            "slow_mo": max(int(self.config.slow_mo), 0),
        }

        if self.config.user_data_dir:
            user_data_dir = Path(self.config.user_data_dir).expanduser()
            user_data_dir.mkdir(parents=True, exist_ok=True)
            self.context = await self.playwright.chromium.launch_persistent_context(
                str(user_data_dir), **launch_options, **self._context_options()
            )
            self.page = self.context.pages[0] if self.context.pages else await self.context.new_page()
            logger.debug(f"使用持久化用户目录: {user_data_dir}")
        else:
            self.browser = await self.playwright.chromium.launch(**launch_options)
            self.context = await self.browser.new_context(**self._context_options())
            self.page = await self.context.new_page()

        self.page.set_default_timeout(self.config.timeout)
        logger.success(f"浏览器已启动 (headless={headless})")
        return self.page

    async def close(self) -> None:
        """关闭浏览器, 确保所有资源被释放.

        清理顺序: Page → Context → Browser → Playwright
        """
        errors: list[tuple[str, Exception]] = []

        async def _close(name: str, closer: Any, timeout: float) -> None:
            try:
                await asyncio.wait_for(closer(), timeout=timeout)
            except TimeoutError as exc:
                errors.append((name, exc))
                logger.warning(f"{name} 关闭超时 ({timeout}s)")
            except Exception as exc:
                errors.append((name, exc))
                logger.debug(f"{name} 关闭失败: {exc}")

        if self.page:
            await _close("page", self.page.close, 5.0)
        self.page = None

        if self.context:
            await _close("context", self.context.close, 5.0)
        self.context = None

        if self.browser:
            await _close("browser", self.browser.close, 10.0)
        self.browser = None

        if self.playwright:
            await _close("playwright", self.playwright.stop, 5.0)
        self.playwright = None

        if errors:
            error_summary = ", ".join(f"{name}:{type(e).__name__}" for name, e in errors)
            logger.warning(f"浏览器关闭过程中有 {len(errors)} 个错误: {error_summary}")
        else:
            logger.info("浏览器已关闭")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
