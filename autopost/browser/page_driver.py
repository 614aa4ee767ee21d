"""
@PURPOSE: 页面加载驱动 - 每次页面加载创建新的编排器并触发一次工作流推进
@OUTLINE:
  - class PostingSession: 一次发布会话
    - def build_orchestrator(): 按配置装配编排器(冷启动)
    - async def trigger(): 页面加载回调
    - async def run(): 打开起始页并等待工作流进入终止阶段
    - async def close(): 取消未完成的触发任务
@GOTCHAS:
  - 编排器的内存状态只在一个页面生命周期内有效, 每次 load 事件都重新创建
  - 同一个 Page 对象在导航后复用, ActionSink/NoticeBoard 不需要重建
  - 终止阶段(COMPLETED/ERROR)或超时后结束会话
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: autopost.core, autopost.browser
@RELATED: cli/commands/workflow.py
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger
from playwright.async_api import Page

from ..core.environment_probe import EnvironmentProbe
from ..core.message_router import MessageRouter
from ..core.orchestrator import RunResult, WorkflowOrchestrator, build_phase_policies
from ..core.progress_reporter import ProgressReporter, build_channel
from ..core.retry_executor import RetryExecutor
from ..core.run_state import JsonFileRunStateStore, RunStateStore
from ..models.run import ListingPayload, WorkflowRun
from ..steps import build_default_handlers
from ..utils.page_waiter import PageWaiter, WaitStrategy
from .action_sink import PlaywrightActionSink
from .image_fetcher import ImageFetcher
from .notice_board import PlaywrightNoticeBoard


class PostingSession:
    """发布会话.

    Examples:
        >>> async with BrowserManager(settings.browser) as manager:
        ...     session = PostingSession(manager.page, payload, settings)
        ...     run = await session.run()
    """

    def __init__(
        self,
        page: Page,
        payload: ListingPayload | None,
        settings: Any = None,
        *,
        store: RunStateStore | None = None,
        reporter: ProgressReporter | None = None,
    ):
        if settings is None:
            from config.settings import settings as global_settings

            settings = global_settings
        self.page = page
        self.payload = payload
        self.settings = settings

        workflow = settings.workflow
        self.store = store or JsonFileRunStateStore(settings.get_absolute_path(workflow.state_file))
        self.reporter = reporter or ProgressReporter(build_channel(settings.events))
        self.sink = PlaywrightActionSink(page)
        self.notifier = PlaywrightNoticeBoard(page)
        self.fetcher = ImageFetcher(
            settings.get_absolute_path(workflow.image_download_dir),
            max_images=workflow.max_images,
        )
        self.policies = build_phase_policies(settings.retry)

        self.orchestrator = self.build_orchestrator()
        self.router = MessageRouter(self.orchestrator)
        self.results: list[RunResult] = []

        self._finished = asyncio.Event()
        self._tasks: set[asyncio.Task] = set()

    def build_orchestrator(self) -> WorkflowOrchestrator:
        """为当前页面生命周期创建编排器."""
        workflow = self.settings.workflow
        return WorkflowOrchestrator(
            self.sink,
            self.store,
            reporter=self.reporter,
            notifier=self.notifier,
            probe=EnvironmentProbe(),
            handlers=build_default_handlers(self.fetcher),
            executor=RetryExecutor(self.notifier),
            waiter=PageWaiter(self.sink, WaitStrategy.from_config(workflow)),
            policies=self.policies,
            max_attempts=workflow.max_attempts,
        )

    def _on_load(self, _page: Page) -> None:
        task = asyncio.create_task(self.trigger())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def trigger(self) -> RunResult:
        """页面加载后触发一次工作流推进."""
        self.orchestrator = self.build_orchestrator()
        self.router.orchestrator = self.orchestrator

        result = await self.orchestrator.run(self.payload)
        self.results.append(result)
        logger.debug(f"页面触发完成: detected={result.detected.value}, phase={result.phase.value}")

        if result.phase.is_terminal:
            self._finished.set()
        return result

    async def run(self, start_url: str | None = None, timeout_s: float | None = None) -> WorkflowRun | None:
        """打开起始页, 之后每次页面加载自动推进, 直到进入终止阶段.

        Args:
            start_url: 起始地址, 默认 settings.workflow.start_url
            timeout_s: 会话总超时(秒), None 表示一直等待

        Returns:
            最终的运行状态
        """
        url = start_url or self.settings.workflow.start_url
        self.page.on("load", self._on_load)
        try:
            await self.page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.settings.workflow.navigation_timeout_ms,
            )
            await asyncio.wait_for(self._finished.wait(), timeout=timeout_s)
        except TimeoutError:
            logger.warning(f"⚠️ 会话超时 ({timeout_s}s), 工作流未结束")
        finally:
            self.page.remove_listener("load", self._on_load)
            await self.close()

        state = await self.store.get()
        return WorkflowRun.from_state(state) if state else None

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
