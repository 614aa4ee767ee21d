"""
@PURPOSE: 提供有界轮询等待能力, 并在页面跳转时立即取消
@OUTLINE:
  - @dataclass WaitStrategy: 等待策略(超时, 间隔, 稳定等待)
  - class PageWaiter: 封装可复用的等待工具
    - async def settle(): 操作后的固定稳定等待
    - async def wait_for_condition(): 通用条件等待
    - async def wait_for_marker(): 等待任一选择器出现
@GOTCHAS:
  - 轮询开始时记录原始地址, 每次轮询都比较; 地址变化说明用户已离开, 抛出 NavigationCancelled
  - 超时抛出 PhaseTimeout, 由步骤处理器转换为失败结果
  - sleep/clock 可注入, 测试中无需真实等待
@DEPENDENCIES:
  - 外部: loguru
  - 内部: autopost.browser.action_sink, autopost.errors
@RELATED: autopost/steps/form_fill.py, autopost/steps/publish.py
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger

from ..errors import AutopostError, NavigationCancelled, PhaseTimeout


@dataclass(slots=True)
class WaitStrategy:
    """等待策略配置."""

    poll_timeout_ms: int = 12000
    poll_interval_ms: int = 500
    settle_ms: int = 500

    @classmethod
    def from_config(cls, workflow_config: Any) -> WaitStrategy:
        """从 settings.workflow 构建."""
        return cls(
            poll_timeout_ms=workflow_config.poll_timeout_ms,
            poll_interval_ms=workflow_config.poll_interval_ms,
            settle_ms=workflow_config.settle_ms,
        )

    @classmethod
    def instant(cls) -> WaitStrategy:
        """零等待(测试用)."""
        return cls(poll_timeout_ms=0, poll_interval_ms=0, settle_ms=0)


class PageWaiter:
    """可复用的页面等待工具."""

    def __init__(
        self,
        sink: Any,
        strategy: WaitStrategy | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """初始化等待工具.

        Args:
            sink: ActionSink 实例
            strategy: 等待策略配置
            sleep: 异步等待函数(秒)
            clock: 单调时钟(秒)
        """
        self.sink = sink
        self.strategy = strategy or WaitStrategy()
        self._sleep = sleep
        self._clock = clock

    async def settle(self, ms: int | None = None) -> None:
        """操作后的稳定等待."""
        delay = self.strategy.settle_ms if ms is None else ms
        if delay > 0:
            await self._sleep(delay / 1000)

    async def wait_for_condition(
        self,
        condition: Callable[[], Awaitable[bool]],
        description: str,
        *,
        timeout_ms: int | None = None,
        interval_ms: int | None = None,
        phase: str | None = None,
    ) -> None:
        """等待条件成立.

        Raises:
            NavigationCancelled: 轮询期间地址发生变化
            PhaseTimeout: 超时仍未成立
        """
        timeout = self.strategy.poll_timeout_ms if timeout_ms is None else timeout_ms
        interval = self.strategy.poll_interval_ms if interval_ms is None else interval_ms

        origin = await self.sink.current_url()
        deadline = self._clock() + timeout / 1000

        while True:
            current = await self.sink.current_url()
            if current != origin:
                logger.info(f"页面已跳转, 停止等待 {description}: {origin} -> {current}")
                raise NavigationCancelled(origin, current)

            try:
                if await condition():
                    return
            except AutopostError:
                raise
            except Exception as exc:
                logger.debug(f"条件检查失败: {exc}")

            if self._clock() >= deadline:
                raise PhaseTimeout(description, timeout, phase=phase)

            await self._sleep(interval / 1000)

    async def wait_for_marker(
        self,
        selectors: Sequence[str],
        description: str | None = None,
        *,
        timeout_ms: int | None = None,
        phase: str | None = None,
    ) -> None:
        """等待任一选择器出现."""

        async def _present() -> bool:
            return await self.sink.has_any(selectors)

        await self.wait_for_condition(
            _present,
            description or " | ".join(selectors),
            timeout_ms=timeout_ms,
            phase=phase,
        )
