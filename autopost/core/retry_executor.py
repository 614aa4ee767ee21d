"""
@PURPOSE: 重试执行器 - 按 hard/soft 策略重试单个阶段, 以 StepOutcome 返回结果
@OUTLINE:
  - class RetryExecutor: 重试执行器
    - async def run(): 按策略执行
    - async def hard_retry(): 必需阶段(耗尽后返回失败并提示人工处理)
    - async def soft_retry(): 可选阶段(耗尽后吞掉失败, 返回 skipped)
@GOTCHAS:
  - 不使用异常表达重试耗尽; 处理器抛出的异常在这里转换为失败结果
  - 两次尝试之间等待 delay, 然后 delay = min(delay * 1.2, 3000ms)
  - cancelled 结果(页面已跳转)不是失败, 不会重试
@DEPENDENCIES:
  - 外部: loguru
  - 内部: autopost.models.outcome, autopost.errors
@RELATED: autopost/core/orchestrator.py
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from ..errors import AutopostError, ErrorKind
from ..models.outcome import RetryKind, RetryPolicy, StepOutcome

StepCall = Callable[[], Awaitable[StepOutcome]]


class RetryExecutor:
    """重试执行器.

    Examples:
        >>> executor = RetryExecutor(notifier)
        >>> outcome = await executor.hard_retry("Category Selection", handler_call)
        >>> outcome.ok
        True
    """

    def __init__(
        self,
        notifier: Any = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """初始化重试执行器.

        Args:
            notifier: 提示器(Notifier), 为空时只写日志
            sleep: 异步等待函数(秒)
        """
        self.notifier = notifier
        self._sleep = sleep

    async def run(self, name: str, fn: StepCall, policy: RetryPolicy) -> StepOutcome:
        """按策略执行.

        Args:
            name: 阶段名称(用于日志和提示)
            fn: 返回 StepOutcome 的异步调用
            policy: 重试策略

        Returns:
            成功/跳过的结果; hard 耗尽时为最后一次失败结果; soft 耗尽时为 skipped
        """
        attempts = max(1, policy.max_retries)
        delay_ms = policy.base_delay_ms
        attempt = 1

        logger.debug(f"执行尝试 {attempt}/{attempts}: {name}")
        last = await self._invoke(fn)

        while not last.ok:
            logger.warning(f"⚠️ {name} 尝试 {attempt}/{attempts} 失败: {last.detail}")
            if attempt >= attempts:
                break

            logger.info(f"  等待 {delay_ms}ms 后重试...")
            await self._sleep(delay_ms / 1000)
            delay_ms = policy.next_delay(delay_ms)

            attempt += 1
            logger.debug(f"执行尝试 {attempt}/{attempts}: {name}")
            last = await self._invoke(fn)

        if last.ok:
            if attempt > 1:
                logger.success(f"✓ 重试成功: {name} (第{attempt}次尝试)")
            return last

        if policy.kind is RetryKind.HARD:
            logger.error(f"✗ {name} 所有尝试均失败 ({attempts}次): {last.detail}")
            await self._notify(f"❌ {name} failed. Please complete manually.", "error")
            return last

        logger.warning(f"⚠️ {name} 失败但继续工作流: {last.detail}")
        await self._notify(f"⚠️ {name} may need manual attention", "warning")
        return StepOutcome.skipped(f"{name} failed: {last.detail}", last.flags)

    async def hard_retry(
        self, name: str, fn: StepCall, max_retries: int = 2, base_delay_ms: int = 1000
    ) -> StepOutcome:
        return await self.run(name, fn, RetryPolicy.hard(max_retries, base_delay_ms))

    async def soft_retry(
        self, name: str, fn: StepCall, max_retries: int = 1, base_delay_ms: int = 800
    ) -> StepOutcome:
        return await self.run(name, fn, RetryPolicy.soft(max_retries, base_delay_ms))

    async def _invoke(self, fn: StepCall) -> StepOutcome:
        try:
            return await fn()
        except AutopostError as exc:
            return StepOutcome.from_error(exc)
        except Exception as exc:
            logger.opt(exception=exc).debug("步骤处理器抛出未预期异常")
            return StepOutcome.failure(str(exc) or type(exc).__name__, ErrorKind.UNEXPECTED)

    async def _notify(self, message: str, level: str) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.notify(message, level)
        except Exception as exc:
            logger.debug(f"提示发送失败: {exc}")
