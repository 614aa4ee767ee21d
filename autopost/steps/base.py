"""
@PURPOSE: 步骤处理器基类与执行上下文
@OUTLINE:
  - @dataclass StepContext: 单次分派的上下文(发布数据, 页面操作, 上报, 等待, 完成标记)
  - class StepHandler: 处理器基类
    - async def execute(): 执行阶段动作, 返回 StepOutcome
    - async def click_continue(): 点击继续按钮(选择器优先, 文本兜底)
    - async def pick_radio(): 选中单选项并点击继续
@GOTCHAS:
  - 处理器必须假设自己是冷启动: 只依赖页面和持久化的完成标记
  - 预期内的问题返回 StepOutcome.failure(), 不要抛出
  - ctx.flags 是本次运行的完成标记, 跨重试共享(用于防止重复点击发布)
@DEPENDENCIES:
  - 外部: loguru
  - 内部: autopost.models, autopost.browser, autopost.utils
@RELATED: autopost/core/orchestrator.py, autopost/core/retry_executor.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from loguru import logger

from ..browser.selectors import CONTINUE_SELECTORS, CONTINUE_TEXTS, RADIO_SELECTOR
from ..models.outcome import StepOutcome
from ..models.page import ChoiceOption
from ..models.phase import Phase
from ..models.run import ListingPayload
from ..utils.page_waiter import PageWaiter


@dataclass
class StepContext:
    """步骤执行上下文.

    Attributes:
        payload: 发布数据
        sink: 页面操作接口(ActionSink)
        reporter: 进度上报器
        notifier: 提示器
        waiter: 等待工具
        flags: 当前运行的完成标记(可变, 跨重试共享)
        run_id: 提交标识(用于日志上下文)
    """

    payload: ListingPayload
    sink: Any
    reporter: Any
    notifier: Any
    waiter: PageWaiter
    flags: dict[str, bool] = field(default_factory=dict)
    run_id: str = ""

    async def notify(self, message: str, level: str = "info") -> None:
        try:
            await self.notifier.notify(message, level)
        except Exception as exc:
            logger.debug(f"提示发送失败: {exc}")


class StepHandler(ABC):
    """步骤处理器基类.

    子类声明 phase, name 和 progress_message, 实现 execute().
    """

    phase: ClassVar[Phase]
    name: ClassVar[str]
    progress_message: ClassVar[str] = ""

    @abstractmethod
    async def execute(self, ctx: StepContext) -> StepOutcome:
        """执行阶段动作."""

    def log(self, ctx: StepContext) -> Any:
        return logger.bind(run_id=ctx.run_id, phase=self.phase.value)

    async def click_continue(self, ctx: StepContext) -> bool:
        """点击继续按钮, 找不到时返回 False."""
        clicked = await ctx.sink.click(CONTINUE_SELECTORS)
        if not clicked:
            clicked = await ctx.sink.click_text(CONTINUE_TEXTS)

        if clicked:
            await ctx.waiter.settle()
        else:
            self.log(ctx).warning("⚠️ 未找到继续按钮")
        return clicked

    async def pick_radio(self, ctx: StepContext, option: ChoiceOption) -> bool:
        """选中单选项, 稳定等待后点击继续."""
        if not await ctx.sink.choose(RADIO_SELECTOR, option):
            return False
        self.log(ctx).info(f"已选择: {option.label}")
        await ctx.waiter.settle()
        await self.click_continue(ctx)
        return True
