"""
@PURPOSE: 预览与发布阶段, 以及发布完成检测
@OUTLINE:
  - SUCCESS_PHRASES: 发布成功的页面文本
  - @dataclass Completion: 完成检测结果
  - def detect_completion(): 根据页面文本判断是否完成/需要邮件确认
  - class PreviewHandler: 预览页点击发布
  - class PublishingHandler: 发布页只点击一次, 轮询完成文本
@GOTCHAS:
  - publishClicked 标记防止重复点击发布(重试和页面重载都要检查)
  - 点击发布后页面通常会跳转, 轮询被取消不是失败
  - 邮件确认和直接发布成功是同一个终止阶段, 用 requires_confirmation 区分
@DEPENDENCIES:
  - 内部: .base, autopost.browser.selectors
"""

from __future__ import annotations

from dataclasses import dataclass

from ..browser.selectors import (
    PREVIEW_PUBLISH_SELECTORS,
    PREVIEW_PUBLISH_TEXTS,
    PUBLISH_SELECTORS,
    PUBLISH_TEXTS,
)
from ..errors import AutopostError, ErrorKind
from ..models.outcome import StepOutcome
from ..models.phase import Phase
from .base import StepContext, StepHandler

SUCCESS_PHRASES: tuple[str, ...] = (
    "your posting can be seen at",
    "thanks for posting",
    "posting has been published",
    "manage posting",
    "edit this posting",
    "your email has been sent",
)

PREVIEW_CHECK_MS = 2000


@dataclass(frozen=True)
class Completion:
    """完成检测结果."""

    requires_confirmation: bool
    indicator: str


def detect_completion(text: str | None) -> Completion | None:
    """根据页面文本判断发布是否完成.

    Examples:
        >>> detect_completion("Thanks for posting!").requires_confirmation
        False
        >>> detect_completion("Please check your email to confirm").requires_confirmation
        True
        >>> detect_completion("Preview your listing") is None
        True
    """
    lowered = (text or "").lower()
    for phrase in SUCCESS_PHRASES:
        if phrase in lowered:
            return Completion(False, phrase)
    if "email" in lowered and ("confirm" in lowered or "verify" in lowered):
        return Completion(True, "email confirmation")
    return None


def completed_outcome(completion: Completion, flags: dict[str, bool]) -> StepOutcome:
    return StepOutcome.success(
        f"Posting complete ({completion.indicator})",
        flags,
        completed=True,
        requires_confirmation=completion.requires_confirmation,
    )


class PreviewHandler(StepHandler):
    """预览页处理器."""

    phase = Phase.PREVIEW
    name = "Preview"
    progress_message = "Reviewing listing..."

    async def execute(self, ctx: StepContext) -> StepOutcome:
        await ctx.waiter.settle()
        sink = ctx.sink

        if await sink.click(PREVIEW_PUBLISH_SELECTORS, PREVIEW_PUBLISH_TEXTS):
            self.log(ctx).info("预览页已点击发布")
            ctx.flags["publishClicked"] = True
            flags = {"publishClicked": True}
            await ctx.waiter.settle(PREVIEW_CHECK_MS)
            completion = detect_completion(await sink.page_text())
            if completion is not None:
                return completed_outcome(completion, flags)
            return StepOutcome.success("Publish clicked from preview", flags)

        if await self.click_continue(ctx):
            return StepOutcome.success("Continued from preview")

        return StepOutcome.failure(
            "Could not find publish button on preview page", ErrorKind.ACTION_TARGET_NOT_FOUND
        )


class PublishingHandler(StepHandler):
    """发布页处理器."""

    phase = Phase.PUBLISHING
    name = "Publishing"
    progress_message = "Publishing listing..."

    async def execute(self, ctx: StepContext) -> StepOutcome:
        log = self.log(ctx)
        sink = ctx.sink
        flags: dict[str, bool] = {}

        completion = detect_completion(await sink.page_text())
        if completion is not None:
            return completed_outcome(completion, flags)

        if ctx.flags.get("publishClicked"):
            log.info("发布按钮已点击过, 只等待完成")
        else:
            clicked = await sink.click(PUBLISH_SELECTORS, PUBLISH_TEXTS)
            if not clicked:
                clicked = await sink.click_text(PUBLISH_TEXTS)
            if clicked:
                log.info("已点击发布按钮")
                ctx.flags["publishClicked"] = True
                flags["publishClicked"] = True

        found: list[Completion] = []

        async def _completed() -> bool:
            result = detect_completion(await sink.page_text())
            if result is not None:
                found.append(result)
            return result is not None

        try:
            await ctx.waiter.wait_for_condition(_completed, "posting completion", phase=self.phase.value)
        except AutopostError as exc:
            return StepOutcome.from_error(exc, flags)

        return completed_outcome(found[-1], flags)
