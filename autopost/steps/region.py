"""
@PURPOSE: 入口页, 子区域和街区选择的步骤处理器
@OUTLINE:
  - class InitialPageHandler: 入口页(城市链接 / for sale 链接 / fso 单选)
  - class SubareaSelectionHandler: 子区域选择(必需)
  - class HoodSelectionHandler: 街区选择(可选)
@GOTCHAS:
  - 入口页的城市链接匹配不到时交给用户选择, 不算失败
  - 街区页没有单选项时只点击继续
@DEPENDENCIES:
  - 内部: .base, autopost.data_processor, autopost.browser.selectors
"""

from __future__ import annotations

from ..browser.selectors import (
    CITY_LINK_SELECTOR,
    FOR_SALE_LINK_SELECTOR,
    FSO_RADIO_SELECTOR,
    RADIO_SELECTOR,
)
from ..data_processor.option_matching import pick_best_option
from ..data_processor.region_lookup import is_bypass_option, resolve_neighborhood, resolve_subarea
from ..errors import ErrorKind
from ..models.outcome import StepOutcome
from ..models.phase import Phase
from .base import StepContext, StepHandler


class InitialPageHandler(StepHandler):
    """入口页处理器."""

    phase = Phase.INITIAL_PAGE
    name = "Initial Page"
    progress_message = "Starting Craigslist posting..."

    async def execute(self, ctx: StepContext) -> StepOutcome:
        sink = ctx.sink
        log = self.log(ctx)

        city_links = await sink.list_choices(CITY_LINK_SELECTOR)
        if city_links:
            target = ctx.payload.region_hint.split(",")[0].strip()
            if target:
                for link in city_links:
                    if target in link.normalized_label:
                        log.info(f"点击城市链接: {link.label}")
                        await sink.choose(CITY_LINK_SELECTOR, link)
                        return StepOutcome.success(f"City link: {link.label}", {"regionChosen": True})

            log.info("未匹配到城市链接, 等待用户选择")
            await ctx.notify("Please select your city/region to continue")
            return StepOutcome.skipped("City selection left to the user")

        for_sale = await sink.list_choices(FOR_SALE_LINK_SELECTOR)
        if for_sale:
            log.info("点击 for sale 入口")
            await sink.choose(FOR_SALE_LINK_SELECTOR, for_sale[0])
            return StepOutcome.success("For sale section", {"sectionChosen": True})

        fso = await sink.list_choices(FSO_RADIO_SELECTOR)
        if fso:
            await sink.choose(FSO_RADIO_SELECTOR, fso[0])
            await ctx.waiter.settle()
            await self.click_continue(ctx)
            return StepOutcome.success("For sale by owner", {"typeSelected": True})

        log.info("入口页没有可操作的选项")
        await ctx.notify("ℹ️ Please continue with the form manually if needed")
        return StepOutcome.skipped("No entry option on the initial page")


class SubareaSelectionHandler(StepHandler):
    """子区域选择处理器."""

    phase = Phase.SUBAREA_SELECTION
    name = "Subarea Selection"
    progress_message = "Selecting region..."

    async def execute(self, ctx: StepContext) -> StepOutcome:
        await ctx.waiter.settle()
        target = resolve_subarea(ctx.payload.region_hint)
        self.log(ctx).debug(f"目标子区域: {target}")

        radios = await ctx.sink.list_choices(RADIO_SELECTOR)
        option = pick_best_option(target, radios, fallback=lambda _: True)
        if option is None or not await self.pick_radio(ctx, option):
            return StepOutcome.failure(
                "Could not find subarea selection options", ErrorKind.ACTION_TARGET_NOT_FOUND
            )
        return StepOutcome.success(option.label, {"subareaSelected": True})


class HoodSelectionHandler(StepHandler):
    """街区选择处理器.

    目标街区: 邮编查表 -> 显式街区 -> 地址关键字. 没有目标时优先选"跳过",
    否则回退到第一个非跳过选项.
    """

    phase = Phase.HOOD_SELECTION
    name = "Hood Selection"
    progress_message = "Selecting neighborhood..."

    async def execute(self, ctx: StepContext) -> StepOutcome:
        await ctx.waiter.settle()
        payload = ctx.payload
        target = resolve_neighborhood(
            payload.postal_code,
            payload.neighborhood,
            payload.location or payload.city,
        )
        self.log(ctx).debug(f"目标街区: {target or '未指定'}")

        radios = await ctx.sink.list_choices(RADIO_SELECTOR)
        if radios:
            option = None
            if target:
                option = pick_best_option(target, radios)
            else:
                option = next((r for r in radios if is_bypass_option(r.label)), None)
            if option is None:
                option = next((r for r in radios if "bypass" not in r.normalized_label), None)

            if option is not None and await self.pick_radio(ctx, option):
                return StepOutcome.success(option.label, {"hoodSelected": True})

        if await self.click_continue(ctx):
            return StepOutcome.success("No neighborhood options", {"hoodSelected": True})

        return StepOutcome.failure(
            "Could not complete neighborhood selection", ErrorKind.ACTION_TARGET_NOT_FOUND
        )
