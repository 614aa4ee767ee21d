"""
@PURPOSE: 填写发布表单(标题, 价格, 邮编, 描述, 附加属性, 成色, 送货, 语言)
@OUTLINE:
  - class FormFillHandler: 表单填写处理器
    - async def execute(): 等待标题输入框后逐项填写
    - async def fill_condition(): 成色下拉框
    - async def fill_language(): 必填语言下拉框(分级解析)
    - async def check_validation(): 读取页面校验错误
@GOTCHAS:
  - 每个字段独立填写, 单个字段失败不影响其他字段
  - 语言下拉框不存在只记警告; 存在但无法解析时返回失败且不点击继续
  - 页面校验错误只提示, 不阻断(由用户修正)
  - 每个页面生命周期只分派一次, 避免重复填写
@DEPENDENCIES:
  - 内部: .base, autopost.data_processor, autopost.browser.selectors
@RELATED: autopost/data_processor/option_matching.py
"""

from __future__ import annotations

from ..browser.selectors import (
    CONDITION_SELECTORS,
    DELIVERY_SELECTORS,
    DESCRIPTION_SELECTORS,
    ERROR_SELECTORS,
    LANGUAGE_OPTION_HINTS,
    LANGUAGE_SELECTORS,
    MAKE_SELECTORS,
    MARKER_SELECTORS,
    MARKER_TITLE_INPUT,
    MODEL_SELECTORS,
    POSTAL_SELECTORS,
    PRICE_HINT_SELECTORS,
    PRICE_SELECTORS,
    SIZE_SELECTORS,
    TITLE_SELECTORS,
)
from ..data_processor.field_normalizer import resolve_condition
from ..data_processor.option_matching import TIER_ALREADY_SET, resolve_required_option
from ..errors import AutopostError, ErrorKind, ValidationBlocked
from ..models.outcome import StepOutcome
from ..models.phase import Phase
from .base import StepContext, StepHandler

REVIEW_NOTICE = "ℹ️ Please review the form and click Continue when ready"
LANGUAGE_NOTICE = "⚠️ Please select a language manually"


class FormFillHandler(StepHandler):
    """表单填写处理器."""

    phase = Phase.FORM_FILL
    name = "Form Fill"
    progress_message = "Filling listing details..."

    async def execute(self, ctx: StepContext) -> StepOutcome:
        log = self.log(ctx)
        sink = ctx.sink
        payload = ctx.payload

        try:
            await ctx.waiter.wait_for_marker(
                MARKER_SELECTORS[MARKER_TITLE_INPUT], "title input", phase=self.phase.value
            )
        except AutopostError as exc:
            return StepOutcome.from_error(exc)

        flags: dict[str, bool] = {}

        if payload.title and await sink.fill(TITLE_SELECTORS, payload.title):
            flags["titleFilled"] = True

        price = payload.clean_price
        if price:
            await ctx.reporter.report(self.phase, 55, "Filling price...")
            filled = await sink.fill(PRICE_SELECTORS, price)
            if not filled:
                filled = await sink.fill(PRICE_HINT_SELECTORS, price)
            if filled:
                flags["priceFilled"] = True

        postal = payload.postal_code
        if postal:
            await ctx.reporter.report(self.phase, 60, "Filling location...")
            if await sink.fill(POSTAL_SELECTORS, postal):
                flags["postalFilled"] = True

        if payload.description:
            await ctx.reporter.report(self.phase, 65, "Filling description...")
            if await sink.fill(DESCRIPTION_SELECTORS, payload.description):
                flags["descriptionFilled"] = True

        await ctx.reporter.report(self.phase, 70, "Filling additional details...")
        optional_fields = (
            ("makeFilled", MAKE_SELECTORS, payload.manufacturer),
            ("modelFilled", MODEL_SELECTORS, payload.model),
            ("sizeFilled", SIZE_SELECTORS, payload.size_text),
        )
        for flag, selectors, value in optional_fields:
            if value and await sink.fill(selectors, value):
                flags[flag] = True

        if await self.fill_condition(ctx):
            flags["conditionSet"] = True

        if payload.delivery_available and await sink.check(DELIVERY_SELECTORS):
            flags["deliverySet"] = True

        language_ok = await self.fill_language(ctx)
        if language_ok:
            flags["languageSet"] = True

        log.info(f"表单字段已填写: {', '.join(sorted(flags)) or '无'}")
        await self.check_validation(ctx)

        if language_ok is False:
            await ctx.notify(LANGUAGE_NOTICE, "warning")
            return StepOutcome.failure(
                "Could not resolve required language selection", ErrorKind.VALIDATION_BLOCKED, flags
            )

        await ctx.reporter.report(self.phase, 75, "Form filled, reviewing...")
        flags["formFilled"] = True

        if not await self.click_continue(ctx):
            await ctx.notify(REVIEW_NOTICE)
        return StepOutcome.success("Form filled", flags)

    async def fill_condition(self, ctx: StepContext) -> bool:
        """按映射后的成色文本选择下拉项."""
        sink = ctx.sink
        selector = await sink.locate_select(CONDITION_SELECTORS)
        if selector is None:
            return False
        state = await sink.read_select(selector)
        if state is None:
            return False

        target = resolve_condition(ctx.payload.condition)
        option = next((o for o in state.options if o.normalized_label == target), None)
        if option is None:
            option = next((o for o in state.options if target in o.normalized_label), None)
        if option is None:
            self.log(ctx).debug(f"成色选项未找到: {target}")
            return False
        return await sink.choose_select(selector, option.value)

    async def fill_language(self, ctx: StepContext) -> bool | None:
        """处理必填语言下拉框.

        Returns:
            None: 页面没有语言下拉框
            True: 已是有效值或已选择
            False: 存在但无法解析
        """
        log = self.log(ctx)
        sink = ctx.sink
        selector = await sink.locate_select(LANGUAGE_SELECTORS, LANGUAGE_OPTION_HINTS)
        if selector is None:
            log.warning("⚠️ 未找到语言下拉框")
            return None

        state = await sink.read_select(selector)
        if state is None:
            return False

        option, tier = resolve_required_option(state)
        if option is None:
            log.error(f"✗ 语言下拉框无法解析: {selector}")
            return False
        if tier == TIER_ALREADY_SET:
            log.debug(f"语言已设置: {state.value}")
            return True

        log.info(f"选择语言: {option.label} (层级 {tier})")
        return await sink.choose_select(selector, option.value)

    async def check_validation(self, ctx: StepContext) -> list[str]:
        errors = await ctx.sink.visible_errors(ERROR_SELECTORS)
        if errors:
            blocked = ValidationBlocked(errors, phase=self.phase.value)
            self.log(ctx).warning(f"⚠️ {blocked.message}")
            await ctx.notify(f"⚠️ Form errors: {' '.join(errors)[:80]}", "warning")
        return errors
