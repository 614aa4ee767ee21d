"""
@PURPOSE: 类目选择 - 显式类目映射或关键字推断, 打分后点击最佳选项
@OUTLINE:
  - class CategorySelectionHandler: 类目选择处理器
@GOTCHAS:
  - 没有任何选项得分大于0时回退到 "general for sale"
  - 选中后先稳定等待再点击继续
@DEPENDENCIES:
  - 内部: .base, autopost.data_processor
"""

from __future__ import annotations

from ..browser.selectors import RADIO_SELECTOR
from ..data_processor.category_inference import resolve_target_category
from ..data_processor.option_matching import is_general_for_sale, pick_best_option
from ..errors import ErrorKind
from ..models.outcome import StepOutcome
from ..models.phase import Phase
from .base import StepContext, StepHandler


class CategorySelectionHandler(StepHandler):
    """类目选择处理器."""

    phase = Phase.CATEGORY_SELECTION
    name = "Category Selection"
    progress_message = "Selecting category..."

    async def execute(self, ctx: StepContext) -> StepOutcome:
        await ctx.waiter.settle()
        payload = ctx.payload
        target = resolve_target_category(payload.category, payload.title, payload.description)
        self.log(ctx).info(f"目标类目: {target}")

        radios = await ctx.sink.list_choices(RADIO_SELECTOR)
        option = pick_best_option(target, radios, fallback=is_general_for_sale)
        if option is None or not await self.pick_radio(ctx, option):
            return StepOutcome.failure(
                "Could not find category options", ErrorKind.ACTION_TARGET_NOT_FOUND
            )
        return StepOutcome.success(option.label, {"categorySelected": True})
