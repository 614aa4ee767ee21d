"""
@PURPOSE: 发布类型选择(个人出售 / 商家出售)
@OUTLINE:
  - class TypeSelectionHandler: 类型选择处理器
@GOTCHAS:
  - 按偏好顺序匹配选项文本, 找不到时回退到 value="fso" 的选项
@DEPENDENCIES:
  - 内部: .base, autopost.browser.selectors
"""

from __future__ import annotations

from ..browser.selectors import RADIO_SELECTOR
from ..errors import ErrorKind
from ..models.outcome import StepOutcome
from ..models.page import ChoiceOption
from ..models.phase import Phase
from .base import StepContext, StepHandler

OWNER_LABEL = "for sale by owner"
DEALER_LABEL = "for sale by dealer"
OWNER_VALUE = "fso"


class TypeSelectionHandler(StepHandler):
    """类型选择处理器."""

    phase = Phase.TYPE_SELECTION
    name = "Type Selection"
    progress_message = "Selecting posting type..."

    @staticmethod
    def preferred_labels(is_dealer: bool) -> tuple[str, ...]:
        return (DEALER_LABEL, OWNER_LABEL) if is_dealer else (OWNER_LABEL,)

    async def execute(self, ctx: StepContext) -> StepOutcome:
        await ctx.waiter.settle()
        radios = await ctx.sink.list_choices(RADIO_SELECTOR)

        option: ChoiceOption | None = None
        for preferred in self.preferred_labels(ctx.payload.is_dealer):
            option = next((r for r in radios if preferred in r.normalized_label), None)
            if option is not None:
                break
        if option is None:
            option = next((r for r in radios if r.value == OWNER_VALUE), None)

        if option is None or not await self.pick_radio(ctx, option):
            return StepOutcome.failure(
                "Could not find posting type options", ErrorKind.ACTION_TARGET_NOT_FOUND
            )
        return StepOutcome.success(option.label, {"typeSelected": True})
