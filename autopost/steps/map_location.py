"""
@PURPOSE: 地图定位页 - 可选填写街道/交叉街道后继续
@OUTLINE:
  - class MapLocationHandler: 地图定位处理器
@DEPENDENCIES:
  - 内部: .base, autopost.browser.selectors
"""

from __future__ import annotations

from ..browser.selectors import ADDRESS_SELECTORS, CROSS_STREET_SELECTORS
from ..errors import ErrorKind
from ..models.outcome import StepOutcome
from ..models.phase import Phase
from .base import StepContext, StepHandler


class MapLocationHandler(StepHandler):
    """地图定位处理器."""

    phase = Phase.MAP_LOCATION
    name = "Map Location"
    progress_message = "Setting location on map..."

    async def execute(self, ctx: StepContext) -> StepOutcome:
        await ctx.waiter.settle()
        payload = ctx.payload
        flags: dict[str, bool] = {}

        if payload.address and await ctx.sink.fill(ADDRESS_SELECTORS, payload.address):
            flags["addressFilled"] = True
        if payload.cross_street and await ctx.sink.fill(CROSS_STREET_SELECTORS, payload.cross_street):
            flags["crossStreetFilled"] = True

        if not await self.click_continue(ctx):
            return StepOutcome.failure(
                "Could not find continue button on map page", ErrorKind.ACTION_TARGET_NOT_FOUND, flags
            )
        flags["mapLocationSet"] = True
        return StepOutcome.success("Map location confirmed", flags)
