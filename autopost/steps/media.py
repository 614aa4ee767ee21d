"""
@PURPOSE: 图片上传 - 获取图片到本地后附加到文件输入框
@OUTLINE:
  - class ImageUploadHandler: 图片上传处理器
@GOTCHAS:
  - 没有图片或已上传(imagesUploaded 标记)时直接继续
  - 所有图片获取失败返回 ExternalFetchFailure 失败(可选阶段, 由 soft 策略吞掉)
  - 附加后等待上传完成再点击 done
@DEPENDENCIES:
  - 内部: .base, autopost.browser.image_fetcher
@RELATED: autopost/browser/image_fetcher.py
"""

from __future__ import annotations

from ..browser.image_fetcher import ImageFetcher
from ..browser.selectors import DONE_SELECTORS, FILE_INPUT_SELECTORS
from ..errors import AutopostError, ErrorKind
from ..models.outcome import StepOutcome
from ..models.phase import Phase
from .base import StepContext, StepHandler

UPLOAD_SETTLE_MS = 3000

MANUAL_UPLOAD_NOTICE = "⚠️ Could not upload images automatically. Please add images manually."
PARTIAL_UPLOAD_NOTICE = "⚠️ Some images could not be uploaded. Please add them manually."


class ImageUploadHandler(StepHandler):
    """图片上传处理器."""

    phase = Phase.IMAGE_UPLOAD
    name = "Image Upload"
    progress_message = "Uploading images..."

    def __init__(self, fetcher: ImageFetcher | None = None):
        self.fetcher = fetcher or ImageFetcher("data/temp/images")

    async def execute(self, ctx: StepContext) -> StepOutcome:
        log = self.log(ctx)
        images = ctx.payload.images

        if not images or ctx.flags.get("imagesUploaded"):
            log.info("没有需要上传的图片, 继续")
            await self.click_continue(ctx)
            return StepOutcome.success("No images to upload")

        sink = ctx.sink
        if not await sink.has_any(FILE_INPUT_SELECTORS):
            log.warning("⚠️ 未找到文件上传控件")
            await ctx.notify(MANUAL_UPLOAD_NOTICE, "warning")
            await self.click_continue(ctx)
            return StepOutcome.skipped("File input not found")

        sources = self.fetcher.select_sources(images)
        try:
            paths = await self.fetcher.fetch_all(sources)
        except AutopostError as exc:
            await ctx.notify(MANUAL_UPLOAD_NOTICE, "warning")
            return StepOutcome.from_error(exc)

        if not await sink.attach_files(FILE_INPUT_SELECTORS, paths):
            await ctx.notify(MANUAL_UPLOAD_NOTICE, "warning")
            return StepOutcome.failure("Could not attach images", ErrorKind.ACTION_TARGET_NOT_FOUND)

        if len(paths) < len(sources):
            await ctx.notify(PARTIAL_UPLOAD_NOTICE, "warning")

        log.success(f"✓ 已附加 {len(paths)} 张图片")
        await ctx.waiter.settle(UPLOAD_SETTLE_MS)
        await ctx.reporter.report(self.phase, 85, "Images uploaded, continuing...")

        if await sink.click(DONE_SELECTORS):
            await ctx.waiter.settle()
        else:
            await self.click_continue(ctx)
        return StepOutcome.success(f"{len(paths)} images attached", {"imagesUploaded": True})
