"""
@PURPOSE: 进度上报 - 把进度/完成/错误/阶段切换事件推送到外部通道(只发不收)
@OUTLINE:
  - class EventChannel: 事件通道基类
  - class LogEventChannel: 写日志
  - class JsonlEventChannel: 追加到 JSON Lines 文件
  - class WebhookEventChannel: POST 到 Webhook
  - class ProgressReporter: 上报器
  - def build_channel(): 根据配置创建通道
@GOTCHAS:
  - 上报失败只记录日志, 不影响主流程, 不重试
  - 进度百分比是每个阶段的固定常量
  - 所有事件都带 platform 字段
@DEPENDENCIES:
  - 外部: aiohttp, loguru
  - 内部: autopost.models
@RELATED: config/settings.py (EventsConfig)
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

import aiohttp
from loguru import logger

from ..models.events import (
    PhaseChangedEvent,
    PostingCompleteEvent,
    PostingErrorEvent,
    ProgressInfo,
    UpdateProgressEvent,
    WorkflowEvent,
)
from ..models.phase import PHASE_PROGRESS, Phase


class EventChannel(ABC):
    """事件通道基类."""

    @abstractmethod
    async def publish(self, message: dict[str, Any]) -> bool:
        """发送事件.

        Returns:
            是否发送成功
        """


class LogEventChannel(EventChannel):
    """日志通道."""

    async def publish(self, message: dict[str, Any]) -> bool:
        logger.info(f"[事件] {json.dumps(message, ensure_ascii=False)}")
        return True


class JsonlEventChannel(EventChannel):
    """JSON Lines 文件通道, 每行一个事件."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def publish(self, message: dict[str, Any]) -> bool:
        record = {"timestamp": datetime.now().isoformat(), **message}
        async with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record, ensure_ascii=False) + "\n")
        return True


class WebhookEventChannel(EventChannel):
    """Webhook 通道.

    Examples:
        >>> channel = WebhookEventChannel("https://example.com/hooks/autopost")
        >>> await channel.publish({"action": "posting_complete", "platform": "craigslist"})
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def publish(self, message: dict[str, Any]) -> bool:
        if not self.webhook_url:
            logger.debug("未配置Webhook URL, 事件未发送")
            return False

        async with aiohttp.ClientSession() as session, session.post(
            self.webhook_url, json=message, timeout=aiohttp.ClientTimeout(total=self.timeout)
        ) as response:
            if 200 <= response.status < 300:
                return True
            logger.warning(f"Webhook 请求失败: {response.status}")
            return False


def build_channel(config: Any) -> EventChannel:
    """根据 settings.events 创建事件通道."""
    if config.channel == "webhook":
        return WebhookEventChannel(config.webhook_url, timeout=config.webhook_timeout)
    if config.channel == "jsonl":
        return JsonlEventChannel(config.events_file)
    return LogEventChannel()


class ProgressReporter:
    """进度上报器.

    Examples:
        >>> reporter = ProgressReporter(LogEventChannel())
        >>> await reporter.report(Phase.FORM_FILL, message="Filling listing details...")
    """

    def __init__(self, channel: EventChannel | None = None, platform: str = "craigslist"):
        self.channel = channel or LogEventChannel()
        self.platform = platform

    async def report(self, phase: Phase, percent: int | None = None, message: str = "") -> None:
        """上报进度; percent 为空时使用阶段的固定百分比."""
        current = PHASE_PROGRESS.get(phase, 0) if percent is None else percent
        await self._emit(
            UpdateProgressEvent(
                platform=self.platform,
                progress=ProgressInfo(current=current),
                message=message,
            )
        )

    async def phase_changed(self, phase: Phase) -> None:
        await self._emit(PhaseChangedEvent(platform=self.platform, step=phase.value))

    async def complete(self, requires_confirmation: bool = False) -> None:
        await self._emit(
            PostingCompleteEvent(
                platform=self.platform,
                requires_confirmation=True if requires_confirmation else None,
            )
        )

    async def error(self, message: str) -> None:
        await self._emit(PostingErrorEvent(platform=self.platform, error=message))

    async def _emit(self, event: WorkflowEvent) -> None:
        try:
            await self.channel.publish(event.to_message())
        except Exception as exc:
            logger.warning(f"⚠️ 事件发送失败 ({event.action}): {exc}")
