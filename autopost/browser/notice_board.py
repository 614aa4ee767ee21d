"""
@PURPOSE: 面向操作者的短暂提示(页面右上角浮层)与日志提示实现
@OUTLINE:
  - class Notifier: 提示协议
  - class LogNotifier: 仅写日志(无浏览器时使用)
  - class PlaywrightNoticeBoard: 在当前页面注入浮层提示, 6秒后消失
@GOTCHAS:
  - 提示失败不应影响主流程, 异常只记录日志
  - 同一时间只保留一条浮层, 新提示替换旧提示
@DEPENDENCIES:
  - 外部: playwright, loguru
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

NOTICE_ELEMENT_ID = "autopost-notice"
NOTICE_DURATION_MS = 6000

_NOTICE_SCRIPT = """
([id, message, duration]) => {
    const existing = document.getElementById(id);
    if (existing) existing.remove();
    const box = document.createElement('div');
    box.id = id;
    box.textContent = message;
    box.style.cssText = [
        'position: fixed', 'top: 20px', 'right: 20px', 'z-index: 2147483647',
        'background: #4f46e5', 'color: white', 'padding: 16px 20px',
        'border-radius: 8px', 'box-shadow: 0 4px 12px rgba(0,0,0,0.3)',
        'font-family: sans-serif', 'font-size: 14px', 'max-width: 350px',
    ].join(';');
    document.body.appendChild(box);
    setTimeout(() => box.remove(), duration);
}
"""


@runtime_checkable
class Notifier(Protocol):
    """提示协议."""

    async def notify(self, message: str, level: str = "info") -> None: ...


class LogNotifier:
    """只写日志的提示实现."""

    async def notify(self, message: str, level: str = "info") -> None:
        if level == "error":
            logger.error(f"[提示] {message}")
        elif level == "warning":
            logger.warning(f"[提示] {message}")
        else:
            logger.info(f"[提示] {message}")


class PlaywrightNoticeBoard:
    """页面浮层提示.

    Examples:
        >>> board = PlaywrightNoticeBoard(page)
        >>> await board.notify("ℹ️ Please continue with the form manually if needed")
    """

    def __init__(self, page: Page, duration_ms: int = NOTICE_DURATION_MS):
        self.page = page
        self.duration_ms = duration_ms
        self._fallback = LogNotifier()

    async def notify(self, message: str, level: str = "info") -> None:
        await self._fallback.notify(message, level)
        try:
            await self.page.evaluate(_NOTICE_SCRIPT, [NOTICE_ELEMENT_ID, message, self.duration_ms])
        except PlaywrightError as exc:
            logger.debug(f"页面提示注入失败: {exc}")
