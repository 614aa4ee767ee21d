"""
@PURPOSE: 浏览器层, 封装 Playwright 页面操作, 页面提示与图片获取
@OUTLINE:
  - ActionSink / PlaywrightActionSink: 页面操作契约与实现
  - PlaywrightNoticeBoard / LogNotifier: 用户提示
  - ImageFetcher: 图片下载
  - BrowserManager, PostingSession: 按需从子模块导入(依赖 core)
@DEPENDENCIES:
  - 外部: playwright, httpx
@RELATED: ../core/, ../steps/
"""

from .action_sink import ActionSink, PlaywrightActionSink, text_matches
from .image_fetcher import ImageFetcher
from .notice_board import LogNotifier, Notifier, PlaywrightNoticeBoard

__all__ = [
    "ActionSink",
    "ImageFetcher",
    "LogNotifier",
    "Notifier",
    "PlaywrightActionSink",
    "PlaywrightNoticeBoard",
    "text_matches",
]
