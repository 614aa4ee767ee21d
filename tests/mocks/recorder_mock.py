"""
@PURPOSE: 记录型 Mock - 事件通道, 提示器, 假时钟
@OUTLINE:
  - RecordingEventChannel: 记录所有发布的事件
  - RecordingNotifier: 记录所有提示
  - FakeClock: 不阻塞的 sleep + 可推进的单调时钟
"""

from typing import Any

from autopost.core.progress_reporter import EventChannel


class RecordingEventChannel(EventChannel):
    """记录事件的通道, fail=True 时模拟通道故障."""

    def __init__(self, fail: bool = False):
        self.messages: list[dict[str, Any]] = []
        self.fail = fail

    async def publish(self, message: dict[str, Any]) -> bool:
        if self.fail:
            raise ConnectionError("channel unavailable")
        self.messages.append(message)
        return True

    def of(self, action: str) -> list[dict[str, Any]]:
        return [m for m in self.messages if m["action"] == action]

    @property
    def actions(self) -> list[str]:
        return [m["action"] for m in self.messages]


class RecordingNotifier:
    """记录提示的提示器."""

    def __init__(self):
        self.notices: list[tuple[str, str]] = []

    async def notify(self, message: str, level: str = "info") -> None:
        self.notices.append((message, level))

    @property
    def messages(self) -> list[str]:
        return [message for message, _ in self.notices]


class FakeClock:
    """sleep 只推进时钟, 不真正等待."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def monotonic(self) -> float:
        return self.now
