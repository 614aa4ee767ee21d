"""
@PURPOSE: 测试 Mock 模块
@OUTLINE:
  - FakeActionSink, make_choices: 模拟页面与单选项构造
  - RecordingEventChannel: 记录事件
  - RecordingNotifier: 记录提示
  - FakeClock: 假时钟
@DEPENDENCIES:
  - 内部: autopost
"""

from .recorder_mock import FakeClock, RecordingEventChannel, RecordingNotifier
from .sink_mock import FakeActionSink, make_choices

__all__ = [
    "FakeActionSink",
    "FakeClock",
    "RecordingEventChannel",
    "RecordingNotifier",
    "make_choices",
]
