"""
@PURPOSE: Pytest配置文件, 配置测试环境和共享 fixtures
@OUTLINE:
  - pytest_configure(): 注册标记
  - Mock fixtures: fake_sink, recording_channel, recording_notifier, fake_clock
  - 组件 fixtures: reporter, waiter, state_store, step_context
  - Data fixtures: sample_payload
@DEPENDENCIES:
  - 外部: pytest, pytest-asyncio
  - 内部: tests.mocks
"""

import sys
from pathlib import Path

import pytest

# 添加项目根目录到Python路径
app_root = Path(__file__).parent
if str(app_root) not in sys.path:
    sys.path.insert(0, str(app_root))

from autopost.core.progress_reporter import ProgressReporter
from autopost.core.run_state import InMemoryRunStateStore
from autopost.models.run import ListingPayload
from autopost.steps.base import StepContext
from autopost.utils.page_waiter import PageWaiter, WaitStrategy
from tests.mocks import FakeActionSink, FakeClock, RecordingEventChannel, RecordingNotifier

CATEGORY_URL = "https://post.craigslist.org/k/abc123/sfo?s=cat"


def pytest_configure(config):
    """配置pytest."""
    config.addinivalue_line("markers", "integration: 标记集成测试（需要浏览器环境）")


# ============================================================
# Mock Fixtures - 用于单元测试, 无需真实浏览器环境
# ============================================================


@pytest.fixture
def fake_sink() -> FakeActionSink:
    """提供位于类目页的模拟页面."""
    return FakeActionSink(url=CATEGORY_URL)


@pytest.fixture
def recording_channel() -> RecordingEventChannel:
    return RecordingEventChannel()


@pytest.fixture
def recording_notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def fake_clock() -> FakeClock:
    """提供可推进的时钟和不阻塞的 sleep."""
    return FakeClock()


@pytest.fixture
def reporter(recording_channel) -> ProgressReporter:
    return ProgressReporter(recording_channel)


@pytest.fixture
def waiter(fake_sink, fake_clock) -> PageWaiter:
    """零稳定等待, 轮询使用假时钟."""
    strategy = WaitStrategy(poll_timeout_ms=12000, poll_interval_ms=500, settle_ms=0)
    return PageWaiter(fake_sink, strategy, sleep=fake_clock.sleep, clock=fake_clock.monotonic)


@pytest.fixture
def state_store() -> InMemoryRunStateStore:
    return InMemoryRunStateStore()


# ============================================================
# Data Fixtures
# ============================================================


@pytest.fixture
def sample_payload() -> ListingPayload:
    """提供一条典型的发布数据(扩展端驼峰字段)."""
    return ListingPayload.model_validate(
        {
            "id": "listing-001",
            "title": "Oak dining table",
            "price": "$1,250",
            "category": "furniture",
            "condition": "like new",
            "description": "Solid oak table, seats six.",
            "zipCode": "94118",
            "city": "San Francisco",
            "images": [],
        }
    )


@pytest.fixture
def step_context(sample_payload, fake_sink, reporter, recording_notifier, waiter) -> StepContext:
    return StepContext(
        payload=sample_payload,
        sink=fake_sink,
        reporter=reporter,
        notifier=recording_notifier,
        waiter=waiter,
        flags={},
        run_id="listing-001",
    )
