"""
@PURPOSE: 测试进度上报器 - 事件格式, 通道故障容错, JSONL 通道, 通道工厂
@OUTLINE:
  - TestProgressReporter: 四类事件的消息格式
  - TestJsonlEventChannel: 文件追加
  - TestBuildChannel: 根据配置选择通道
@DEPENDENCIES:
  - 外部: pytest, pytest-asyncio
  - 内部: autopost.core.progress_reporter
"""

import json

import pytest

from autopost.core.progress_reporter import (
    JsonlEventChannel,
    LogEventChannel,
    ProgressReporter,
    WebhookEventChannel,
    build_channel,
)
from autopost.models.phase import Phase
from config.settings import EventsConfig
from tests.mocks import RecordingEventChannel


class TestProgressReporter:
    """测试事件格式"""

    @pytest.mark.asyncio
    async def test_report_uses_phase_percentage(self, reporter, recording_channel):
        await reporter.report(Phase.CATEGORY_SELECTION, message="Selecting category...")
        message = recording_channel.messages[-1]
        assert message["action"] == "update_progress"
        assert message["platform"] == "craigslist"
        assert message["progress"] == {"current": 40, "total": 100}
        assert message["status"] == "posting"
        assert message["message"] == "Selecting category..."

    @pytest.mark.asyncio
    async def test_report_with_explicit_percent(self, reporter, recording_channel):
        await reporter.report(Phase.FORM_FILL, 55, "Filling price...")
        assert recording_channel.messages[-1]["progress"]["current"] == 55

    @pytest.mark.asyncio
    async def test_phase_changed(self, reporter, recording_channel):
        await reporter.phase_changed(Phase.HOOD_SELECTION)
        assert recording_channel.messages == [
            {"action": "workflow_step_changed", "platform": "craigslist", "step": "hood_selection"}
        ]

    @pytest.mark.asyncio
    async def test_complete(self, reporter, recording_channel):
        await reporter.complete()
        await reporter.complete(requires_confirmation=True)
        first, second = recording_channel.of("posting_complete")
        assert "requiresConfirmation" not in first
        assert second["requiresConfirmation"] is True

    @pytest.mark.asyncio
    async def test_error(self, reporter, recording_channel):
        await reporter.error("Category Selection: Could not find category options")
        assert recording_channel.of("posting_error") == [
            {
                "action": "posting_error",
                "platform": "craigslist",
                "error": "Category Selection: Could not find category options",
            }
        ]

    @pytest.mark.asyncio
    async def test_channel_failure_is_swallowed(self):
        reporter = ProgressReporter(RecordingEventChannel(fail=True))
        await reporter.report(Phase.PREVIEW)
        await reporter.error("boom")

    def test_default_channel(self):
        assert isinstance(ProgressReporter().channel, LogEventChannel)


class TestJsonlEventChannel:
    """测试 JSONL 通道"""

    @pytest.mark.asyncio
    async def test_appends_one_line_per_event(self, tmp_path):
        path = tmp_path / "events" / "events.jsonl"
        reporter = ProgressReporter(JsonlEventChannel(path))
        await reporter.report(Phase.INITIAL_PAGE, message="Starting Craigslist posting...")
        await reporter.complete()

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        records = [json.loads(line) for line in lines]
        assert [r["action"] for r in records] == ["update_progress", "posting_complete"]
        assert all("timestamp" in r for r in records)


class TestBuildChannel:
    """测试通道工厂"""

    def test_log(self):
        assert isinstance(build_channel(EventsConfig()), LogEventChannel)

    def test_jsonl(self, tmp_path):
        channel = build_channel(EventsConfig(channel="jsonl", events_file=str(tmp_path / "e.jsonl")))
        assert isinstance(channel, JsonlEventChannel)
        assert channel.path == tmp_path / "e.jsonl"

    def test_webhook(self):
        channel = build_channel(EventsConfig(channel="webhook", webhook_url="https://example.com/hook"))
        assert isinstance(channel, WebhookEventChannel)
        assert channel.webhook_url == "https://example.com/hook"

    @pytest.mark.asyncio
    async def test_webhook_without_url_is_noop(self):
        assert await WebhookEventChannel("").publish({"action": "posting_complete"}) is False

    def test_invalid_channel(self):
        with pytest.raises(ValueError):
            EventsConfig(channel="carrier-pigeon")
