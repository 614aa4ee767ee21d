"""
@PURPOSE: 核心工作流层包初始化
@OUTLINE:
  - 导出核心组件: 环境探测, 重试执行, 状态存储, 进度上报, 编排器, 命令路由
@DEPENDENCIES:
  - 内部: autopost.core.*
"""

from .environment_probe import DEFAULT_MARKER_RULES, EnvironmentProbe, MarkerRule
from .message_router import MessageAction, MessageRouter
from .orchestrator import (
    DEFAULT_PHASE_POLICIES,
    RunResult,
    WorkflowOrchestrator,
    build_phase_policies,
)
from .progress_reporter import (
    EventChannel,
    JsonlEventChannel,
    LogEventChannel,
    ProgressReporter,
    WebhookEventChannel,
    build_channel,
)
from .retry_executor import RetryExecutor
from .run_state import InMemoryRunStateStore, JsonFileRunStateStore, RunStateStore

__all__ = [
    "DEFAULT_MARKER_RULES",
    "DEFAULT_PHASE_POLICIES",
    "EnvironmentProbe",
    "EventChannel",
    "InMemoryRunStateStore",
    "JsonFileRunStateStore",
    "JsonlEventChannel",
    "LogEventChannel",
    "MarkerRule",
    "MessageAction",
    "MessageRouter",
    "ProgressReporter",
    "RetryExecutor",
    "RunResult",
    "RunStateStore",
    "WebhookEventChannel",
    "WorkflowOrchestrator",
    "build_channel",
    "build_phase_policies",
]
