"""
@PURPOSE: 数据模型包, 导出阶段, 运行状态, 结果与事件模型
"""

from .events import (
    PhaseChangedEvent,
    PostingCompleteEvent,
    PostingErrorEvent,
    ProgressInfo,
    UpdateProgressEvent,
    WorkflowEvent,
)
from .outcome import RetryKind, RetryPolicy, StepOutcome, StepStatus
from .page import ChoiceOption, PageEnvironment, SelectState
from .phase import (
    PHASE_ORDER,
    PHASE_PROGRESS,
    SKIPPABLE_PHASES,
    TERMINAL_PHASES,
    Phase,
)
from .run import MAX_ATTEMPTS, ListingPayload, WorkflowRun

__all__ = [
    "MAX_ATTEMPTS",
    "PHASE_ORDER",
    "PHASE_PROGRESS",
    "SKIPPABLE_PHASES",
    "TERMINAL_PHASES",
    "ChoiceOption",
    "ListingPayload",
    "PageEnvironment",
    "Phase",
    "PhaseChangedEvent",
    "PostingCompleteEvent",
    "PostingErrorEvent",
    "ProgressInfo",
    "RetryKind",
    "RetryPolicy",
    "SelectState",
    "StepOutcome",
    "StepStatus",
    "UpdateProgressEvent",
    "WorkflowEvent",
    "WorkflowRun",
]
