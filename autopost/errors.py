"""
@PURPOSE: 定义工作流相关的错误分类和自定义异常
@OUTLINE:
  - class ErrorKind: 错误类型枚举(写入 StepOutcome / 事件)
  - class AutopostError: 异常基类
  - class ActionTargetNotFound: 页面操作目标未找到
  - class ValidationBlocked: 宿主页面报告表单校验错误
  - class ExternalFetchFailure: 外部资源(图片)获取失败
  - class PhaseTimeout: 阶段等待超时
  - class NavigationCancelled: 轮询期间页面已跳转
  - class AttemptLimitExceeded: 超过最大工作流尝试次数
  - class UnrecognizedPhase: 未识别阶段(信息性)
@GOTCHAS:
  - 步骤处理器不应向外抛出这些异常, 而是转换为 StepOutcome.failure()
  - UnrecognizedPhase 不是错误, 仅用于日志与通知
@DEPENDENCIES:
  - 外部: 无
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """错误类型."""

    ACTION_TARGET_NOT_FOUND = "action_target_not_found"
    VALIDATION_BLOCKED = "validation_blocked"
    EXTERNAL_FETCH_FAILURE = "external_fetch_failure"
    PHASE_TIMEOUT = "phase_timeout"
    NAVIGATION_CANCELLED = "navigation_cancelled"
    ATTEMPT_LIMIT_EXCEEDED = "attempt_limit_exceeded"
    UNRECOGNIZED_PHASE = "unrecognized_phase"
    UNEXPECTED = "unexpected"


class AutopostError(Exception):
    """工作流异常基类."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, *, phase: str | None = None) -> None:
        self.message = message
        self.phase = phase
        super().__init__(message)


class ActionTargetNotFound(AutopostError):
    """页面上找不到要操作的控件."""

    kind = ErrorKind.ACTION_TARGET_NOT_FOUND


class ValidationBlocked(AutopostError):
    """宿主页面报告了表单校验错误.

    Attributes:
        errors: 页面上可见的错误文本
    """

    kind = ErrorKind.VALIDATION_BLOCKED

    def __init__(self, errors: list[str], *, phase: str | None = None) -> None:
        self.errors = errors
        super().__init__(f"Form errors: {'; '.join(errors)}", phase=phase)


class ExternalFetchFailure(AutopostError):
    """外部资源获取失败(如附件图片下载)."""

    kind = ErrorKind.EXTERNAL_FETCH_FAILURE


class PhaseTimeout(AutopostError):
    """等待页面标记超时.

    Attributes:
        description: 等待内容描述
        timeout_ms: 超时时间(毫秒)
    """

    kind = ErrorKind.PHASE_TIMEOUT

    def __init__(self, description: str, timeout_ms: int, *, phase: str | None = None) -> None:
        self.description = description
        self.timeout_ms = timeout_ms
        super().__init__(f"Timed out after {timeout_ms}ms waiting for {description}", phase=phase)


class NavigationCancelled(AutopostError):
    """轮询期间用户离开了当前页面.

    Attributes:
        origin: 轮询开始时的地址
        current: 检测到的新地址
    """

    kind = ErrorKind.NAVIGATION_CANCELLED

    def __init__(self, origin: str, current: str) -> None:
        self.origin = origin
        self.current = current
        super().__init__(f"Navigated away from {origin} to {current}")


class AttemptLimitExceeded(AutopostError):
    """超过最大工作流尝试次数."""

    kind = ErrorKind.ATTEMPT_LIMIT_EXCEEDED

    def __init__(self, attempts: int, max_attempts: int) -> None:
        self.attempts = attempts
        self.max_attempts = max_attempts
        super().__init__("Maximum attempts exceeded")


class UnrecognizedPhase(AutopostError):
    """当前页面无法识别为任何已知阶段(信息性)."""

    kind = ErrorKind.UNRECOGNIZED_PHASE

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"No workflow phase recognised at {url}")


__all__ = [
    "ActionTargetNotFound",
    "AttemptLimitExceeded",
    "AutopostError",
    "ErrorKind",
    "ExternalFetchFailure",
    "NavigationCancelled",
    "PhaseTimeout",
    "UnrecognizedPhase",
    "ValidationBlocked",
]
