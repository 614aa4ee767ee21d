"""
@PURPOSE: 步骤执行结果(StepOutcome)与重试策略(RetryPolicy)
@OUTLINE:
  - class StepStatus: 结果状态(success/failure/skipped)
  - @dataclass StepOutcome: 步骤处理器返回值, 贯穿重试执行器与编排器
  - class RetryKind: 重试类型(hard/soft)
  - @dataclass RetryPolicy: 重试策略(次数, 初始延迟, 退避因子, 延迟上限)
@GOTCHAS:
  - 结果以值传递, 不用异常表达重试耗尽
  - cancelled 结果表示页面已跳转, 编排器只保存标记, 不做任何后续动作
@DEPENDENCIES:
  - 内部: autopost.errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..errors import AutopostError, ErrorKind, NavigationCancelled


class StepStatus(str, Enum):
    """步骤结果状态."""

    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


@dataclass
class StepOutcome:
    """步骤执行结果.

    Attributes:
        status: 结果状态
        detail: 说明(失败时为错误信息)
        flags: 本步骤产生的完成标记
        error_kind: 失败类型
        completed: 是否已检测到发布完成
        requires_confirmation: 完成但需要邮件确认
        cancelled: 页面在等待期间跳转

    Examples:
        >>> StepOutcome.success("ok", {"titleFilled": True}).ok
        True
        >>> StepOutcome.failure("Timeout").ok
        False
    """

    status: StepStatus
    detail: str = ""
    flags: dict[str, bool] = field(default_factory=dict)
    error_kind: ErrorKind | None = None
    completed: bool = False
    requires_confirmation: bool = False
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.status is not StepStatus.FAILURE

    @classmethod
    def success(
        cls,
        detail: str = "",
        flags: dict[str, bool] | None = None,
        *,
        completed: bool = False,
        requires_confirmation: bool = False,
    ) -> StepOutcome:
        return cls(
            status=StepStatus.SUCCESS,
            detail=detail,
            flags=dict(flags or {}),
            completed=completed,
            requires_confirmation=requires_confirmation,
        )

    @classmethod
    def failure(
        cls,
        detail: str,
        kind: ErrorKind = ErrorKind.UNEXPECTED,
        flags: dict[str, bool] | None = None,
    ) -> StepOutcome:
        return cls(
            status=StepStatus.FAILURE,
            detail=detail,
            flags=dict(flags or {}),
            error_kind=kind,
        )

    @classmethod
    def skipped(cls, detail: str = "", flags: dict[str, bool] | None = None) -> StepOutcome:
        return cls(status=StepStatus.SKIPPED, detail=detail, flags=dict(flags or {}))

    @classmethod
    def from_error(cls, error: AutopostError, flags: dict[str, bool] | None = None) -> StepOutcome:
        """把工作流异常转换为结果; 页面跳转视为取消而不是失败."""
        if isinstance(error, NavigationCancelled):
            outcome = cls.skipped(error.message, flags)
            outcome.cancelled = True
            outcome.error_kind = error.kind
            return outcome
        return cls.failure(error.message, error.kind, flags)


class RetryKind(str, Enum):
    """重试类型."""

    HARD = "hard"
    SOFT = "soft"


@dataclass(frozen=True)
class RetryPolicy:
    """重试策略.

    ``max_retries`` 是总调用次数上限; 两次调用之间等待 ``delay``,
    随后 ``delay = min(delay * backoff_factor, delay_cap_ms)``.

    Examples:
        >>> policy = RetryPolicy.hard()
        >>> policy.next_delay(1000)
        1200
        >>> policy.next_delay(2800)
        3000
    """

    kind: RetryKind
    max_retries: int
    base_delay_ms: int
    backoff_factor: float = 1.2
    delay_cap_ms: int = 3000

    def next_delay(self, delay_ms: int) -> int:
        return min(round(delay_ms * self.backoff_factor), self.delay_cap_ms)

    @classmethod
    def hard(cls, max_retries: int = 2, base_delay_ms: int = 1000) -> RetryPolicy:
        return cls(RetryKind.HARD, max_retries, base_delay_ms)

    @classmethod
    def soft(cls, max_retries: int = 1, base_delay_ms: int = 800) -> RetryPolicy:
        return cls(RetryKind.SOFT, max_retries, base_delay_ms)
