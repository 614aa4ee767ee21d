"""
@PURPOSE: 对外事件的数据结构(进度, 完成, 错误, 阶段切换)
@OUTLINE:
  - class WorkflowEvent: 事件基类
  - class UpdateProgressEvent: update_progress
  - class PostingCompleteEvent: posting_complete
  - class PostingErrorEvent: posting_error
  - class PhaseChangedEvent: workflow_step_changed
@GOTCHAS:
  - 序列化使用驼峰别名并省略 None(没有 requiresConfirmation 时不输出该键)
@DEPENDENCIES:
  - 外部: pydantic
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WorkflowEvent(BaseModel):
    """事件基类."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: str
    platform: str = "craigslist"

    def to_message(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ProgressInfo(BaseModel):
    current: int = Field(ge=0, le=100)
    total: int = 100


class UpdateProgressEvent(WorkflowEvent):
    action: Literal["update_progress"] = "update_progress"
    progress: ProgressInfo
    status: str = "posting"
    message: str = ""


class PostingCompleteEvent(WorkflowEvent):
    action: Literal["posting_complete"] = "posting_complete"
    requires_confirmation: bool | None = None


class PostingErrorEvent(WorkflowEvent):
    action: Literal["posting_error"] = "posting_error"
    error: str


class PhaseChangedEvent(WorkflowEvent):
    action: Literal["workflow_step_changed"] = "workflow_step_changed"
    step: str
