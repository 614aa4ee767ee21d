"""
@PURPOSE: 定义发布数据(ListingPayload)与工作流运行状态(WorkflowRun)
@OUTLINE:
  - class ListingPayload: 单条发布数据, 兼容扩展端驼峰字段
  - class WorkflowRun: 一次提交的运行状态, 每次页面加载从持久化状态重建
  - MAX_ATTEMPTS: 最大工作流尝试次数
@GOTCHAS:
  - 持久化字段名沿用扩展端的存储键(workflowPhase, attemptCount ...)
  - 终止后会丢弃 payload, 只保留 submission_id 作为墓碑
  - 未提供 id 时按内容派生稳定的 listing_id, 同一数据每次触发得到同一提交
@DEPENDENCIES:
  - 外部: pydantic
  - 内部: .phase, autopost.data_processor.field_normalizer
@RELATED: autopost/core/run_state.py, autopost/core/orchestrator.py
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..data_processor.field_normalizer import clean_price, extract_zip
from .phase import Phase

MAX_ATTEMPTS = 3


class ListingPayload(BaseModel):
    """发布数据.

    同时接受 snake_case 与扩展端发送的 camelCase 字段(``zipCode``,
    ``crossStreet``, ``isDealer`` ...), 以及简写 ``zip``.

    Examples:
        >>> payload = ListingPayload.model_validate({"title": "Honda Civic", "zip": "94118"})
        >>> payload.postal_code
        '94118'
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    listing_id: str = Field(default="", description="提交标识(缺省时由内容派生)")
    platform: str = Field(default="craigslist", description="目标平台")
    title: str = Field(default="", description="标题")
    price: str | None = Field(default=None, description="价格(原始文本)")
    category: str | None = Field(default=None, description="类目")
    condition: str | None = Field(default=None, description="成色")
    description: str = Field(default="", description="描述")
    zip_code: str | None = Field(default=None, description="邮编")
    images: list[str] = Field(default_factory=list, description="图片URL或本地路径")

    city: str | None = None
    location: str | None = None
    neighborhood: str | None = None
    make: str | None = None
    brand: str | None = None
    model: str | None = None
    size: str | None = None
    dimensions: str | None = None
    address: str | None = None
    cross_street: str | None = None
    is_dealer: bool = False
    delivery_available: bool = False

    @model_validator(mode="before")
    @classmethod
    def _accept_short_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if "zip" in data and not (data.get("zipCode") or data.get("zip_code")):
                data["zip_code"] = data.pop("zip")
            if "id" in data and not (data.get("listingId") or data.get("listing_id")):
                data["listing_id"] = str(data.pop("id"))
        return data

    @model_validator(mode="after")
    def _derive_listing_id(self) -> ListingPayload:
        if not self.listing_id:
            identity = {
                "platform": self.platform,
                "title": self.title,
                "price": self.price,
                "category": self.category,
                "description": self.description,
                "zip": self.zip_code,
                "city": self.city,
                "location": self.location,
            }
            digest = hashlib.sha1(json.dumps(identity, sort_keys=True).encode("utf-8")).hexdigest()
            self.listing_id = f"auto-{digest[:16]}"
        return self

    @field_validator("price", "zip_code", mode="before")
    @classmethod
    def _number_to_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def clean_price(self) -> str:
        return clean_price(self.price)

    @property
    def postal_code(self) -> str:
        return self.zip_code or extract_zip(self.location)

    @property
    def region_hint(self) -> str:
        return (self.city or self.location or "").lower()

    @property
    def manufacturer(self) -> str | None:
        return self.make or self.brand

    @property
    def size_text(self) -> str | None:
        return self.size or self.dimensions

    def matches_host(self, host: str) -> bool:
        """判断当前页面主机是否属于本条数据的目标平台."""
        return bool(self.platform) and self.platform.lower() in host.lower()


class WorkflowRun(BaseModel):
    """一次提交的运行状态.

    Attributes:
        payload: 发布数据(终止后清空)
        submission_id: 提交标识(终止后仍保留)
        attempt_count: 已开始的完整尝试次数
        max_attempts: 最大尝试次数
        current_phase: 当前阶段
        completion_flags: 子操作完成标记
        last_error: 最后错误
        error_reported: posting_error 是否已上报
        requires_confirmation: 是否需要邮件确认
    """

    payload: ListingPayload | None = None
    submission_id: str | None = None
    attempt_count: int = Field(default=0, ge=0)
    max_attempts: int = Field(default=MAX_ATTEMPTS, ge=1)
    current_phase: Phase = Phase.IDLE
    completion_flags: dict[str, bool] = Field(default_factory=dict)
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    last_error: str | None = None
    error_reported: bool = False
    requires_confirmation: bool = False

    @classmethod
    def start(cls, payload: ListingPayload, max_attempts: int = MAX_ATTEMPTS) -> WorkflowRun:
        """为新的提交创建运行状态."""
        return cls(payload=payload, submission_id=payload.listing_id, max_attempts=max_attempts)

    @property
    def is_terminal(self) -> bool:
        return self.current_phase.is_terminal

    @property
    def attempts_exhausted(self) -> bool:
        return self.attempt_count >= self.max_attempts

    def advance_to(self, phase: Phase) -> bool:
        """向前推进阶段.

        INITIAL_PAGE 代表新一轮尝试, 总是接受; 其余阶段只允许不后退.

        Returns:
            阶段是否发生了变化
        """
        if self.is_terminal or phase.is_terminal:
            return False
        if phase is Phase.INITIAL_PAGE or phase.order >= self.current_phase.order:
            changed = phase is not self.current_phase
            self.current_phase = phase
            self.touch()
            return changed
        return False

    def finish(self, phase: Phase, error: str | None = None) -> None:
        """进入终止阶段, 丢弃发布数据并保留提交标识."""
        self.current_phase = phase
        self.last_error = error
        if self.payload is not None:
            self.submission_id = self.payload.listing_id
        self.payload = None
        self.touch()

    def record_flags(self, flags: dict[str, bool]) -> None:
        self.completion_flags.update(flags)
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.now().isoformat()

    def to_state(self) -> dict[str, Any]:
        """转换为持久化记录."""
        return {
            "workflowPhase": self.current_phase.value,
            "submissionPayload": (
                self.payload.model_dump(mode="json") if self.payload is not None else None
            ),
            "submissionId": self.submission_id,
            "attemptCount": self.attempt_count,
            "completionFlags": dict(self.completion_flags),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "lastError": self.last_error,
            "errorReported": self.error_reported,
            "requiresConfirmation": self.requires_confirmation,
        }

    @classmethod
    def from_state(cls, state: dict[str, Any], max_attempts: int = MAX_ATTEMPTS) -> WorkflowRun:
        """从持久化记录重建."""
        raw_payload = state.get("submissionPayload")
        payload = ListingPayload.model_validate(raw_payload) if raw_payload else None
        submission_id = state.get("submissionId") or (payload.listing_id if payload else None)
        now = datetime.now().isoformat()
        return cls(
            payload=payload,
            submission_id=submission_id,
            attempt_count=int(state.get("attemptCount") or 0),
            max_attempts=max_attempts,
            current_phase=Phase.parse(state.get("workflowPhase")),
            completion_flags=dict(state.get("completionFlags") or {}),
            created_at=state.get("createdAt") or now,
            updated_at=state.get("updatedAt") or now,
            last_error=state.get("lastError"),
            error_reported=bool(state.get("errorReported", False)),
            requires_confirmation=bool(state.get("requiresConfirmation", False)),
        )

    def to_status(self) -> dict[str, Any]:
        """GET_STATUS 响应体."""
        return {
            "phase": self.current_phase.value,
            "completionFlags": dict(self.completion_flags),
            "attemptCount": self.attempt_count,
        }
