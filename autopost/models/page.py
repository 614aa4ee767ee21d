"""
@PURPOSE: 页面快照与可选项的值对象, 供环境探测和匹配函数使用
@OUTLINE:
  - @dataclass ChoiceOption: 单选项/下拉选项/链接
  - @dataclass SelectState: 下拉框当前值与选项
  - @dataclass PageEnvironment: 页面环境快照(URL + 已出现的标记)
@GOTCHAS:
  - 这些对象不持有 Playwright 句柄, 便于纯函数测试
@DEPENDENCIES:
  - 外部: 无
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlparse


@dataclass(frozen=True)
class ChoiceOption:
    """页面上的一个可选项.

    Attributes:
        value: 控件 value 属性
        label: 可见文本
        index: 在同类控件中的位置(用于回点)
    """

    value: str
    label: str
    index: int = 0

    @property
    def normalized_label(self) -> str:
        return " ".join(self.label.lower().split())


@dataclass(frozen=True)
class SelectState:
    """下拉框状态."""

    value: str
    options: tuple[ChoiceOption, ...] = ()


@dataclass(frozen=True)
class PageEnvironment:
    """页面环境快照.

    Attributes:
        url: 当前地址
        markers: 页面上已出现的逻辑标记名
    """

    url: str = ""
    markers: frozenset[str] = field(default_factory=frozenset)

    @property
    def host(self) -> str:
        return (urlparse(self.url).hostname or "").lower()

    @property
    def step_param(self) -> str | None:
        """URL 中的 ``s`` 步骤参数."""
        values = parse_qs(urlparse(self.url).query).get("s")
        return values[0] if values else None

    def has(self, marker: str) -> bool:
        return marker in self.markers
