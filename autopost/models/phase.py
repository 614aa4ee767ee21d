"""
@PURPOSE: 定义发布向导的阶段枚举及其顺序, 进度百分比和显示名称
@OUTLINE:
  - class Phase: 阶段枚举(线性有序, 部分可跳过)
  - PHASE_ORDER: 阶段顺序
  - SKIPPABLE_PHASES: 可被跳过的阶段
  - TERMINAL_PHASES: 终止阶段
  - PHASE_PROGRESS: 各阶段固定进度百分比
@GOTCHAS:
  - COMPLETED 与 ERROR 是吸收态, 到达后不再分派任何步骤
  - 进度百分比是固定常量, 与耗时无关
@DEPENDENCIES:
  - 外部: 无
"""

from __future__ import annotations

from enum import Enum


class Phase(str, Enum):
    """发布向导阶段."""

    IDLE = "idle"
    INITIAL_PAGE = "initial_page"
    SUBAREA_SELECTION = "subarea_selection"
    HOOD_SELECTION = "hood_selection"
    TYPE_SELECTION = "type_selection"
    CATEGORY_SELECTION = "category_selection"
    FORM_FILL = "form_fill"
    IMAGE_UPLOAD = "image_upload"
    MAP_LOCATION = "map_location"
    PREVIEW = "preview"
    PUBLISHING = "publishing"
    COMPLETED = "completed"
    ERROR = "error"

    @classmethod
    def parse(cls, value: str | Phase | None) -> Phase:
        """宽松解析, 未知值返回 IDLE."""
        if isinstance(value, Phase):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.IDLE

    @property
    def order(self) -> int:
        return PHASE_ORDER.index(self)

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES

    @property
    def label(self) -> str:
        """面向用户的阶段名(用于通知)."""
        return self.value.replace("_", " ").title()


PHASE_ORDER: tuple[Phase, ...] = tuple(Phase)

SKIPPABLE_PHASES: frozenset[Phase] = frozenset(
    {Phase.HOOD_SELECTION, Phase.MAP_LOCATION, Phase.PREVIEW}
)

TERMINAL_PHASES: frozenset[Phase] = frozenset({Phase.COMPLETED, Phase.ERROR})

PHASE_PROGRESS: dict[Phase, int] = {
    Phase.INITIAL_PAGE: 5,
    Phase.SUBAREA_SELECTION: 10,
    Phase.HOOD_SELECTION: 20,
    Phase.TYPE_SELECTION: 30,
    Phase.CATEGORY_SELECTION: 40,
    Phase.FORM_FILL: 50,
    Phase.IMAGE_UPLOAD: 80,
    Phase.MAP_LOCATION: 88,
    Phase.PREVIEW: 92,
    Phase.PUBLISHING: 95,
    Phase.COMPLETED: 100,
}
