"""
@PURPOSE: 环境探测器 - 根据当前地址和页面标记判定发布向导所处阶段
@OUTLINE:
  - STEP_PARAM_PHASES: URL 步骤参数 -> 阶段
  - @dataclass MarkerRule: 页面标记规则
  - DEFAULT_MARKER_RULES: 默认标记规则(按优先级)
  - class EnvironmentProbe: 探测器
    - def detect(): 纯函数判定阶段, 永不抛出
    - async def capture(): 通过 ActionSink 采集页面快照
@GOTCHAS:
  - 主信号是 URL 中的 s 参数; 没有参数时才看页面标记
  - 任何内部错误都返回 IDLE
  - 标记规则可注入, 测试不需要真实页面
@DEPENDENCIES:
  - 外部: loguru
  - 内部: autopost.models, autopost.browser.selectors
@RELATED: autopost/core/orchestrator.py
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger

from ..browser.selectors import (
    MARKER_CATEGORY_PICKER,
    MARKER_INITIAL_PICKER,
    MARKER_SELECTORS,
    MARKER_TITLE_INPUT,
    MARKER_TYPE_PICKER,
)
from ..models.page import PageEnvironment
from ..models.phase import Phase

POSTING_HOST = "post.craigslist.org"

STEP_PARAM_PHASES: dict[str, Phase] = {
    "subarea": Phase.SUBAREA_SELECTION,
    "hood": Phase.HOOD_SELECTION,
    "type": Phase.TYPE_SELECTION,
    "cat": Phase.CATEGORY_SELECTION,
    "edit": Phase.FORM_FILL,
    "geotag": Phase.MAP_LOCATION,
    "map": Phase.MAP_LOCATION,
    "editimage": Phase.IMAGE_UPLOAD,
    "images": Phase.IMAGE_UPLOAD,
    "preview": Phase.PREVIEW,
    "mailoop": Phase.PUBLISHING,
    "redirect": Phase.PUBLISHING,
}


@dataclass(frozen=True)
class MarkerRule:
    """页面标记规则: 标记存在即判定为对应阶段."""

    marker: str
    phase: Phase


DEFAULT_MARKER_RULES: tuple[MarkerRule, ...] = (
    MarkerRule(MARKER_TITLE_INPUT, Phase.FORM_FILL),
    MarkerRule(MARKER_CATEGORY_PICKER, Phase.CATEGORY_SELECTION),
    MarkerRule(MARKER_TYPE_PICKER, Phase.TYPE_SELECTION),
)


class EnvironmentProbe:
    """环境探测器.

    Examples:
        >>> probe = EnvironmentProbe()
        >>> probe.detect(PageEnvironment(url="https://post.craigslist.org/k/abc/sfo?s=cat"))
        <Phase.CATEGORY_SELECTION: 'category_selection'>
    """

    def __init__(
        self,
        marker_rules: Sequence[MarkerRule] | None = None,
        step_phases: Mapping[str, Phase] | None = None,
        posting_host: str = POSTING_HOST,
    ):
        """初始化探测器.

        Args:
            marker_rules: 标记规则(按优先级排序)
            step_phases: 步骤参数映射表
            posting_host: 发布站点主机名
        """
        self.marker_rules = tuple(DEFAULT_MARKER_RULES if marker_rules is None else marker_rules)
        self.step_phases = dict(STEP_PARAM_PHASES if step_phases is None else step_phases)
        self.posting_host = posting_host

    def detect(self, env: PageEnvironment) -> Phase:
        """判定当前阶段.

        Args:
            env: 页面环境快照

        Returns:
            阶段; 无法识别或内部错误时为 IDLE
        """
        try:
            return self._detect(env)
        except Exception as exc:
            logger.error(f"阶段探测失败, 按 idle 处理: {exc}")
            return Phase.IDLE

    def _detect(self, env: PageEnvironment) -> Phase:
        step = env.step_param

        if not step and self.posting_host in env.host and env.has(MARKER_INITIAL_PICKER):
            return Phase.INITIAL_PAGE

        if step and step in self.step_phases:
            return self.step_phases[step]

        for rule in self.marker_rules:
            if env.has(rule.marker):
                return rule.phase

        return Phase.IDLE

    async def capture(
        self,
        sink: Any,
        marker_selectors: Mapping[str, Sequence[str]] | None = None,
    ) -> PageEnvironment:
        """通过 ActionSink 采集页面快照(地址 + 已出现的标记)."""
        selectors = MARKER_SELECTORS if marker_selectors is None else marker_selectors
        url = await sink.current_url()
        present = set()
        for marker, candidates in selectors.items():
            if await sink.has_any(candidates):
                present.add(marker)
        env = PageEnvironment(url=url, markers=frozenset(present))
        logger.debug(f"页面快照: url={url}, markers={sorted(present)}")
        return env
