"""
@PURPOSE: 选项匹配的纯函数(打分选择与必填下拉框的三级回退)
@OUTLINE:
  - def tokenize_label(): 目标标签分词
  - def score_option(): 计算候选选项得分
  - def pick_best_option(): 选出得分严格最高的选项
  - def resolve_required_option(): 必填下拉框的分级解析
  - LANGUAGE_WHITELIST: 语言下拉框的精确值白名单
@GOTCHAS:
  - 得分相同时保留先出现的候选
  - 三级回退按顺序尝试, 第一个命中的层级胜出, 即使后面的层级也能命中
@DEPENDENCIES:
  - 内部: autopost.models.page
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence

from ..models.page import ChoiceOption, SelectState

EXACT_MATCH_BONUS = 10
MIN_TOKEN_LENGTH = 3

LANGUAGE_WHITELIST: tuple[str, ...] = ("en", "english", "eng", "5", "1")
PLACEHOLDER_VALUES: frozenset[str] = frozenset({"", "-"})

TIER_ALREADY_SET = 0
TIER_EXACT_VALUE = 1
TIER_LABEL_MATCH = 2
TIER_FIRST_VALID = 3

_TOKEN_SPLIT = re.compile(r"[\s&]+")


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def tokenize_label(label: str) -> list[str]:
    """按空白和 ``&`` 切分目标标签, 丢弃长度不足3的片段.

    Examples:
        >>> tokenize_label("cars & trucks")
        ['cars', 'trucks']
        >>> tokenize_label("tv & video")
        ['video']
    """
    return [token for token in _TOKEN_SPLIT.split(label.lower()) if len(token) >= MIN_TOKEN_LENGTH]


def score_option(target: str, candidate: str) -> int:
    """给候选标签打分.

    规则:
        - 目标的每个分词出现在候选中 +1
        - 完整目标标签出现在候选中 +10

    Examples:
        >>> score_option("general for sale", "general for sale")
        13
        >>> score_option("general for sale", "free stuff")
        0
    """
    target_text = _normalize(target)
    candidate_text = _normalize(candidate)
    if not target_text or not candidate_text:
        return 0

    score = sum(1 for token in tokenize_label(target_text) if token in candidate_text)
    if target_text in candidate_text:
        score += EXACT_MATCH_BONUS
    return score


def pick_best_option(
    target: str,
    options: Sequence[ChoiceOption],
    fallback: Callable[[ChoiceOption], bool] | None = None,
) -> ChoiceOption | None:
    """选出得分严格最高的选项.

    Args:
        target: 目标标签
        options: 候选选项(按页面顺序)
        fallback: 没有候选得分大于0时, 用于挑选默认选项的条件

    Returns:
        选中的选项; 没有命中且没有默认选项时返回 None
    """
    best: ChoiceOption | None = None
    best_score = 0
    for option in options:
        score = score_option(target, option.label)
        if score > best_score:
            best, best_score = option, score

    if best is not None:
        return best
    if fallback is not None:
        return next((option for option in options if fallback(option)), None)
    return None


def is_general_for_sale(option: ChoiceOption) -> bool:
    label = option.normalized_label
    return "general" in label and "sale" in label


def resolve_required_option(
    state: SelectState,
    whitelist: Iterable[str] = LANGUAGE_WHITELIST,
    label_keyword: str = "english",
) -> tuple[ChoiceOption | None, int | None]:
    """必填下拉框的分级解析.

    顺序:
        0. 当前值已是有效值, 保持不变
        1. 白名单中的精确值(按白名单顺序)
        2. 选项文本包含关键字(不区分大小写)
        3. 第一个非空, 非占位的选项

    Returns:
        (选项, 命中层级); 无法解析时为 (None, None)

    Examples:
        >>> state = SelectState("", (ChoiceOption("", "-"), ChoiceOption("en", "English")))
        >>> resolve_required_option(state)[1]
        1
    """
    if state.value not in PLACEHOLDER_VALUES:
        current = next((o for o in state.options if o.value == state.value), None)
        return current or ChoiceOption(state.value, state.value), TIER_ALREADY_SET

    by_value: dict[str, ChoiceOption] = {}
    for option in state.options:
        by_value.setdefault(option.value, option)
    for value in whitelist:
        if value in by_value:
            return by_value[value], TIER_EXACT_VALUE

    keyword = label_keyword.lower()
    for option in state.options:
        if keyword in option.label.lower():
            return option, TIER_LABEL_MATCH

    for option in state.options:
        if option.value not in PLACEHOLDER_VALUES:
            return option, TIER_FIRST_VALID

    return None, None
