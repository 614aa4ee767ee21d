"""
@PURPOSE: 表单字段值规范化(价格清洗, 邮编提取, 成色映射)
@OUTLINE:
  - def clean_price(): 去除货币符号, 千分位和空白
  - def extract_zip(): 从地址文本中提取5位邮编
  - def resolve_condition(): 成色值映射为 Craigslist 选项文本
  - CONDITION_MAP: 成色映射表
@DEPENDENCIES:
  - 外部: 无
"""

from __future__ import annotations

import re

_PRICE_NOISE = re.compile(r"[$,\s]")
_ZIP_PATTERN = re.compile(r"\b\d{5}\b")

CONDITION_MAP: dict[str, str] = {
    "new": "new",
    "like_new": "like new",
    "excellent": "excellent",
    "good": "good",
    "fair": "fair",
    "salvage": "salvage",
}

DEFAULT_CONDITION = "good"


def clean_price(raw: object) -> str:
    """清洗价格文本.

    Examples:
        >>> clean_price("$1,250 ")
        '1250'
        >>> clean_price(None)
        ''
    """
    if raw is None:
        return ""
    return _PRICE_NOISE.sub("", str(raw)).strip()


def extract_zip(location: str | None) -> str:
    """提取地址文本中的第一个5位邮编, 没有则返回空串."""
    if not location:
        return ""
    match = _ZIP_PATTERN.search(location)
    return match.group(0) if match else ""


def resolve_condition(condition: str | None) -> str:
    """将发布数据中的成色映射为选项文本, 未知值回退为 ``good``.

    Examples:
        >>> resolve_condition("Like New")
        'like new'
        >>> resolve_condition("mint")
        'good'
    """
    if not condition:
        return DEFAULT_CONDITION
    lowered = condition.lower()
    if lowered in CONDITION_MAP:
        return CONDITION_MAP[lowered]
    underscored = re.sub(r"[\s-]+", "_", lowered)
    return CONDITION_MAP.get(underscored, DEFAULT_CONDITION)
