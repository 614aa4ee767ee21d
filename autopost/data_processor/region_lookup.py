"""
@PURPOSE: 区域解析 - 城市到子区域, 邮编/地址到街区的静态查表
@OUTLINE:
  - SUBAREA_MAP: 城市关键字 -> 子区域标签
  - NEIGHBORHOOD_BY_ZIP: 邮编 -> 街区标签
  - NEIGHBORHOOD_KEYWORDS: 地址文本中可识别的街区名
  - def resolve_subarea(): 解析子区域(默认 city of san francisco)
  - def resolve_neighborhood(): 解析街区(邮编优先)
  - def is_bypass_option(): 判断是否为"跳过此步"选项
@GOTCHAS:
  - 查表只覆盖湾区, 其他城市走默认值或页面第一个选项
  - 邮编查表只依赖邮编本身, 与其他字段无关
@DEPENDENCIES:
  - 外部: 无
"""

from __future__ import annotations

DEFAULT_SUBAREA = "city of san francisco"

SUBAREA_MAP: tuple[tuple[str, str], ...] = (
    ("san francisco", "city of san francisco"),
    ("sf", "city of san francisco"),
    ("oakland", "east bay area"),
    ("berkeley", "east bay area"),
    ("san jose", "south bay area"),
    ("palo alto", "peninsula"),
    ("mountain view", "peninsula"),
    ("daly city", "peninsula"),
    ("marin", "north bay / marin"),
    ("santa cruz", "santa cruz co"),
)

NEIGHBORHOOD_BY_ZIP: dict[str, str] = {
    "94118": "inner richmond",
    "94121": "outer richmond",
    "94117": "haight ashbury",
    "94102": "hayes valley",
    "94103": "soma",
    "94107": "south beach",
    "94110": "mission district",
    "94114": "castro",
    "94122": "sunset",
}

NEIGHBORHOOD_KEYWORDS: tuple[str, ...] = (
    "inner richmond",
    "outer richmond",
    "richmond",
    "sunset",
    "haight",
    "castro",
    "mission",
    "soma",
    "financial",
    "marina",
    "north beach",
    "nob hill",
    "russian hill",
    "pacific heights",
    "tenderloin",
    "bayview",
    "glen park",
    "noe valley",
    "potrero",
    "bernal heights",
)

BYPASS_KEYWORDS: tuple[str, ...] = ("bypass", "skip")


def resolve_subarea(city_hint: str | None) -> str:
    """根据城市/地址文本解析子区域标签.

    Examples:
        >>> resolve_subarea("Berkeley, CA")
        'east bay area'
        >>> resolve_subarea("")
        'city of san francisco'
    """
    text = (city_hint or "").lower()
    for keyword, subarea in SUBAREA_MAP:
        if keyword in text:
            return subarea
    return DEFAULT_SUBAREA


def resolve_neighborhood(
    postal_code: str | None,
    neighborhood: str | None = None,
    location: str | None = None,
) -> str | None:
    """解析街区标签.

    顺序: 邮编查表 -> 显式街区 -> 地址文本中的街区关键字.

    Examples:
        >>> resolve_neighborhood("94118")
        'inner richmond'
        >>> resolve_neighborhood(None, location="Apartment in Noe Valley")
        'noe valley'
    """
    if postal_code and postal_code in NEIGHBORHOOD_BY_ZIP:
        return NEIGHBORHOOD_BY_ZIP[postal_code]
    if neighborhood and neighborhood.strip():
        return neighborhood.strip().lower()

    text = (location or "").lower()
    for keyword in NEIGHBORHOOD_KEYWORDS:
        if keyword in text:
            return keyword
    return None


def is_bypass_option(label: str) -> bool:
    lowered = label.lower()
    return any(keyword in lowered for keyword in BYPASS_KEYWORDS)
