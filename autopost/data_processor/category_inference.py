"""
@PURPOSE: 目标类目解析 - 显式类目映射与基于标题/描述关键字的类目推断
@OUTLINE:
  - CATEGORY_MAP: 发布数据类目 -> Craigslist 类目标签
  - CATEGORY_KEYWORDS: 类目关键字表(按优先级排序)
  - def infer_category(): 关键字推断
  - def resolve_target_category(): 先查映射, 再推断
@GOTCHAS:
  - 关键字是子串匹配且按表顺序第一个命中即返回, "phone" 会先于 "car" 命中
  - 推断不到时返回 "general for sale"
@DEPENDENCIES:
  - 外部: 无
"""

from __future__ import annotations

DEFAULT_CATEGORY = "general for sale"

CATEGORY_MAP: dict[str, str] = {
    # 电子
    "electronics": "electronics",
    "cell phones": "cell phones",
    "computers": "computers",
    "video gaming": "video gaming",
    # 家具
    "furniture": "furniture",
    "home": "furniture",
    "household": "household items",
    # 服饰
    "clothing": "clothing & accessories",
    "clothes": "clothing & accessories",
    "shoes": "clothing & accessories",
    # 车辆与配件
    "auto parts": "auto parts",
    "cars": "cars & trucks",
    "car": "cars & trucks",
    "bicycle": "bicycles",
    "bike": "bicycles",
    # 家居园艺
    "appliances": "appliances",
    "garden": "farm & garden",
    "tools": "tools",
    # 运动
    "sporting goods": "sporting goods",
    "sports": "sporting goods",
    # 母婴玩具
    "baby": "baby & kid stuff",
    "kids": "baby & kid stuff",
    "toys": "toys & games",
    # 其他
    "books": "books & magazines",
    "jewelry": "jewelry",
    "musical instruments": "musical instruments",
    "collectibles": "collectibles",
    "antiques": "antiques",
    "art": "arts & crafts",
    "default": DEFAULT_CATEGORY,
    "other": DEFAULT_CATEGORY,
    "miscellaneous": DEFAULT_CATEGORY,
}

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "electronics",
        (
            "phone", "laptop", "computer", "tablet", "ipad", "macbook", "tv",
            "television", "monitor", "camera", "drone", "speaker", "headphone",
        ),
    ),
    (
        "furniture",
        (
            "sofa", "couch", "chair", "table", "desk", "bed", "mattress",
            "dresser", "cabinet", "shelf", "bookcase", "sectional",
        ),
    ),
    (
        "clothing & accessories",
        ("shirt", "pants", "dress", "jacket", "coat", "shoes", "boots", "bag", "purse"),
    ),
    ("bicycles", ("bike", "bicycle", "cycling")),
    ("cars & trucks", ("car", "truck", "vehicle", "honda", "toyota", "ford", "chevy")),
    ("auto parts", ("tire", "wheel", "engine", "brake", "bumper", "headlight")),
    (
        "sporting goods",
        ("golf", "tennis", "basketball", "football", "fitness", "gym", "weight", "treadmill"),
    ),
    ("toys & games", ("toy", "game", "lego", "doll", "puzzle")),
    ("baby & kid stuff", ("baby", "stroller", "crib", "car seat", "high chair")),
    ("tools", ("tool", "drill", "saw", "hammer", "wrench")),
    ("appliances", ("refrigerator", "washer", "dryer", "dishwasher", "microwave", "oven")),
    (
        "musical instruments",
        ("guitar", "piano", "keyboard", "drum", "violin", "amp", "amplifier"),
    ),
)


def infer_category(title: str | None, description: str | None = None) -> str:
    """根据标题和描述中的关键字推断类目.

    Examples:
        >>> infer_category("Honda Civic")
        'cars & trucks'
        >>> infer_category("Vintage rug")
        'general for sale'
    """
    text = f"{title or ''} {description or ''}".lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def resolve_target_category(
    category: str | None, title: str | None, description: str | None = None
) -> str:
    """解析目标类目标签: 显式类目优先查映射表, 查不到再走关键字推断."""
    if category:
        mapped = CATEGORY_MAP.get(category.lower().strip())
        if mapped:
            return mapped
    return infer_category(title, description)
