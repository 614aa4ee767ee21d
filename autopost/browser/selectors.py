"""
@PURPOSE: Craigslist 发布向导的选择器常量与页面标记定义
@OUTLINE:
  - MARKER_SELECTORS: 逻辑标记名 -> 候选选择器(环境探测使用)
  - *_SELECTORS: 各步骤使用的候选选择器(按优先级排序)
  - CONTINUE_TEXTS / PUBLISH_TEXTS: 按文本兜底时的按钮关键字
@GOTCHAS:
  - 候选选择器按顺序尝试, 第一个命中的生效
  - Craigslist 改版时只需维护本文件
@DEPENDENCIES:
  - 外部: 无
"""

from __future__ import annotations

# ========== 页面标记 ==========

MARKER_INITIAL_PICKER = "initial_picker"
MARKER_TITLE_INPUT = "title_input"
MARKER_CATEGORY_PICKER = "category_picker"
MARKER_TYPE_PICKER = "type_picker"

MARKER_SELECTORS: dict[str, tuple[str, ...]] = {
    MARKER_INITIAL_PICKER: (".picker", 'input[name="id"][value="sss"]'),
    MARKER_TITLE_INPUT: ("#PostingTitle",),
    MARKER_CATEGORY_PICKER: (".cat",),
    MARKER_TYPE_PICKER: ("form.picker",),
}

# ========== 通用 ==========

RADIO_SELECTOR = 'input[type="radio"]'

CONTINUE_SELECTORS: tuple[str, ...] = (
    'button[type="submit"]',
    "button.go",
    'input[type="submit"]',
    'button[name="go"]',
)
CONTINUE_TEXTS: tuple[str, ...] = ("continue", "go", "next")
BUTTON_SCOPE = 'button, input[type="submit"]'

ERROR_SELECTORS: tuple[str, ...] = (".err", ".error", '[class*="error"]')

# ========== 入口页 ==========

CITY_LINK_SELECTOR = "a.s"
FOR_SALE_LINK_SELECTOR = 'a[data-id="sss"], a[href*="sss"]'
FSO_RADIO_SELECTOR = 'input[value="fso"], input[data-id="fso"]'

# ========== 表单 ==========

TITLE_SELECTORS: tuple[str, ...] = ("#PostingTitle", 'input[name="PostingTitle"]', 'input[name="title"]')
PRICE_SELECTORS: tuple[str, ...] = ("#price", 'input[name="price"]', "input.price")
PRICE_HINT_SELECTORS: tuple[str, ...] = (
    'input[name*="price"]',
    'input[id*="price"]',
    'input[placeholder*="price" i]',
)
POSTAL_SELECTORS: tuple[str, ...] = (
    "#postal_code",
    'input[name="postal"]',
    'input[name="postal_code"]',
    "input.postal",
)
DESCRIPTION_SELECTORS: tuple[str, ...] = (
    "textarea#PostingBody",
    'textarea[name="PostingBody"]',
    "textarea#postingBody",
    "textarea.posting-body",
    "textarea",
)
MAKE_SELECTORS: tuple[str, ...] = ('input[name="FromManufacturer"]', 'input[name="make"]', "#make")
MODEL_SELECTORS: tuple[str, ...] = ('input[name="ModelName"]', 'input[name="model"]', "#model")
SIZE_SELECTORS: tuple[str, ...] = ('input[name="FromSize"]', 'input[name="size"]', "#size")
CONDITION_SELECTORS: tuple[str, ...] = ('select[name="condition"]', "select#condition")
LANGUAGE_SELECTORS: tuple[str, ...] = (
    'select[name="language"]',
    "select#language",
    "select.language",
    'select[id*="language"]',
    'select[name*="language"]',
)
LANGUAGE_OPTION_HINTS: tuple[str, ...] = ("English", "Español", "Français")
DELIVERY_SELECTORS: tuple[str, ...] = (
    'input[name="sale_conditions[]"][value="delivery"]',
    'input[id*="delivery"]',
)

# ========== 图片 ==========

FILE_INPUT_SELECTORS: tuple[str, ...] = ('input[type="file"]', "#file", 'input[name="file"]')
DONE_SELECTORS: tuple[str, ...] = ("button.done", 'button[value="done"]', "#done")

# ========== 地图 ==========

ADDRESS_SELECTORS: tuple[str, ...] = ('input[name="xstreet0"]', "#xstreet0")
CROSS_STREET_SELECTORS: tuple[str, ...] = ('input[name="xstreet1"]',)

# ========== 预览与发布 ==========

PREVIEW_PUBLISH_SELECTORS: tuple[str, ...] = (
    "button.bigbutton",
    'button[name="go"]',
    'input[type="submit"][value*="publish"]',
)
PREVIEW_PUBLISH_TEXTS: tuple[str, ...] = ("publish", "continue")

PUBLISH_SELECTORS: tuple[str, ...] = (
    "button.bigbutton",
    'button[value="publish"]',
    'input[type="submit"]',
    "#publish_top",
    "#publish_bottom",
)
PUBLISH_TEXTS: tuple[str, ...] = ("publish", "continue", "post")
