"""
@PURPOSE: 页面操作接口(ActionSink)及其 Playwright 实现, 步骤处理器只通过它操作页面
@OUTLINE:
  - class ActionSink: 页面操作协议(填写, 点击, 单选, 下拉, 附件, 读取文本)
  - class PlaywrightActionSink: 基于 Playwright Page 的实现
  - def text_matches(): 按钮文本关键字匹配规则
@GOTCHAS:
  - 所有方法在找不到目标时返回 False/None/空列表, 不抛出异常
  - 候选选择器按顺序尝试, 第一个命中的生效
  - 文件输入框通常不可见, attach_files 不要求可见
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: autopost.models.page
@RELATED: autopost/browser/selectors.py, tests/mocks/sink_mock.py
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from ..models.page import ChoiceOption, SelectState
from .selectors import BUTTON_SCOPE

_CHOICES_SCRIPT = """
(els) => els.map((el, index) => {
    const holder = el.closest('label') || (el.tagName === 'INPUT' ? el.parentElement : el);
    const label = ((holder && holder.textContent) || el.value || '').trim();
    const value = el.value || el.getAttribute('href') || (el.dataset && el.dataset.id) || '';
    return { value, label, index };
})
"""

_SELECT_SCRIPT = """
(el) => ({
    value: el.value,
    options: Array.from(el.options).map((o, index) => ({
        value: o.value,
        label: (o.textContent || '').trim(),
        index,
    })),
})
"""

_SELECT_WITH_OPTIONS_SCRIPT = """
(els, hints) => els.findIndex(
    (el) => Array.from(el.options).some(
        (o) => hints.some((hint) => (o.textContent || '').includes(hint))
    )
)
"""


def text_matches(text: str, hints: Sequence[str]) -> bool:
    """判断按钮文本是否命中关键字.

    关键字长度不足3时要求完全相等(避免 "go" 误命中 "good"), 否则按包含匹配.

    Examples:
        >>> text_matches("Continue", ["continue", "go"])
        True
        >>> text_matches("good", ["go"])
        False
    """
    lowered = " ".join(text.lower().split())
    for hint in hints:
        hint = hint.lower()
        if lowered == hint or (len(hint) > 2 and hint in lowered):
            return True
    return False


@runtime_checkable
class ActionSink(Protocol):
    """页面操作协议."""

    async def current_url(self) -> str: ...

    async def has_any(self, selectors: Sequence[str]) -> bool: ...

    async def fill(self, selectors: Sequence[str], value: str) -> bool: ...

    async def list_choices(self, selector: str) -> list[ChoiceOption]: ...

    async def choose(self, selector: str, option: ChoiceOption) -> bool: ...

    async def locate_select(
        self, selectors: Sequence[str], option_hints: Sequence[str] = ()
    ) -> str | None: ...

    async def read_select(self, selector: str) -> SelectState | None: ...

    async def choose_select(self, selector: str, value: str) -> bool: ...

    async def check(self, selectors: Sequence[str]) -> bool: ...

    async def click(self, selectors: Sequence[str], text_hints: Sequence[str] = ()) -> bool: ...

    async def click_text(self, texts: Sequence[str], scope: str = BUTTON_SCOPE) -> bool: ...

    async def attach_files(self, selectors: Sequence[str], paths: Sequence[Path]) -> bool: ...

    async def visible_errors(self, selectors: Sequence[str]) -> list[str]: ...

    async def page_text(self) -> str: ...


class PlaywrightActionSink:
    """基于 Playwright Page 的页面操作实现.

    Examples:
        >>> sink = PlaywrightActionSink(page)
        >>> await sink.fill(["#PostingTitle"], "Honda Civic")
        True
    """

    def __init__(self, page: Page):
        """初始化.

        Args:
            page: Playwright 页面对象
        """
        self.page = page

    async def _first(self, selectors: Sequence[str], *, visible: bool = False) -> Locator | None:
        """返回第一个命中的元素."""
        for selector in selectors:
            try:
                locator = self.page.locator(selector)
                count = await locator.count()
                for index in range(count):
                    candidate = locator.nth(index)
                    if not visible or await candidate.is_visible():
                        return candidate
            except PlaywrightError as exc:
                logger.debug(f"选择器失败: {selector}, 错误: {exc}")
        return None

    async def current_url(self) -> str:
        return self.page.url

    async def has_any(self, selectors: Sequence[str]) -> bool:
        return await self._first(selectors) is not None

    async def fill(self, selectors: Sequence[str], value: str) -> bool:
        element = await self._first(selectors)
        if element is None:
            return False
        try:
            await element.fill(value)
            await element.dispatch_event("change")
            await element.dispatch_event("blur")
            return True
        except PlaywrightError as exc:
            logger.warning(f"⚠️ 填写失败: {selectors[0]}..., 错误: {exc}")
            return False

    async def list_choices(self, selector: str) -> list[ChoiceOption]:
        try:
            raw = await self.page.locator(selector).evaluate_all(_CHOICES_SCRIPT)
        except PlaywrightError as exc:
            logger.debug(f"读取选项失败: {selector}, 错误: {exc}")
            return []
        return [ChoiceOption(value=item["value"], label=item["label"], index=item["index"]) for item in raw]

    async def choose(self, selector: str, option: ChoiceOption) -> bool:
        try:
            await self.page.locator(selector).nth(option.index).click()
            return True
        except PlaywrightError as exc:
            logger.warning(f"⚠️ 点击选项失败: {option.label}, 错误: {exc}")
            return False

    async def locate_select(
        self, selectors: Sequence[str], option_hints: Sequence[str] = ()
    ) -> str | None:
        for selector in selectors:
            try:
                if await self.page.locator(selector).count() > 0:
                    return selector
            except PlaywrightError as exc:
                logger.debug(f"选择器失败: {selector}, 错误: {exc}")

        if not option_hints:
            return None
        try:
            index = await self.page.locator("select").evaluate_all(
                _SELECT_WITH_OPTIONS_SCRIPT, list(option_hints)
            )
        except PlaywrightError as exc:
            logger.debug(f"按选项内容查找下拉框失败: {exc}")
            return None
        return f"select >> nth={index}" if index >= 0 else None

    async def read_select(self, selector: str) -> SelectState | None:
        try:
            raw = await self.page.locator(selector).first.evaluate(_SELECT_SCRIPT)
        except PlaywrightError as exc:
            logger.debug(f"读取下拉框失败: {selector}, 错误: {exc}")
            return None
        options = tuple(
            ChoiceOption(value=item["value"], label=item["label"], index=item["index"])
            for item in raw["options"]
        )
        return SelectState(value=raw["value"], options=options)

    async def choose_select(self, selector: str, value: str) -> bool:
        try:
            await self.page.locator(selector).first.select_option(value=value)
            return True
        except PlaywrightError as exc:
            logger.warning(f"⚠️ 下拉框选择失败: {selector}={value}, 错误: {exc}")
            return False

    async def check(self, selectors: Sequence[str]) -> bool:
        element = await self._first(selectors)
        if element is None:
            return False
        try:
            if not await element.is_checked():
                await element.check()
            return True
        except PlaywrightError as exc:
            logger.warning(f"⚠️ 勾选失败: {exc}")
            return False

    async def _button_text(self, element: Locator) -> str:
        value = await element.get_attribute("value")
        return value or await element.inner_text()

    async def click(self, selectors: Sequence[str], text_hints: Sequence[str] = ()) -> bool:
        for selector in selectors:
            try:
                locator = self.page.locator(selector)
                for index in range(await locator.count()):
                    candidate = locator.nth(index)
                    if not await candidate.is_visible():
                        continue
                    if text_hints and not text_matches(await self._button_text(candidate), text_hints):
                        continue
                    await candidate.click()
                    return True
            except PlaywrightError as exc:
                logger.debug(f"点击失败: {selector}, 错误: {exc}")
        return False

    async def click_text(self, texts: Sequence[str], scope: str = BUTTON_SCOPE) -> bool:
        return await self.click([scope], texts)

    async def attach_files(self, selectors: Sequence[str], paths: Sequence[Path]) -> bool:
        element = await self._first(selectors)
        if element is None:
            return False
        try:
            await element.set_input_files([str(path) for path in paths])
            return True
        except PlaywrightError as exc:
            logger.warning(f"⚠️ 附加文件失败: {exc}")
            return False

    async def visible_errors(self, selectors: Sequence[str]) -> list[str]:
        errors: list[str] = []
        for selector in selectors:
            try:
                locator = self.page.locator(selector)
                for index in range(await locator.count()):
                    candidate = locator.nth(index)
                    if not await candidate.is_visible():
                        continue
                    text = (await candidate.inner_text()).strip()
                    if text and text not in errors:
                        errors.append(text)
            except PlaywrightError as exc:
                logger.debug(f"读取错误提示失败: {selector}, 错误: {exc}")
        return errors

    async def page_text(self) -> str:
        try:
            return await self.page.evaluate("() => document.body ? document.body.innerText : ''")
        except PlaywrightError as exc:
            logger.debug(f"读取页面文本失败: {exc}")
            return ""
