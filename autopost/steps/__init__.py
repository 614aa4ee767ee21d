"""
@PURPOSE: 步骤处理器注册表
@OUTLINE:
  - def build_default_handlers(): 阶段 -> 处理器的默认映射
@RELATED: autopost/core/orchestrator.py
"""

from __future__ import annotations

from ..browser.image_fetcher import ImageFetcher
from ..models.phase import Phase
from .base import StepContext, StepHandler
from .category import CategorySelectionHandler
from .form_fill import FormFillHandler
from .map_location import MapLocationHandler
from .media import ImageUploadHandler
from .posting_type import TypeSelectionHandler
from .publish import Completion, PreviewHandler, PublishingHandler, detect_completion
from .region import HoodSelectionHandler, InitialPageHandler, SubareaSelectionHandler


def build_default_handlers(fetcher: ImageFetcher | None = None) -> dict[Phase, StepHandler]:
    """创建默认处理器映射."""
    handlers: list[StepHandler] = [
        InitialPageHandler(),
        SubareaSelectionHandler(),
        HoodSelectionHandler(),
        TypeSelectionHandler(),
        CategorySelectionHandler(),
        FormFillHandler(),
        ImageUploadHandler(fetcher),
        MapLocationHandler(),
        PreviewHandler(),
        PublishingHandler(),
    ]
    return {handler.phase: handler for handler in handlers}


__all__ = [
    "CategorySelectionHandler",
    "Completion",
    "FormFillHandler",
    "HoodSelectionHandler",
    "ImageUploadHandler",
    "InitialPageHandler",
    "MapLocationHandler",
    "PreviewHandler",
    "PublishingHandler",
    "StepContext",
    "StepHandler",
    "SubareaSelectionHandler",
    "TypeSelectionHandler",
    "build_default_handlers",
    "detect_completion",
]
