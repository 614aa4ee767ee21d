"""
@PURPOSE: 持久化运行状态 - 页面刷新/进程重启后仍可读取的键值存储
@OUTLINE:
  - class RunStateStore: 存储基类(get/set/clear)
  - class JsonFileRunStateStore: JSON 文件实现
  - class InMemoryRunStateStore: 内存实现(测试与单进程使用)
@GOTCHAS:
  - set() 是整对象的读-改-写合并, 只有一个写入者
  - 文件损坏时按空状态处理, 不阻塞工作流
  - 键名: workflowPhase, submissionPayload, attemptCount, completionFlags,
    submissionId, createdAt, updatedAt, lastError, errorReported, requiresConfirmation
@DEPENDENCIES:
  - 外部: loguru
@RELATED: autopost/models/run.py
"""

from __future__ import annotations

import asyncio
import copy
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from loguru import logger


class RunStateStore(ABC):
    """运行状态存储基类."""

    @abstractmethod
    async def get(self) -> dict[str, Any]:
        """读取完整状态, 不存在时返回空字典."""

    @abstractmethod
    async def set(self, patch: dict[str, Any]) -> dict[str, Any]:
        """合并写入并返回合并后的状态."""

    @abstractmethod
    async def clear(self) -> None:
        """清除状态."""


class InMemoryRunStateStore(RunStateStore):
    """内存存储."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._state: dict[str, Any] = copy.deepcopy(initial or {})

    async def get(self) -> dict[str, Any]:
        return copy.deepcopy(self._state)

    async def set(self, patch: dict[str, Any]) -> dict[str, Any]:
        self._state.update(copy.deepcopy(patch))
        return copy.deepcopy(self._state)

    async def clear(self) -> None:
        self._state = {}


class JsonFileRunStateStore(RunStateStore):
    """JSON 文件存储.

    Examples:
        >>> store = JsonFileRunStateStore("data/state/run_state.json")
        >>> await store.set({"workflowPhase": "form_fill"})
        >>> (await store.get())["workflowPhase"]
        'form_fill'
    """

    def __init__(self, path: Path | str):
        """初始化.

        Args:
            path: 状态文件路径
        """
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def get(self) -> dict[str, Any]:
        async with self._lock:
            return self._read()

    async def set(self, patch: dict[str, Any]) -> dict[str, Any]:
        async with self._lock:
            state = self._read()
            state.update(patch)
            self._write(state)
            return state

    async def clear(self) -> None:
        async with self._lock:
            if self.path.exists():
                self.path.unlink()
                logger.info(f"运行状态已清除: {self.path}")

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            logger.error(f"运行状态文件格式错误, 按空状态处理: {exc}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"运行状态文件内容不是对象, 按空状态处理: {type(data).__name__}")
            return {}
        return data

    def _write(self, state: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(state, ensure_ascii=False, indent=2)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(self.path)
