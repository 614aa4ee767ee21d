"""
@PURPOSE: 测试运行状态存储 - 合并写入, 清除, 损坏文件容错
@OUTLINE:
  - TestInMemoryStore: 内存实现
  - TestJsonFileStore: JSON 文件实现
@DEPENDENCIES:
  - 外部: pytest, pytest-asyncio
  - 内部: autopost.core.run_state
"""

import json

import pytest

from autopost.core.run_state import InMemoryRunStateStore, JsonFileRunStateStore


class TestInMemoryStore:
    """测试内存存储"""

    @pytest.mark.asyncio
    async def test_set_merges(self):
        store = InMemoryRunStateStore({"workflowPhase": "idle", "attemptCount": 1})
        merged = await store.set({"workflowPhase": "form_fill"})
        assert merged == {"workflowPhase": "form_fill", "attemptCount": 1}

    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        store = InMemoryRunStateStore({"completionFlags": {"titleFilled": True}})
        state = await store.get()
        state["completionFlags"]["priceFilled"] = True
        assert await store.get() == {"completionFlags": {"titleFilled": True}}

    @pytest.mark.asyncio
    async def test_clear(self):
        store = InMemoryRunStateStore({"workflowPhase": "preview"})
        await store.clear()
        assert await store.get() == {}


class TestJsonFileStore:
    """测试 JSON 文件存储"""

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileRunStateStore(tmp_path / "state" / "run.json")
        assert await store.get() == {}

    @pytest.mark.asyncio
    async def test_set_persists_and_merges(self, tmp_path):
        path = tmp_path / "state" / "run.json"
        store = JsonFileRunStateStore(path)
        await store.set({"workflowPhase": "hood_selection", "attemptCount": 1})
        await store.set({"workflowPhase": "type_selection"})

        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert on_disk == {"workflowPhase": "type_selection", "attemptCount": 1}

        reopened = JsonFileRunStateStore(path)
        assert (await reopened.get())["workflowPhase"] == "type_selection"

    @pytest.mark.asyncio
    async def test_clear_removes_file(self, tmp_path):
        path = tmp_path / "run.json"
        store = JsonFileRunStateStore(path)
        await store.set({"workflowPhase": "preview"})
        await store.clear()
        assert not path.exists()
        await store.clear()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
    async def test_corrupt_file_reads_as_empty(self, tmp_path, content):
        path = tmp_path / "run.json"
        path.write_text(content, encoding="utf-8")
        store = JsonFileRunStateStore(path)
        assert await store.get() == {}

        merged = await store.set({"workflowPhase": "idle"})
        assert merged == {"workflowPhase": "idle"}

    @pytest.mark.asyncio
    async def test_unicode_roundtrip(self, tmp_path):
        store = JsonFileRunStateStore(tmp_path / "run.json")
        await store.set({"lastError": "Form errors: Código postal inválido"})
        assert (await store.get())["lastError"] == "Form errors: Código postal inválido"
