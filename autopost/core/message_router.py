"""
@PURPOSE: 命令通道 - 处理外部发送的 RUN_WORKFLOW / GET_STATUS / CHECK_READY / RESET_WORKFLOW
@OUTLINE:
  - class MessageAction: 命令类型
  - class MessageRouter: 命令分发
    - async def handle(): 处理一条命令, 返回响应字典
@GOTCHAS:
  - 响应永远是字典, 处理失败时 success=False 并带 error, 不向调用方抛出
  - 编排器绑定到页面生命周期, 页面重载后由 PostingSession 替换 router.orchestrator
@DEPENDENCIES:
  - 外部: loguru, pydantic
  - 内部: autopost.core.orchestrator
@RELATED: autopost/browser/page_driver.py
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from loguru import logger
from pydantic import ValidationError

from ..models.run import ListingPayload
from .orchestrator import WorkflowOrchestrator


class MessageAction(str, Enum):
    """命令类型."""

    RUN_WORKFLOW = "RUN_WORKFLOW"
    GET_STATUS = "GET_STATUS"
    CHECK_READY = "CHECK_READY"
    RESET_WORKFLOW = "RESET_WORKFLOW"


class MessageRouter:
    """命令分发器.

    Examples:
        >>> router = MessageRouter(orchestrator)
        >>> await router.handle({"action": "GET_STATUS"})
        {'phase': 'idle', 'completionFlags': {}, 'attemptCount': 0}
    """

    def __init__(self, orchestrator: WorkflowOrchestrator):
        self.orchestrator = orchestrator

    async def handle(self, message: dict[str, Any]) -> dict[str, Any]:
        """处理一条命令."""
        raw_action = message.get("action") or message.get("type")
        try:
            action = MessageAction(raw_action)
        except ValueError:
            logger.warning(f"⚠️ 未知命令: {raw_action}")
            return {"success": False, "error": f"Unknown action: {raw_action}"}

        logger.debug(f"收到命令: {action.value}")
        try:
            if action is MessageAction.RUN_WORKFLOW:
                return await self._run_workflow(message.get("payload") or message.get("data"))
            if action is MessageAction.GET_STATUS:
                return await self.orchestrator.status()
            if action is MessageAction.CHECK_READY:
                return await self._check_ready()
            await self.orchestrator.reset()
            return {"success": True}
        except Exception as exc:
            logger.opt(exception=exc).error(f"✗ 命令处理失败: {action.value}")
            return {"success": False, "error": str(exc)}

    async def _run_workflow(self, raw_payload: Any) -> dict[str, Any]:
        payload = None
        if raw_payload:
            try:
                payload = ListingPayload.model_validate(raw_payload)
            except ValidationError as exc:
                logger.error(f"✗ 发布数据无效: {exc.error_count()} 个错误")
                return {"success": False, "error": f"Invalid payload: {exc.errors()[0]['msg']}"}

        if self.orchestrator.active:
            return {"success": True, "message": "Already running"}

        result = await self.orchestrator.run(payload)
        response: dict[str, Any] = {
            "success": True,
            "phase": result.phase.value,
            "detectedPhase": result.detected.value,
            "dispatched": result.dispatched,
        }
        if result.reason:
            response["message"] = result.reason
        return response

    async def _check_ready(self) -> dict[str, Any]:
        orchestrator = self.orchestrator
        env = await orchestrator.probe.capture(orchestrator.sink)
        status = await orchestrator.status()
        return {
            "ready": True,
            "url": env.url,
            "phase": status["phase"],
            "detectedPhase": orchestrator.probe.detect(env).value,
        }
