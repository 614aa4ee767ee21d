"""
@PURPOSE: 工作流编排器 - 每次页面加载执行一次: 读取状态 -> 探测阶段 -> 分派处理器 -> 保存结果
@OUTLINE:
  - DEFAULT_PHASE_POLICIES / build_phase_policies(): 阶段 -> 重试策略
  - ONCE_PER_PAGE_PHASES: 每个页面生命周期只分派一次的阶段
  - @dataclass RunResult: 单次调用的结果(供 CLI/测试查看)
  - class WorkflowOrchestrator: 编排器
    - async def run(): 页面加载触发入口(重入保护)
    - async def status(): 当前持久化状态摘要
    - async def reset(): 清除运行状态
@GOTCHAS:
  - 页面随时可能重载, 编排器必须冷启动: 一切从持久化状态和页面快照重建
  - 处理器失败不再向外抛出; 硬失败进入 ERROR 并且只上报一次 posting_error
  - 从新运行或更后的阶段进入 INITIAL_PAGE 才算新一轮尝试; 停留在入口页的多次加载不计数
  - 第 max_attempts+1 轮开始时直接进入 ERROR
  - 终止态(COMPLETED/ERROR)对同一提交是吸收态, 新提交会覆盖它
  - cancelled 结果(页面已跳转)只保存标记, 不做后续动作
@DEPENDENCIES:
  - 外部: loguru
  - 内部: autopost.core.*, autopost.steps, autopost.models
@RELATED: autopost/browser/page_driver.py, autopost/core/message_router.py
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import ValidationError

from ..browser.notice_board import LogNotifier
from ..errors import AttemptLimitExceeded, UnrecognizedPhase
from ..models.outcome import RetryKind, RetryPolicy, StepOutcome
from ..models.phase import Phase
from ..models.run import MAX_ATTEMPTS, ListingPayload, WorkflowRun
from ..steps import StepContext, StepHandler, build_default_handlers
from ..utils.page_waiter import PageWaiter
from .environment_probe import EnvironmentProbe
from .progress_reporter import ProgressReporter
from .retry_executor import RetryExecutor
from .run_state import RunStateStore

IDLE_NOTICE = "ℹ️ Please continue with the form manually if needed"
ATTEMPT_LIMIT_NOTICE = "❌ Maximum attempts exceeded. Please complete manually."
SUCCESS_NOTICE = "🎉 Your listing has been posted successfully on Craigslist!"
CONFIRM_EMAIL_NOTICE = "📧 Please check your email to confirm and publish your listing!"

ONCE_PER_PAGE_PHASES = frozenset({Phase.FORM_FILL, Phase.IMAGE_UPLOAD})


def build_phase_policies(retry_config: Any = None) -> dict[Phase, RetryPolicy]:
    """根据 settings.retry 构建阶段重试策略表."""
    hard_retries = getattr(retry_config, "hard_max_retries", 2)
    hard_delay = getattr(retry_config, "hard_base_delay_ms", 1000)
    soft_retries = getattr(retry_config, "soft_max_retries", 1)
    soft_delay = getattr(retry_config, "soft_base_delay_ms", 800)
    factor = getattr(retry_config, "backoff_factor", 1.2)
    cap = getattr(retry_config, "delay_cap_ms", 3000)

    def hard(retries: int = hard_retries) -> RetryPolicy:
        return RetryPolicy(RetryKind.HARD, retries, hard_delay, factor, cap)

    def soft(delay: int = soft_delay) -> RetryPolicy:
        return RetryPolicy(RetryKind.SOFT, soft_retries, delay, factor, cap)

    return {
        Phase.INITIAL_PAGE: hard(),
        Phase.SUBAREA_SELECTION: hard(),
        Phase.TYPE_SELECTION: hard(),
        Phase.CATEGORY_SELECTION: hard(),
        Phase.HOOD_SELECTION: soft(),
        Phase.MAP_LOCATION: soft(),
        Phase.IMAGE_UPLOAD: soft(hard_delay),
        Phase.PREVIEW: soft(hard_delay),
        Phase.FORM_FILL: hard(1),
        Phase.PUBLISHING: hard(),
    }


DEFAULT_PHASE_POLICIES = build_phase_policies()


@dataclass
class RunResult:
    """单次调用结果.

    Attributes:
        detected: 本次探测到的阶段
        phase: 调用结束后持久化的阶段
        outcome: 处理器结果(未分派时为 None)
        reason: 未分派的原因
    """

    detected: Phase = Phase.IDLE
    phase: Phase = Phase.IDLE
    outcome: StepOutcome | None = None
    reason: str = ""

    @property
    def dispatched(self) -> bool:
        return self.outcome is not None


class WorkflowOrchestrator:
    """工作流编排器.

    每个页面生命周期创建一个实例; 重入标记和"只分派一次"记录都绑定在实例上.

    Examples:
        >>> orchestrator = WorkflowOrchestrator(sink, JsonFileRunStateStore("data/state/run_state.json"))
        >>> result = await orchestrator.run(ListingPayload(title="Desk", price="$120"))
        >>> result.phase
        <Phase.CATEGORY_SELECTION: 'category_selection'>
    """

    def __init__(
        self,
        sink: Any,
        store: RunStateStore,
        *,
        reporter: ProgressReporter | None = None,
        notifier: Any = None,
        probe: EnvironmentProbe | None = None,
        handlers: dict[Phase, StepHandler] | None = None,
        executor: RetryExecutor | None = None,
        waiter: PageWaiter | None = None,
        policies: dict[Phase, RetryPolicy] | None = None,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.sink = sink
        self.store = store
        self.reporter = reporter or ProgressReporter()
        self.notifier = notifier or LogNotifier()
        self.probe = probe or EnvironmentProbe()
        self.handlers = build_default_handlers() if handlers is None else handlers
        self.executor = executor or RetryExecutor(self.notifier)
        self.waiter = waiter or PageWaiter(sink)
        self.policies = DEFAULT_PHASE_POLICIES if policies is None else policies
        self.max_attempts = max_attempts

        self._active = False
        self._dispatched: set[Phase] = set()

    @property
    def active(self) -> bool:
        return self._active

    async def run(self, payload: ListingPayload | None = None) -> RunResult:
        """执行一次工作流推进.

        Args:
            payload: 调用方提供的发布数据(为空时从持久化状态恢复)

        Returns:
            本次调用结果; 永不抛出
        """
        if self._active:
            logger.debug("工作流正在执行, 忽略重复触发")
            return RunResult(reason="busy")

        self._active = True
        try:
            return await self._run(payload)
        except Exception as exc:
            logger.opt(exception=exc).error(f"✗ 工作流执行异常: {exc}")
            return RunResult(reason="internal_error")
        finally:
            self._active = False

    async def status(self) -> dict[str, Any]:
        run = self._restore(await self.store.get())
        if run is None:
            return WorkflowRun().to_status()
        return run.to_status()

    async def reset(self) -> None:
        await self.store.clear()
        self._dispatched.clear()
        logger.info("工作流状态已重置")

    async def _run(self, payload: ListingPayload | None) -> RunResult:
        env = await self.probe.capture(self.sink)
        run = self._restore(await self.store.get())

        if run is not None and run.payload is not None and env.host and not run.payload.matches_host(env.host):
            logger.warning(f"⚠️ 运行状态与当前站点不匹配, 丢弃: {env.host}")
            await self.store.clear()
            run = None

        run = self._merge_payload(run, payload)
        if run is None:
            logger.info("没有发布数据, 不执行工作流")
            return RunResult(reason="no_payload")

        log = logger.bind(run_id=run.submission_id or "")

        if run.is_terminal:
            log.info(f"提交已处于终止阶段: {run.current_phase.value}")
            return RunResult(phase=run.current_phase, reason="terminal")

        detected = self.probe.detect(env)
        log.info(f"检测到阶段: {detected.value} (已保存: {run.current_phase.value})")

        # 入口页的城市链接页与 for sale 页属于同一轮尝试
        if detected is Phase.INITIAL_PAGE and run.current_phase is not Phase.INITIAL_PAGE:
            if run.attempts_exhausted:
                error = AttemptLimitExceeded(run.attempt_count, run.max_attempts)
                log.error(f"✗ {error.message} ({run.attempt_count}/{run.max_attempts})")
                await self._fail(run, error.message, ATTEMPT_LIMIT_NOTICE)
                return RunResult(detected=detected, phase=run.current_phase, reason="attempt_limit")
            run.attempt_count += 1
            run.completion_flags = {}
            log.info(f"开始第 {run.attempt_count}/{run.max_attempts} 次尝试")

        if detected is not Phase.IDLE and run.advance_to(detected):
            await self.reporter.phase_changed(detected)

        handler = self.handlers.get(detected)
        if handler is None:
            log.info(UnrecognizedPhase(env.url).message)
            await self._notify(IDLE_NOTICE)
            await self._persist(run)
            return RunResult(detected=detected, phase=run.current_phase, reason="no_handler")

        if detected in ONCE_PER_PAGE_PHASES:
            if detected in self._dispatched:
                log.info(f"{handler.name} 已在本页面执行过, 跳过")
                return RunResult(detected=detected, phase=run.current_phase, reason="already_dispatched")
            self._dispatched.add(detected)

        await self._persist(run)
        await self.reporter.report(detected, message=handler.progress_message)

        ctx = StepContext(
            payload=run.payload,
            sink=self.sink,
            reporter=self.reporter,
            notifier=self.notifier,
            waiter=self.waiter,
            flags=run.completion_flags,
            run_id=run.submission_id or "",
        )
        policy = self.policies.get(detected, RetryPolicy.hard())
        outcome = await self.executor.run(handler.name, lambda: handler.execute(ctx), policy)
        run.record_flags(outcome.flags)

        if outcome.cancelled:
            log.info(f"{handler.name} 期间页面已跳转, 等待下一次触发")
        elif outcome.completed:
            await self._complete(run, outcome.requires_confirmation)
            return RunResult(detected=detected, phase=run.current_phase, outcome=outcome)
        elif not outcome.ok:
            await self._fail(run, f"{handler.name}: {outcome.detail}")
            return RunResult(detected=detected, phase=run.current_phase, outcome=outcome)
        else:
            log.success(f"✓ {handler.name}: {outcome.detail or outcome.status.value}")

        await self._persist(run)
        return RunResult(detected=detected, phase=run.current_phase, outcome=outcome)

    def _restore(self, state: dict[str, Any]) -> WorkflowRun | None:
        if not state:
            return None
        try:
            return WorkflowRun.from_state(state, self.max_attempts)
        except (ValidationError, ValueError, TypeError) as exc:
            logger.error(f"运行状态无效, 丢弃: {exc}")
            return None

    def _merge_payload(self, run: WorkflowRun | None, payload: ListingPayload | None) -> WorkflowRun | None:
        if payload is None:
            return run
        if run is None or run.submission_id != payload.listing_id:
            if run is not None:
                logger.info(f"新的提交覆盖旧状态: {run.submission_id} -> {payload.listing_id}")
            return WorkflowRun.start(payload, self.max_attempts)
        if run.payload is None and not run.is_terminal:
            run.payload = payload
        return run

    async def _complete(self, run: WorkflowRun, requires_confirmation: bool) -> None:
        run.requires_confirmation = requires_confirmation
        run.finish(Phase.COMPLETED)
        await self._persist(run)

        if requires_confirmation:
            message, notice = "Check your email to confirm the listing", CONFIRM_EMAIL_NOTICE
        else:
            message, notice = "Listing posted successfully!", SUCCESS_NOTICE

        logger.success(f"✓ 发布完成: {run.submission_id} (需要邮件确认: {requires_confirmation})")
        await self.reporter.report(Phase.COMPLETED, 100, message)
        await self.reporter.complete(requires_confirmation)
        await self._notify(notice, "success")

    async def _fail(self, run: WorkflowRun, message: str, notice: str | None = None) -> None:
        run.finish(Phase.ERROR, message)
        should_report = not run.error_reported
        run.error_reported = True
        await self._persist(run)

        logger.error(f"✗ 工作流进入错误状态: {message}")
        if should_report:
            await self.reporter.error(message)
        if notice:
            await self._notify(notice, "error")

    async def _persist(self, run: WorkflowRun) -> None:
        run.touch()
        await self.store.set(run.to_state())

    async def _notify(self, message: str, level: str = "info") -> None:
        try:
            await self.notifier.notify(message, level)
        except Exception as exc:
            logger.debug(f"提示发送失败: {exc}")
