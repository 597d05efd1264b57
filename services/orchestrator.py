"""End-to-end orchestration of one post-processing request."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from config import AppConfig
from models import (
    DEFAULT_POST_TONE,
    ContentRequest,
    GrammarCorrection,
    PipelineRun,
    PipelineRunResult,
    ProfileSnapshot,
    Rejection,
    RejectionCode,
    RunOutcome,
    StageName,
)
from services.contract import (
    NotFoundError,
    PipelineRejection,
    QuotaExceededError,
    validate_content_request,
)
from services.failures import save_dead_letter
from services.grammar import apply_corrections
from services.ledger import UsageLedger
from services.observability import LogContext, StructuredLogger, get_logger
from services.providers import ProviderSet
from services.renderer import NotificationRenderer
from services.resilience import ResiliencePolicy
from services.stages import StageAdapter
from services.store import ContentStore, PersistenceError

DETECTION_FALLBACK_PROBABILITY = 0.2
ABOUT_CONTEXT_CHARS = 200


def build_enriched_prompt(prompt: str, profile: ProfileSnapshot) -> str:
    """Append the personalization block used when a profile was scraped."""
    return (
        f"{prompt}\n\nPersonalization context:\n"
        f"- Name: {profile.full_name}\n"
        f"- Headline: {profile.headline}\n"
        f"- About: {profile.about[:ABOUT_CONTEXT_CHARS]}"
    )


class ContentPipeline:
    """Run enrichment through automation for a single request.

    Stages execute strictly in order and each owns one field of the
    ``PipelineRun``.  Only generation is fatal; every other stage degrades to
    its fallback.  The post record and the usage event are written after the
    last stage.
    """

    def __init__(
        self,
        *,
        config: AppConfig,
        store: ContentStore,
        providers: ProviderSet,
        ledger: UsageLedger,
        renderer: NotificationRenderer | None = None,
        logger: StructuredLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._store = store
        self._providers = providers
        self._ledger = ledger
        self._renderer = renderer or NotificationRenderer()
        self._logger = logger or get_logger()
        self._clock = clock

        self._enrichment = self._adapter(
            StageName.ENRICHMENT,
            self._fetch_profile,
            fallback=lambda _url: None,
        )
        self._generation = self._adapter(
            StageName.GENERATION,
            providers.generator.generate_post,
        )
        self._humanization = self._adapter(
            StageName.HUMANIZATION,
            providers.humanizer.humanize,
            fallback=lambda content: content,
        )
        self._grammar = self._adapter(
            StageName.GRAMMAR,
            lambda text: apply_corrections(text, providers.grammar.check(text)),
            fallback=lambda text: GrammarCorrection(text=text, correction_count=0),
        )
        self._detection = self._adapter(
            StageName.DETECTION,
            providers.detector.score,
            fallback=lambda _text: DETECTION_FALLBACK_PROBABILITY,
        )
        self._notification = self._adapter(
            StageName.NOTIFICATION,
            self._notify,
            fallback=lambda _run: False,
        )
        self._automation = self._adapter(
            StageName.AUTOMATION,
            lambda _run: self._launch_automation(),
        )

    def _adapter(
        self,
        stage: StageName,
        operation: Callable[[Any], Any],
        *,
        fallback: Callable[[Any], Any] | None = None,
    ) -> StageAdapter[Any, Any]:
        return StageAdapter(
            stage,
            operation,
            fallback=fallback,
            policy=ResiliencePolicy(name=f"{stage.value}_provider"),
            logger=self._logger,
            clock=self._clock,
        )

    def run(self, request: ContentRequest) -> PipelineRunResult | Rejection:
        """Process one request; never raises for provider failures."""
        started = self._clock()
        try:
            self._check_preconditions(request)
        except PipelineRejection as exc:
            self._logger.warning(
                "pipeline_rejected",
                context=LogContext(requester_id=request.requester_id or None),
                code=exc.code.value,
                error=exc.error,
            )
            return exc.to_rejection()

        run = PipelineRun(request=request)
        context = LogContext(run_id=run.run_id, requester_id=request.requester_id)
        self._logger.info(
            "pipeline_started",
            context=context,
            enrichment_requested=request.enrichment_source is not None,
            automation_requested=request.trigger_automation,
        )

        self._run_enrichment(run, context)

        generation = self._generation.invoke(run.enriched_prompt, context=context)
        if not generation.succeeded:
            return self._fail_generation(run, context, started, generation.error or "")
        run.raw_content = generation.value
        run.record_stage(StageName.GENERATION, completed=True, used_provider=True)

        humanization = self._humanization.invoke(run.raw_content, context=context)
        run.humanized_content = humanization.value
        run.record_stage(
            StageName.HUMANIZATION,
            completed=True,
            used_provider=humanization.succeeded,
        )

        grammar = self._grammar.invoke(run.humanized_content, context=context)
        run.corrected_content = grammar.value.text
        run.grammar_correction_count = grammar.value.correction_count
        run.record_stage(StageName.GRAMMAR, completed=True, used_provider=grammar.succeeded)

        detection = self._detection.invoke(run.corrected_content, context=context)
        run.record_detection(detection.value)
        run.record_stage(StageName.DETECTION, completed=True, used_provider=detection.succeeded)

        notification = self._notification.invoke(run, context=context)
        run.notification_sent = bool(notification.value)
        run.record_stage(
            StageName.NOTIFICATION,
            completed=run.notification_sent,
            used_provider=notification.succeeded,
        )

        self._run_automation(run, context)

        processing_time_ms = self._elapsed_ms(started)
        post_id = self._persist_post(run, context)
        self._ledger.charge(
            request.requester_id,
            RunOutcome(succeeded=True, latency_ms=processing_time_ms),
        )
        self._logger.info(
            "pipeline_completed",
            context=context,
            processing_time_ms=processing_time_ms,
            ai_score=run.ai_score,
            human_score=run.human_score,
            step_flags={stage.value: flag for stage, flag in run.step_flags.items()},
        )
        return PipelineRunResult(run=run, processing_time_ms=processing_time_ms, post_id=post_id)

    def _check_preconditions(self, request: ContentRequest) -> None:
        validate_content_request(request)
        account = self._store.get_account(request.requester_id)
        if account is None:
            raise NotFoundError(
                "Requester not found",
                error=f"No account for requester {request.requester_id}",
            )
        if not account.has_capacity:
            raise QuotaExceededError(
                "Insufficient credits",
                error="Please upgrade your plan or purchase more credits",
            )

    def _run_enrichment(self, run: PipelineRun, context: LogContext) -> None:
        source = run.request.enrichment_source
        if source is None or self._providers.enricher is None:
            return

        result = self._enrichment.invoke(source, context=context)
        if result.succeeded and result.value is not None:
            run.profile_snapshot = result.value
            run.enriched_prompt = build_enriched_prompt(run.request.prompt, result.value)
        run.record_stage(
            StageName.ENRICHMENT,
            completed=run.profile_snapshot is not None,
            used_provider=result.succeeded,
        )

    def _run_automation(self, run: PipelineRun, context: LogContext) -> None:
        if not run.request.trigger_automation or self._providers.automation is None:
            return

        result = self._automation.invoke(run, context=context)
        run.automation_triggered = result.succeeded
        run.record_stage(
            StageName.AUTOMATION,
            completed=result.succeeded,
            used_provider=result.succeeded,
        )

    def _fetch_profile(self, source: str) -> ProfileSnapshot:
        enricher = self._providers.enricher
        if enricher is None:
            raise ValueError("No profile enricher configured")
        return enricher.fetch_profile(source)

    def _notify(self, run: PipelineRun) -> bool:
        rendered = self._renderer.render(
            post=run.corrected_content,
            ai_score=run.ai_score,
            human_score=run.human_score,
            profile=run.profile_snapshot,
        )
        self._providers.notifier.send(
            to=run.request.notify_address,
            subject=rendered.subject,
            html=rendered.html,
        )
        return True

    def _launch_automation(self) -> str:
        launcher = self._providers.automation
        if launcher is None:
            raise ValueError("No automation target configured")
        return launcher.launch()

    def _fail_generation(
        self,
        run: PipelineRun,
        context: LogContext,
        started: float,
        error: str,
    ) -> Rejection:
        latency_ms = self._elapsed_ms(started)
        self._logger.error(
            "pipeline_failed",
            context=context,
            stage=StageName.GENERATION.value,
            error=error,
        )
        try:
            save_dead_letter(
                failure_dir=self._config.failure_log_dir,
                run=run,
                stage=StageName.GENERATION,
                error=error,
            )
        except OSError as exc:
            self._logger.error("dead_letter_write_failed", context=context, error=str(exc))

        self._ledger.charge(
            run.request.requester_id,
            RunOutcome(succeeded=False, latency_ms=latency_ms),
        )
        return Rejection(
            code=RejectionCode.UPSTREAM_FAILURE,
            message="Content generation failed",
            error=error,
            step_flags=dict(run.step_flags),
        )

    def _persist_post(self, run: PipelineRun, context: LogContext) -> str | None:
        try:
            record = self._store.insert_post(
                requester_id=run.request.requester_id,
                content=run.corrected_content,
                ai_score=run.ai_score,
                human_score=run.human_score,
                tone=DEFAULT_POST_TONE,
            )
        except PersistenceError as exc:
            self._logger.error("post_persist_failed", context=context, error=str(exc))
            return None
        return record.id

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int((self._clock() - started) * 1000))
