"""Credit accounting and usage audit log for pipeline runs."""

from __future__ import annotations

from datetime import UTC, datetime

from models import QuotaAccount, RunOutcome, UsageEvent
from services.observability import LogContext, StructuredLogger, get_logger
from services.store import ContentStore, PersistenceError

USAGE_SERVICE_TAG = "linkedin_post_generation"
SPEND_SERVICE_TAG = "credits"


class UsageLedger:
    """Charge metered accounts and record one usage event per run."""

    def __init__(
        self,
        store: ContentStore,
        *,
        service: str = USAGE_SERVICE_TAG,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._store = store
        self._service = service
        self._logger = logger or get_logger()

    def charge(self, requester_id: str, outcome: RunOutcome) -> None:
        """Take one credit for a successful metered run and log the event.

        Never raises: the run result is already computed, so storage errors
        are logged and the usage event is still attempted.
        """
        context = LogContext(requester_id=requester_id)
        credits_used = 0
        if outcome.succeeded:
            try:
                credits_used = self._take_one_credit(requester_id, context)
            except PersistenceError as exc:
                self._logger.error("quota_decrement_failed", context=context, error=str(exc))

        self._record(
            UsageEvent(
                requester_id=requester_id,
                service=self._service,
                credits_used=credits_used,
                success=outcome.succeeded,
                response_time_ms=outcome.latency_ms,
                created_at=datetime.now(UTC),
            ),
            context,
        )

    def spend(self, account: QuotaAccount, amount: int) -> bool:
        """Deduct ``amount`` credits outside a pipeline run.

        Unlimited accounts always succeed without a deduction. Returns False,
        with nothing recorded, when a metered balance is too low.
        Storage errors propagate as ``PersistenceError``.
        """
        context = LogContext(requester_id=account.requester_id)
        credits_used = 0
        if account.is_metered:
            if not self._store.try_decrement_credit(account.requester_id, amount):
                self._logger.warning(
                    "credit_spend_refused",
                    context=context,
                    amount=amount,
                    reason="insufficient_credits",
                )
                return False
            credits_used = amount

        self._record(
            UsageEvent(
                requester_id=account.requester_id,
                service=SPEND_SERVICE_TAG,
                credits_used=credits_used,
                success=True,
                response_time_ms=0,
                created_at=datetime.now(UTC),
            ),
            context,
        )
        return True

    def _take_one_credit(self, requester_id: str, context: LogContext) -> int:
        account = self._store.get_account(requester_id)
        if account is None or not account.is_metered:
            return 0
        if self._store.try_decrement_credit(requester_id):
            return 1
        self._logger.warning(
            "quota_decrement_skipped",
            context=context,
            reason="insufficient_credits",
        )
        return 0

    def _record(self, event: UsageEvent, context: LogContext) -> None:
        try:
            self._store.append_usage_event(event)
        except PersistenceError as exc:
            self._logger.error("usage_event_persist_failed", context=context, error=str(exc))
