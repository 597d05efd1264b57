"""Core typed models used across the post pipeline."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class StageName(StrEnum):
    """Pipeline stages in execution order."""

    ENRICHMENT = "enrichment"
    GENERATION = "generation"
    HUMANIZATION = "humanization"
    GRAMMAR = "grammar"
    DETECTION = "detection"
    NOTIFICATION = "notification"
    AUTOMATION = "automation"


STAGE_ORDER: tuple[StageName, ...] = tuple(StageName)


class QuotaPlan(StrEnum):
    """Credit plan for a requester account."""

    METERED = "metered"
    UNLIMITED = "unlimited"


class PostStatus(StrEnum):
    """Lifecycle status of a stored post."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


# Requests carry no tone choice yet; pipeline posts are stored with this one.
DEFAULT_POST_TONE = "professional"


class RejectionCode(StrEnum):
    """Reasons a pipeline run can be refused or aborted."""

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    QUOTA_EXCEEDED = "quota_exceeded"
    UPSTREAM_FAILURE = "upstream_failure"


@dataclass(frozen=True)
class ContentRequest:
    """Input to a single pipeline run."""

    prompt: str
    notify_address: str
    requester_id: str
    enrichment_source: str | None = None
    trigger_automation: bool = False


@dataclass(frozen=True)
class ProfileSnapshot:
    """Profile fields returned by the enrichment scraper."""

    full_name: str
    headline: str = ""
    about: str = ""
    location: str = ""
    industry: str = ""

    def to_payload(self) -> dict[str, str]:
        return {
            "fullName": self.full_name,
            "headline": self.headline,
            "about": self.about,
            "location": self.location,
            "industry": self.industry,
        }


@dataclass(frozen=True)
class GrammarCorrection:
    """Corrected text and how many replacements were applied."""

    text: str
    correction_count: int


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Uniform wrapper returned by every stage adapter."""

    succeeded: bool
    value: T
    duration_ms: int
    source_fallback: bool
    error: str | None = None


def split_scores(probability: float) -> tuple[int, int]:
    """Return ``(ai_score, human_score)`` from an AI probability.

    Rounds half up so ``0.125`` maps to 13, and the pair always sums to 100.
    """
    bounded = min(max(probability, 0.0), 1.0)
    ai_score = int(math.floor(bounded * 100 + 0.5))
    return ai_score, 100 - ai_score


@dataclass
class PipelineRun:
    """Mutable state threaded through the stages of one request."""

    request: ContentRequest
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    enriched_prompt: str = ""
    profile_snapshot: ProfileSnapshot | None = None
    raw_content: str = ""
    humanized_content: str = ""
    corrected_content: str = ""
    grammar_correction_count: int = 0
    ai_score: int = 0
    human_score: int = 100
    notification_sent: bool = False
    automation_triggered: bool = False
    step_flags: dict[StageName, bool] = field(
        default_factory=lambda: {stage: False for stage in STAGE_ORDER}
    )
    provider_flags: dict[StageName, bool] = field(
        default_factory=lambda: {stage: False for stage in STAGE_ORDER}
    )

    def __post_init__(self) -> None:
        if not self.enriched_prompt:
            self.enriched_prompt = self.request.prompt

    @property
    def was_enriched(self) -> bool:
        return self.enriched_prompt != self.request.prompt

    def record_stage(self, stage: StageName, *, completed: bool, used_provider: bool) -> None:
        self.step_flags[stage] = completed
        self.provider_flags[stage] = used_provider

    def record_detection(self, probability: float) -> None:
        self.ai_score, self.human_score = split_scores(probability)


@dataclass(frozen=True)
class PipelineRunResult:
    """Successful outcome: generation produced text."""

    run: PipelineRun
    processing_time_ms: int
    post_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejection:
    """Refused or aborted run, with partial step flags for diagnostics."""

    code: RejectionCode
    message: str
    error: str
    step_flags: dict[StageName, bool] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return False


@dataclass(frozen=True)
class RunOutcome:
    """What the usage ledger needs to know about a finished run."""

    succeeded: bool
    latency_ms: int


@dataclass(frozen=True)
class QuotaAccount:
    """Credit balance for one requester."""

    requester_id: str
    plan: QuotaPlan
    remaining: int

    @property
    def is_metered(self) -> bool:
        return self.plan == QuotaPlan.METERED

    @property
    def has_capacity(self) -> bool:
        return not self.is_metered or self.remaining >= 1


@dataclass(frozen=True)
class PostRecord:
    """Persisted post derived from a completed run."""

    id: str
    requester_id: str
    content: str
    tone: str
    status: PostStatus
    ai_score: int
    human_score: int
    created_at: datetime


@dataclass(frozen=True)
class UsageEvent:
    """Immutable audit row appended for every run."""

    requester_id: str
    service: str
    credits_used: int
    success: bool
    response_time_ms: int
    created_at: datetime


@dataclass(frozen=True)
class CloneRecord:
    """Writing-style profile derived from a sample post."""

    id: str
    requester_id: str
    name: str
    description: str
    tone: str
    personality: tuple[str, ...]
    sample_posts: tuple[str, ...]
    is_active: bool
    created_at: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.requester_id,
            "name": self.name,
            "description": self.description,
            "tone": self.tone,
            "personality": list(self.personality),
            "samplePosts": list(self.sample_posts),
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
        }
