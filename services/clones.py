"""Writing-style clones derived from a sample post."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from models import CloneRecord
from services.observability import LogContext, StructuredLogger, get_logger
from services.providers import ContentGenerator
from services.resilience import ResiliencePolicy, UpstreamFailure
from services.schemas import TONE_ANALYSIS_SCHEMA
from services.store import ContentStore
from services.validator import (
    ContentValidationError,
    extract_json_payload,
    validate_json_payload,
)

DEFAULT_TONE = "Professional and engaging"
DEFAULT_PERSONALITY = ("Knowledgeable", "Helpful", "Industry-focused")
CLONE_DESCRIPTION = "AI clone based on writing sample analysis"


@dataclass(frozen=True)
class ToneAnalysis:
    tone: str
    personality: tuple[str, ...]
    source_fallback: bool = False


class CloneBuilder:
    """Analyze a sample's tone and store it as an inactive clone."""

    def __init__(
        self,
        *,
        store: ContentStore,
        generator: ContentGenerator,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._store = store
        self._generator = generator
        self._logger = logger or get_logger()
        self._resilience = ResiliencePolicy(name="tone_analysis")

    def analyze_tone(self, sample_post: str) -> ToneAnalysis:
        """Ask the generator for tone and traits; fall back to a neutral profile."""
        try:
            raw = self._resilience.execute(lambda: self._generator.analyze_tone(sample_post))
            payload = extract_json_payload(raw)
            validate_json_payload(payload, TONE_ANALYSIS_SCHEMA)
        except (UpstreamFailure, ContentValidationError) as exc:
            self._logger.warning("tone_analysis_fallback", error=str(exc))
            return ToneAnalysis(
                tone=DEFAULT_TONE,
                personality=DEFAULT_PERSONALITY,
                source_fallback=True,
            )

        return ToneAnalysis(
            tone=payload["tone"].strip(),
            personality=tuple(trait.strip() for trait in payload["personality"]),
        )

    def save_clone(self, *, requester_id: str, clone_name: str, sample_post: str) -> CloneRecord:
        analysis = self.analyze_tone(sample_post)
        clone = CloneRecord(
            id=uuid.uuid4().hex,
            requester_id=requester_id,
            name=clone_name,
            description=CLONE_DESCRIPTION,
            tone=analysis.tone,
            personality=analysis.personality,
            sample_posts=(sample_post,),
            is_active=False,
            created_at=datetime.now(UTC),
        )
        stored = self._store.insert_clone(clone)
        self._logger.info(
            "clone_saved",
            context=LogContext(requester_id=requester_id),
            clone_id=stored.id,
            tone_fallback=analysis.source_fallback,
        )
        return stored

    def list_clones(self, requester_id: str) -> list[CloneRecord]:
        return self._store.list_clones(requester_id)
