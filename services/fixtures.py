"""Deterministic offline providers used when ``PROVIDER_MODE=fixture``."""

from __future__ import annotations

import itertools
import json
import logging
import re
import uuid
from typing import Any

from models import ProfileSnapshot

logger = logging.getLogger(__name__)

FIXTURE_POST = (
    "The biggest lesson I learned this quarter: consistency beats perfection every time.\n"
    "\n"
    'While everyone was waiting for the "perfect moment" to launch, we shipped our MVP '
    "and learned more in 30 days than we did in 6 months of planning.\n"
    "\n"
    "Here's what actually moved the needle:\n"
    "→ Daily customer conversations\n"
    "→ Weekly iteration cycles\n"
    "→ Transparent progress updates\n"
    "\n"
    "The market doesn't care about your perfect plan. It cares about your ability "
    "to solve real problems.\n"
    "\n"
    "What's one imperfect action you could take today?\n"
    "\n"
    "#Leadership #Entrepreneurship #Growth"
)

# Keyword -> (pattern, replacement) pairs that steer the template toward a topic.
_TOPIC_REWRITES: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    ("leadership", ((r"\bgrowth\b", "leadership"),)),
    ("marketing", ((r"\bcustomer\b", "audience"), (r"\bplan\b", "marketing plan"))),
    ("sales", ((r"\bgrowth\b", "sales growth"), (r"\bcustomer\b", "prospect"))),
    ("remote work", ((r"\bcustomer conversations\b", "async check-ins"),)),
)

_PROFILES: tuple[tuple[tuple[str, ...], ProfileSnapshot], ...] = (
    (
        ("sarah", "marketing"),
        ProfileSnapshot(
            full_name="Sarah Johnson",
            headline=(
                "Senior Marketing Manager at TechCorp | Digital Marketing Expert | "
                "Growth Strategist"
            ),
            about=(
                "Passionate marketing professional with 8+ years of experience in digital "
                "marketing, content strategy, and brand management. I help B2B companies "
                "scale their marketing efforts and drive meaningful engagement through "
                "data-driven strategies and creative campaigns."
            ),
            location="San Francisco, CA",
            industry="Marketing and Advertising",
        ),
    ),
    (
        ("michael", "product"),
        ProfileSnapshot(
            full_name="Michael Chen",
            headline=(
                "Product Manager | AI & Machine Learning Enthusiast | "
                "Building the Future of Technology"
            ),
            about=(
                "Product manager with a passion for AI and machine learning. I lead "
                "cross-functional teams to build innovative products that solve "
                "real-world problems."
            ),
            location="New York, NY",
            industry="Technology",
        ),
    ),
    (
        ("emma", "sales"),
        ProfileSnapshot(
            full_name="Emma Rodriguez",
            headline=(
                "Sales Director | Revenue Growth Expert | Building High-Performance Sales Teams"
            ),
            about=(
                "Results-driven sales leader with 10+ years of experience building and "
                "scaling high-performance sales organizations."
            ),
            location="Austin, TX",
            industry="Sales",
        ),
    ),
)

_HUMANIZE_RULES: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, flags), replacement)
    for pattern, replacement, flags in (
        (r"\bIt should be noted that\b", "Worth noting:", re.IGNORECASE),
        (r"\bIt is essential to\b", "Make sure to", re.IGNORECASE),
        (r"\bdo not\b", "don't", re.IGNORECASE),
        (r"\bcannot\b", "can't", re.IGNORECASE),
        (r"\bwill not\b", "won't", re.IGNORECASE),
        (r"\bit is\b", "it's", re.IGNORECASE),
        (r"\bthat is\b", "that's", re.IGNORECASE),
        (r"\bwe are\b", "we're", re.IGNORECASE),
        (r"\bthey are\b", "they're", re.IGNORECASE),
        (r"\byou are\b", "you're", re.IGNORECASE),
        (r"\bI am\b", "I'm", 0),
        (r"\bFurthermore,", "Plus,", 0),
        (r"\bHowever,", "But", 0),
        (r"\bTherefore,", "So", 0),
        (r"\bNevertheless,", "Still,", 0),
        (r"\bConsequently,", "As a result,", 0),
        (r"\bIn conclusion,", "Bottom line:", 0),
        (r"\bdelve into\b", "explore", re.IGNORECASE),
        (r"\bleverage\b", "use", re.IGNORECASE),
        (r"\butilize\b", "use", re.IGNORECASE),
        (r"\bfacilitate\b", "help", re.IGNORECASE),
        (r"\bnumerous\b", "many", re.IGNORECASE),
        (r"\badditional\b", "more", re.IGNORECASE),
    )
)

_GRAMMAR_RULES: tuple[tuple[re.Pattern[str], str, str], ...] = (
    (re.compile(r"\bi\b"), "I", "Capitalize the pronoun"),
    (re.compile(r"\bim\b"), "I'm", "Missing apostrophe"),
    (re.compile(r"\byour (going|coming|doing|being)\b"), r"you're \1", "Confused your/you're"),
    (re.compile(r"\bthere (going|coming|doing|being)\b"), r"they're \1", "Confused there/they're"),
    (re.compile(r"[ \t]+([,.!?;:])"), r"\1", "Space before punctuation"),
    (re.compile(r"[ \t]{2,}"), " ", "Repeated whitespace"),
    (re.compile(r"\bvery good\b"), "excellent", "Weak intensifier"),
    (re.compile(r"\ba lot of\b"), "many", "Informal quantifier"),
)

_AI_INDICATORS: tuple[tuple[re.Pattern[str], float], ...] = (
    (re.compile(r"\b(Furthermore|Moreover|Additionally|Consequently)\b", re.I), 0.08),
    (re.compile(r"\b(In conclusion|To summarize|In summary)\b", re.I), 0.06),
    (re.compile(r"\b(delve into|leverage|utilize|facilitate|optimize)\b", re.I), 0.05),
    (re.compile(r"\b(comprehensive|extensive|substantial|significant)\b", re.I), 0.03),
    (re.compile(r"\b(It is important to note|It should be noted)\b", re.I), 0.07),
    (re.compile(r"\b(various|numerous|multiple)\b", re.I), 0.02),
    (re.compile(r"\b(I'm|don't|can't|won't|it's)\b", re.I), -0.03),
    (re.compile(r"[!?]{1,2}"), -0.02),
    (re.compile(r"\b(honestly|actually|really|pretty|quite)\b", re.I), -0.02),
    (re.compile(r"\b(I think|I believe|In my opinion)\b", re.I), -0.04),
)


class FixtureProfileEnricher:
    """Return a canned profile chosen by keywords in the URL."""

    def fetch_profile(self, profile_url: str) -> ProfileSnapshot:
        lowered = profile_url.lower()
        for keywords, profile in _PROFILES:
            if any(keyword in lowered for keyword in keywords):
                return profile
        return _PROFILES[0][1]


class FixtureContentGenerator:
    def generate_post(self, prompt: str) -> str:
        post = FIXTURE_POST
        lowered = prompt.lower()
        for keyword, rewrites in _TOPIC_REWRITES:
            if keyword in lowered:
                for pattern, replacement in rewrites:
                    post = re.sub(pattern, replacement, post, flags=re.IGNORECASE)
                break
        return post

    def analyze_tone(self, sample_post: str) -> str:
        tone = "Energetic and conversational" if "!" in sample_post else "Professional and engaging"
        personality = ["Knowledgeable", "Helpful", "Industry-focused"]
        if "?" in sample_post:
            personality.append("Curious")
        return json.dumps({"tone": tone, "personality": personality})


class FixtureHumanizer:
    """Swap stiff phrasing for conversational equivalents."""

    def humanize(self, content: str) -> str:
        humanized = content
        for pattern, replacement in _HUMANIZE_RULES:
            humanized = pattern.sub(
                lambda match, value=replacement: _match_case(match.group(0), value),
                humanized,
            )
        return re.sub(r"[ \t]{2,}", " ", humanized).strip()


class FixtureGrammarChecker:
    """Emit LanguageTool-shaped matches from a handful of regex rules."""

    def check(self, text: str) -> list[dict[str, Any]]:
        matches: list[dict[str, Any]] = []
        for pattern, replacement, message in _GRAMMAR_RULES:
            for match in pattern.finditer(text):
                value = match.expand(replacement)
                if value == match.group(0):
                    continue
                matches.append(
                    {
                        "offset": match.start(),
                        "length": match.end() - match.start(),
                        "message": message,
                        "replacements": [{"value": value}],
                    }
                )
        return sorted(matches, key=lambda item: item["offset"])


class FixtureAIDetector:
    """Heuristic AI-likelihood score clamped to ``[0.05, 0.95]``."""

    def score(self, text: str) -> float:
        score = 0.15
        for pattern, weight in _AI_INDICATORS:
            score += len(pattern.findall(text)) * weight
        if len(text) > 1000:
            score += 0.02
        if len(text) < 200:
            score += 0.03
        return round(min(max(score, 0.05), 0.95), 4)


class FixtureNotifier:
    """Log the email instead of sending it."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def send(self, *, to: str, subject: str, html: str) -> str:
        message_id = f"fixture-email-{next(self._counter)}"
        logger.info(
            "Fixture notification %s to %s: %s (%d bytes)", message_id, to, subject, len(html)
        )
        return message_id


class FixtureAutomationLauncher:
    def launch(self) -> str:
        return f"fixture-container-{uuid.uuid4().hex[:12]}"


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper() and replacement[:1].islower():
        return replacement[:1].upper() + replacement[1:]
    return replacement
