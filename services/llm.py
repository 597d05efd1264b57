"""Gemini-backed post generation through the OpenAI-compatible endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, cast

from openai import OpenAI

from config import AppConfig

logger = logging.getLogger(__name__)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

POST_PROMPT_TEMPLATE = (
    'Generate a professional LinkedIn post based on: "{prompt}"\n\n'
    "Requirements:\n"
    "- Professional tone that builds credibility\n"
    "- 150-300 words\n"
    "- Include relevant hashtags\n"
    "- Add a call-to-action\n"
    "- Make it engaging and shareable\n"
    "- Avoid AI-sounding phrases\n\n"
    "Generate only the post content, no additional commentary."
)

TONE_PROMPT_TEMPLATE = (
    "Analyze this LinkedIn post and identify the writing tone and personality traits:\n\n"
    '"{sample}"\n\n'
    "Return a JSON response with:\n"
    "- tone: brief description of writing tone\n"
    "- personality: array of 3-5 personality traits\n\n"
    'Format: {{"tone": "description", "personality": ["trait1", "trait2", "trait3"]}}'
)


@dataclass(frozen=True)
class LLMResult:
    """Normalized completion payload."""

    model: str
    content: str
    raw_response: dict[str, Any]


class GeminiClient:
    """Content generation provider backed by Gemini."""

    def __init__(self, config: AppConfig, *, client: Any | None = None) -> None:
        self._model = config.gemini_model
        self._client = client or OpenAI(
            api_key=config.gemini_api_key,
            base_url=GEMINI_OPENAI_BASE_URL,
            timeout=config.generation_timeout_seconds,
            max_retries=0,
        )

    def chat(
        self,
        *,
        user_prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> LLMResult:
        """Execute a chat completion request and normalize output."""
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        response = self._client.chat.completions.create(
            model=self._model,
            messages=cast(Any, messages),
            temperature=temperature,
            top_p=0.95,
            max_tokens=max_tokens,
        )
        result = _normalize_response(model=self._model, response=response)
        if not result.content:
            logger.warning(
                "Gemini returned empty content for model=%s (raw keys: %s)",
                self._model,
                list(result.raw_response.keys()) if result.raw_response else "none",
            )
        return result

    def generate_post(self, prompt: str) -> str:
        result = self.chat(user_prompt=POST_PROMPT_TEMPLATE.format(prompt=prompt))
        content = result.content.strip()
        if not content:
            raise ValueError("No content generated")
        return content

    def analyze_tone(self, sample_post: str) -> str:
        """Return the raw model answer describing a sample's tone."""
        result = self.chat(
            user_prompt=TONE_PROMPT_TEMPLATE.format(sample=sample_post),
            temperature=0.2,
            max_tokens=400,
        )
        return result.content


def _normalize_response(*, model: str, response: Any) -> LLMResult:
    raw_dict = response.model_dump() if hasattr(response, "model_dump") else {}
    return LLMResult(
        model=model,
        content=_extract_content(response),
        raw_response=raw_dict,
    )


def _extract_content(response: Any) -> str:
    choices = getattr(response, "choices", None)
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    if message is None:
        return ""
    content = getattr(message, "content", "")
    if content is None:
        return ""
    return content if isinstance(content, str) else str(content)
