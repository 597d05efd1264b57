"""Tests for the notification email renderer."""

from __future__ import annotations

from pathlib import Path

import pytest

from models import ProfileSnapshot
from services.renderer import NotificationRenderer
from services.validator import ContentValidationError


def test_renderer_renders_paragraphs_and_scores() -> None:
    renderer = NotificationRenderer()

    rendered = renderer.render(
        post="First line.\n\nSecond line #Growth",
        ai_score=13,
        human_score=87,
    )

    assert rendered.subject == "Your LinkedIn Post is Ready! (87% Human Score)"
    assert "<p style=\"line-height: 1.6;\">First line.</p>" in rendered.html
    assert "Second line #Growth" in rendered.html
    assert "87%" in rendered.html
    assert "13%" in rendered.html
    assert "Personalized for" not in rendered.html


def test_renderer_adds_personalization_block_for_profile() -> None:
    renderer = NotificationRenderer()

    rendered = renderer.render(
        post="Post body",
        ai_score=20,
        human_score=80,
        profile=ProfileSnapshot(full_name="Michael Chen"),
    )

    assert "Personalized for Michael Chen" in rendered.html


def test_renderer_escapes_post_markup() -> None:
    renderer = NotificationRenderer()

    rendered = renderer.render(
        post="<script>alert(1)</script> done",
        ai_score=50,
        human_score=50,
    )

    assert "<script>" not in rendered.html
    assert "&lt;script&gt;" in rendered.html


def test_renderer_rejects_empty_post() -> None:
    renderer = NotificationRenderer()

    with pytest.raises(ContentValidationError):
        renderer.render(post="   \n  ", ai_score=0, human_score=100)


def test_renderer_rejects_template_without_score_blocks(tmp_path: Path) -> None:
    template = tmp_path / "broken.html"
    template.write_text(
        '<div class="post-container">{% for p in paragraphs %}{{ p }}{% endfor %}</div>'
        "{{ human_score }}{{ ai_score }}{{ profile_name }}",
        encoding="utf-8",
    )
    renderer = NotificationRenderer(template_path=template)

    with pytest.raises(ContentValidationError):
        renderer.render(post="Body", ai_score=1, human_score=99)
