"""Deterministic rendering of the post-ready notification email."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from models import ProfileSnapshot
from services.validator import ContentValidationError, validate_rendered_notification

DEFAULT_TEMPLATE_PATH = Path(__file__).parent / "templates" / "notification_email.html"


@dataclass(frozen=True)
class RenderedNotification:
    """Subject and HTML body ready for the notification provider."""

    subject: str
    html: str


class NotificationRenderer:
    """Render the notification email via Jinja template."""

    def __init__(self, template_path: Path = DEFAULT_TEMPLATE_PATH) -> None:
        self._template_path = template_path
        self._environment = Environment(
            loader=FileSystemLoader(str(template_path.parent)),
            autoescape=select_autoescape(enabled_extensions=("html", "xml")),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(
        self,
        *,
        post: str,
        ai_score: int,
        human_score: int,
        profile: ProfileSnapshot | None = None,
    ) -> RenderedNotification:
        template = self._environment.get_template(self._template_path.name)
        html = template.render(
            paragraphs=_split_paragraphs(post),
            ai_score=ai_score,
            human_score=human_score,
            profile_name=profile.full_name if profile else "",
        )

        html_errors = validate_rendered_notification(html)
        if html_errors:
            raise ContentValidationError("; ".join(html_errors))

        return RenderedNotification(
            subject=f"Your LinkedIn Post is Ready! ({human_score}% Human Score)",
            html=html,
        )


def _split_paragraphs(post: str) -> list[str]:
    return [line.strip() for line in post.splitlines() if line.strip()]
