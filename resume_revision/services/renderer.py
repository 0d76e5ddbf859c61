from __future__ import annotations

import hashlib
import html
import logging
from pathlib import Path
from typing import Protocol

from resume_revision.schemas.history import Artifact
from resume_revision.schemas.resume import ResumeDocument

logger = logging.getLogger(__name__)

THEMES: dict[str, str] = {
    "classic": "body{font-family:Georgia,serif;max-width:760px;margin:2rem auto;color:#222}"
    "h1{margin-bottom:.2rem}h2{border-bottom:1px solid #999;font-size:1.05rem;text-transform:uppercase}",
    "modern": "body{font-family:Helvetica,Arial,sans-serif;max-width:780px;margin:2rem auto;color:#1f2933}"
    "h1{color:#0b4f6c}h2{color:#0b4f6c;font-size:1rem;letter-spacing:.05em}",
    "minimal": "body{font-family:Arial,sans-serif;max-width:720px;margin:1.5rem auto}"
    "h2{font-size:.95rem;margin-top:1.4rem}",
}


class ArtifactRenderer(Protocol):
    def render(self, document: ResumeDocument, theme: str) -> Artifact | None: ...


def _section(title: str, body: str) -> str:
    return f"<section><h2>{html.escape(title)}</h2>{body}</section>" if body else ""


def _list(items: list[str]) -> str:
    clean = [item for item in items if item.strip()]
    if not clean:
        return ""
    return "<ul>" + "".join(f"<li>{html.escape(item)}</li>" for item in clean) + "</ul>"


def render_html(document: ResumeDocument, theme: str) -> str:
    css = THEMES.get(theme, THEMES["classic"])
    direction = "rtl" if document.language.rtl else "ltr"
    contact = document.contact
    contact_line = " | ".join(
        html.escape(value) for value in (contact.email, contact.phone, contact.location, *contact.links) if value
    )

    experience_parts: list[str] = []
    for entry in document.experience:
        heading = " - ".join(html.escape(value) for value in (entry.title, entry.company) if value)
        dates = " - ".join(html.escape(value) for value in (entry.start_date, entry.end_date) if value)
        experience_parts.append(f"<h3>{heading}</h3><p class=\"dates\">{dates}</p>{_list(entry.achievements)}")

    education_items = [
        ", ".join(value for value in (entry.degree, entry.field, entry.institution, entry.graduation_date) if value)
        for entry in document.education
    ]
    project_items = [
        ": ".join(value for value in (project.name, project.description) if value) for project in document.projects
    ]
    skills = document.skills.technical + document.skills.soft

    body = "".join(
        [
            f"<header><h1>{html.escape(contact.name)}</h1><p>{contact_line}</p></header>",
            _section("Summary", f"<p>{html.escape(document.summary)}</p>" if document.summary.strip() else ""),
            _section("Skills", f"<p>{html.escape(', '.join(skills))}</p>" if skills else ""),
            _section("Experience", "".join(experience_parts)),
            _section("Education", _list(education_items)),
            _section("Projects", _list(project_items)),
            _section("Certifications", _list(document.certifications)),
        ]
    )
    return (
        f"<!DOCTYPE html><html lang=\"{html.escape(document.language.lang)}\" dir=\"{direction}\">"
        f"<head><meta charset=\"utf-8\"><style>{css}</style></head><body>{body}</body></html>"
    )


class HtmlPreviewRenderer:
    """Writes a self-contained HTML preview per (document, theme) into ``output_dir``."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def render(self, document: ResumeDocument, theme: str) -> Artifact | None:
        markup = render_html(document, theme)
        digest = hashlib.sha256(f"{theme}\x00{markup}".encode("utf-8")).hexdigest()[:24]
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"{digest}.html"
        if not path.exists():
            path.write_text(markup, encoding="utf-8")
        return Artifact(type="preview", path=str(path))


def render_safely(renderer: ArtifactRenderer | None, document: ResumeDocument, theme: str) -> Artifact | None:
    if renderer is None:
        return None
    try:
        return renderer.render(document, theme)
    except Exception as exc:  # noqa: BLE001 - a missing preview never blocks a commit
        logger.warning("preview_render_failed theme=%s: %s", theme, exc)
        return None
