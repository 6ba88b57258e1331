"""Reply selection: canned templates per intent and deferred candidate picking."""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from html import escape

from src.models import HTML, Intent, ReplyPayload

INTERNAL_ERROR_TEXT = "Произошла внутренняя ошибка: отсутствует ответ."


def html(text: str) -> ReplyPayload:
    return ReplyPayload(body_text=text, parse_mode=HTML)


def plain(text: str) -> ReplyPayload:
    return ReplyPayload(body_text=text, parse_mode=None)


def render(template: str, **values: object) -> str:
    """Fill ``template`` with HTML-escaped ``values``."""
    return template.format(**{key: escape(str(value)) for key, value in values.items()})


def select_reply(
    intent: Intent,
    original_input: str,
    templates: Mapping[Intent, str],
) -> ReplyPayload:
    """Render the template registered for ``intent``.

    Templates may embed the original message as ``{text}``. An intent with
    no template of its own falls back to the GENERIC one.
    """
    template = templates.get(intent, templates[Intent.GENERIC])
    return html(render(template, text=original_input))


def choose_deferred_reply(
    candidates: Sequence[str],
    rng: random.Random | None = None,
    parse_mode: str | None = HTML,
) -> ReplyPayload:
    """Pick one candidate uniformly at random.

    An empty candidate list yields the internal-error reply instead of
    raising, so the user always gets an answer.
    """
    if not candidates:
        return html(INTERNAL_ERROR_TEXT)
    chooser = rng or random
    return ReplyPayload(body_text=chooser.choice(list(candidates)), parse_mode=parse_mode)
