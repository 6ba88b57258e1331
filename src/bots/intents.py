"""Keyword-based intent classification for free-text messages."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from src.models import Intent


@dataclass(frozen=True)
class IntentRule:
    """Maps any of ``keywords`` (lowercase substrings) to ``intent``."""

    keywords: tuple[str, ...]
    intent: Intent

    def matches(self, lowered_text: str) -> bool:
        return any(keyword in lowered_text for keyword in self.keywords)


def classify(text: str, rules: Sequence[IntentRule]) -> Intent:
    """Return the intent of the first rule whose keywords occur in ``text``.

    Matching is case-insensitive substring containment. Rule order is
    significant: earlier rules win when several match.
    """
    lowered = text.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.intent
    return Intent.GENERIC
