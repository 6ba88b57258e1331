"""Shared data models for the webhook relay."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Shown in place of a missing Telegram username.
DEFAULT_DISPLAY_NAME = "Пользователь"

HTML = "HTML"


# --- Enums ---


class Intent(str, Enum):
    TRAFFIC_OR_ACCIDENT = "traffic_or_accident"
    JUDICIAL_PROCESS = "judicial_process"
    PAIN_REPORTED = "pain_reported"
    GENERIC = "generic"


class MessageLogEventType(str, Enum):
    MESSAGE_ROUTED = "message_routed"
    REPLY_SENT = "reply_sent"
    REPLY_FAILED = "reply_failed"
    DEFERRED_SENT = "deferred_sent"
    DEFERRED_FAILED = "deferred_failed"


# --- Bot Models ---


class BotIdentity(BaseModel):
    """One configured bot persona. Immutable after startup."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    tag: str  # short log tag, e.g. "LAW"
    credential: str = Field(min_length=1, repr=False)
    webhook_path: str = Field(pattern=r"^/")
    # False when the credential was borrowed from the primary identity
    has_own_credential: bool = True


class InboundUpdate(BaseModel):
    """A decoded platform update carrying a message worth routing."""

    model_config = ConfigDict(frozen=True)

    update_id: int
    chat_id: int
    sender_id: int | None = None
    sender_display_name: str = DEFAULT_DISPLAY_NAME
    message_text: str | None = None
    command_token: str | None = None
    command_argument: str | None = None


@dataclass(frozen=True)
class ReplyPayload:
    body_text: str
    parse_mode: str | None = HTML


@dataclass(frozen=True)
class DeferredReply:
    """A reply picked at random from ``candidates`` once ``delay_seconds`` elapse."""

    candidates: tuple[str, ...]
    delay_seconds: float
    parse_mode: str | None = HTML


@dataclass
class RouteResult:
    replies: list[ReplyPayload] = field(default_factory=list)
    deferred: DeferredReply | None = None


@dataclass
class WebhookRegistrationResult:
    identity_name: str
    url: str
    succeeded: bool
    error: str | None = None


# --- Message Log Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class MessageLogEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: MessageLogEventType
    identity: str
    chat_id: int | None = None
    sender_id: int | None = None
    sender_display_name: str | None = None
    text: str | None = None
    details: dict[str, object] | None = None
