"""Telegram Bot API client and update decoding.

Outbound calls (sendMessage, setWebhook) go through httpx with TLS
verification. sendMessage retries on 429/5xx with exponential backoff
capped at 30s.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from src.models import DEFAULT_DISPLAY_NAME, InboundUpdate, ReplyPayload
from src.webhook.models import TelegramUpdate

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"

_MAX_RETRIES = 3
_BACKOFF_CAP_SECONDS = 30
_REQUEST_TIMEOUT = 30.0


class UpdateDecodeError(Exception):
    """The inbound payload is not a valid Telegram update."""


class ReplyDeliveryError(Exception):
    """sendMessage failed after all retries or with a non-retryable status."""


class WebhookRegistrationError(Exception):
    """setWebhook was rejected or could not be reached."""


def parse_command(text: str) -> tuple[str | None, str | None]:
    """Split ``/cmd@bot argument`` into ``("cmd", "argument")``.

    Returns ``(None, None)`` for text that is not a command. The argument is
    None when empty.
    """
    body = text[1:]
    if not text.startswith("/") or not body or body[0].isspace():
        return None, None
    parts = body.split(None, 1)
    token = parts[0].split("@", 1)[0]
    if not token:
        return None, None
    argument = parts[1].strip() if len(parts) > 1 else ""
    return token, argument or None


def decode_update(payload: Any) -> InboundUpdate | None:
    """Decode a raw webhook payload.

    Returns None for well-formed updates that carry no message (edits,
    callback queries, channel posts).

    Raises:
        UpdateDecodeError: If the payload does not match the update schema.
    """
    if not isinstance(payload, dict):
        raise UpdateDecodeError("Update must be a JSON object")
    try:
        update = TelegramUpdate.model_validate(payload)
    except ValidationError as e:
        raise UpdateDecodeError(f"Invalid Telegram update: {e.error_count()} error(s)") from e

    message = update.message
    if message is None:
        return None

    sender = message.from_user
    command_token, command_argument = (None, None)
    if message.text:
        command_token, command_argument = parse_command(message.text)

    return InboundUpdate(
        update_id=update.update_id,
        chat_id=message.chat.id,
        sender_id=sender.id if sender else None,
        sender_display_name=(sender.username if sender and sender.username else DEFAULT_DISPLAY_NAME),
        message_text=message.text,
        command_token=command_token,
        command_argument=command_argument,
    )


class TelegramClient:
    """Outbound Telegram Bot API calls for one bot token."""

    def __init__(self, bot_token: str, api_base: str = TELEGRAM_API_BASE) -> None:
        self._bot_token = bot_token
        self._api_base = api_base.rstrip("/")

    def _method_url(self, method: str) -> str:
        return f"{self._api_base}/bot{self._bot_token}/{method}"

    async def send_reply(self, chat_id: int, payload: ReplyPayload) -> None:
        """Send ``payload`` to ``chat_id``.

        Raises:
            ReplyDeliveryError: On a non-retryable error status, on a network
                error, or once retries are exhausted.
        """
        body: dict[str, Any] = {"chat_id": chat_id, "text": payload.body_text}
        if payload.parse_mode:
            body["parse_mode"] = payload.parse_mode

        async with httpx.AsyncClient(verify=True) as client:
            for attempt in range(_MAX_RETRIES + 1):
                try:
                    resp = await client.post(
                        self._method_url("sendMessage"), json=body, timeout=_REQUEST_TIMEOUT,
                    )
                except httpx.HTTPError as e:
                    raise ReplyDeliveryError(f"sendMessage failed: {e}") from e

                if resp.status_code < 400:
                    return
                if not self._should_retry(resp.status_code):
                    raise ReplyDeliveryError(f"sendMessage returned HTTP {resp.status_code}")
                if attempt < _MAX_RETRIES:
                    delay = min(2 ** attempt, _BACKOFF_CAP_SECONDS)
                    await asyncio.sleep(delay)

        raise ReplyDeliveryError(
            f"sendMessage still failing after {_MAX_RETRIES} retries "
            f"(HTTP {resp.status_code})"
        )

    async def set_webhook(self, url: str) -> None:
        """Point the bot's webhook at ``url``.

        Raises:
            WebhookRegistrationError: If the API is unreachable or answers
                with ``ok: false``.
        """
        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(
                    self._method_url("setWebhook"), json={"url": url}, timeout=_REQUEST_TIMEOUT,
                )
        except httpx.HTTPError as e:
            raise WebhookRegistrationError(f"setWebhook failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = {}
        if resp.status_code >= 400 or not data.get("ok", False):
            description = data.get("description") or resp.text
            raise WebhookRegistrationError(
                f"setWebhook returned HTTP {resp.status_code}: {description}"
            )

    @staticmethod
    def _should_retry(status_code: int) -> bool:
        return status_code == 429 or status_code >= 500
