"""Shared test fixtures for the webhook relay."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from src.bots.registry import RelayConfig
from src.models import BotIdentity, InboundUpdate
from src.webhook.telegram import TelegramClient

LAW_TOKEN = "111:LAW"
MED_TOKEN = "222:MED"


@pytest.fixture
def mock_client() -> MagicMock:
    return MagicMock(spec=TelegramClient)


# --- Factory functions for test data ---


def make_update(**kwargs: Any) -> InboundUpdate:
    """Factory for InboundUpdate with sensible defaults."""
    defaults: dict[str, Any] = {
        "update_id": 1,
        "chat_id": 12345,
        "sender_id": 42,
        "sender_display_name": "alice",
        "message_text": "hello",
    }
    defaults.update(kwargs)
    return InboundUpdate(**defaults)


def make_command(token: str, argument: str | None = None, **kwargs: Any) -> InboundUpdate:
    text = f"/{token} {argument}" if argument else f"/{token}"
    return make_update(
        message_text=text, command_token=token, command_argument=argument, **kwargs,
    )


def make_identity(**kwargs: Any) -> BotIdentity:
    """Factory for BotIdentity with sensible defaults."""
    defaults: dict[str, Any] = {
        "name": "lawsense",
        "tag": "LAW",
        "credential": LAW_TOKEN,
        "webhook_path": "/webhook/lawsense",
        "has_own_credential": True,
    }
    defaults.update(kwargs)
    return BotIdentity(**defaults)


def make_config(**kwargs: Any) -> RelayConfig:
    """Factory for RelayConfig with both bot tokens set."""
    defaults: dict[str, Any] = {
        "bot_token": LAW_TOKEN,
        "med_bot_token": MED_TOKEN,
    }
    defaults.update(kwargs)
    return RelayConfig(**defaults)


def make_telegram_update(
    update_id: int = 1,
    text: str | None = "hello",
    chat_id: int = 12345,
    user_id: int = 42,
    username: str | None = "alice",
) -> dict[str, Any]:
    """Raw Telegram update payload as posted to a webhook."""
    sender: dict[str, Any] = {"id": user_id, "is_bot": False, "first_name": "Alice"}
    if username is not None:
        sender["username"] = username
    message: dict[str, Any] = {
        "message_id": 1,
        "date": 1700000000,
        "chat": {"id": chat_id, "type": "private"},
        "from": sender,
    }
    if text is not None:
        message["text"] = text
    return {"update_id": update_id, "message": message}
