"""Startup registration of each bot's public webhook URL."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from src.models import BotIdentity, WebhookRegistrationResult
from src.webhook.telegram import TelegramClient, WebhookRegistrationError

logger = logging.getLogger(__name__)


async def register_all(
    identities: Iterable[BotIdentity],
    public_base_url: str | None,
    clients: Mapping[str, TelegramClient],
) -> list[WebhookRegistrationResult]:
    """Register ``public_base_url + webhook_path`` for every eligible identity.

    Identities running on a borrowed credential are skipped. A failure for
    one identity is logged and recorded; it never stops the others.
    """
    if not public_base_url:
        logger.info("WEBHOOK_URL not set; skipping automatic webhook registration")
        return []

    base = public_base_url.rstrip("/")
    results: list[WebhookRegistrationResult] = []
    for identity in identities:
        if not identity.has_own_credential:
            logger.info(
                "Skipping webhook registration for %s: no dedicated token", identity.name,
            )
            continue

        url = f"{base}{identity.webhook_path}"
        try:
            await clients[identity.name].set_webhook(url)
        except WebhookRegistrationError as exc:
            logger.error("Webhook registration failed for %s: %s", identity.name, exc)
            results.append(WebhookRegistrationResult(
                identity_name=identity.name, url=url, succeeded=False, error=str(exc),
            ))
            continue

        logger.info("Webhook set for %s: %s", identity.name, url)
        results.append(WebhookRegistrationResult(
            identity_name=identity.name, url=url, succeeded=True,
        ))
    return results
