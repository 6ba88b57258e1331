"""Application context: everything built once at startup and shared read-only."""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

from src.audit.logger import MessageLogger
from src.bots.profiles import PROFILES
from src.bots.registry import BotRegistry, RelayConfig
from src.bots.router import CommandRouter
from src.webhook.dispatcher import WebhookDispatcher
from src.webhook.scheduler import DeferredReplyScheduler
from src.webhook.telegram import TelegramClient


@dataclass
class RelayContext:
    config: RelayConfig
    registry: BotRegistry
    clients: dict[str, TelegramClient]
    dispatchers: dict[str, WebhookDispatcher]
    scheduler: DeferredReplyScheduler
    message_log: MessageLogger | None = None


def build_context(
    config: RelayConfig,
    *,
    client_factory: Callable[[str], TelegramClient] = TelegramClient,
    rng: random.Random | None = None,
) -> RelayContext:
    """Validate configuration and wire one router/dispatcher per bot.

    Raises:
        MissingCredentialError: If the primary bot token is missing.
    """
    registry = BotRegistry.initialize(config)
    message_log = MessageLogger.from_config(config)
    scheduler = DeferredReplyScheduler()

    clients: dict[str, TelegramClient] = {}
    dispatchers: dict[str, WebhookDispatcher] = {}
    for identity in registry:
        clients[identity.name] = client_factory(identity.credential)
        dispatchers[identity.name] = WebhookDispatcher(
            identity=identity,
            router=CommandRouter(PROFILES[identity.name], message_log),
            client=clients[identity.name],
            scheduler=scheduler,
            message_log=message_log,
            rng=rng,
        )

    return RelayContext(
        config=config,
        registry=registry,
        clients=clients,
        dispatchers=dispatchers,
        scheduler=scheduler,
        message_log=message_log,
    )
