"""Bot identity registry and environment configuration."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from src.bots.profiles import DENSA, LAWSENSE, PROFILES
from src.models import BotIdentity

logger = logging.getLogger(__name__)

# Value shipped in the sample .env; never a real token.
PLACEHOLDER_TOKEN = "YOUR_BOT_TOKEN_HERE"

DEFAULT_PORT = 3000
WEBHOOK_PATH_PREFIX = "/webhook/"


class MissingCredentialError(Exception):
    """The primary bot token is absent or still the placeholder."""


class InvalidConfigError(Exception):
    """An environment option could not be parsed."""


class DuplicateWebhookPathError(Exception):
    """Two identities were configured with the same webhook path."""


@dataclass(frozen=True)
class RelayConfig:
    bot_token: str | None
    med_bot_token: str | None = None
    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"
    webhook_url: str | None = None
    message_log_path: str | None = None
    message_log_max_bytes: int = 10_485_760
    message_log_backup_count: int = 5
    log_level: str = "INFO"
    cors_allow_origins: tuple[str, ...] = ("*",)


def _optional(environ: Mapping[str, str], key: str) -> str | None:
    value = environ.get(key, "").strip()
    return value or None


def _int_option(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = _optional(environ, key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidConfigError(f"{key} must be an integer, got {raw!r}") from e


def load_config_from_env(environ: Mapping[str, str] | None = None) -> RelayConfig:
    """Read relay settings from environment variables.

    Credential validation is left to ``BotRegistry.initialize``.
    """
    env = os.environ if environ is None else environ
    webhook_url = _optional(env, "WEBHOOK_URL")
    cors_origins = tuple(
        origin.strip()
        for origin in (_optional(env, "CORS_ALLOW_ORIGINS") or "*").split(",")
        if origin.strip()
    )
    return RelayConfig(
        bot_token=_optional(env, "BOT_TOKEN"),
        med_bot_token=_optional(env, "MED_BOT_TOKEN"),
        port=_int_option(env, "PORT", DEFAULT_PORT),
        host=_optional(env, "HOST") or "0.0.0.0",
        webhook_url=webhook_url.rstrip("/") if webhook_url else None,
        message_log_path=_optional(env, "MESSAGE_LOG_PATH"),
        message_log_max_bytes=_int_option(env, "MESSAGE_LOG_MAX_BYTES", 10_485_760),
        message_log_backup_count=_int_option(env, "MESSAGE_LOG_BACKUP_COUNT", 5),
        log_level=(_optional(env, "LOG_LEVEL") or "INFO").upper(),
        cors_allow_origins=cors_origins or ("*",),
    )


class BotRegistry:
    """Read-only set of configured bot identities, keyed by name."""

    def __init__(self, identities: list[BotIdentity]) -> None:
        paths = [identity.webhook_path for identity in identities]
        duplicates = sorted({p for p in paths if paths.count(p) > 1})
        if duplicates:
            raise DuplicateWebhookPathError(
                f"Webhook paths must be unique, duplicated: {', '.join(duplicates)}"
            )
        self._identities = {identity.name: identity for identity in identities}

    @classmethod
    def initialize(cls, config: RelayConfig) -> BotRegistry:
        """Build the LawSense (primary) and Densa (secondary) identities.

        Raises:
            MissingCredentialError: If BOT_TOKEN is unset or the placeholder.
        """
        token = config.bot_token
        if not token or token == PLACEHOLDER_TOKEN:
            raise MissingCredentialError(
                "BOT_TOKEN is not set. Set the BOT_TOKEN environment variable."
            )

        med_token = config.med_bot_token
        if med_token == PLACEHOLDER_TOKEN:
            med_token = None
        if med_token == token:
            logger.info(
                "MED_BOT_TOKEN equals BOT_TOKEN; treating %s as sharing the %s token",
                DENSA, LAWSENSE,
            )
            med_token = None
        elif med_token is None:
            logger.info(
                "MED_BOT_TOKEN not set; %s reuses the %s token and its webhook "
                "will not be registered", DENSA, LAWSENSE,
            )

        return cls([
            _make_identity(LAWSENSE, token, has_own_credential=True),
            _make_identity(
                DENSA, med_token or token, has_own_credential=med_token is not None,
            ),
        ])

    def get(self, name: str) -> BotIdentity:
        return self._identities[name]

    def names(self) -> list[str]:
        return list(self._identities)

    def __iter__(self) -> Iterator[BotIdentity]:
        return iter(self._identities.values())

    def __len__(self) -> int:
        return len(self._identities)


def _make_identity(name: str, credential: str, *, has_own_credential: bool) -> BotIdentity:
    return BotIdentity(
        name=name,
        tag=PROFILES[name].tag,
        credential=credential,
        webhook_path=f"{WEBHOOK_PATH_PREFIX}{name}",
        has_own_credential=has_own_credential,
    )
