"""Tests for configuration loading and the bot identity registry."""

from __future__ import annotations

import pytest

from src.bots.registry import (
    PLACEHOLDER_TOKEN,
    BotRegistry,
    DuplicateWebhookPathError,
    InvalidConfigError,
    MissingCredentialError,
    load_config_from_env,
)
from tests.conftest import LAW_TOKEN, MED_TOKEN, make_config, make_identity


class TestLoadConfigFromEnv:
    def test_defaults(self) -> None:
        config = load_config_from_env({"BOT_TOKEN": LAW_TOKEN})
        assert config.bot_token == LAW_TOKEN
        assert config.med_bot_token is None
        assert config.port == 3000
        assert config.host == "0.0.0.0"
        assert config.webhook_url is None
        assert config.message_log_path is None
        assert config.log_level == "INFO"

    def test_reads_all_options(self) -> None:
        config = load_config_from_env({
            "BOT_TOKEN": LAW_TOKEN,
            "MED_BOT_TOKEN": MED_TOKEN,
            "PORT": "8080",
            "HOST": "127.0.0.1",
            "WEBHOOK_URL": "https://relay.example.com/",
            "MESSAGE_LOG_PATH": "data/messages.jsonl",
            "LOG_LEVEL": "debug",
        })
        assert config.med_bot_token == MED_TOKEN
        assert config.port == 8080
        assert config.host == "127.0.0.1"
        assert config.webhook_url == "https://relay.example.com"
        assert config.message_log_path == "data/messages.jsonl"
        assert config.log_level == "DEBUG"

    def test_blank_values_treated_as_unset(self) -> None:
        config = load_config_from_env({"BOT_TOKEN": "  ", "WEBHOOK_URL": ""})
        assert config.bot_token is None
        assert config.webhook_url is None

    def test_cors_origins_default_to_any(self) -> None:
        config = load_config_from_env({"BOT_TOKEN": LAW_TOKEN})
        assert config.cors_allow_origins == ("*",)

    def test_cors_origins_split_on_commas(self) -> None:
        config = load_config_from_env({
            "BOT_TOKEN": LAW_TOKEN,
            "CORS_ALLOW_ORIGINS": "https://a.example, https://b.example,",
        })
        assert config.cors_allow_origins == ("https://a.example", "https://b.example")

    def test_invalid_port_rejected(self) -> None:
        with pytest.raises(InvalidConfigError, match="PORT"):
            load_config_from_env({"BOT_TOKEN": LAW_TOKEN, "PORT": "eighty"})

    def test_reads_process_environment_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BOT_TOKEN", "from-env")
        monkeypatch.delenv("PORT", raising=False)
        config = load_config_from_env()
        assert config.bot_token == "from-env"
        assert config.port == 3000


class TestInitialize:
    def test_missing_primary_token_is_fatal(self) -> None:
        with pytest.raises(MissingCredentialError):
            BotRegistry.initialize(make_config(bot_token=None))

    def test_placeholder_primary_token_is_fatal(self) -> None:
        with pytest.raises(MissingCredentialError):
            BotRegistry.initialize(make_config(bot_token=PLACEHOLDER_TOKEN))

    def test_both_identities_with_own_tokens(self) -> None:
        registry = BotRegistry.initialize(make_config())
        assert registry.names() == ["lawsense", "densa"]
        law, med = registry.get("lawsense"), registry.get("densa")
        assert law.credential == LAW_TOKEN
        assert med.credential == MED_TOKEN
        assert law.has_own_credential and med.has_own_credential

    def test_secondary_falls_back_to_primary_token(self) -> None:
        registry = BotRegistry.initialize(make_config(med_bot_token=None))
        med = registry.get("densa")
        assert med.credential == LAW_TOKEN
        assert med.has_own_credential is False
        assert registry.get("lawsense").has_own_credential is True

    def test_placeholder_secondary_token_treated_as_absent(self) -> None:
        registry = BotRegistry.initialize(make_config(med_bot_token=PLACEHOLDER_TOKEN))
        assert registry.get("densa").has_own_credential is False

    def test_secondary_token_equal_to_primary_is_shared(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level("INFO", logger="src.bots.registry")
        registry = BotRegistry.initialize(make_config(med_bot_token=LAW_TOKEN))
        med = registry.get("densa")
        assert med.credential == LAW_TOKEN
        assert med.has_own_credential is False
        assert "MED_BOT_TOKEN equals BOT_TOKEN" in caplog.text

    def test_webhook_paths_are_distinct(self) -> None:
        registry = BotRegistry.initialize(make_config(med_bot_token=None))
        paths = [identity.webhook_path for identity in registry]
        assert paths == ["/webhook/lawsense", "/webhook/densa"]
        assert len(set(paths)) == len(paths)

    def test_tags(self) -> None:
        registry = BotRegistry.initialize(make_config())
        assert registry.get("lawsense").tag == "LAW"
        assert registry.get("densa").tag == "MED"


class TestBotRegistry:
    def test_duplicate_paths_rejected(self) -> None:
        with pytest.raises(DuplicateWebhookPathError, match="/webhook/x"):
            BotRegistry([
                make_identity(name="a", webhook_path="/webhook/x"),
                make_identity(name="b", webhook_path="/webhook/x"),
            ])

    def test_get_unknown_name_raises(self) -> None:
        registry = BotRegistry.initialize(make_config())
        with pytest.raises(KeyError):
            registry.get("other")

    def test_len_and_iteration(self) -> None:
        registry = BotRegistry.initialize(make_config())
        assert len(registry) == 2
        assert [i.name for i in registry] == ["lawsense", "densa"]

    def test_credential_hidden_from_repr(self) -> None:
        identity = make_identity(credential="secret-token")
        assert "secret-token" not in repr(identity)

    def test_identity_is_immutable(self) -> None:
        identity = make_identity()
        with pytest.raises(Exception):
            identity.webhook_path = "/elsewhere"  # type: ignore[misc]
