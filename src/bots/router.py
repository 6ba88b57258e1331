"""Command routing: command handlers first, then free-text classification."""

from __future__ import annotations

import logging

from src.audit.logger import MessageLogger
from src.bots.intents import classify
from src.bots.profiles import BotProfile
from src.bots.replies import select_reply
from src.models import InboundUpdate, MessageLogEvent, MessageLogEventType, RouteResult

logger = logging.getLogger(__name__)


class CommandRouter:
    """Turns one inbound update into the replies a bot should send.

    The same implementation serves every bot; behaviour differences come from
    the ``BotProfile`` tables.
    """

    def __init__(
        self,
        profile: BotProfile,
        message_log: MessageLogger | None = None,
    ) -> None:
        self._profile = profile
        self._message_log = message_log

    def route(self, update: InboundUpdate) -> RouteResult:
        self._record(update)

        if update.command_token:
            handler = self._profile.commands.get(update.command_token)
            if handler is not None:
                return handler(update)
            # Unknown commands are answered like any other text.
            logger.debug(
                "[%s] unknown command /%s, handling as free text",
                self._profile.tag, update.command_token,
            )

        if not update.message_text:
            return RouteResult()

        intent = classify(update.message_text, self._profile.intent_rules)
        logger.debug("[%s] classified as %s", self._profile.tag, intent.value)
        reply = select_reply(intent, update.message_text, self._profile.intent_templates)
        return RouteResult(replies=[reply])

    def _record(self, update: InboundUpdate) -> None:
        logger.info(
            "[%s] message from @%s: %s",
            self._profile.tag, update.sender_display_name, update.message_text,
        )
        if self._message_log:
            self._message_log.try_log(MessageLogEvent(
                event_type=MessageLogEventType.MESSAGE_ROUTED,
                identity=self._profile.name,
                chat_id=update.chat_id,
                sender_id=update.sender_id,
                sender_display_name=update.sender_display_name,
                text=update.message_text,
                details={"command": update.command_token} if update.command_token else None,
            ))
