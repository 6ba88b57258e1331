"""Per-bot webhook dispatch: route a decoded update and deliver the replies."""

from __future__ import annotations

import logging
import random

from src.audit.logger import MessageLogger
from src.bots.replies import choose_deferred_reply
from src.bots.router import CommandRouter
from src.models import (
    BotIdentity,
    DeferredReply,
    InboundUpdate,
    MessageLogEvent,
    MessageLogEventType,
    ReplyPayload,
)
from src.webhook.scheduler import DeferredReplyScheduler
from src.webhook.telegram import ReplyDeliveryError, TelegramClient

logger = logging.getLogger(__name__)


class WebhookDispatcher:
    """Handles updates arriving on one bot's webhook path."""

    def __init__(
        self,
        identity: BotIdentity,
        router: CommandRouter,
        client: TelegramClient,
        scheduler: DeferredReplyScheduler,
        message_log: MessageLogger | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.identity = identity
        self._router = router
        self._client = client
        self._scheduler = scheduler
        self._message_log = message_log
        self._rng = rng or random.Random()

    async def dispatch(self, update: InboundUpdate) -> int:
        """Route ``update`` and send its immediate replies.

        Delivery failures are logged, never raised. Returns the number of
        immediate replies delivered.
        """
        result = self._router.route(update)

        delivered = 0
        for reply in result.replies:
            if await self._deliver(update, reply, MessageLogEventType.REPLY_SENT):
                delivered += 1

        if result.deferred is not None:
            self._schedule_deferred(update, result.deferred)
        return delivered

    def deferred_key(self, update: InboundUpdate) -> str:
        return f"{self.identity.name}:{update.update_id}"

    def _schedule_deferred(self, update: InboundUpdate, deferred: DeferredReply) -> None:
        async def send_deferred() -> None:
            reply = choose_deferred_reply(deferred.candidates, self._rng, deferred.parse_mode)
            await self._deliver(update, reply, MessageLogEventType.DEFERRED_SENT)

        key = self.deferred_key(update)
        self._scheduler.schedule(key, deferred.delay_seconds, send_deferred)
        logger.debug("[%s] deferred reply %s in %.1fs", self.identity.tag, key, deferred.delay_seconds)

    async def _deliver(
        self,
        update: InboundUpdate,
        reply: ReplyPayload,
        success_event: MessageLogEventType,
    ) -> bool:
        try:
            await self._client.send_reply(update.chat_id, reply)
        except ReplyDeliveryError as exc:
            logger.error(
                "[%s] reply to chat %s failed: %s", self.identity.tag, update.chat_id, exc,
            )
            failed = (
                MessageLogEventType.DEFERRED_FAILED
                if success_event is MessageLogEventType.DEFERRED_SENT
                else MessageLogEventType.REPLY_FAILED
            )
            self._log_event(failed, update, {"error": str(exc)})
            return False

        self._log_event(success_event, update, None)
        return True

    def _log_event(
        self,
        event_type: MessageLogEventType,
        update: InboundUpdate,
        details: dict[str, object] | None,
    ) -> None:
        if self._message_log:
            self._message_log.try_log(MessageLogEvent(
                event_type=event_type,
                identity=self.identity.name,
                chat_id=update.chat_id,
                sender_id=update.sender_id,
                details=details,
            ))
