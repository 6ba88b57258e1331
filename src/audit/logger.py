"""Message log: append-only JSON Lines record of routed messages, with rotation."""

from __future__ import annotations

import fcntl
import json
import logging
from pathlib import Path

from src.bots.registry import RelayConfig
from src.models import MessageLogEvent

logger = logging.getLogger(__name__)


class MessageLogger:
    """Appends one JSON line per event and rotates the file by size."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count

    @classmethod
    def from_config(cls, config: RelayConfig) -> MessageLogger | None:
        if not config.message_log_path:
            return None
        return cls(
            log_path=config.message_log_path,
            max_bytes=config.message_log_max_bytes,
            backup_count=config.message_log_backup_count,
        )

    def _backup(self, index: int) -> Path:
        return self.log_path.parent / f"{self.log_path.name}.{index}"

    def _maybe_rotate(self) -> None:
        if not self.log_path.exists():
            return
        if self.log_path.stat().st_size < self._max_bytes:
            return

        oldest = self._backup(self._backup_count)
        if oldest.exists():
            oldest.unlink()
        for i in range(self._backup_count - 1, 0, -1):
            if self._backup(i).exists():
                self._backup(i).rename(self._backup(i + 1))
        self.log_path.rename(self._backup(1))

    def log(self, event: MessageLogEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(
            json.loads(event.model_dump_json(exclude_none=True)),
            ensure_ascii=False,
            separators=(",", ":"),
        )

        lock_file = self.log_path.parent / f".{self.log_path.name}.lock"
        with open(lock_file, "w") as lf:
            fcntl.flock(lf, fcntl.LOCK_EX)
            try:
                self._maybe_rotate()
                with open(self.log_path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            finally:
                fcntl.flock(lf, fcntl.LOCK_UN)

    def try_log(self, event: MessageLogEvent) -> bool:
        """Like ``log`` but reports I/O errors instead of raising them."""
        try:
            self.log(event)
        except OSError as exc:
            logger.warning("Failed to write message log %s: %s", self.log_path, exc)
            return False
        return True
