"""Per-sender reply cooldown tracking."""

from __future__ import annotations

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)

# Table size above which an insert triggers a sweep of expired entries.
SWEEP_THRESHOLD = 1000


class CooldownTracker:
    """Remembers when each sender last got an auto-reply.

    A sender with no entry is never on cooldown. The table is swept
    opportunistically on the insert that pushes it past
    :data:`SWEEP_THRESHOLD`; a burst of unique senders inside one cooldown
    window can still grow it beyond that.
    """

    def __init__(
        self,
        cooldown_seconds: float,
        *,
        clock: Callable[[], float] = time.time,
        sweep_threshold: int = SWEEP_THRESHOLD,
    ) -> None:
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._last_reply: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._last_reply)

    def __contains__(self, sender: str) -> bool:
        return sender in self._last_reply

    def is_on_cooldown(self, sender: str, now: float | None = None) -> bool:
        last = self._last_reply.get(sender)
        if last is None:
            return False
        if now is None:
            now = self._clock()
        return now - last < self.cooldown_seconds

    def mark_replied(self, sender: str, now: float | None = None) -> None:
        if now is None:
            now = self._clock()
        self._last_reply[sender] = now

        if len(self._last_reply) > self._sweep_threshold:
            self._sweep(now)

    def _sweep(self, now: float) -> None:
        cutoff = now - self.cooldown_seconds
        expired = [sender for sender, ts in self._last_reply.items() if ts < cutoff]
        for sender in expired:
            del self._last_reply[sender]
        logger.debug(
            "Cooldown sweep removed %d entries, %d remain", len(expired), len(self._last_reply)
        )
