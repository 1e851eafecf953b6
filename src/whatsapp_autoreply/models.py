"""Shared data structures used across all components."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class MatchKind(Enum):
    NO_MATCH = "no_match"
    SUPPRESS = "suppress"
    REPLY = "reply"


@dataclass(frozen=True)
class InboundMessage:
    sender: str  # normalized phone / contact id
    body: str  # raw message text
    is_from_self: bool = False
    is_group_origin: bool = False
    timestamp: float | None = None

    @property
    def normalized_text(self) -> str:
        """Lower-cased, trimmed body used for all rule matching."""
        return self.body.strip().lower()


@dataclass(frozen=True)
class MatchResult:
    kind: MatchKind
    reply: str | None = None
    keyword: str | None = None  # rule key that matched, if any


NO_MATCH = MatchResult(kind=MatchKind.NO_MATCH)


@dataclass(frozen=True)
class ReplyDecision:
    """Outcome of one resolution pass: a reply to send, or silence.

    ``reason`` names the branch that produced the decision, e.g.
    "cooldown", "keyword:hi", "Greeting detected".
    """

    reply: str | None
    reason: str

    @classmethod
    def silence(cls, reason: str) -> ReplyDecision:
        return cls(reply=None, reason=reason)

    @classmethod
    def text(cls, reply: str, reason: str) -> ReplyDecision:
        return cls(reply=reply, reason=reason)

    @property
    def is_silent(self) -> bool:
        return not self.reply


@dataclass(frozen=True)
class ConfigSnapshot:
    enabled: bool
    default_message: str
    cooldown: float  # seconds
    keywords: dict[str, str | None]
    use_gateway: bool
    use_ai: bool


@dataclass
class ConfigUpdate:
    """Partial update of the runtime auto-reply configuration.

    Fields left as ``None`` are not touched.
    """

    enabled: bool | None = None
    default_message: str | None = None
    cooldown: float | None = None
    keywords: dict[str, str | None] | None = None
    use_gateway: bool | None = None
    use_ai: bool | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ConfigUpdate:
        """Build an update from an untyped mapping (e.g. a JSON body).

        Unknown or mistyped fields are dropped rather than raising, so the
        recognized subset of a partial update always applies.
        """
        update = cls()

        for name in ("enabled", "use_gateway", "use_ai"):
            value = raw.get(name)
            if isinstance(value, bool):
                setattr(update, name, value)
            elif value is not None:
                logger.debug("Ignoring mistyped field '%s': %r", name, value)

        # Also accept the camelCase names used by the HTTP control surface.
        default_message = raw.get("default_message", raw.get("defaultMessage"))
        if isinstance(default_message, str):
            update.default_message = default_message
        elif default_message is not None:
            logger.debug("Ignoring mistyped field 'default_message': %r", default_message)

        cooldown = raw.get("cooldown")
        # bool is an int subclass; True is not a cooldown.
        if isinstance(cooldown, (int, float)) and not isinstance(cooldown, bool):
            if cooldown >= 0:
                update.cooldown = float(cooldown)
            else:
                logger.debug("Ignoring negative cooldown: %r", cooldown)
        elif cooldown is not None:
            logger.debug("Ignoring mistyped field 'cooldown': %r", cooldown)

        keywords = raw.get("keywords")
        if isinstance(keywords, Mapping):
            update.keywords = {
                str(key): value
                for key, value in keywords.items()
                if value is None or isinstance(value, str)
            }
        elif keywords is not None:
            logger.debug("Ignoring mistyped field 'keywords': %r", keywords)

        return update


@dataclass
class SendResult:
    phone: str
    success: bool
    error: str | None = None
