"""Runtime auto-reply state owned by one bot instance.

Replaces a process-wide singleton: each :class:`AutoReplyContext` owns its
own settings, keyword table and cooldown map, and is handed to the reply
strategies and the message handler at construction time.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from whatsapp_autoreply.config import Config
from whatsapp_autoreply.cooldown import CooldownTracker
from whatsapp_autoreply.keywords import KeywordRuleTable
from whatsapp_autoreply.models import ConfigSnapshot, ConfigUpdate

logger = logging.getLogger(__name__)


class AutoReplyContext:
    def __init__(
        self,
        *,
        enabled: bool = True,
        default_message: str = "",
        cooldown: float = 5,
        keywords: Mapping[str, str | None] | None = None,
        use_gateway: bool = True,
        use_ai: bool = True,
        cooldowns: CooldownTracker | None = None,
    ) -> None:
        self.enabled = enabled
        self.default_message = default_message
        self.use_gateway = use_gateway
        self.use_ai = use_ai
        self.keywords = KeywordRuleTable(keywords)
        self.cooldowns = cooldowns or CooldownTracker(cooldown)
        self.cooldowns.cooldown_seconds = cooldown

    @classmethod
    def from_config(cls, config: Config) -> AutoReplyContext:
        return cls(
            enabled=config.enabled,
            default_message=config.default_message,
            cooldown=config.cooldown,
            keywords=config.keywords,
            use_gateway=config.use_gateway,
            use_ai=config.use_ai,
        )

    @property
    def cooldown(self) -> float:
        return self.cooldowns.cooldown_seconds

    def get_auto_reply_config(self) -> ConfigSnapshot:
        """Return a read-only copy of the current settings."""
        return ConfigSnapshot(
            enabled=self.enabled,
            default_message=self.default_message,
            cooldown=self.cooldown,
            keywords=self.keywords.as_dict(),
            use_gateway=self.use_gateway,
            use_ai=self.use_ai,
        )

    def update_auto_reply_config(
        self, update: ConfigUpdate | Mapping[str, Any]
    ) -> ConfigSnapshot:
        """Apply a partial update and return the resulting snapshot.

        A raw mapping is converted with :meth:`ConfigUpdate.from_mapping`,
        which drops unknown or mistyped fields instead of failing.
        """
        if not isinstance(update, ConfigUpdate):
            update = ConfigUpdate.from_mapping(update)

        if update.enabled is not None:
            self.enabled = update.enabled
        if update.default_message is not None:
            self.default_message = update.default_message
        if update.cooldown is not None:
            self.cooldowns.cooldown_seconds = update.cooldown
        if update.use_gateway is not None:
            self.use_gateway = update.use_gateway
        if update.use_ai is not None:
            self.use_ai = update.use_ai
        if update.keywords is not None:
            for keyword, reply in update.keywords.items():
                self.keywords.set(keyword, reply)

        logger.info("Auto-reply configuration updated")
        return self.get_auto_reply_config()

    def set_keyword(self, keyword: str, reply: str | None) -> None:
        self.keywords.set(keyword, reply)
        if reply is None:
            logger.info("Keyword '%s' set to no-reply", keyword)
        else:
            logger.info("Keyword '%s' updated", keyword)

    def remove_keyword(self, keyword: str) -> None:
        self.keywords.remove(keyword)
        logger.info("Keyword '%s' removed", keyword)
