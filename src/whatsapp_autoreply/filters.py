"""Gates applied to every inbound message before any reply logic runs."""

import logging

from whatsapp_autoreply.context import AutoReplyContext
from whatsapp_autoreply.models import InboundMessage, ReplyDecision

logger = logging.getLogger(__name__)


def pre_filter(message: InboundMessage, context: AutoReplyContext) -> ReplyDecision | None:
    """Return a silence decision if the message must not be answered.

    Evaluation order (first match wins):
      1. self      — message sent by our own account
      2. group     — message posted in a group chat
      3. disabled  — auto-reply switched off
      4. cooldown  — sender was answered too recently

    Returns ``None`` when the message may proceed to reply resolution.
    """
    if message.is_from_self:
        return ReplyDecision.silence("self")

    if message.is_group_origin:
        return ReplyDecision.silence("group")

    if not context.enabled:
        logger.debug("Auto-reply disabled, skipping %s", message.sender)
        return ReplyDecision.silence("disabled")

    if context.cooldowns.is_on_cooldown(message.sender):
        logger.debug("Sender %s is on cooldown, skipping reply", message.sender)
        return ReplyDecision.silence("cooldown")

    return None
