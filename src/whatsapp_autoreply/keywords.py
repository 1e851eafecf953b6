"""Keyword rule table: trigger phrase -> canned reply (or deliberate silence)."""

from __future__ import annotations

from typing import Iterator, Mapping

from whatsapp_autoreply.models import NO_MATCH, MatchKind, MatchResult

# A keyword counts as a prefix only when followed by one of these.
_TOKEN_SEPARATORS = (" ", ",")


def normalize_keyword(keyword: str) -> str:
    return keyword.strip().lower()


class KeywordRuleTable:
    """Ordered keyword rules with exact and prefix matching.

    Rule values are reply strings, or ``None`` meaning "never auto-reply
    to this phrase". Iteration order is insertion order, which is also the
    tie-break for prefix matches.
    """

    def __init__(self, rules: Mapping[str, str | None] | None = None) -> None:
        self._rules: dict[str, str | None] = {}
        for keyword, reply in (rules or {}).items():
            self.set(keyword, reply)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __contains__(self, keyword: str) -> bool:
        return normalize_keyword(keyword) in self._rules

    def as_dict(self) -> dict[str, str | None]:
        return dict(self._rules)

    def set(self, keyword: str, reply: str | None) -> None:
        """Add or replace a rule. ``reply=None`` marks the phrase as no-reply."""
        self._rules[normalize_keyword(keyword)] = reply

    def remove(self, keyword: str) -> None:
        self._rules.pop(normalize_keyword(keyword), None)

    def is_suppressed(self, text: str) -> bool:
        """True if ``text`` exactly matches a no-reply rule."""
        key = normalize_keyword(text)
        return key in self._rules and self._rules[key] is None

    def resolve(self, text: str) -> MatchResult:
        """Match normalized message text against the rules.

        Order: exact match on the whole text, then the first rule (in
        insertion order) whose keyword starts the text as its own token,
        i.e. followed by a space or comma.
        """
        text = normalize_keyword(text)

        if text in self._rules:
            return self._result(text)

        for keyword in self._rules:
            if any(text.startswith(keyword + sep) for sep in _TOKEN_SEPARATORS):
                return self._result(keyword)

        return NO_MATCH

    def _result(self, keyword: str) -> MatchResult:
        reply = self._rules[keyword]
        if reply is None:
            return MatchResult(kind=MatchKind.SUPPRESS, keyword=keyword)
        return MatchResult(kind=MatchKind.REPLY, reply=reply, keyword=keyword)
