"""Tests for keyword rule matching."""

from whatsapp_autoreply.keywords import KeywordRuleTable
from whatsapp_autoreply.models import MatchKind


def make_table(**extra) -> KeywordRuleTable:
    rules = {"hi": "Hello!", "book": "Book at supratravels.gt.tc", "ok": None}
    rules.update(extra)
    return KeywordRuleTable(rules)


class TestExactMatch:
    def test_exact_reply(self):
        result = make_table().resolve("hi")
        assert result.kind is MatchKind.REPLY
        assert result.reply == "Hello!"
        assert result.keyword == "hi"

    def test_case_and_whitespace_insensitive(self):
        result = make_table().resolve("  HI  ")
        assert result.kind is MatchKind.REPLY

    def test_no_reply_rule_suppresses(self):
        result = make_table().resolve("ok")
        assert result.kind is MatchKind.SUPPRESS
        assert result.reply is None
        assert result.keyword == "ok"

    def test_multi_word_keyword(self):
        table = make_table(**{"thank you": "You're welcome!"})
        assert table.resolve("thank you").reply == "You're welcome!"


class TestPrefixMatch:
    def test_keyword_followed_by_space(self):
        result = make_table().resolve("book now please")
        assert result.kind is MatchKind.REPLY
        assert result.keyword == "book"

    def test_keyword_followed_by_comma(self):
        assert make_table().resolve("hi, anyone there?").keyword == "hi"

    def test_keyword_inside_longer_word_does_not_match(self):
        assert make_table().resolve("bookkeeper needed").kind is MatchKind.NO_MATCH

    def test_keyword_not_at_start_does_not_match(self):
        assert make_table().resolve("please book now").kind is MatchKind.NO_MATCH

    def test_prefix_no_reply_rule_suppresses(self):
        assert make_table().resolve("ok thanks").kind is MatchKind.SUPPRESS

    def test_first_inserted_rule_wins(self):
        table = KeywordRuleTable({"book": "first", "book now": "second"})
        assert table.resolve("book now please").reply == "first"

    def test_exact_match_beats_prefix(self):
        table = KeywordRuleTable({"book": "first", "book now": "second"})
        assert table.resolve("book now").reply == "second"


class TestNoMatch:
    def test_unknown_text(self):
        result = make_table().resolve("where is my bus")
        assert result.kind is MatchKind.NO_MATCH
        assert result.reply is None

    def test_empty_table(self):
        assert KeywordRuleTable().resolve("hi").kind is MatchKind.NO_MATCH


class TestIsSuppressed:
    def test_exact_no_reply(self):
        assert make_table().is_suppressed("OK")

    def test_prefix_is_not_exact(self):
        assert make_table().is_suppressed("ok thanks") is False

    def test_reply_rule_is_not_suppressed(self):
        assert make_table().is_suppressed("hi") is False


class TestMutation:
    def test_set_lowercases_and_trims(self):
        table = KeywordRuleTable()
        table.set("  PRICE ", "₹999")
        assert "price" in table
        assert table.resolve("price").reply == "₹999"

    def test_set_overwrites(self):
        table = make_table()
        table.set("hi", "Hey!")
        assert table.resolve("hi").reply == "Hey!"
        assert len(table) == 3

    def test_set_none_marks_no_reply(self):
        table = make_table()
        table.set("hi", None)
        assert table.resolve("hi").kind is MatchKind.SUPPRESS

    def test_remove(self):
        table = make_table()
        table.remove("HI")
        assert "hi" not in table
        assert table.resolve("hi").kind is MatchKind.NO_MATCH

    def test_remove_missing_is_silent(self):
        table = make_table()
        table.remove("nope")
        assert len(table) == 3

    def test_as_dict_is_a_copy(self):
        table = make_table()
        rules = table.as_dict()
        rules["new"] = "x"
        assert "new" not in table

    def test_iteration_keeps_insertion_order(self):
        assert list(make_table()) == ["hi", "book", "ok"]
