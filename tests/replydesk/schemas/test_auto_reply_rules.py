"""Tests for AutoReplyRules parsing."""

from replydesk.schemas.auto_reply import AutoReplyRules


def test_missing_rules_mean_defaults():
    for raw in (None, "not-json", [1, 2]):
        rules = AutoReplyRules.from_raw(raw)
        assert rules.is_enabled is True
        assert rules.greeting.is_enabled is True
        assert rules.out_of_office.is_enabled is True
        assert rules.fallback.text is None


def test_disabled_flags():
    rules = AutoReplyRules.from_raw(
        {"enabled": False, "greeting": {"enabled": False}, "out_of_office": {"enabled": False}}
    )
    assert rules.is_enabled is False
    assert rules.greeting.is_enabled is False
    assert rules.out_of_office.is_enabled is False


def test_nulls_and_unknown_keys_are_tolerated():
    rules = AutoReplyRules.from_raw(
        {
            "greeting": None,
            "out_of_office": {"hours": None, "timezone": "Europe/Madrid", "color": "red"},
            "widget": {"theme": "dark"},
        }
    )
    assert rules.greeting.is_enabled is True
    assert rules.out_of_office.hours.days == []
    assert rules.effective_timezone == "Europe/Madrid"


def test_out_of_office_timezone_wins_over_top_level():
    rules = AutoReplyRules.from_raw(
        {"timezone": "America/New_York", "out_of_office": {"timezone": "America/Bogota"}}
    )
    assert rules.effective_timezone == "America/Bogota"
    assert AutoReplyRules.from_raw({"timezone": "America/New_York"}).effective_timezone == (
        "America/New_York"
    )
