"""Tests for the rule model — ordered allow/deny path predicates."""

from __future__ import annotations

import re

import pytest

from fileshelf.rules import Rule, is_allowed


class TestRuleMatching:
    def test_plain_rule_matches_itself_and_children(self):
        rule = Rule("/private", allow=False)
        assert rule.matches("/private")
        assert rule.matches("/private/secret.txt")

    def test_plain_rule_respects_segment_boundary(self):
        rule = Rule("/private", allow=False)
        assert not rule.matches("/private-notes")
        assert not rule.matches("/public")

    def test_plain_rule_path_is_normalized(self):
        rule = Rule("private/", allow=False)
        assert rule.path == "/private"

    def test_root_rule_matches_everything(self):
        assert Rule("/", allow=False).matches("/anything/at/all")

    def test_regex_rule(self):
        rule = Rule(r"\.env$", allow=False, regex=True)
        assert rule.matches("/app/.env")
        assert not rule.matches("/app/.envrc")

    def test_invalid_regex_rejected(self):
        with pytest.raises(re.error):
            Rule("([", regex=True)

    def test_round_trip_dict(self):
        rule = Rule(r"^/tmp", allow=False, regex=True)
        assert Rule.from_dict(rule.to_dict()) == rule


class TestIsAllowed:
    def test_no_rules_allows(self):
        assert is_allowed("/anything", [])

    def test_unmatched_rule_allows(self):
        assert is_allowed("/docs/a.txt", [Rule("/private", allow=False)])

    def test_deny(self):
        assert not is_allowed("/private/secret.txt", [Rule("/private", allow=False)])

    def test_last_match_wins(self):
        rules = [Rule("/private", allow=False), Rule("/private/shared")]
        assert not is_allowed("/private/secret.txt", rules)
        assert is_allowed("/private/shared/a.txt", rules)

    def test_order_matters(self):
        rules = [Rule("/private/shared"), Rule("/private", allow=False)]
        assert not is_allowed("/private/shared/a.txt", rules)

    def test_traversal_is_canonicalized_before_matching(self):
        rules = [Rule("/private", allow=False)]
        assert not is_allowed("/docs/../private/secret.txt", rules)
        assert not is_allowed("//private//secret.txt", rules)

    def test_deny_all_then_allow_one(self):
        rules = [Rule("/", allow=False), Rule("/docs")]
        assert is_allowed("/docs/readme.txt", rules)
        assert not is_allowed("/empty.txt", rules)
