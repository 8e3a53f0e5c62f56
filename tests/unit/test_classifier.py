from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ltbc.errors import ChaosConfigurationError
from ltbc.rules.classifier import classify_rules
from ltbc.schemas import DelaySpec, LambdaRule, RequestRule


class TestBuckets:
    def test_none_gives_empty_buckets(self):
        classified = classify_rules(None)
        assert classified.direct == []
        assert classified.scoped == {}
        assert classified.global_rule is None
        assert classified.has_network_rules is False

    def test_lambda_rules_keep_declaration_order(self):
        first, second = LambdaRule(delay=1), LambdaRule(delay=2)
        classified = classify_rules([first, second])
        assert [c.rule for c in classified.direct] == [first, second]

    def test_counters_start_at_zero(self):
        classified = classify_rules([LambdaRule(every=2), RequestRule(host="a", every=3)])
        assert classified.direct[0].state.count == 0
        assert classified.direct[0].state.every == 2
        assert classified.scoped["a"].state.every == 3

    def test_scoped_by_host_and_href(self):
        classified = classify_rules(
            [RequestRule(host="localhost"), RequestRule(href="http://example.com:1234/")]
        )
        assert set(classified.scoped) == {"localhost", "http://example.com:1234/"}
        assert classified.has_network_rules is True

    def test_global_rule(self):
        rule = RequestRule(delay=DelaySpec(value=200))
        classified = classify_rules([rule])
        assert classified.global_rule.rule is rule
        assert classified.scoped == {}

    def test_each_call_gets_fresh_counters(self):
        rules = [LambdaRule(every=2)]
        first = classify_rules(rules)
        second = classify_rules(rules)
        first.direct[0].state.tick()
        assert second.direct[0].state.count == 0


class TestAmbiguousRules:
    def test_last_duplicate_scope_wins(self):
        first = RequestRule(host="localhost", delay=DelaySpec(value=1))
        last = RequestRule(host="localhost", delay=DelaySpec(value=2))
        classified = classify_rules([first, last])
        assert classified.scoped["localhost"].rule is last

    def test_first_global_rule_is_kept(self):
        first = RequestRule(delay=DelaySpec(value=1))
        second = RequestRule(delay=DelaySpec(value=2))
        classified = classify_rules([first, second])
        assert classified.global_rule.rule is first

    def test_duplicates_are_logged(self):
        logger = MagicMock()
        classify_rules([RequestRule(host="a"), RequestRule(host="a")], logger=logger)
        logger.warning.assert_called_once_with("chaos_duplicate_scope_rule", scope="a")

    def test_strict_rejects_duplicate_scope(self):
        with pytest.raises(ChaosConfigurationError):
            classify_rules([RequestRule(host="a"), RequestRule(host="a")], strict=True)

    def test_strict_rejects_second_global_rule(self):
        with pytest.raises(ChaosConfigurationError):
            classify_rules([RequestRule(), RequestRule()], strict=True)

    def test_strict_rejects_two_result_rules(self):
        rules = [LambdaRule(result=lambda: 1), LambdaRule(result=lambda: 2)]
        with pytest.raises(ChaosConfigurationError):
            classify_rules(rules, strict=True)

    def test_non_strict_keeps_two_result_rules(self):
        rules = [LambdaRule(result=lambda: 1), LambdaRule(result=lambda: 2)]
        assert len(classify_rules(rules).direct) == 2


class TestLookup:
    def test_host_before_href(self):
        by_host = RequestRule(host="localhost")
        by_href = RequestRule(href="http://localhost:4321/")
        classified = classify_rules([by_href, by_host])
        assert classified.lookup("localhost", "http://localhost:4321/").rule is by_host

    def test_href_when_host_unknown(self):
        by_href = RequestRule(href="http://localhost:4321/")
        classified = classify_rules([by_href])
        assert classified.lookup("localhost", "http://localhost:4321/").rule is by_href

    def test_no_match(self):
        classified = classify_rules([RequestRule(host="localhost")])
        assert classified.lookup("example.com", None) is None
