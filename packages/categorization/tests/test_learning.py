"""Tests for rule learning precedence."""

import pytest

from packages.categorization.learning import RuleBook, RuleState, transition


@pytest.fixture
def rules(store):
    return RuleBook(store)


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current,created_by,confidence,existing,expected",
        [
            (RuleState.NO_RULE, "system", 0.5, 0.0, (RuleState.SYSTEM_RULE, True)),
            (RuleState.NO_RULE, "user", 1.0, 0.0, (RuleState.USER_RULE, True)),
            (RuleState.SYSTEM_RULE, "system", 0.8, 0.5, (RuleState.SYSTEM_RULE, True)),
            (RuleState.SYSTEM_RULE, "system", 0.5, 0.5, (RuleState.SYSTEM_RULE, False)),
            (RuleState.SYSTEM_RULE, "user", 1.0, 0.8, (RuleState.USER_RULE, True)),
            (RuleState.USER_RULE, "system", 0.9, 1.0, (RuleState.USER_RULE, False)),
            (RuleState.USER_RULE, "user", 1.0, 1.0, (RuleState.USER_RULE, True)),
        ],
    )
    def test_transitions(self, current, created_by, confidence, existing, expected):
        assert transition(current, created_by, confidence, existing) == expected


class TestRuleBook:
    def test_first_write_creates_rule(self, rules, store):
        rule = rules.write("SWIGGY", "food", "system", 0.8)
        assert rule.usage_count == 1
        assert rules.state("SWIGGY") is RuleState.SYSTEM_RULE
        assert len(store.list_rules()) == 1

    def test_lower_confidence_keeps_rule_but_bumps_usage(self, rules):
        rules.write("SWIGGY", "food", "system", 0.8)
        rule = rules.write("SWIGGY", "shopping", "system", 0.5)
        assert rule.root_category == "food"
        assert rule.confidence == 0.8
        assert rule.usage_count == 2

    def test_higher_confidence_replaces(self, rules):
        rules.write("ACME", "shopping", "system", 0.5)
        rule = rules.write("ACME", "food", "system", 0.7)
        assert rule.root_category == "food"

    def test_user_write_always_wins(self, rules):
        rules.write("SWIGGY", "food", "system", 0.8)
        rule = rules.write("SWIGGY", "housing", "user", 0.1)
        assert rule.root_category == "housing"
        assert rule.confidence == 1.0
        assert rule.is_user_rule

    def test_system_cannot_overwrite_user(self, rules):
        rules.write("SWIGGY", "housing", "user")
        rule = rules.write("SWIGGY", "food", "system", 1.0)
        assert rule.root_category == "housing"
        assert rules.state("SWIGGY") is RuleState.USER_RULE

    def test_rejects_unknown_category(self, rules):
        with pytest.raises(ValueError):
            rules.write("SWIGGY", "groceries")

    def test_rejects_bad_author_and_confidence(self, rules):
        with pytest.raises(ValueError):
            rules.write("SWIGGY", "food", "admin")
        with pytest.raises(ValueError):
            rules.write("SWIGGY", "food", "system", 1.5)

    def test_delete(self, rules):
        rule = rules.write("SWIGGY", "food")
        assert rules.delete(rule.id) is True
        assert rules.lookup("SWIGGY") is None
        assert rules.delete(rule.id) is False
