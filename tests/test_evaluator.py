"""Tests for the rule-set evaluator."""

import pytest

from surface_triage.config import FieldPolicy
from surface_triage.filtering.evaluator import RuleSetEvaluator, evaluate
from surface_triage.filtering.fields import FieldRegistry
from surface_triage.models import Category, RuleLogic, RuleSet
from surface_triage.utils.exceptions import UnknownFieldError, UnknownOperatorError


def _rule_set(category=Category.INVENTORY, logic=RuleLogic.AND, rules=()):
    rule_set = RuleSet(category=category, logic=logic)
    for field, operator, value in rules:
        rule_set.add_rule(field, operator, value)
    return rule_set


class TestIdentity:
    """Tests for rule-sets without active rules."""

    def test_empty_rule_set_returns_input(self, sample_records):
        assert evaluate(_rule_set(), sample_records) == sample_records

    def test_inactive_rules_are_skipped(self, sample_records):
        rule_set = _rule_set(rules=[("name", "contains", ""), ("publisher", "is", "   ")])
        assert evaluate(rule_set, sample_records) == sample_records

    def test_empty_rule_set_under_or(self, sample_records):
        """Test OR with no active rule still admits everything."""
        assert evaluate(_rule_set(logic=RuleLogic.OR), sample_records) == sample_records

    def test_removing_last_rule_restores_view(self, sample_records):
        rule_set = _rule_set(rules=[("source", "is", "persistence")])
        assert len(evaluate(rule_set, sample_records)) == 2
        rule_set.remove_rule(rule_set.rules[0].id)
        assert evaluate(rule_set, sample_records) == sample_records


class TestMatching:
    """Tests for rule application."""

    def test_persistence_example(self, sample_records):
        """Test source is persistence selects exactly the persistence records."""
        rule_set = _rule_set(rules=[("source", "is", "persistence")])
        result = evaluate(rule_set, sample_records)
        assert [r.name for r in result] == ["OneDrive", "UpdaterSvc"]
        assert all(r.source == "persistence" for r in result)

    def test_case_insensitive_value(self, sample_records):
        rule_set = _rule_set(rules=[("publisher", "contains", "MICROSOFT")])
        names = [r.name for r in evaluate(rule_set, sample_records)]
        assert names == ["OneDrive", "vcredist_x64"]

    def test_severity_field(self, sample_records):
        rule_set = _rule_set(rules=[("severity", "is", "critical")])
        names = [r.name for r in evaluate(rule_set, sample_records)]
        assert names == ["UpdaterSvc", "ctxflt", "invoice.pdf.exe"]

    def test_nullary_operator_ignores_value(self, sample_records):
        rule_set = _rule_set(rules=[("publisher", "is_empty", "whatever")])
        names = [r.name for r in evaluate(rule_set, sample_records)]
        assert names == ["UpdaterSvc", "ctxflt", "invoice.pdf.exe"]

    def test_and_logic(self, sample_records):
        rule_set = _rule_set(rules=[("source", "is", "registry"), ("scope", "is", "per-user")])
        assert [r.name for r in evaluate(rule_set, sample_records)] == ["Slack"]

    def test_or_logic(self, sample_records):
        rule_set = _rule_set(
            logic=RuleLogic.OR,
            rules=[("name", "is", "chrome"), ("name", "is", "slack")],
        )
        assert [r.name for r in evaluate(rule_set, sample_records)] == ["Chrome", "Slack"]

    def test_output_preserves_input_order(self, sample_records):
        reversed_records = list(reversed(sample_records))
        rule_set = _rule_set(rules=[("severity", "is_not", "low")])
        result = evaluate(rule_set, reversed_records)
        assert result == [r for r in reversed_records if r.severity != "low"]


class TestAlgebra:
    """Tests for monotonicity, idempotence and partition."""

    def test_and_is_monotone(self, sample_records):
        """Test adding a rule under AND never grows the result."""
        rule_set = _rule_set(rules=[("severity", "is_not", "low")])
        before = evaluate(rule_set, sample_records)
        rule_set.add_rule("publisher", "is_not_empty")
        after = evaluate(rule_set, sample_records)
        assert set(r.name for r in after) <= set(r.name for r in before)

    def test_or_is_monotone(self, sample_records):
        """Test adding a rule under OR never shrinks the result."""
        rule_set = _rule_set(logic=RuleLogic.OR, rules=[("source", "is", "service")])
        before = evaluate(rule_set, sample_records)
        rule_set.add_rule("source", "is", "filesystem")
        after = evaluate(rule_set, sample_records)
        assert set(r.name for r in after) >= set(r.name for r in before)

    def test_idempotent(self, sample_records):
        rule_set = _rule_set(rules=[("name", "contains", "e")])
        once = evaluate(rule_set, sample_records)
        assert evaluate(rule_set, once) == once

    @pytest.mark.parametrize("positive,negative", [
        ("is", "is_not"),
        ("contains", "not_contains"),
    ])
    def test_negation_partitions(self, sample_records, positive, negative):
        matched = evaluate(_rule_set(rules=[("name", positive, "chrome")]), sample_records)
        rest = evaluate(_rule_set(rules=[("name", negative, "chrome")]), sample_records)
        assert len(matched) + len(rest) == len(sample_records)
        assert not set(r.name for r in matched) & set(r.name for r in rest)

    def test_empty_partitions(self, sample_records):
        empty = evaluate(_rule_set(rules=[("publisher", "is_empty", "")]), sample_records)
        filled = evaluate(_rule_set(rules=[("publisher", "is_not_empty", "")]), sample_records)
        assert len(empty) + len(filled) == len(sample_records)


class TestPolicy:
    """Tests for unknown fields and operators."""

    def test_unknown_field_uses_first_field(self, sample_records):
        rule_set = _rule_set(rules=[("nonexistent", "contains", "chrome")])
        assert [r.name for r in evaluate(rule_set, sample_records)] == ["Chrome"]

    def test_invalid_operator_matches_all(self, sample_records):
        """Test an operator outside an enum field's set admits every record."""
        rule_set = _rule_set(rules=[("scope", "contains", "user")])
        assert evaluate(rule_set, sample_records) == sample_records

    def test_strict_unknown_field(self, sample_records):
        evaluator = RuleSetEvaluator(FieldRegistry(policy=FieldPolicy.STRICT))
        rule_set = _rule_set(rules=[("nonexistent", "contains", "x")])
        with pytest.raises(UnknownFieldError):
            evaluator.evaluate(rule_set, sample_records)

    def test_strict_invalid_operator(self, sample_records):
        evaluator = RuleSetEvaluator(FieldRegistry(policy=FieldPolicy.STRICT))
        rule_set = _rule_set(rules=[("scope", "contains", "user")])
        with pytest.raises(UnknownOperatorError):
            evaluator.evaluate(rule_set, sample_records)

    def test_category_scope(self, sample_records):
        """Test a rule is resolved against its own category's fields."""
        rule_set = _rule_set(
            category=Category.AUTORUNS,
            rules=[("mechanism", "is", "run_key")],
        )
        names = [r.name for r in evaluate(rule_set, sample_records)]
        assert names == ["OneDrive", "UpdaterSvc"]

    def test_build_predicate_none_when_inactive(self):
        assert RuleSetEvaluator().build_predicate(_rule_set()) is None
