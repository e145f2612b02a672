"""Tests for TriageSession, the presentation-facing state object."""

import pytest

from surface_triage.config import FieldPolicy, TriageSettings
from surface_triage.core.intake import sample_dataset
from surface_triage.core.session import TriageSession
from surface_triage.models import Category, Record, RuleLogic, RuleSet
from surface_triage.utils.audit import AuditLogger
from surface_triage.utils.exceptions import RuleNotFoundError, UnknownFieldError


class TestLoad:
    """Tests for loading and reloading records."""

    def test_empty_session(self, permissive_settings):
        session = TriageSession(settings=permissive_settings)
        assert session.records == []
        assert session.filtered_records("inventory") == []

    def test_load_classifies(self, session):
        assert len(session.records) == 10
        assert all(r.severity for r in session.records)

    def test_load_replaces_input_severity(self, permissive_settings):
        session = TriageSession(settings=permissive_settings)
        session.load([Record(source="persistence", severity="low")])
        assert session.records[0].severity == "high"

    def test_reload_resets_rules(self, session):
        session.add_rule("inventory", "source", "is", "persistence")
        session.set_logic("registry", "or")
        session.reload(sample_dataset())
        assert session.current_rule_set("inventory").rules == []
        assert session.current_rule_set("registry").logic == RuleLogic.AND

    def test_records_returns_copy(self, session):
        session.records.clear()
        assert len(session.records) == 10

    def test_default_logic_from_settings(self):
        session = TriageSession(settings=TriageSettings(default_logic=RuleLogic.OR))
        assert session.current_rule_set("services").logic == RuleLogic.OR


class TestViews:
    """Tests for category views and filtering."""

    def test_category_records(self, session):
        assert [r.name for r in session.category_records("autoruns")] == ["OneDrive", "UpdaterSvc"]

    def test_no_rules_means_full_view(self, session):
        assert session.filtered_records("registry") == session.category_records("registry")

    def test_rules_do_not_leak_between_categories(self, session):
        session.add_rule("registry", "name", "is", "chrome")
        assert len(session.filtered_records("registry")) == 1
        assert len(session.filtered_records("inventory")) == 10

    def test_enum_options_from_category_records(self, session):
        assert session.enum_options("autoruns", "context") == ["user"]

    def test_enum_options_follow_reload(self, session):
        session.load([Record(source="persistence", metadata={"context": "machine"})])
        assert session.enum_options("autoruns", "context") == ["machine"]

    def test_fields(self, session):
        assert session.fields("services")[0].key == "name"

    def test_classify(self, session):
        assert session.classify(Record(type="Driver")).severity.value == "high"

    def test_all_alias_is_inventory_view(self, session):
        assert len(session.filtered_records("all")) == 10
        assert session.current_rule_set("ALL").category == Category.INVENTORY
        assert session.fields("all") == session.fields("inventory")
        assert session.enum_options("all", "source") == session.enum_options("inventory", "source")

    def test_category_names_any_case(self, session):
        assert session.category_records(" Autoruns ") == session.category_records("autoruns")


class TestRuleMutation:
    """Tests for add/edit/remove and logic operations."""

    def test_add_rule_defaults(self, session):
        """Test a bare add yields an inactive rule on the first field."""
        rule = session.add_rule("services")
        assert rule.field == "name"
        assert rule.operator == "contains"
        assert not rule.is_active
        assert len(session.filtered_records("services")) == 1

    def test_add_rule_enum_default_operator(self, session):
        rule = session.add_rule("autoruns", field="mechanism")
        assert rule.operator == "is"

    def test_edit_rule(self, session):
        rule = session.add_rule("inventory", "name", "contains")
        session.edit_rule("inventory", rule.id, value="zip")
        assert [r.name for r in session.filtered_records("inventory")] == ["7-Zip 22.01"]

    def test_remove_rule(self, session):
        rule = session.add_rule("inventory", "name", "contains", "zip")
        session.remove_rule("inventory", rule.id)
        assert len(session.filtered_records("inventory")) == 10

    def test_remove_missing_rule(self, session):
        with pytest.raises(RuleNotFoundError):
            session.remove_rule("inventory", "rule-99")

    def test_toggle_logic(self, session):
        session.add_rule("inventory", "name", "is", "chrome")
        session.add_rule("inventory", "name", "is", "slack")
        assert session.filtered_records("inventory") == []
        assert session.toggle_logic("inventory") == RuleLogic.OR
        assert [r.name for r in session.filtered_records("inventory")] == ["Chrome", "Slack"]

    def test_clear_rules(self, session):
        session.add_rule("inventory", "name", "is", "chrome")
        session.clear_rules("inventory")
        assert len(session.filtered_records("inventory")) == 10

    def test_apply_rule_set(self, session):
        rule_set = RuleSet(category=Category.SERVICES)
        rule_set.add_rule("fileExists", "is", "false")
        session.apply_rule_set(rule_set)
        assert [r.name for r in session.filtered_records("services")] == ["ctxflt"]

    def test_strict_unknown_field(self, strict_settings):
        session = TriageSession(settings=strict_settings)
        with pytest.raises(UnknownFieldError):
            session.add_rule("services", "mechanism", "is", "run_key")

    def test_strict_default_add(self, strict_settings):
        session = TriageSession(settings=strict_settings)
        assert session.add_rule("filesystem").field == "name"

    def test_rules_added_under_all_filter_inventory(self, session):
        rule = session.add_rule("all", "name", "is", "chrome")
        assert [r.name for r in session.filtered_records("inventory")] == ["Chrome"]
        session.edit_rule("all", rule.id, value="slack")
        assert [r.name for r in session.filtered_records("all")] == ["Slack"]
        session.remove_rule("all", rule.id)
        assert session.current_rule_set("inventory").rules == []

    def test_set_logic_any_case(self, session):
        session.set_logic("inventory", "OR")
        assert session.current_rule_set("inventory").logic == RuleLogic.OR
        session.set_logic("all", RuleLogic.AND)
        assert session.current_rule_set("inventory").logic == RuleLogic.AND


class TestAudit:
    """Tests for the session audit trail."""

    def test_audit_records_load_and_rules(self, temp_dir):
        audit = AuditLogger(temp_dir)
        session = TriageSession(settings=TriageSettings(), audit_logger=audit)
        session.load(sample_dataset(), source="demo")
        rule = session.add_rule("registry", "name", "contains", "a")
        session.remove_rule("registry", rule.id)

        actions = [e["action"] for e in audit.get_audit_trail()]
        assert actions == ["DATASET_LOAD", "RULE_ADD", "RULE_REMOVE"]
        assert audit.get_audit_trail(category="registry")[0]["details"]["rule"]["value"] == "a"
        audit.close()

    def test_audit_dir_from_settings(self, temp_dir):
        session = TriageSession(settings=TriageSettings(audit_dir=temp_dir / "audit"))
        session.load([Record(name="x")], source="test")
        assert session.audit is not None
        assert session.audit.get_audit_trail(action="DATASET_LOAD")
        session.audit.close()
