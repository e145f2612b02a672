"""Tests for JSON export functionality."""

import json
from datetime import datetime
from pathlib import Path

import pytest

from surface_triage.core.intake import DatasetLoader
from surface_triage.models import Category, Record, RuleLogic, RuleSet, Severity
from surface_triage.output.json_export import JSONExporter, TriageJSONEncoder


@pytest.fixture
def autorun_rule_set():
    rule_set = RuleSet(category=Category.AUTORUNS, logic=RuleLogic.OR)
    rule_set.add_rule("mechanism", "is", "run_key")
    return rule_set


class TestTriageJSONEncoder:
    """Tests for TriageJSONEncoder."""

    def test_datetime(self):
        value = json.dumps({"t": datetime(2025, 1, 6, 12, 0, 0)}, cls=TriageJSONEncoder)
        assert "2025-01-06T12:00:00" in value

    def test_path(self):
        assert json.loads(json.dumps(Path("a/b"), cls=TriageJSONEncoder)) == str(Path("a/b"))

    def test_enum(self):
        assert json.dumps(Severity.HIGH, cls=TriageJSONEncoder) == '"high"'

    def test_model_uses_wire_names(self):
        data = json.loads(json.dumps(Record(name="a", kind="UWP"), cls=TriageJSONEncoder))
        assert data["type"] == "UWP"

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            json.dumps(object(), cls=TriageJSONEncoder)


class TestJSONExporter:
    """Tests for JSONExporter."""

    def test_to_dict_envelope(self, sample_records):
        data = JSONExporter().to_dict(sample_records[:2])
        assert data["entryCount"] == 2
        assert data["generatedBy"].startswith("surface-triage")
        assert data["entries"][0]["name"] == "Contoso Agent"
        assert "filter" not in data

    def test_to_dict_with_filter(self, sample_records, autorun_rule_set):
        data = JSONExporter().to_dict(sample_records, rule_set=autorun_rule_set)
        assert data["filter"]["category"] == Category.AUTORUNS
        assert data["filter"]["rules"][0]["field"] == "mechanism"

    def test_to_json(self, sample_records, autorun_rule_set):
        data = json.loads(JSONExporter().to_json(sample_records[:1], rule_set=autorun_rule_set))
        assert data["filter"]["category"] == "autoruns"
        assert data["filter"]["logic"] == "or"
        assert data["entries"][0]["severity"] == "medium"
        assert "severityReasons" in data["entries"][0]

    def test_indent_and_sort(self, sample_records):
        output = JSONExporter(indent=4, sort_keys=True).to_json(sample_records[:1])
        assert '\n    "entries"' in output
        assert output.index('"entries"') < output.index('"generatedBy"')

    def test_to_file(self, temp_dir, sample_records):
        file_path = JSONExporter().to_file(sample_records, temp_dir / "out" / "view.json")
        assert file_path.exists()
        assert json.loads(file_path.read_text(encoding="utf-8"))["entryCount"] == 10

    def test_export_loads_back(self, temp_dir, sample_records):
        """Test an export is itself a loadable scanner dataset."""
        file_path = JSONExporter().to_file(sample_records, temp_dir / "view.json")
        dataset = DatasetLoader().load_file(file_path)
        assert [r.name for r in dataset.entries] == [r.name for r in sample_records]
        assert dataset.entries[2].user_sid == sample_records[2].user_sid
