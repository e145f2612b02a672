"""Tests for custom exception classes."""

import pytest

from surface_triage.utils.exceptions import (
    DatasetError,
    DuplicateRuleError,
    RuleFileError,
    RuleNotFoundError,
    SurfaceTriageError,
    UnknownFieldError,
    UnknownOperatorError,
)


class TestSurfaceTriageError:
    """Tests for base SurfaceTriageError."""

    def test_basic_error(self):
        error = SurfaceTriageError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.details == {}

    def test_error_with_details(self):
        error = SurfaceTriageError("Test error", {"key": "value"})
        assert "key=value" in str(error)
        assert error.details == {"key": "value"}


class TestDatasetError:
    """Tests for DatasetError."""

    def test_with_source(self):
        error = DatasetError(source="scan.json", reason="Invalid JSON", entry_index=4)
        assert "scan.json" in str(error)
        assert "Invalid JSON" in str(error)
        assert error.details == {"source": "scan.json", "entry_index": 4}

    def test_default_reason(self):
        error = DatasetError()
        assert error.reason == "Dataset is not a valid record collection"
        assert error.details == {}

    def test_entry_index_zero_kept(self):
        assert DatasetError(entry_index=0).details == {"entry_index": 0}


class TestRuleErrors:
    """Tests for rule-related errors."""

    def test_rule_file_error(self):
        error = RuleFileError("rules.yaml", "Parse error")
        assert error.file_path == "rules.yaml"
        assert "Parse error" in str(error)

    def test_unknown_field(self):
        error = UnknownFieldError("services", "mechanism")
        assert "mechanism" in str(error)
        assert error.details == {"category": "services", "field": "mechanism"}

    def test_unknown_operator(self):
        error = UnknownOperatorError("contains", "enum")
        assert "enum" in str(error)

    def test_rule_not_found(self):
        error = RuleNotFoundError("rule-3", "registry")
        assert error.rule_id == "rule-3"
        assert "category=registry" in str(error)

    def test_duplicate_rule(self):
        assert "rule-1" in str(DuplicateRuleError("rule-1"))

    @pytest.mark.parametrize("error", [
        DatasetError(),
        RuleFileError("f", "r"),
        UnknownFieldError("c", "f"),
        UnknownOperatorError("o", "text"),
        RuleNotFoundError("r"),
        DuplicateRuleError("r"),
    ])
    def test_hierarchy(self, error):
        assert isinstance(error, SurfaceTriageError)
