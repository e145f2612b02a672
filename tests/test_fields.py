"""Tests for the field registry."""

import pytest

from surface_triage.config import FieldPolicy
from surface_triage.filtering.fields import CATEGORY_FIELDS, DEFAULT_REGISTRY, FieldRegistry
from surface_triage.models import SEVERITY_ORDER, Category, FieldKind, Record
from surface_triage.utils.exceptions import UnknownFieldError


class TestFieldTables:
    """Tests for the static per-category tables."""

    def test_every_category_has_fields(self):
        for category in Category:
            assert DEFAULT_REGISTRY.fields_for(category)

    def test_keys_unique_per_category(self):
        for fields in CATEGORY_FIELDS.values():
            keys = [f.key for f in fields]
            assert len(keys) == len(set(keys))

    def test_first_field_is_name(self):
        for category in Category:
            assert DEFAULT_REGISTRY.fields_for(category)[0].key == "name"

    def test_all_alias_uses_inventory_fields(self):
        assert DEFAULT_REGISTRY.fields_for("all") == DEFAULT_REGISTRY.fields_for(Category.INVENTORY)
        assert DEFAULT_REGISTRY.get("All", "severity").key == "severity"

    def test_registry_fields(self):
        keys = [f.key for f in DEFAULT_REGISTRY.fields_for("registry")]
        assert "displayVersion" in keys
        assert "installDate" in keys
        assert "uninstallCmd" in keys

    def test_severity_is_fixed_enum(self):
        definition = DEFAULT_REGISTRY.get(Category.INVENTORY, "severity")
        assert definition.kind == FieldKind.ENUM
        assert definition.options == tuple(s.value for s in SEVERITY_ORDER)


class TestExtraction:
    """Tests for field extractors."""

    def test_extract_metadata_field(self):
        record = Record(metadata={"mechanism": "run_key"})
        definition = DEFAULT_REGISTRY.get("autoruns", "mechanism")
        assert definition.extract(record) == "run_key"

    def test_missing_metadata_is_empty(self):
        definition = DEFAULT_REGISTRY.get("services", "startType")
        assert definition.extract(Record()) == ""

    def test_severity_computed_when_absent(self):
        """Test the severity field classifies unclassified records."""
        definition = DEFAULT_REGISTRY.get("inventory", "severity")
        assert definition.extract(Record(source="persistence")) == "high"

    def test_reasons_field(self):
        definition = DEFAULT_REGISTRY.get("inventory", "severityReasons")
        record = Record(severity="low", severity_reasons="first; second")
        assert definition.extract(record) == "first; second"


class TestResolve:
    """Tests for FieldRegistry.resolve()."""

    def test_known_field(self):
        assert DEFAULT_REGISTRY.resolve("registry", "publisher").key == "publisher"

    def test_unknown_field_falls_back(self):
        """Test a stale key resolves to the category's first field."""
        assert DEFAULT_REGISTRY.resolve("services", "mechanism").key == "name"

    def test_unknown_field_strict(self):
        registry = FieldRegistry(policy=FieldPolicy.STRICT)
        with pytest.raises(UnknownFieldError) as exc_info:
            registry.resolve("services", "mechanism")
        assert exc_info.value.category == "services"

    def test_empty_category_raises(self):
        registry = FieldRegistry(schemas={Category.INVENTORY: ()})
        with pytest.raises(UnknownFieldError):
            registry.resolve(Category.INVENTORY, "name")

    def test_categories(self):
        assert set(DEFAULT_REGISTRY.categories()) == set(Category)


class TestEnumOptions:
    """Tests for FieldRegistry.enum_options()."""

    def test_fixed_scope_options_ignore_typos(self):
        """Test a typo'd scope is absent from the fixed option list."""
        records = [Record(scope="per-user"), Record(scope="per-usr")]
        options = DEFAULT_REGISTRY.enum_options("inventory", "scope", records)
        assert options == ["per-machine", "per-user"]

    def test_derived_options_keep_typos(self):
        records = [Record(source="registry"), Record(source="registyr")]
        options = DEFAULT_REGISTRY.enum_options("inventory", "source", records)
        assert "registyr" in options

    def test_derived_options_sorted_unique_non_empty(self):
        records = [
            Record(kind="Win32"),
            Record(kind="UWP"),
            Record(kind="Win32"),
            Record(kind=""),
        ]
        assert DEFAULT_REGISTRY.enum_options("inventory", "type", records) == ["UWP", "Win32"]

    def test_severity_options_in_rank_order(self):
        options = DEFAULT_REGISTRY.enum_options("inventory", "severity", [])
        assert options == ["critical", "high", "medium", "low"]

    def test_derived_options_follow_data(self, sample_records):
        """Test options are recomputed from whatever records are passed."""
        full = DEFAULT_REGISTRY.enum_options("inventory", "source", sample_records)
        partial = DEFAULT_REGISTRY.enum_options("inventory", "source", sample_records[:1])
        assert partial == ["registry"]
        assert set(partial) < set(full)
