"""Pytest configuration and shared fixtures for Surface Triage tests."""

import copy
import json
import tempfile
from pathlib import Path

import pytest

from surface_triage.analysis.severity import DEFAULT_CLASSIFIER
from surface_triage.config import FieldPolicy, TriageSettings
from surface_triage.core.intake import sample_dataset
from surface_triage.core.sample_data import SAMPLE_ENTRIES
from surface_triage.core.session import TriageSession
from surface_triage.models import Record


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_entries():
    """Raw demo entries, safe to mutate."""
    return copy.deepcopy(SAMPLE_ENTRIES)


@pytest.fixture
def sample_records():
    """The ten demo records, classified."""
    return DEFAULT_CLASSIFIER.classify_all(sample_dataset().entries)


@pytest.fixture
def make_record():
    """Factory building a Record from wire-style keyword arguments."""
    def _make(**kwargs):
        return Record.model_validate(kwargs)
    return _make


@pytest.fixture
def dataset_file(temp_dir, sample_entries):
    """Scanner export of the demo entries written to disk."""
    file_path = temp_dir / "scan.json"
    file_path.write_text(
        json.dumps({"generatedBy": "scanner 2.1", "entries": sample_entries}),
        encoding="utf-8",
    )
    return file_path


@pytest.fixture
def permissive_settings():
    return TriageSettings(field_policy=FieldPolicy.PERMISSIVE)


@pytest.fixture
def strict_settings():
    return TriageSettings(field_policy=FieldPolicy.STRICT)


@pytest.fixture
def session(permissive_settings):
    """Session loaded with the demo dataset."""
    triage = TriageSession(settings=permissive_settings)
    triage.load(sample_dataset(), source="<demo>")
    return triage
