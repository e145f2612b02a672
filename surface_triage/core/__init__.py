"""
Core session and ingestion for surface triage.

- intake.py: scanner export and rule-file loading (DatasetLoader)
- normalizer.py: fills blank attributes of raw scanner entries
- session.py: TriageSession, the per-operator context object
"""

from surface_triage.core.intake import (
    DatasetLoader,
    load_dataset,
    load_rule_set,
    sample_dataset,
)
from surface_triage.core.normalizer import normalize_entry
from surface_triage.core.session import TriageSession

__all__ = [
    "DatasetLoader",
    "TriageSession",
    "load_dataset",
    "load_rule_set",
    "normalize_entry",
    "sample_dataset",
]
