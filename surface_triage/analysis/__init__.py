"""
Surface Triage - Analysis Module

Severity classification for execution surface records:
- Baseline rules (first match wins)
- Escalators (compose on top of the baseline, each with its own reason)
"""

from surface_triage.analysis.severity import (
    BASELINE_RULES,
    ESCALATORS,
    RecordFacts,
    SeverityClassifier,
    SeverityResult,
    SeverityRule,
    classify,
    effective_severity,
)

__all__ = [
    "BASELINE_RULES",
    "ESCALATORS",
    "RecordFacts",
    "SeverityClassifier",
    "SeverityResult",
    "SeverityRule",
    "classify",
    "effective_severity",
]
