"""Surface Triage - rule-based filtering and severity classification for
execution surface inventories."""

__version__ = "1.0.0"

from surface_triage.models import Record, RuleLogic, RuleSet, Severity

__all__ = [
    "__version__",
    "Record",
    "RuleLogic",
    "RuleSet",
    "Severity",
]
