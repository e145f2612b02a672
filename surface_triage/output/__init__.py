"""
Output module for surface triage.

Provides JSON export of filtered views and dashboard-style aggregates.
"""

from surface_triage.output.json_export import JSONExporter, TriageJSONEncoder
from surface_triage.output.summary import DatasetSummary, search_records, summarize

__all__ = [
    "DatasetSummary",
    "JSONExporter",
    "TriageJSONEncoder",
    "search_records",
    "summarize",
]
