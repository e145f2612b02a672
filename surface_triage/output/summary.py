"""Aggregate views over a filtered record set.

Severity breakdown with percentages, the most frequent scanner sources and
publishers, and a free-text search across every record attribute.
"""

import json
from collections import Counter
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from surface_triage.analysis.severity import effective_severity
from surface_triage.models import SEVERITY_ORDER, Record

TOP_SOURCES = 8
TOP_PUBLISHERS = 7


class SeverityBucket(BaseModel):
    """Count of records at one severity level."""
    severity: str
    count: int = Field(ge=0)
    percent: int = Field(ge=0, le=100)


class CountItem(BaseModel):
    label: str
    count: int = Field(ge=0)


class DatasetSummary(BaseModel):
    """Dashboard-style aggregates for one view."""
    total_loaded: int = Field(ge=0, description="Records in the loaded dataset")
    shown: int = Field(ge=0, description="Records in the summarized view")
    severities: List[SeverityBucket] = Field(default_factory=list)
    top_sources: List[CountItem] = Field(default_factory=list)
    top_publishers: List[CountItem] = Field(default_factory=list)

    def count_for(self, severity: str) -> int:
        for bucket in self.severities:
            if bucket.severity == severity:
                return bucket.count
        return 0


def search_records(records: Iterable[Record], query: str) -> List[Record]:
    """
    Keep records whose serialized form contains the query.

    Args:
        records: Records to search
        query: Case-insensitive text; blank keeps everything

    Returns:
        Matching records in input order
    """
    needle = query.strip().lower()
    records = list(records)
    if not needle:
        return records
    return [
        record for record in records
        if needle in json.dumps(record.to_wire(), ensure_ascii=False).lower()
    ]


def summarize(records: Iterable[Record], total_loaded: Optional[int] = None) -> DatasetSummary:
    """
    Build aggregates for a view.

    Args:
        records: Records in the view (already filtered)
        total_loaded: Size of the full dataset (default: size of the view)

    Returns:
        DatasetSummary
    """
    records = list(records)
    shown = len(records)
    denominator = max(shown, 1)

    by_severity: Dict[str, int] = Counter(effective_severity(r).value for r in records)
    severities = [
        SeverityBucket(
            severity=level.value,
            count=by_severity.get(level.value, 0),
            percent=round(by_severity.get(level.value, 0) / denominator * 100),
        )
        for level in SEVERITY_ORDER
    ]

    sources = Counter(r.source or "unknown" for r in records)
    publishers = Counter(r.publisher for r in records if r.publisher)

    return DatasetSummary(
        total_loaded=shown if total_loaded is None else total_loaded,
        shown=shown,
        severities=severities,
        top_sources=[CountItem(label=k, count=v) for k, v in sources.most_common(TOP_SOURCES)],
        top_publishers=[
            CountItem(label=k, count=v) for k, v in publishers.most_common(TOP_PUBLISHERS)
        ],
    )
