"""JSON export of filtered triage views.

Serializes a category view (its rule-set and the matching records) in the
scanner's envelope shape, so an export can be loaded again as a dataset.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from surface_triage import __version__
from surface_triage.models import Record, RuleSet


class TriageJSONEncoder(json.JSONEncoder):
    """JSON encoder for triage data types.

    Handles serialization of:
    - datetime objects (ISO 8601 format)
    - Path objects (string representation)
    - Enum values (value extraction)
    - Pydantic models (dict conversion, wire aliases)
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Path):
            return str(obj)
        if isinstance(obj, Enum):
            return obj.value
        if hasattr(obj, "model_dump"):
            return obj.model_dump(by_alias=True, exclude_none=True)
        return super().default(obj)


class JSONExporter:
    """Exporter for filtered views to JSON.

    Provides methods to convert a view to a dictionary, a JSON string, or
    save it directly to a file.
    """

    def __init__(self, indent: int = 2, sort_keys: bool = False):
        """Initialize the JSON exporter.

        Args:
            indent: Number of spaces for indentation (default: 2)
            sort_keys: Whether to sort keys alphabetically (default: False)
        """
        self.indent = indent
        self.sort_keys = sort_keys

    def to_dict(
        self,
        records: Iterable[Record],
        rule_set: Optional[RuleSet] = None,
    ) -> dict:
        """Build the export envelope.

        Args:
            records: Records in the view
            rule_set: Rule-set that produced the view, recorded as filter

        Returns:
            Dictionary with generatedBy, entryCount, entries and filter
        """
        entries = [record.to_wire() for record in records]
        document = {
            "generatedBy": f"surface-triage {__version__}",
            "exportedAt": datetime.now(timezone.utc),
            "entryCount": len(entries),
            "entries": entries,
        }
        if rule_set is not None:
            document["filter"] = {
                "category": rule_set.category,
                "logic": rule_set.logic,
                "rules": [rule.model_dump() for rule in rule_set.rules],
            }
        return document

    def to_json(self, records: Iterable[Record], rule_set: Optional[RuleSet] = None) -> str:
        """Convert a view to a JSON string."""
        return json.dumps(
            self.to_dict(records, rule_set),
            cls=TriageJSONEncoder,
            indent=self.indent,
            sort_keys=self.sort_keys,
            ensure_ascii=False,
        )

    def to_file(
        self,
        records: Iterable[Record],
        file_path: Union[str, Path],
        rule_set: Optional[RuleSet] = None,
        encoding: str = "utf-8",
    ) -> Path:
        """Save a view to a JSON file, creating parent directories."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding=encoding) as f:
            f.write(self.to_json(records, rule_set))

        return file_path
