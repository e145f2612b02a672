"""
Dataset intake for surface triage.

Loads scanner exports of the shape ``{"entries": [...]}`` into Record
models, and loads saved rule-sets from YAML or JSON files.

Ingestion is all-or-nothing: a dataset either parses completely or a
DatasetError is raised and nothing is returned. An envelope whose
``entries`` is not a list is read as an empty record set.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from surface_triage.core.normalizer import normalize_entry
from surface_triage.core.sample_data import SAMPLE_ENTRIES
from surface_triage.models import Category, Dataset, Record, RuleLogic, RuleSet
from surface_triage.utils.exceptions import DatasetError, DuplicateRuleError, RuleFileError

logger = logging.getLogger(__name__)


class DatasetLoader:
    """Parses scanner exports into datasets of Record models."""

    def __init__(self, normalize: bool = True):
        """
        Initialize the loader.

        Args:
            normalize: Fill blank type/scope/userSID/explanation attributes
                from the scanner source before validation
        """
        self.normalize = normalize

    def load_file(self, file_path: Union[str, Path]) -> Dataset:
        """
        Load a scanner export from disk.

        Args:
            file_path: Path to the JSON export

        Returns:
            Dataset with validated records

        Raises:
            DatasetError: If the file cannot be read or parsed
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise DatasetError(str(file_path), "File does not exist")
        if not file_path.is_file():
            raise DatasetError(str(file_path), "Path is not a file")

        try:
            text = file_path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise DatasetError(str(file_path), f"Failed to read file: {e}")

        return self.load_text(text, source=str(file_path))

    def load_text(self, text: str, source: str = "<string>") -> Dataset:
        """Parse a JSON document into a dataset."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DatasetError(source, f"Invalid JSON: {e.msg} (line {e.lineno})")

        return self.load_data(data, source=source)

    def load_data(self, data: Any, source: str = "<data>") -> Dataset:
        """
        Validate decoded JSON data into a dataset.

        Args:
            data: Decoded document
            source: Label used in log messages and errors

        Returns:
            Dataset; empty when the document has no entry list

        Raises:
            DatasetError: If an entry is not an object or fails validation
        """
        if not isinstance(data, dict):
            logger.warning(f"{source}: top-level document is not an object; no entries loaded")
            return Dataset()

        entries = data.get("entries")
        if not isinstance(entries, list):
            logger.warning(f"{source}: 'entries' is not a list; no entries loaded")
            return Dataset(generatedBy=_optional_text(data.get("generatedBy")))

        records = self.parse_entries(entries, source)
        logger.info(f"Loaded {len(records)} entries from {source}")

        return Dataset(
            generatedBy=_optional_text(data.get("generatedBy")),
            entryCount=len(records),
            entries=records,
        )

    def parse_entries(self, entries: Iterable[Any], source: str = "<data>") -> List[Record]:
        """Validate raw entries; any bad entry rejects the whole batch."""
        records: List[Record] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, Mapping):
                raise DatasetError(source, "Entry is not an object", entry_index=index)
            if self.normalize:
                entry = normalize_entry(entry)
            try:
                records.append(Record.model_validate(dict(entry)))
            except ValidationError as e:
                raise DatasetError(source, f"Invalid entry: {e.error_count()} error(s)", entry_index=index)
        return records


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def load_dataset(file_path: Union[str, Path], normalize: bool = True) -> Dataset:
    """Convenience wrapper around DatasetLoader.load_file."""
    return DatasetLoader(normalize=normalize).load_file(file_path)


def sample_dataset() -> Dataset:
    """The built-in demo dataset."""
    return DatasetLoader().load_data(
        {"generatedBy": "surface-triage demo data", "entries": SAMPLE_ENTRIES},
        source="<demo>",
    )


def load_rule_set(
    rules_path: Union[str, Path],
    category: Optional[Category] = None,
) -> RuleSet:
    """
    Load a rule-set from a YAML or JSON file.

    Expected shape::

        category: autoruns        # optional
        logic: or                 # optional, default and
        rules:
          - field: mechanism
            operator: is
            value: run_key

    Args:
        rules_path: Path to the rule file
        category: Category to bind the rules to; overrides the file's own

    Returns:
        RuleSet with generated rule ids where none were given

    Raises:
        RuleFileError: If the file is missing, unparsable or mis-shaped
    """
    rules_path = Path(rules_path)
    if not rules_path.exists():
        raise RuleFileError(str(rules_path), "File does not exist")

    suffix = rules_path.suffix.lower()
    try:
        with open(rules_path, "r", encoding="utf-8") as f:
            if suffix in [".yaml", ".yml"]:
                config = yaml.safe_load(f)
            elif suffix == ".json":
                config = json.load(f)
            else:
                raise RuleFileError(str(rules_path), f"Unsupported format: {suffix}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise RuleFileError(str(rules_path), f"Parse error: {e}")

    if not isinstance(config, dict) or not isinstance(config.get("rules"), list):
        raise RuleFileError(str(rules_path), "Rules file must contain a 'rules' list")

    try:
        target = category or Category.from_string(str(config.get("category", "inventory")))
        logic = RuleLogic.from_string(str(config.get("logic", "and")))
    except ValueError as e:
        raise RuleFileError(str(rules_path), str(e))

    rule_set = RuleSet(category=target, logic=logic)
    for index, rule_data in enumerate(config["rules"]):
        if not isinstance(rule_data, dict) or "field" not in rule_data or "operator" not in rule_data:
            raise RuleFileError(
                str(rules_path), f"Rule {index} must be a mapping with 'field' and 'operator'"
            )
        try:
            rule_set.add_rule(
                field=rule_data["field"],
                operator=rule_data["operator"],
                value=rule_data.get("value", ""),
                rule_id=_optional_text(rule_data.get("id")),
            )
        except (ValidationError, ValueError, DuplicateRuleError) as e:
            raise RuleFileError(str(rules_path), f"Rule {index} is invalid: {e}")

    logger.debug(f"Loaded {len(rule_set.rules)} rule(s) for {target.value} from {rules_path}")
    return rule_set
