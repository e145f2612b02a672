"""
Surface Triage - Field Registry

Declares, per category, which fields a rule may target, how each field's
comparable value is extracted from a record, and whether it is free text
or an enumerated set.

Field tables are static. Enumerated options are either a fixed list
(returned verbatim, in domain order) or derived from the current record
set on every request.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from surface_triage.analysis.severity import classify, effective_severity
from surface_triage.config import FieldPolicy
from surface_triage.models import SEVERITY_ORDER, Category, FieldKind, Record, Scope
from surface_triage.utils.exceptions import UnknownFieldError

logger = logging.getLogger(__name__)

Extractor = Callable[[Record], str]


@dataclass(frozen=True)
class FieldDefinition:
    """One filterable field of a category."""

    key: str
    label: str
    extractor: Extractor
    kind: FieldKind = FieldKind.TEXT
    # None means "derive from data"
    options: Optional[Tuple[str, ...]] = None

    def extract(self, record: Record) -> str:
        value = self.extractor(record)
        return value if isinstance(value, str) else ""


def _meta(key: str) -> Extractor:
    return lambda record: record.meta(key)


def _severity(record: Record) -> str:
    return effective_severity(record).value


def _reasons(record: Record) -> str:
    if record.severity_reasons is not None:
        return record.severity_reasons
    return classify(record).reasons_text


SCOPE_OPTIONS = tuple(s.value for s in Scope)
SEVERITY_OPTIONS = tuple(s.value for s in SEVERITY_ORDER)

NAME = FieldDefinition("name", "Name", lambda r: r.name)
TYPE = FieldDefinition("type", "Type", lambda r: r.kind, FieldKind.ENUM)
SOURCE = FieldDefinition("source", "Source", lambda r: r.source, FieldKind.ENUM)
SCOPE = FieldDefinition("scope", "Scope", lambda r: r.scope, FieldKind.ENUM, SCOPE_OPTIONS)
PUBLISHER = FieldDefinition("publisher", "Publisher", lambda r: r.publisher)
SEVERITY = FieldDefinition("severity", "Severity", _severity, FieldKind.ENUM, SEVERITY_OPTIONS)
REASONS = FieldDefinition("severityReasons", "Severity Reasons", _reasons)
PATH = FieldDefinition("path", "Path", _meta("path"))
USER_SID = FieldDefinition("userSID", "User SID", lambda r: r.user_sid)

CATEGORY_FIELDS: Dict[Category, Tuple[FieldDefinition, ...]] = {
    Category.INVENTORY: (
        NAME, TYPE, SOURCE, SCOPE, PUBLISHER, SEVERITY, PATH, USER_SID, REASONS,
    ),
    Category.REGISTRY: (
        NAME,
        PUBLISHER,
        FieldDefinition("displayVersion", "Version", _meta("displayVersion")),
        FieldDefinition("installDate", "Install Date", _meta("installDate")),
        SOURCE,
        SCOPE,
        SEVERITY,
        PATH,
        FieldDefinition("uninstallCmd", "Uninstall Command", _meta("uninstallCmd")),
    ),
    Category.AUTORUNS: (
        NAME,
        FieldDefinition("mechanism", "Mechanism", _meta("mechanism"), FieldKind.ENUM),
        FieldDefinition("context", "Context", _meta("context"), FieldKind.ENUM),
        PATH,
        SCOPE,
        USER_SID,
        PUBLISHER,
        SEVERITY,
    ),
    Category.SERVICES: (
        NAME,
        FieldDefinition("serviceType", "Service Type", _meta("serviceType"), FieldKind.ENUM),
        FieldDefinition("startType", "Start Type", _meta("startType"), FieldKind.ENUM),
        FieldDefinition("objectName", "Account", _meta("objectName")),
        FieldDefinition(
            "fileExists", "Binary Present", _meta("fileExists"), FieldKind.ENUM, ("true", "false")
        ),
        FieldDefinition("resolvedPath", "Binary Path", _meta("resolvedPath")),
        FieldDefinition("failureActions", "Failure Action", _meta("failureActions"), FieldKind.ENUM),
        SEVERITY,
    ),
    Category.FILESYSTEM: (
        NAME,
        PATH,
        PUBLISHER,
        SCOPE,
        SEVERITY,
    ),
}


class FieldRegistry:
    """
    Lookup of field definitions per category.

    Unknown field keys resolve to the category's first field under the
    permissive policy, so a stale rule never breaks a view. Under the
    strict policy they raise UnknownFieldError.
    """

    def __init__(
        self,
        schemas: Optional[Dict[Category, Sequence[FieldDefinition]]] = None,
        policy: FieldPolicy = FieldPolicy.PERMISSIVE,
    ):
        source = CATEGORY_FIELDS if schemas is None else schemas
        self._schemas: Dict[Category, Tuple[FieldDefinition, ...]] = {
            Category.from_string(category): tuple(fields) for category, fields in source.items()
        }
        self.policy = policy

    def categories(self) -> List[Category]:
        return list(self._schemas)

    def fields_for(self, category: Union[Category, str]) -> List[FieldDefinition]:
        """Ordered field definitions for a category."""
        return list(self._schemas.get(Category.from_string(category), ()))

    def get(self, category: Union[Category, str], key: str) -> Optional[FieldDefinition]:
        """Exact lookup; None when the key is not declared."""
        for definition in self._schemas.get(Category.from_string(category), ()):
            if definition.key == key:
                return definition
        return None

    def resolve(self, category: Union[Category, str], key: str) -> FieldDefinition:
        """
        Resolve a rule's field key.

        Args:
            category: Category whose schema applies
            key: Field key stored in the rule

        Returns:
            The matching FieldDefinition, or the category's first one

        Raises:
            UnknownFieldError: key unknown under the strict policy, or the
                category declares no fields at all
        """
        category = Category.from_string(category)
        definition = self.get(category, key)
        if definition is not None:
            return definition

        fields = self._schemas.get(category, ())
        if self.policy == FieldPolicy.STRICT or not fields:
            raise UnknownFieldError(category.value, key)

        logger.debug(
            f"Unknown field '{key}' for {category.value}; falling back to '{fields[0].key}'"
        )
        return fields[0]

    def enum_options(
        self,
        category: Union[Category, str],
        key: str,
        records: Iterable[Record],
    ) -> List[str]:
        """
        Selectable values for a field.

        Fixed option lists are returned as declared. Otherwise the sorted,
        deduplicated, non-empty extracted values of the given records.
        """
        definition = self.resolve(category, key)
        if definition.options is not None:
            return list(definition.options)
        values = {definition.extract(record) for record in records}
        values.discard("")
        return sorted(values)


DEFAULT_REGISTRY = FieldRegistry()
