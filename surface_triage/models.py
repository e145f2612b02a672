"""
Pydantic data models for execution surface triage.

This module defines the records produced by the inventory scanners, the
severity vocabulary, and the filter rules an operator composes over them.
Metadata is loosely typed: every lookup is total and missing keys read as
the empty string.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from surface_triage.utils.exceptions import DuplicateRuleError, RuleNotFoundError


class Severity(str, Enum):
    """Severity classification, ordered critical > high > medium > low."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank: 0=low, 1=medium, 2=high, 3=critical."""
        return _SEVERITY_RANKS[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["Severity"]:
        """Return the matching severity, or None for unrecognized values."""
        if isinstance(value, Severity):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


# Display order, highest first. Never re-sort this list alphabetically.
SEVERITY_ORDER = [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW]
_SEVERITY_RANKS = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class Scope(str, Enum):
    """Installation scope of a record."""
    PER_MACHINE = "per-machine"
    PER_USER = "per-user"


class Category(str, Enum):
    """Named partitions of the record set, one filter view each."""
    INVENTORY = "inventory"
    REGISTRY = "registry"
    AUTORUNS = "autoruns"
    SERVICES = "services"
    FILESYSTEM = "filesystem"

    @classmethod
    def from_string(cls, value: str) -> "Category":
        value = value.lower().strip()
        if value == "all":
            return cls.INVENTORY
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Invalid category: '{value}'. "
                f"Must be one of: {', '.join(c.value for c in cls)}"
            )


class FieldKind(str, Enum):
    """Whether a field is compared as free text or as a closed set of values."""
    TEXT = "text"
    ENUM = "enum"


class Operator(str, Enum):
    """Comparison operators available to filter rules."""
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IS = "is"
    IS_NOT = "is_not"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


# Operators that ignore the rule value
NULLARY_OPERATORS = frozenset({Operator.IS_EMPTY.value, Operator.IS_NOT_EMPTY.value})


class RuleLogic(str, Enum):
    """How the active rules of a rule-set are combined."""
    AND = "and"
    OR = "or"

    @classmethod
    def from_string(cls, value: str) -> "RuleLogic":
        value = value.lower().strip()
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Invalid rule logic: '{value}'. Must be one of: and, or"
            )


def _coerce_metadata_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return str(value)


class Record(BaseModel):
    """One discovered execution surface (software, autorun, service or file)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field("", description="Display identifier, not guaranteed unique")
    source: str = Field("", description="Scanner source tag used for category routing")
    kind: str = Field("", alias="type", description="Win32, Service, Driver, UWP, Portable, ...")
    scope: str = Field("", description="per-machine or per-user")
    user_sid: str = Field("N/A", alias="userSID", description="Owning identity, N/A for machine scope")
    explanation: str = Field("", description="Why this surface matters on the host")
    metadata: Dict[str, str] = Field(default_factory=dict, description="Category-specific metadata")
    raw_metadata: Dict[str, str] = Field(
        default_factory=dict,
        alias="rawMetadata",
        description="Unnormalized scanner metadata",
    )
    severity: Optional[str] = Field(None, description="critical, high, medium or low")
    severity_reasons: Optional[str] = Field(
        None,
        alias="severityReasons",
        description="Semicolon-joined reasons, primary reason first",
    )

    @field_validator("name", "source", "kind", "scope", "explanation", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Treat null scalars as empty strings."""
        return _coerce_metadata_value(v)

    @field_validator("user_sid", mode="before")
    @classmethod
    def coerce_user_sid(cls, v: Any) -> str:
        text = _coerce_metadata_value(v)
        return text or "N/A"

    @field_validator("severity", "severity_reasons", mode="before")
    @classmethod
    def coerce_optional_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return _coerce_metadata_value(v)

    @field_validator("metadata", "raw_metadata", mode="before")
    @classmethod
    def coerce_metadata(cls, v: Any) -> Dict[str, str]:
        """Metadata values arrive loosely typed; store everything as strings."""
        if not isinstance(v, dict):
            return {}
        return {str(key): _coerce_metadata_value(val) for key, val in v.items()}

    def meta(self, key: str) -> str:
        """Total metadata lookup: missing keys read as empty string."""
        return self.metadata.get(key, "")

    @property
    def path(self) -> str:
        return self.meta("path")

    @property
    def publisher(self) -> str:
        return self.meta("publisher") or self.raw_metadata.get("publisher", "")

    @property
    def uninstall_command(self) -> str:
        """Opaque uninstall command string, if the scanner reported one."""
        return self.meta("uninstallCmd")

    @property
    def severity_level(self) -> Optional[Severity]:
        return Severity.parse(self.severity)

    @property
    def reasons(self) -> List[str]:
        if not self.severity_reasons:
            return []
        return [r.strip() for r in self.severity_reasons.split(";") if r.strip()]

    @property
    def primary_reason(self) -> str:
        reasons = self.reasons
        return reasons[0] if reasons else ""

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with scanner field names (type, userSID, severityReasons)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Dataset(BaseModel):
    """Scanner export envelope."""
    model_config = ConfigDict(populate_by_name=True)

    generated_by: Optional[str] = Field(None, alias="generatedBy")
    entry_count: Optional[int] = Field(None, alias="entryCount")
    entries: List[Record] = Field(default_factory=list)


class Rule(BaseModel):
    """One filter clause: field, operator and value."""
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1, description="Unique within its rule-set")
    field: str = Field(..., description="Key into the category's field registry")
    operator: str = Field(..., description="Key into the operator catalog")
    value: str = Field("", description="Comparison value, ignored by arity-0 operators")

    @field_validator("field", "operator", mode="before")
    @classmethod
    def normalize_key(cls, v: Any) -> str:
        return _coerce_metadata_value(v).strip()

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> str:
        return _coerce_metadata_value(v)

    @property
    def is_nullary(self) -> bool:
        return self.operator.lower() in NULLARY_OPERATORS

    @property
    def is_active(self) -> bool:
        """Whether the rule currently exerts filtering pressure."""
        return self.is_nullary or bool(self.value.strip())


class RuleSet(BaseModel):
    """Ordered rules for one category view, combined under AND or OR."""

    category: Category = Category.INVENTORY
    logic: RuleLogic = RuleLogic.AND
    rules: List[Rule] = Field(default_factory=list)

    _id_counter: int = PrivateAttr(default=0)

    @model_validator(mode="after")
    def check_unique_ids(self) -> "RuleSet":
        seen = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"Duplicate rule id: {rule.id}")
            seen.add(rule.id)
        return self

    def _next_id(self) -> str:
        existing = {r.id for r in self.rules}
        while True:
            self._id_counter += 1
            candidate = f"rule-{self._id_counter}"
            if candidate not in existing:
                return candidate

    def add_rule(
        self,
        field: str,
        operator: str,
        value: str = "",
        rule_id: Optional[str] = None,
    ) -> Rule:
        """Append a rule and return it."""
        if rule_id is not None and any(r.id == rule_id for r in self.rules):
            raise DuplicateRuleError(rule_id)
        rule = Rule(id=rule_id or self._next_id(), field=field, operator=operator, value=value)
        self.rules.append(rule)
        return rule

    def get_rule(self, rule_id: str) -> Rule:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        raise RuleNotFoundError(rule_id, self.category.value)

    def update_rule(
        self,
        rule_id: str,
        field: Optional[str] = None,
        operator: Optional[str] = None,
        value: Optional[str] = None,
    ) -> Rule:
        """Edit a rule in place; omitted arguments are left unchanged."""
        rule = self.get_rule(rule_id)
        if field is not None:
            rule.field = field
        if operator is not None:
            rule.operator = operator
        if value is not None:
            rule.value = value
        return rule

    def remove_rule(self, rule_id: str) -> Rule:
        rule = self.get_rule(rule_id)
        self.rules.remove(rule)
        return rule

    def set_logic(self, logic: Union[RuleLogic, str]) -> None:
        self.logic = RuleLogic.from_string(logic)

    def toggle_logic(self) -> RuleLogic:
        self.logic = RuleLogic.OR if self.logic == RuleLogic.AND else RuleLogic.AND
        return self.logic

    def clear(self) -> None:
        self.rules = []

    def active_rules(self) -> List[Rule]:
        return [r for r in self.rules if r.is_active]
