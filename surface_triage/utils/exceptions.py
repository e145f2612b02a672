"""
Custom exception classes for surface triage.

This module defines the exception hierarchy for the error conditions that
can be signalled to a caller. Classification and rule evaluation never
raise for data-shape reasons; only dataset ingestion, rule files, rule-set
bookkeeping and the strict field policy use these.
"""


class SurfaceTriageError(Exception):
    """
    Base exception class for all surface triage errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary containing additional error context
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the base exception.

        Args:
            message: Error message describing what went wrong
            details: Optional dictionary with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return a string representation of the exception."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class DatasetError(SurfaceTriageError):
    """
    Raised when a dataset cannot be ingested.

    The record set is never partially applied: when this is raised the
    caller's current records stay as they were.

    Attributes:
        source: Path or label of the dataset that failed
        reason: Specific reason for the failure
        entry_index: Index of the offending entry, if one was identified
    """

    def __init__(
        self,
        source: str = None,
        reason: str = None,
        entry_index: int = None,
    ):
        self.source = source
        self.reason = reason or "Dataset is not a valid record collection"
        self.entry_index = entry_index

        if source:
            message = f"Malformed dataset: {source}. {self.reason}"
        else:
            message = f"Malformed dataset. {self.reason}"

        details = {}
        if source:
            details["source"] = source
        if entry_index is not None:
            details["entry_index"] = entry_index

        super().__init__(message, details)


class RuleFileError(SurfaceTriageError):
    """Raised when a rule-set file cannot be read or has the wrong shape."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(
            f"Invalid rule file: {file_path}. {reason}",
            {"file_path": file_path},
        )


class UnknownFieldError(SurfaceTriageError):
    """
    Raised under the strict field policy when a rule names a field the
    category does not declare.

    Attributes:
        category: Category the lookup was made in
        field: The unresolved field key
    """

    def __init__(self, category: str, field: str):
        self.category = category
        self.field = field
        super().__init__(
            f"Unknown field '{field}' for category '{category}'",
            {"category": category, "field": field},
        )


class UnknownOperatorError(SurfaceTriageError):
    """
    Raised under the strict field policy when an operator is not valid for
    the field it is applied to.

    Attributes:
        operator: The rejected operator string
        field_kind: Kind of the field (text or enum)
    """

    def __init__(self, operator: str, field_kind: str):
        self.operator = operator
        self.field_kind = field_kind
        super().__init__(
            f"Operator '{operator}' is not valid for {field_kind} fields",
            {"operator": operator, "field_kind": field_kind},
        )


class RuleNotFoundError(SurfaceTriageError):
    """Raised when a rule id does not exist in the rule-set."""

    def __init__(self, rule_id: str, category: str = None):
        self.rule_id = rule_id
        self.category = category
        details = {"rule_id": rule_id}
        if category:
            details["category"] = category
        super().__init__(f"Rule not found: {rule_id}", details)


class DuplicateRuleError(SurfaceTriageError):
    """Raised when a rule id is already used in the rule-set."""

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Duplicate rule id: {rule_id}", {"rule_id": rule_id})
